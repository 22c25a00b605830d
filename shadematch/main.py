from __future__ import annotations

import argparse
import json
import logging
import sys

from shadematch.src.shade_core.calibration import calibration_from_catalog
from shadematch.src.shade_core.catalog import ShadeCatalog, default_catalog
from shadematch.src.shade_core.io import (
    SupportsToDict,
    read_calibration_json,
    write_result_json,
)
from shadematch.src.shade_core.matcher import NoMatchError, derive_sample_hsv
from shadematch.src.shade_core.models import MatchOptions
from shadematch.src.shade_core.pipeline import ShadeAnalysisPipeline
from shadematch.src.shade_core.sampling import SamplingConfig

logger = logging.getLogger(__name__)


def _add_match_flags(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--hsv",
        action="store_true",
        help="Blend HSV distance into the match (hue-aware).",
    )
    subparser.add_argument(
        "--weighted",
        action="store_true",
        help="Use the per-channel weighted ΔE instead of plain ΔE.",
    )
    subparser.add_argument(
        "--calibration",
        default=None,
        help="Calibration JSON written by the 'calibrate' command.",
    )
    subparser.add_argument(
        "--catalog",
        default=None,
        help="Path to a reference shade catalog (.json/.csv). Defaults to VITA classical.",
    )
    subparser.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shadematch",
        description="Match tooth color samples to reference dental shades.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging on stderr."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    match = subparsers.add_parser(
        "match", help="Match a single LAB or RGB sample to the closest shade."
    )
    sample = match.add_mutually_exclusive_group(required=True)
    sample.add_argument(
        "--lab", nargs=3, type=float, metavar=("L", "A", "B"), help="CIELAB sample."
    )
    sample.add_argument(
        "--rgb", nargs=3, type=int, metavar=("R", "G", "B"), help="sRGB sample (0-255)."
    )
    match.add_argument(
        "--suggest",
        action="store_true",
        help="Include a clinical layering suggestion for the matched shade.",
    )
    _add_match_flags(match)

    analyze = subparsers.add_parser(
        "analyze", help="Sample a circular region of a photo and match it."
    )
    analyze.add_argument("--image", required=True, help="Path to the input image.")
    analyze.add_argument("--x", type=float, required=True, help="Sample center x (px).")
    analyze.add_argument("--y", type=float, required=True, help="Sample center y (px).")
    analyze.add_argument(
        "--radius", type=int, default=30, help="Sampling circle radius in pixels."
    )
    analyze.add_argument(
        "--exposure-mask",
        action="store_true",
        help="Skip over- and under-exposed pixels when sampling.",
    )
    analyze.add_argument(
        "--mask-intensity",
        type=float,
        default=0.5,
        help="Exposure mask aggressiveness between 0 and 1.",
    )
    analyze.add_argument(
        "--debug-mask-out",
        default=None,
        help="Optional path to save the exposure mask image.",
    )
    _add_match_flags(analyze)

    calibrate = subparsers.add_parser(
        "calibrate",
        help="Build a calibration offset from 3-5 samples of a known shade tab.",
    )
    calibrate.add_argument(
        "--shade", required=True, help="Reference shade the samples were taken from."
    )
    calibrate.add_argument(
        "--lab",
        nargs=3,
        type=float,
        action="append",
        required=True,
        metavar=("L", "A", "B"),
        help="Measured CIELAB sample; repeat 3-5 times.",
    )
    calibrate.add_argument(
        "--catalog",
        default=None,
        help="Path to a reference shade catalog (.json/.csv). Defaults to VITA classical.",
    )
    calibrate.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )

    return parser


def _catalog(path: str | None) -> ShadeCatalog:
    return ShadeCatalog(path) if path else default_catalog()


def _emit(result: SupportsToDict, out: str | None) -> None:
    if out:
        write_result_json(result, out)
    else:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))


def _run(args: argparse.Namespace) -> SupportsToDict:
    if args.command == "calibrate":
        samples = [tuple(lab) for lab in args.lab]
        samples_hsv = [derive_sample_hsv(lab).hsv for lab in samples]
        return calibration_from_catalog(
            samples, args.shade, _catalog(args.catalog), samples_hsv=samples_hsv
        )

    options = MatchOptions(use_hsv=args.hsv, use_weighted_delta_e=args.weighted)
    calibration = read_calibration_json(args.calibration) if args.calibration else None

    if args.command == "match":
        pipeline = ShadeAnalysisPipeline(
            catalog=_catalog(args.catalog), suggest=args.suggest
        )
        if args.lab is not None:
            return pipeline.analyze_lab(tuple(args.lab), options, calibration)
        if not all(0 <= channel <= 255 for channel in args.rgb):
            raise ValueError("--rgb channels must be between 0 and 255")
        return pipeline.analyze_rgb(tuple(args.rgb), options, calibration)

    pipeline = ShadeAnalysisPipeline(
        catalog=_catalog(args.catalog),
        sampling_config=SamplingConfig(
            radius=args.radius, mask_intensity=args.mask_intensity
        ),
        use_exposure_mask=bool(args.exposure_mask),
    )
    return pipeline.run(
        image_path=args.image,
        point=(args.x, args.y),
        options=options,
        calibration=calibration,
        debug_mask_out=args.debug_mask_out,
    )


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        result = _run(args)
    except (ValueError, NoMatchError, OSError) as exc:
        # CatalogLoadError and CalibrationError are ValueErrors.
        logger.debug("command failed", exc_info=True)
        parser.error(str(exc))

    _emit(result, args.out)


if __name__ == "__main__":
    main()
