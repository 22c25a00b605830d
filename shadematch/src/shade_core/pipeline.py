from __future__ import annotations

import logging
from pathlib import Path

from .advisor import generate_clinical_suggestion
from .calibration import apply_offset
from .catalog import ShadeCatalog, default_catalog
from .config import MatchingConfig
from .conversions import describe_hsv_color, rgb_to_lab, shade_swatch_hex
from .io import read_image_rgb, save_mask_image
from .matcher import ShadeMatcher, derive_sample_hsv
from .models import LAB, RGB, AnalysisResult, CalibrationOffset, MatchOptions
from .sampling import SamplingConfig, build_exposure_mask, sample_region_mean

logger = logging.getLogger(__name__)

# Above this share of masked pixels the sampled color is likely unreliable.
HIGH_MASK_COVERAGE_PERCENT = 50.0


class ShadeAnalysisPipeline:
    def __init__(
        self,
        catalog: ShadeCatalog | None = None,
        matching_config: MatchingConfig | None = None,
        sampling_config: SamplingConfig | None = None,
        use_exposure_mask: bool = False,
        suggest: bool = True,
    ) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()
        self.matcher = ShadeMatcher(catalog=self.catalog, config=matching_config)
        self.sampling_config = sampling_config or SamplingConfig()
        self.use_exposure_mask = use_exposure_mask
        self.suggest = suggest

    def analyze_lab(
        self,
        lab: LAB,
        options: MatchOptions | None = None,
        calibration: CalibrationOffset | None = None,
        rgb: RGB | None = None,
        warnings: list[str] | None = None,
        exposure: dict[str, float] | None = None,
    ) -> AnalysisResult:
        warnings = list(warnings or [])
        adjusted_lab = apply_offset(calibration, lab)

        match = self.matcher.find_closest_shade(adjusted_lab, options, calibration)
        if match.hsv_degraded:
            warnings.append("hsv_unavailable_using_lab_only")

        sample_hsv = derive_sample_hsv(adjusted_lab, calibration)
        hsv_description = describe_hsv_color(sample_hsv.hsv) if sample_hsv.ok else None

        suggestion = None
        if self.suggest:
            suggestion = generate_clinical_suggestion(
                adjusted_lab, match.shade.name, match.shade.lab
            )

        return AnalysisResult(
            rgb=rgb,
            lab=lab,
            adjusted_lab=adjusted_lab,
            match=match,
            swatch_hex=shade_swatch_hex(match.shade.lab),
            suggestion=suggestion,
            warnings=warnings,
            exposure=exposure,
            hsv_description=hsv_description,
        )

    def analyze_rgb(
        self,
        rgb: RGB,
        options: MatchOptions | None = None,
        calibration: CalibrationOffset | None = None,
        warnings: list[str] | None = None,
        exposure: dict[str, float] | None = None,
    ) -> AnalysisResult:
        return self.analyze_lab(
            rgb_to_lab(*rgb),
            options=options,
            calibration=calibration,
            rgb=rgb,
            warnings=warnings,
            exposure=exposure,
        )

    def run(
        self,
        image_path: str | Path,
        point: tuple[float, float],
        options: MatchOptions | None = None,
        calibration: CalibrationOffset | None = None,
        debug_mask_out: str | Path | None = None,
    ) -> AnalysisResult:
        image_rgb = read_image_rgb(image_path)
        warnings: list[str] = []

        exposure_mask = None
        if self.use_exposure_mask:
            exposure_mask = build_exposure_mask(image_rgb, self.sampling_config)
            if exposure_mask.total_masked_percentage > HIGH_MASK_COVERAGE_PERCENT:
                warnings.append("high_exposure_mask_coverage")
            if debug_mask_out:
                save_mask_image(exposure_mask.mask, debug_mask_out)

        rgb = sample_region_mean(image_rgb, point, self.sampling_config, exposure_mask)
        if rgb is None and exposure_mask is not None:
            warnings.append("region_fully_masked_using_unmasked_pixels")
            rgb = sample_region_mean(image_rgb, point, self.sampling_config)
        if rgb is None:
            raise ValueError(f"sample point {point} lies outside the image")

        logger.info(f"Sampled RGB {rgb} at ({point[0]:.0f}, {point[1]:.0f})")
        return self.analyze_rgb(
            rgb,
            options=options,
            calibration=calibration,
            warnings=warnings,
            exposure=None if exposure_mask is None else exposure_mask.to_dict(),
        )
