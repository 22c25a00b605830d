from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import numpy as np

from .models import HSV, LAB, CalibrationOffset

if TYPE_CHECKING:
    from .catalog import ShadeCatalog

logger = logging.getLogger(__name__)

MIN_CALIBRATION_SAMPLES = 3
MAX_CALIBRATION_SAMPLES = 5


class CalibrationError(ValueError):
    pass


def compute_offset(
    samples: Sequence[LAB],
    reference_lab: LAB,
    reference_shade_name: str = "",
    samples_hsv: Sequence[HSV | None] | None = None,
    reference_hsv: HSV | None = None,
) -> CalibrationOffset:
    """Average 3-5 points sampled on a known shade tab into a calibration offset.

    HSV is only averaged when every sample carries it and a reference HSV is
    given; otherwise the offset is LAB-only.
    """
    if not MIN_CALIBRATION_SAMPLES <= len(samples) <= MAX_CALIBRATION_SAMPLES:
        raise CalibrationError(
            f"calibration needs {MIN_CALIBRATION_SAMPLES}-{MAX_CALIBRATION_SAMPLES} "
            f"samples, got {len(samples)}"
        )

    measured_lab = _mean_triple(samples)

    measured_hsv: HSV | None = None
    if (
        reference_hsv is not None
        and samples_hsv is not None
        and len(samples_hsv) == len(samples)
        and all(hsv is not None for hsv in samples_hsv)
    ):
        measured_hsv = _mean_triple(samples_hsv)  # type: ignore[arg-type]

    offset = CalibrationOffset(
        measured_lab=measured_lab,
        reference_lab=tuple(float(v) for v in reference_lab),  # type: ignore[arg-type]
        reference_shade_name=reference_shade_name,
        measured_hsv=measured_hsv,
        reference_hsv=None if measured_hsv is None else reference_hsv,
    )
    dl, da, db = offset.lab_offset
    logger.debug(
        f"Calibration against {reference_shade_name or 'reference'}: "
        f"offset L={dl:+.2f} a={da:+.2f} b={db:+.2f}"
    )
    return offset


def calibration_from_catalog(
    samples: Sequence[LAB],
    shade_name: str,
    catalog: ShadeCatalog,
    samples_hsv: Sequence[HSV | None] | None = None,
) -> CalibrationOffset:
    shade = catalog.get(shade_name)
    if shade is None:
        raise CalibrationError(f"unknown reference shade '{shade_name}'")
    return compute_offset(
        samples,
        reference_lab=shade.lab,
        reference_shade_name=shade.name,
        samples_hsv=samples_hsv,
        reference_hsv=shade.hsv,
    )


def apply_offset(offset: CalibrationOffset | None, raw_lab: LAB) -> LAB:
    if offset is None:
        return raw_lab
    dl, da, db = offset.lab_offset
    return (raw_lab[0] + dl, raw_lab[1] + da, raw_lab[2] + db)


def apply_hsv_offset(offset: CalibrationOffset | None, raw_hsv: HSV) -> HSV:
    hsv_offset = None if offset is None else offset.hsv_offset
    if hsv_offset is None:
        return raw_hsv
    dh, ds, dv = hsv_offset
    hue = (raw_hsv[0] + dh) % 1.0
    # Tiny negative sums wrap to exactly 1.0 in float arithmetic.
    if hue >= 1.0:
        hue = 0.0
    saturation = min(max(raw_hsv[1] + ds, 0.0), 1.0)
    value = min(max(raw_hsv[2] + dv, 0.0), 1.0)
    return (hue, saturation, value)


def _mean_triple(values: Sequence[tuple[float, float, float]]) -> tuple[float, float, float]:
    mean = np.mean(np.asarray(values, dtype=np.float64).reshape(-1, 3), axis=0)
    return float(mean[0]), float(mean[1]), float(mean[2])
