from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
from skimage.draw import disk

from .models import RGB

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SamplingConfig:
    """Per-session sampling settings: circle size and exposure masking thresholds."""

    radius: int = 30
    overexposed_threshold: float = 245.0
    underexposed_threshold: float = 25.0
    mask_intensity: float = 0.5
    threshold_adjustment: float = 45.0
    min_overexposed_threshold: float = 150.0
    max_underexposed_threshold: float = 100.0

    def effective_thresholds(self) -> tuple[float, float]:
        factor = intensity_factor(self.mask_intensity)
        over = max(
            self.overexposed_threshold - factor * self.threshold_adjustment,
            self.min_overexposed_threshold,
        )
        under = min(
            self.underexposed_threshold + factor * self.threshold_adjustment,
            self.max_underexposed_threshold,
        )
        return over, under


@dataclass(frozen=True)
class ExposureMask:
    # True marks pixels excluded from sampling.
    mask: np.ndarray
    overexposed_percentage: float
    underexposed_percentage: float

    @property
    def total_masked_percentage(self) -> float:
        return self.overexposed_percentage + self.underexposed_percentage

    def to_dict(self) -> dict[str, Any]:
        return {
            "overexposed_percentage": float(self.overexposed_percentage),
            "underexposed_percentage": float(self.underexposed_percentage),
            "total_masked_percentage": float(self.total_masked_percentage),
        }


def intensity_factor(mask_intensity: float) -> float:
    # Linear up to 0.5, then a gentler power curve so 100% is not overwhelming.
    if mask_intensity < 0.5:
        return mask_intensity * 2.5
    return ((mask_intensity - 0.5) * 2.0) ** 1.5 * 2.5 + 1.25


def build_exposure_mask(
    image_rgb: np.ndarray, config: SamplingConfig | None = None
) -> ExposureMask:
    _check_image(image_rgb)
    config = config or SamplingConfig()
    over, under = config.effective_thresholds()

    pixels = image_rgb.astype(np.float64)
    overexposed = np.all(pixels > over, axis=2)
    underexposed = np.all(pixels < under, axis=2) & ~overexposed

    total = float(overexposed.size) or 1.0
    result = ExposureMask(
        mask=overexposed | underexposed,
        overexposed_percentage=float(np.count_nonzero(overexposed)) / total * 100.0,
        underexposed_percentage=float(np.count_nonzero(underexposed)) / total * 100.0,
    )
    logger.info(
        f"Mask generated: {result.overexposed_percentage:.1f}% overexposed, "
        f"{result.underexposed_percentage:.1f}% underexposed"
    )
    return result


def sample_region_mean(
    image_rgb: np.ndarray,
    center: tuple[float, float],
    config: SamplingConfig | None = None,
    exposure_mask: ExposureMask | None = None,
) -> RGB | None:
    """Mean RGB inside a circle centred on ``center`` (x, y).

    Pixels outside the image or flagged by ``exposure_mask`` are skipped.
    Returns None when nothing is left to average.
    """
    _check_image(image_rgb)
    config = config or SamplingConfig()
    if config.radius < 1:
        raise ValueError("sampling radius must be at least 1 pixel")

    height, width = image_rgb.shape[:2]
    x, y = center
    rows, cols = disk((float(np.floor(y)), float(np.floor(x))), config.radius + 0.5)
    inside = (rows >= 0) & (rows < height) & (cols >= 0) & (cols < width)
    rows, cols = rows[inside], cols[inside]
    if exposure_mask is not None:
        if exposure_mask.mask.shape != (height, width):
            raise ValueError("exposure mask shape must match image dimensions")
        keep = ~exposure_mask.mask[rows, cols]
        rows, cols = rows[keep], cols[keep]

    if rows.size == 0:
        logger.warning(f"No usable pixels around ({x:.0f}, {y:.0f})")
        return None

    mean = image_rgb[rows, cols].astype(np.float64).mean(axis=0)
    rounded = np.clip(np.floor(mean + 0.5), 0, 255).astype(np.uint8)
    return int(rounded[0]), int(rounded[1]), int(rounded[2])


def _check_image(image_rgb: np.ndarray) -> None:
    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise ValueError("image_rgb must have shape (H, W, 3)")
