"""Color space conversions between sRGB, CIELAB and HSV.

The RGB <-> LAB path uses the 4-digit sRGB/D65 matrices and the 7.787 linear
segment, so values line up with shade references authored against the same
formulas. Inputs are single colors; helpers accept any array-like triple.
"""
from __future__ import annotations

import numpy as np
from skimage import color as skcolor

from .models import HSV, LAB, RGB

# D65 reference white, XYZ on a 0-100 scale
D65_WHITE = np.array([95.047, 100.0, 108.883], dtype=np.float64)

_RGB_TO_XYZ = np.array(
    [
        [0.4124, 0.3576, 0.1805],
        [0.2126, 0.7152, 0.0722],
        [0.0193, 0.1192, 0.9505],
    ],
    dtype=np.float64,
)

_XYZ_TO_RGB = np.array(
    [
        [3.2406, -1.5372, -0.4986],
        [-0.9689, 1.8758, 0.0415],
        [0.0557, -0.2040, 1.0570],
    ],
    dtype=np.float64,
)

_LAB_EPSILON = 0.008856
_LAB_SLOPE = 7.787
_LAB_OFFSET = 16.0 / 116.0


def rgb_to_lab(r: float, g: float, b: float) -> LAB:
    rgb = np.array([r, g, b], dtype=np.float64) / 255.0
    linear = np.where(rgb > 0.04045, ((rgb + 0.055) / 1.055) ** 2.4, rgb / 12.92)
    xyz = _RGB_TO_XYZ @ (linear * 100.0)

    normalized = xyz / D65_WHITE
    f = np.where(
        normalized > _LAB_EPSILON,
        np.cbrt(normalized),
        _LAB_SLOPE * normalized + _LAB_OFFSET,
    )
    fx, fy, fz = f
    return (
        float(116.0 * fy - 16.0),
        float(500.0 * (fx - fy)),
        float(200.0 * (fy - fz)),
    )


def lab_to_rgb_float(lab: LAB) -> tuple[float, float, float]:
    """Approximate inverse of ``rgb_to_lab`` on a continuous 0-255 scale."""
    l_star, a_star, b_star = (float(v) for v in lab)
    fy = (l_star + 16.0) / 116.0
    fx = a_star / 500.0 + fy
    fz = fy - b_star / 200.0

    f = np.array([fx, fy, fz], dtype=np.float64)
    cubed = f**3
    xyz = np.where(cubed > _LAB_EPSILON, cubed, (f - _LAB_OFFSET) / _LAB_SLOPE)
    xyz = xyz * (D65_WHITE / 100.0)

    linear = _XYZ_TO_RGB @ xyz
    encoded = np.where(
        linear > 0.0031308,
        1.055 * np.power(np.maximum(linear, 0.0), 1.0 / 2.4) - 0.055,
        12.92 * linear,
    )
    clipped = np.clip(encoded, 0.0, 1.0) * 255.0
    return float(clipped[0]), float(clipped[1]), float(clipped[2])


def lab_to_rgb(lab: LAB) -> RGB:
    # Lossy: only good enough for reference swatches.
    rgb = np.rint(np.asarray(lab_to_rgb_float(lab), dtype=np.float64))
    clipped = np.clip(rgb, 0, 255).astype(np.uint8)
    return int(clipped[0]), int(clipped[1]), int(clipped[2])


def rgb_to_hsv(r: float, g: float, b: float) -> HSV:
    rgb_arr = np.array([r, g, b], dtype=np.float64).reshape(1, 1, 3) / 255.0
    hsv = skcolor.rgb2hsv(np.clip(rgb_arr, 0.0, 1.0)).reshape(3)
    return float(hsv[0]), float(hsv[1]), float(hsv[2])


def rgb_to_hex(rgb: RGB) -> str:
    return f"#{rgb[0]:02X}{rgb[1]:02X}{rgb[2]:02X}"


def describe_hsv_color(hsv: HSV) -> str:
    """Return a short 'value saturation hue' phrase, e.g. 'light somewhat gray orange-red'."""
    hue = hsv[0] * 360.0
    saturation = hsv[1] * 100.0
    value = hsv[2] * 100.0

    if hue < 30:
        hue_desc = "red"
    elif hue < 60:
        hue_desc = "orange-red"
    elif hue < 90:
        hue_desc = "yellow-orange"
    elif hue < 150:
        hue_desc = "yellow-green"
    elif hue < 195:
        hue_desc = "green"
    elif hue < 240:
        hue_desc = "cyan"
    elif hue < 270:
        hue_desc = "blue"
    elif hue < 290:
        hue_desc = "purple"
    elif hue < 330:
        hue_desc = "magenta"
    else:
        hue_desc = "red"

    sat_desc = _band(
        saturation,
        ("very gray", "somewhat gray", "moderately saturated", "saturated", "very saturated"),
    )
    val_desc = _band(value, ("very dark", "dark", "medium", "light", "very light"))
    return f"{val_desc} {sat_desc} {hue_desc}"


def _band(percent: float, labels: tuple[str, str, str, str, str]) -> str:
    for limit, label in zip((15, 35, 65, 85), labels):
        if percent < limit:
            return label
    return labels[-1]


def shade_swatch_hex(lab: LAB) -> str:
    return rgb_to_hex(lab_to_rgb(lab))
