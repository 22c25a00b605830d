from __future__ import annotations

import math
from dataclasses import dataclass

from .models import HSV, LAB


@dataclass(frozen=True)
class LabWeights:
    # b* (yellow-blue) and a* (red-green) drive shade perception more than L*.
    L: float = 0.8
    a: float = 1.2
    b: float = 1.5


@dataclass(frozen=True)
class HsvWeights:
    h: float = 0.5
    s: float = 0.3
    v: float = 0.2


DEFAULT_LAB_WEIGHTS = LabWeights()
DEFAULT_HSV_WEIGHTS = HsvWeights()


def delta_e(lab1: LAB, lab2: LAB) -> float:
    return math.sqrt(
        (lab1[0] - lab2[0]) ** 2 + (lab1[1] - lab2[1]) ** 2 + (lab1[2] - lab2[2]) ** 2
    )


def weighted_delta_e(
    lab1: LAB,
    lab2: LAB,
    weights: LabWeights = DEFAULT_LAB_WEIGHTS,
) -> float:
    return math.sqrt(
        weights.L * (lab1[0] - lab2[0]) ** 2
        + weights.a * (lab1[1] - lab2[1]) ** 2
        + weights.b * (lab1[2] - lab2[2]) ** 2
    )


def circular_hue_distance(h1: float, h2: float) -> float:
    """Distance between two hues on the unit circle; never exceeds 0.5."""
    diff = abs(h1 - h2) % 1.0
    return min(diff, 1.0 - diff)


def delta_hsv(
    hsv1: HSV,
    hsv2: HSV,
    weights: HsvWeights = DEFAULT_HSV_WEIGHTS,
) -> float:
    """Weighted linear HSV distance: ``wh*dH + ws*dS + wv*dV``.

    Inputs are normalized to [0, 1], so the result stays roughly in [0, 1].
    """
    delta_h = circular_hue_distance(hsv1[0], hsv2[0])
    delta_s = abs(hsv1[1] - hsv2[1])
    delta_v = abs(hsv1[2] - hsv2[2])
    return weights.h * delta_h + weights.s * delta_s + weights.v * delta_v
