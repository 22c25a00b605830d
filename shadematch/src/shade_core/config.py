"""Tunable constants for shade matching.

The family factors and confidence recovery constants are empirical; they are
kept here so a deployment can re-tune them without touching the matcher.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .distance import DEFAULT_HSV_WEIGHTS, DEFAULT_LAB_WEIGHTS, HsvWeights, LabWeights
from .models import MatchStrategy


def _frozen(table: dict[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(table))


DEFAULT_FAMILY_FACTORS: Mapping[MatchStrategy, Mapping[str, float]] = MappingProxyType(
    {
        MatchStrategy.PLAIN_LAB: _frozen({}),
        MatchStrategy.WEIGHTED_LAB: _frozen({"A": 1.05, "B": 0.95, "C": 1.10, "D": 0.90}),
        MatchStrategy.HSV_AWARE: _frozen({"A": 0.9, "B": 1.0, "C": 1.1, "D": 0.8}),
        MatchStrategy.COMBINED: _frozen({"A": 0.95, "B": 1.05, "C": 1.10, "D": 0.90}),
    }
)


@dataclass(frozen=True)
class ConfidencePolicy:
    """Penalty/recovery constants for one enhanced strategy."""

    recovery_rate: float
    recovery_cap: float
    penalty_scale: float
    penalty_cap: float


DEFAULT_CONFIDENCE_POLICIES: Mapping[MatchStrategy, ConfidencePolicy] = MappingProxyType(
    {
        MatchStrategy.WEIGHTED_LAB: ConfidencePolicy(0.15, 8.0, 18.0, 40.0),
        MatchStrategy.HSV_AWARE: ConfidencePolicy(0.2, 10.0, 25.0, 45.0),
        MatchStrategy.COMBINED: ConfidencePolicy(0.3, 15.0, 20.0, 30.0),
    }
)


@dataclass(frozen=True)
class MatchingConfig:
    lab_weights: LabWeights = DEFAULT_LAB_WEIGHTS
    hsv_weights: HsvWeights = DEFAULT_HSV_WEIGHTS
    # Weighted LAB distance is divided by this to land roughly in [0, 1].
    lab_normalization: float = 30.0
    combined_hsv_weight: float = 0.45
    combined_hsv_weight_by_family: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"A": 0.55})
    )
    family_factors: Mapping[MatchStrategy, Mapping[str, float]] = field(
        default_factory=lambda: DEFAULT_FAMILY_FACTORS
    )
    hue_emphasis_divisor: float = 180.0
    hue_emphasis_exponent: float = 0.7
    hue_emphasis_scale: float = 2.0
    hue_emphasis_base: float = 0.7
    hue_emphasis_weight: float = 0.3
    base_penalty_scale: float = 20.0
    base_penalty_cap: float = 60.0
    confidence_policies: Mapping[MatchStrategy, ConfidencePolicy] = field(
        default_factory=lambda: DEFAULT_CONFIDENCE_POLICIES
    )
    single_enhancement_boost: float = 2.0
    dual_enhancement_boost: float = 4.0

    def family_factor(self, strategy: MatchStrategy, family: str) -> float:
        return self.family_factors.get(strategy, {}).get(family, 1.0)

    def combined_hsv_weight_for(self, family: str) -> float:
        return self.combined_hsv_weight_by_family.get(family, self.combined_hsv_weight)


DEFAULT_MATCHING_CONFIG = MatchingConfig()
