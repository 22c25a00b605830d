"""Nearest reference shade search.

Four strategies are selected by ``MatchOptions`` (plain LAB, weighted LAB,
HSV-aware, combined). Each one scores every catalog shade with its own metric,
scaled by a per-family factor, and keeps the lowest score. The confidence score
always starts from the unadjusted ΔE of the winner so results stay comparable
across strategies.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from .calibration import apply_hsv_offset
from .catalog import ShadeCatalog, default_catalog
from .config import DEFAULT_MATCHING_CONFIG, MatchingConfig
from .conversions import lab_to_rgb_float, rgb_to_hsv
from .distance import delta_e, delta_hsv, weighted_delta_e
from .models import (
    HSV,
    LAB,
    CalibrationOffset,
    MatchOptions,
    MatchResult,
    MatchStrategy,
    Shade,
)

logger = logging.getLogger(__name__)

FAMILY_EXPLANATIONS = {
    "A": "A shades: Reddish-brown undertones",
    "B": "B shades: Yellowish undertones",
    "C": "C shades: Grayish undertones",
    "D": "D shades: Reddish-gray undertones",
}
UNKNOWN_FAMILY_EXPLANATION = "Unknown shade family"


class NoMatchError(RuntimeError):
    pass


@dataclass(frozen=True)
class HsvDerivation:
    """Outcome of deriving a sample's HSV; ``hsv`` is None when degraded."""

    hsv: HSV | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.hsv is not None


@dataclass(frozen=True)
class _Candidate:
    shade: Shade
    delta_e: float
    weighted_delta_e: float
    delta_hsv: float | None
    score: float


def derive_sample_hsv(
    sample_lab: LAB, calibration: CalibrationOffset | None = None
) -> HsvDerivation:
    if not all(math.isfinite(v) for v in sample_lab):
        return HsvDerivation(hsv=None, error=f"non-finite LAB sample {sample_lab}")

    rgb = lab_to_rgb_float(sample_lab)
    if not all(math.isfinite(v) for v in rgb):
        return HsvDerivation(hsv=None, error=f"LAB {sample_lab} has no RGB equivalent")

    hsv = rgb_to_hsv(*rgb)
    if calibration is not None and calibration.has_hsv:
        calibrated = apply_hsv_offset(calibration, hsv)
        logger.debug(f"Applied HSV calibration: {hsv} -> {calibrated}")
        hsv = calibrated
    return HsvDerivation(hsv=hsv)


def family_explanation(shade_name: str) -> str:
    return FAMILY_EXPLANATIONS.get(shade_name[:1], UNKNOWN_FAMILY_EXPLANATION)


class ShadeMatcher:
    def __init__(
        self,
        catalog: ShadeCatalog | None = None,
        config: MatchingConfig | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else default_catalog()
        self.config = config if config is not None else DEFAULT_MATCHING_CONFIG

    def find_closest_shade(
        self,
        sample_lab: LAB,
        options: MatchOptions | None = None,
        calibration: CalibrationOffset | None = None,
    ) -> MatchResult:
        options = options or MatchOptions()
        shades = self.catalog.load()
        if not shades:
            raise NoMatchError("shade catalog is empty")

        strategy = options.strategy
        sample_hsv: HSV | None = None
        hsv_degraded = False
        if strategy.uses_hsv:
            derivation = derive_sample_hsv(sample_lab, calibration)
            if derivation.ok:
                sample_hsv = derivation.hsv
            else:
                logger.warning(
                    f"HSV derivation failed, falling back to LAB-only matching: {derivation.error}"
                )
                hsv_degraded = True
                strategy = MatchStrategy.from_flags(False, options.use_weighted_delta_e)

        # min() keeps the first of equal scores, so catalog order breaks ties.
        best = min(
            (self._score(shade, sample_lab, sample_hsv, strategy) for shade in shades),
            key=lambda candidate: candidate.score,
        )
        confidence = self._confidence(best, strategy)
        result = MatchResult(
            shade=best.shade,
            delta_e=best.delta_e,
            confidence_score=confidence,
            shade_family_explanation=family_explanation(best.shade.name),
            strategy=strategy,
            weighted_delta_e=_weighted_metric(best, strategy),
            delta_hsv=_hsv_metric(best, strategy),
            combined_delta=best.score if strategy is MatchStrategy.COMBINED else None,
            hsv_degraded=hsv_degraded,
        )
        logger.debug(
            f"Matched {result.shade.name} via {strategy.value}: "
            f"dE={result.delta_e:.2f} confidence={result.confidence_score:.1f}"
        )
        return result

    def _score(
        self,
        shade: Shade,
        sample_lab: LAB,
        sample_hsv: HSV | None,
        strategy: MatchStrategy,
    ) -> _Candidate:
        cfg = self.config
        family = shade.family
        factor = cfg.family_factor(strategy, family)

        d_e = delta_e(sample_lab, shade.lab)
        w_de = (
            weighted_delta_e(sample_lab, shade.lab, cfg.lab_weights)
            if strategy.uses_weighted
            else d_e
        )
        d_hsv = (
            delta_hsv(sample_hsv, shade.hsv, cfg.hsv_weights)
            if sample_hsv is not None
            else None
        )

        if strategy is MatchStrategy.COMBINED and d_hsv is not None:
            hsv_weight = cfg.combined_hsv_weight_for(family)
            normalized_lab = w_de / cfg.lab_normalization
            score = (d_hsv * hsv_weight + normalized_lab * (1.0 - hsv_weight)) * factor
        elif strategy is MatchStrategy.HSV_AWARE and sample_hsv is not None and d_hsv is not None:
            emphasis = (
                abs(sample_hsv[0] - shade.hsv[0]) / cfg.hue_emphasis_divisor
            ) ** cfg.hue_emphasis_exponent * cfg.hue_emphasis_scale
            d_hsv = d_hsv * (cfg.hue_emphasis_base + emphasis * cfg.hue_emphasis_weight) * factor
            score = d_hsv
        elif strategy is MatchStrategy.WEIGHTED_LAB:
            w_de = w_de * factor
            score = w_de
        else:
            score = d_e

        return _Candidate(
            shade=shade,
            delta_e=d_e,
            weighted_delta_e=w_de,
            delta_hsv=d_hsv,
            score=score,
        )

    def _confidence(self, best: _Candidate, strategy: MatchStrategy) -> float:
        cfg = self.config
        base_penalty = min(best.delta_e * cfg.base_penalty_scale, cfg.base_penalty_cap)
        score = 100.0 - base_penalty

        policy = cfg.confidence_policies.get(strategy)
        if policy is not None:
            score += min(base_penalty * policy.recovery_rate, policy.recovery_cap)
            score -= min(best.score * policy.penalty_scale, policy.penalty_cap)

        if strategy is MatchStrategy.COMBINED:
            score += cfg.dual_enhancement_boost
        elif strategy is not MatchStrategy.PLAIN_LAB:
            score += cfg.single_enhancement_boost

        return max(0.0, min(100.0, score))


def find_closest_shade(
    sample_lab: LAB,
    options: MatchOptions | None = None,
    calibration: CalibrationOffset | None = None,
    catalog: ShadeCatalog | None = None,
    config: MatchingConfig | None = None,
) -> MatchResult:
    matcher = ShadeMatcher(catalog=catalog, config=config)
    return matcher.find_closest_shade(sample_lab, options, calibration)


def _weighted_metric(best: _Candidate, strategy: MatchStrategy) -> float | None:
    return best.weighted_delta_e if strategy.uses_weighted else None


def _hsv_metric(best: _Candidate, strategy: MatchStrategy) -> float | None:
    return best.delta_hsv if strategy.uses_hsv else None
