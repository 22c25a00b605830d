from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

RGB = tuple[int, int, int]
LAB = tuple[float, float, float]
HSV = tuple[float, float, float]


def _subtract(left: tuple[float, ...], right: tuple[float, ...]) -> tuple[float, ...]:
    return tuple(float(lv - rv) for lv, rv in zip(left, right))


@dataclass(frozen=True)
class Shade:
    name: str
    lab: LAB
    hsv: HSV

    @property
    def family(self) -> str:
        return self.name[:1]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "lab": [float(v) for v in self.lab],
            "hsv": [float(v) for v in self.hsv],
        }


@dataclass(frozen=True)
class CalibrationOffset:
    """Measured-vs-reference pair captured against a known shade tab."""

    measured_lab: LAB
    reference_lab: LAB
    reference_shade_name: str
    measured_hsv: HSV | None = None
    reference_hsv: HSV | None = None

    @property
    def lab_offset(self) -> LAB:
        return _subtract(self.reference_lab, self.measured_lab)  # type: ignore[return-value]

    @property
    def has_hsv(self) -> bool:
        return self.measured_hsv is not None and self.reference_hsv is not None

    @property
    def hsv_offset(self) -> HSV | None:
        if not self.has_hsv:
            return None
        return _subtract(self.reference_hsv, self.measured_hsv)  # type: ignore[arg-type,return-value]

    def to_dict(self) -> dict[str, Any]:
        return {
            "measured_lab": [float(v) for v in self.measured_lab],
            "reference_lab": [float(v) for v in self.reference_lab],
            "reference_shade_name": self.reference_shade_name,
            "measured_hsv": None
            if self.measured_hsv is None
            else [float(v) for v in self.measured_hsv],
            "reference_hsv": None
            if self.reference_hsv is None
            else [float(v) for v in self.reference_hsv],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> CalibrationOffset:
        measured_hsv = payload.get("measured_hsv")
        reference_hsv = payload.get("reference_hsv")
        return cls(
            measured_lab=_as_triple(payload["measured_lab"]),
            reference_lab=_as_triple(payload["reference_lab"]),
            reference_shade_name=str(payload.get("reference_shade_name", "")),
            measured_hsv=None if measured_hsv is None else _as_triple(measured_hsv),
            reference_hsv=None if reference_hsv is None else _as_triple(reference_hsv),
        )


class MatchStrategy(str, Enum):
    PLAIN_LAB = "plain_lab"
    WEIGHTED_LAB = "weighted_lab"
    HSV_AWARE = "hsv_aware"
    COMBINED = "combined"

    @classmethod
    def from_flags(cls, use_hsv: bool, use_weighted_delta_e: bool) -> MatchStrategy:
        if use_hsv and use_weighted_delta_e:
            return cls.COMBINED
        if use_hsv:
            return cls.HSV_AWARE
        if use_weighted_delta_e:
            return cls.WEIGHTED_LAB
        return cls.PLAIN_LAB

    @property
    def uses_hsv(self) -> bool:
        return self in (MatchStrategy.HSV_AWARE, MatchStrategy.COMBINED)

    @property
    def uses_weighted(self) -> bool:
        return self in (MatchStrategy.WEIGHTED_LAB, MatchStrategy.COMBINED)


@dataclass(frozen=True)
class MatchOptions:
    use_hsv: bool = False
    use_weighted_delta_e: bool = False

    @property
    def strategy(self) -> MatchStrategy:
        return MatchStrategy.from_flags(self.use_hsv, self.use_weighted_delta_e)


@dataclass(frozen=True)
class MatchResult:
    shade: Shade
    delta_e: float
    confidence_score: float
    shade_family_explanation: str
    strategy: MatchStrategy
    weighted_delta_e: float | None = None
    delta_hsv: float | None = None
    combined_delta: float | None = None
    hsv_degraded: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "shade": self.shade.to_dict(),
            "delta_e": float(self.delta_e),
            "weighted_delta_e": _optional_float(self.weighted_delta_e),
            "delta_hsv": _optional_float(self.delta_hsv),
            "combined_delta": _optional_float(self.combined_delta),
            "confidence_score": float(self.confidence_score),
            "shade_family_explanation": self.shade_family_explanation,
            "strategy": self.strategy.value,
            "hsv_degraded": self.hsv_degraded,
        }


@dataclass(frozen=True)
class ColorDifference:
    delta_e: float
    delta_l: float
    delta_a: float
    delta_b: float
    significant: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "delta_e": float(self.delta_e),
            "delta_l": float(self.delta_l),
            "delta_a": float(self.delta_a),
            "delta_b": float(self.delta_b),
            "significant": self.significant,
        }


@dataclass(frozen=True)
class ClinicalSuggestion:
    text: str
    difference: ColorDifference
    reference_values: LAB

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "difference": self.difference.to_dict(),
            "reference_values": [float(v) for v in self.reference_values],
        }


def _optional_float(value: float | None) -> float | None:
    return None if value is None else float(value)


def _as_triple(values: Any) -> tuple[float, float, float]:
    if isinstance(values, dict):
        lowered = {str(key).lower(): value for key, value in values.items()}
        if {"l", "a", "b"} <= lowered.keys():
            values = (lowered["l"], lowered["a"], lowered["b"])
        else:
            values = (lowered["h"], lowered["s"], lowered["v"])
    first, second, third = values
    return float(first), float(second), float(third)


@dataclass(frozen=True)
class AnalysisResult:
    rgb: RGB | None
    lab: LAB
    adjusted_lab: LAB
    match: MatchResult
    swatch_hex: str
    suggestion: ClinicalSuggestion | None
    warnings: list[str]
    exposure: dict[str, float] | None = None
    hsv_description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rgb": None if self.rgb is None else list(self.rgb),
            "lab": [float(v) for v in self.lab],
            "adjusted_lab": [float(v) for v in self.adjusted_lab],
            "match": self.match.to_dict(),
            "swatch_hex": self.swatch_hex,
            "hsv_description": self.hsv_description,
            "suggestion": None if self.suggestion is None else self.suggestion.to_dict(),
            "exposure": self.exposure,
            "warnings": list(self.warnings),
        }
