from __future__ import annotations

import logging

import pytest

from shadematch.src.shade_core import matcher as matcher_module
from shadematch.src.shade_core.catalog import ShadeCatalog
from shadematch.src.shade_core.config import MatchingConfig
from shadematch.src.shade_core.matcher import (
    HsvDerivation,
    NoMatchError,
    ShadeMatcher,
    derive_sample_hsv,
    family_explanation,
    find_closest_shade,
)
from shadematch.src.shade_core.models import CalibrationOffset, MatchOptions, MatchStrategy

ALL_OPTIONS = [
    MatchOptions(),
    MatchOptions(use_weighted_delta_e=True),
    MatchOptions(use_hsv=True),
    MatchOptions(use_hsv=True, use_weighted_delta_e=True),
]

SAMPLES = [
    (77.0, 1.4, 18.0),
    (81.0, 1.0, 10.0),
    (66.0, 4.0, 30.0),
    (85.0, -1.0, 8.0),
    (72.5, 0.1, 16.2),
    (40.0, 10.0, -5.0),
]


@pytest.mark.parametrize("options", ALL_OPTIONS, ids=lambda o: o.strategy.value)
def test_exact_reference_matches_itself_with_full_confidence(options):
    result = find_closest_shade((77.0, 1.4, 18.0), options)

    assert result.shade.name == "A2"
    assert result.delta_e == pytest.approx(0.0)
    assert result.confidence_score == pytest.approx(100.0)
    assert result.strategy is options.strategy
    assert result.shade_family_explanation == "A shades: Reddish-brown undertones"


@pytest.mark.parametrize("options", ALL_OPTIONS, ids=lambda o: o.strategy.value)
def test_every_strategy_returns_catalog_shade(options):
    names = set(ShadeCatalog().names)

    for sample in SAMPLES:
        result = find_closest_shade(sample, options)
        assert result.shade.name in names
        assert 0.0 <= result.confidence_score <= 100.0


def test_matching_is_deterministic():
    options = MatchOptions(use_hsv=True, use_weighted_delta_e=True)

    first = find_closest_shade((72.5, 0.1, 16.2), options)
    second = find_closest_shade((72.5, 0.1, 16.2), options)

    assert first.to_dict() == second.to_dict()


def test_plain_confidence_never_rises_with_delta_e():
    results = [find_closest_shade((77.0 + step, 1.4, 18.0)) for step in range(0, 30, 2)]
    results.sort(key=lambda result: result.delta_e)

    scores = [result.confidence_score for result in results]
    assert scores == sorted(scores, reverse=True)


def test_plain_confidence_formula():
    result = find_closest_shade((78.0, 1.4, 18.0))

    assert result.shade.name == "A2"
    assert result.delta_e == pytest.approx(1.0)
    assert result.confidence_score == pytest.approx(80.0)


def test_strategy_metrics_are_reported_per_strategy():
    sample = (72.5, 0.1, 16.2)

    plain = find_closest_shade(sample)
    weighted = find_closest_shade(sample, MatchOptions(use_weighted_delta_e=True))
    hsv = find_closest_shade(sample, MatchOptions(use_hsv=True))
    combined = find_closest_shade(
        sample, MatchOptions(use_hsv=True, use_weighted_delta_e=True)
    )

    assert plain.weighted_delta_e is None and plain.delta_hsv is None
    assert weighted.weighted_delta_e is not None and weighted.delta_hsv is None
    assert hsv.delta_hsv is not None and hsv.weighted_delta_e is None
    assert combined.combined_delta is not None
    assert combined.weighted_delta_e is not None and combined.delta_hsv is not None


def test_weighted_family_factor_breaks_equal_distances():
    catalog = ShadeCatalog.from_records(
        {"A9": {"L": 50, "a": 0, "b": 0}, "B9": {"L": 54, "a": 0, "b": 0}}
    )
    matcher = ShadeMatcher(catalog=catalog)

    plain = matcher.find_closest_shade((52.0, 0.0, 0.0))
    weighted = matcher.find_closest_shade(
        (52.0, 0.0, 0.0), MatchOptions(use_weighted_delta_e=True)
    )

    assert plain.shade.name == "A9"
    assert weighted.shade.name == "B9"
    assert weighted.weighted_delta_e == pytest.approx((0.8 * 4) ** 0.5 * 0.95)


def test_family_factors_come_from_config():
    catalog = ShadeCatalog.from_records(
        {"A9": {"L": 50, "a": 0, "b": 0}, "B9": {"L": 54, "a": 0, "b": 0}}
    )
    config = MatchingConfig(
        family_factors={MatchStrategy.WEIGHTED_LAB: {"A": 0.5, "B": 2.0}}
    )

    result = find_closest_shade(
        (52.0, 0.0, 0.0),
        MatchOptions(use_weighted_delta_e=True),
        catalog=catalog,
        config=config,
    )

    assert result.shade.name == "A9"


def test_hsv_failure_degrades_to_lab_matching(monkeypatch, caplog):
    monkeypatch.setattr(
        matcher_module,
        "derive_sample_hsv",
        lambda sample_lab, calibration=None: HsvDerivation(hsv=None, error="boom"),
    )

    with caplog.at_level(logging.WARNING, logger=matcher_module.__name__):
        combined = find_closest_shade(
            (77.0, 1.4, 18.0), MatchOptions(use_hsv=True, use_weighted_delta_e=True)
        )
        hsv_only = find_closest_shade((77.0, 1.4, 18.0), MatchOptions(use_hsv=True))

    assert combined.hsv_degraded
    assert combined.strategy is MatchStrategy.WEIGHTED_LAB
    assert combined.shade.name == "A2"
    assert hsv_only.strategy is MatchStrategy.PLAIN_LAB
    assert hsv_only.delta_hsv is None
    assert "falling back to LAB-only" in caplog.text


def test_derive_sample_hsv_reports_non_finite_input():
    derivation = derive_sample_hsv((float("nan"), 0.0, 0.0))

    assert not derivation.ok
    assert derivation.error


def test_derive_sample_hsv_applies_hsv_calibration():
    raw = derive_sample_hsv((77.0, 1.4, 18.0))
    offset = CalibrationOffset(
        measured_lab=(0.0, 0.0, 0.0),
        reference_lab=(0.0, 0.0, 0.0),
        reference_shade_name="A2",
        measured_hsv=(0.0, 0.0, 0.5),
        reference_hsv=(0.0, 0.0, 0.4),
    )

    calibrated = derive_sample_hsv((77.0, 1.4, 18.0), offset)

    assert raw.ok and calibrated.ok
    assert calibrated.hsv[2] == pytest.approx(raw.hsv[2] - 0.1)


def test_empty_catalog_raises_no_match():
    with pytest.raises(NoMatchError):
        find_closest_shade((77.0, 1.4, 18.0), catalog=ShadeCatalog.from_records({}))


def test_family_explanations():
    assert family_explanation("B2") == "B shades: Yellowish undertones"
    assert family_explanation("C4") == "C shades: Grayish undertones"
    assert family_explanation("D3") == "D shades: Reddish-gray undertones"
    assert family_explanation("OM1") == "Unknown shade family"


FIXED_SAMPLE_HSV = (0.3, 0.5, 0.6)


def _fix_sample_hsv(monkeypatch):
    monkeypatch.setattr(
        matcher_module,
        "derive_sample_hsv",
        lambda sample_lab, calibration=None: HsvDerivation(hsv=FIXED_SAMPLE_HSV),
    )


def _expected_hsv_distance(sample_hsv, shade_hsv):
    hue_gap = abs(sample_hsv[0] - shade_hsv[0])
    return (
        0.5 * min(hue_gap, 1.0 - hue_gap)
        + 0.3 * abs(sample_hsv[1] - shade_hsv[1])
        + 0.2 * abs(sample_hsv[2] - shade_hsv[2])
    )


def test_weighted_confidence_applies_recovery_penalty_and_boost():
    catalog = ShadeCatalog.from_records({"B5": {"L": 50, "a": 0, "b": 0}})

    result = find_closest_shade(
        (52.0, 0.0, 0.0), MatchOptions(use_weighted_delta_e=True), catalog=catalog
    )

    weighted = (0.8 * 4) ** 0.5 * 0.95
    assert result.weighted_delta_e == pytest.approx(weighted)
    assert result.confidence_score == pytest.approx(100.0 - 40.0 + 6.0 - weighted * 18.0 + 2.0)


def test_weighted_confidence_caps_recovery_and_penalty():
    catalog = ShadeCatalog.from_records({"D5": {"L": 50, "a": 0, "b": 0}})

    result = find_closest_shade(
        (80.0, 0.0, 0.0), MatchOptions(use_weighted_delta_e=True), catalog=catalog
    )

    assert result.delta_e == pytest.approx(30.0)
    assert result.confidence_score == pytest.approx(100.0 - 60.0 + 8.0 - 40.0 + 2.0)


@pytest.mark.parametrize(
    ("family", "factor"), [("A", 0.9), ("B", 1.0), ("C", 1.1), ("D", 0.8)]
)
def test_hsv_aware_score_uses_hue_emphasis_and_family_factor(monkeypatch, family, factor):
    _fix_sample_hsv(monkeypatch)
    name = f"{family}7"
    catalog = ShadeCatalog.from_records({name: {"L": 60, "a": 0, "b": 0}})
    shade_hsv = catalog.get(name).hsv

    result = find_closest_shade((62.0, 0.0, 0.0), MatchOptions(use_hsv=True), catalog=catalog)

    emphasis = (abs(FIXED_SAMPLE_HSV[0] - shade_hsv[0]) / 180.0) ** 0.7 * 2.0
    score = _expected_hsv_distance(FIXED_SAMPLE_HSV, shade_hsv) * (0.7 + 0.3 * emphasis) * factor
    assert result.strategy is MatchStrategy.HSV_AWARE
    assert result.delta_hsv == pytest.approx(score)
    assert result.confidence_score == pytest.approx(
        100.0 - 40.0 + 8.0 - min(score * 25.0, 45.0) + 2.0
    )


@pytest.mark.parametrize(
    ("family", "factor", "hsv_weight"),
    [("A", 0.95, 0.55), ("B", 1.05, 0.45), ("C", 1.10, 0.45), ("D", 0.90, 0.45)],
)
def test_combined_score_blends_hsv_and_normalised_lab(monkeypatch, family, factor, hsv_weight):
    _fix_sample_hsv(monkeypatch)
    name = f"{family}7"
    catalog = ShadeCatalog.from_records({name: {"L": 60, "a": 0, "b": 0}})
    shade_hsv = catalog.get(name).hsv

    result = find_closest_shade(
        (62.0, 1.0, 3.0),
        MatchOptions(use_hsv=True, use_weighted_delta_e=True),
        catalog=catalog,
    )

    weighted = (0.8 * 4 + 1.2 * 1 + 1.5 * 9) ** 0.5
    hsv_distance = _expected_hsv_distance(FIXED_SAMPLE_HSV, shade_hsv)
    combined = (hsv_distance * hsv_weight + weighted / 30.0 * (1.0 - hsv_weight)) * factor
    assert result.delta_e == pytest.approx(14 ** 0.5)
    assert result.weighted_delta_e == pytest.approx(weighted)
    assert result.delta_hsv == pytest.approx(hsv_distance)
    assert result.combined_delta == pytest.approx(combined)
    assert result.confidence_score == pytest.approx(
        100.0 - 60.0 + 15.0 - min(combined * 20.0, 30.0) + 4.0
    )


def test_enhanced_strategies_on_default_catalog():
    weighted = find_closest_shade((75.0, 2.0, 20.0), MatchOptions(use_weighted_delta_e=True))
    combined = find_closest_shade(
        (75.0, 2.0, 20.0), MatchOptions(use_hsv=True, use_weighted_delta_e=True)
    )

    assert weighted.shade.name == "B3"
    assert weighted.delta_e == pytest.approx(1.676, abs=0.001)
    assert weighted.weighted_delta_e == pytest.approx(1.764, abs=0.001)
    assert weighted.confidence_score == pytest.approx(41.75, abs=0.01)
    assert combined.confidence_score == pytest.approx(81.94, abs=0.01)
