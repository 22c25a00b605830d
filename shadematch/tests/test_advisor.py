from __future__ import annotations

import logging

import numpy as np
import pytest

from shadematch.src.shade_core import advisor as advisor_module
from shadematch.src.shade_core.advisor import generate_clinical_suggestion


def test_lighter_sample_suggests_lighter_enamel():
    suggestion = generate_clinical_suggestion((81.0, 1.0, 10.0), "A2")

    assert suggestion.difference.delta_l == pytest.approx(4.0)
    assert suggestion.difference.significant
    assert suggestion.reference_values == (77.0, 1.4, 18.0)
    assert "appears lighter than A2" in suggestion.text
    assert "ΔL: +4.0" in suggestion.text
    assert "A1 enamel over A2 dentine" in suggestion.text


def test_lightness_takes_priority_over_yellow_difference():
    suggestion = generate_clinical_suggestion((81.0, 1.0, 10.0), "A2")

    assert suggestion.difference.delta_b == pytest.approx(-8.0)
    assert "yellow" not in suggestion.text


def test_darker_sample_suggests_darker_dentine():
    suggestion = generate_clinical_suggestion((70.0, 1.4, 18.0), "A2")

    assert "appears darker than A2 (ΔL: -7.0)" in suggestion.text
    assert "A2 enamel over A3 dentine" in suggestion.text


def test_red_green_advice():
    redder = generate_clinical_suggestion((77.0, 3.4, 18.0), "A2")
    greener = generate_clinical_suggestion((77.0, -0.6, 18.0), "A2")

    assert "reddish/pink" in redder.text
    assert "Δa: +2.0" in redder.text
    assert "grayish/green" in greener.text


def test_yellow_blue_advice_uses_warmer_dentine():
    yellower = generate_clinical_suggestion((77.0, 1.4, 21.0), "A2")
    bluer = generate_clinical_suggestion((77.0, 1.4, 15.0), "A2")

    assert "more yellow/warmth" in yellower.text
    assert "A2 enamel over A3 dentine" in yellower.text
    assert "less yellow/warmth" in bluer.text


def test_overall_difference_when_no_single_axis_exceeds_threshold():
    suggestion = generate_clinical_suggestion((79.5, 2.6, 19.9), "A2")

    assert suggestion.difference.delta_e > advisor_module.DELTA_E_THRESHOLD
    assert "overall color difference is significant" in suggestion.text


def test_close_sample_is_excellent():
    suggestion = generate_clinical_suggestion((77.5, 1.2, 18.5), "A2")

    assert not suggestion.difference.significant
    assert "Color match is excellent" in suggestion.text


def test_explicit_reference_overrides_fallback_table():
    suggestion = generate_clinical_suggestion(
        (60.0, 0.0, 10.0), "X1", matched_shade_lab=(60.0, 0.0, 10.0)
    )

    assert suggestion.reference_values == (60.0, 0.0, 10.0)
    assert suggestion.difference.delta_e == 0.0


@pytest.mark.parametrize(
    ("sample", "shade"),
    [
        ((77.0, 1.4, 18.0), "Z9"),
        ((float("nan"), 1.4, 18.0), "A2"),
        ((77.0, 1.4), "A2"),
    ],
)
def test_unusable_input_returns_generic_suggestion(sample, shade, caplog):
    with caplog.at_level(logging.WARNING, logger=advisor_module.__name__):
        suggestion = generate_clinical_suggestion(sample, shade)

    assert f"Use {shade} as your base shade" in suggestion.text
    assert suggestion.reference_values == (0.0, 0.0, 0.0)
    assert not suggestion.difference.significant
    assert "using generic suggestion" in caplog.text


def test_array_inputs_are_accepted():
    suggestion = generate_clinical_suggestion(
        np.array([81.0, 1.0, 10.0]), "A2", np.array([77.0, 1.4, 18.0])
    )

    assert suggestion.difference.delta_l == pytest.approx(4.0)
    assert suggestion.reference_values == pytest.approx((77.0, 1.4, 18.0))
    assert "A1 enamel over A2 dentine" in suggestion.text
