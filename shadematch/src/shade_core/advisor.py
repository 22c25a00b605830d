"""Layering advice from the difference between a tooth sample and its matched shade.

Dentine is the warm, opaque, chromatic layer; enamel is the cool, translucent
one. Only the first significant axis is reported, checked in the order
lightness, a*, b*, then overall ΔE, so a sample that is both lighter and more
yellow gets the lightness advice only.
"""
from __future__ import annotations

import logging
import math

from .models import LAB, ClinicalSuggestion, ColorDifference
from .shade_codes import darker_shade, lighter_shade, warmer_shade

logger = logging.getLogger(__name__)

# Used only when the caller has no catalog LAB for the matched shade.
FALLBACK_SHADE_LAB: dict[str, LAB] = {
    "A1": (79.8, 0.3, 16.0),
    "A2": (77.0, 1.4, 18.0),
    "A3": (74.7, 1.9, 21.5),
    "A3.5": (72.2, 2.3, 24.0),
    "A4": (69.0, 3.0, 26.5),
    "B1": (81.5, -0.5, 12.0),
    "B2": (78.5, -0.1, 16.5),
    "B3": (75.0, 0.4, 19.5),
    "B4": (72.0, 1.0, 22.5),
    "C1": (79.0, -0.8, 10.5),
    "C2": (75.0, -0.2, 14.0),
    "C3": (72.0, 0.2, 17.5),
    "C4": (68.5, 0.7, 20.0),
    "D2": (77.0, -0.5, 12.0),
    "D3": (73.5, 0.0, 15.0),
    "D4": (70.0, 0.5, 18.0),
    "OM1": (83.5, -0.8, 10.0),
    "OM2": (82.0, -0.6, 12.0),
    "OM3": (80.5, -0.4, 14.0),
}

L_THRESHOLD = 3.0
A_THRESHOLD = 1.5
B_THRESHOLD = 2.0
DELTA_E_THRESHOLD = 3.3


def generate_clinical_suggestion(
    sample_lab: LAB,
    matched_shade_name: str,
    matched_shade_lab: LAB | None = None,
) -> ClinicalSuggestion:
    reference = (
        matched_shade_lab
        if matched_shade_lab is not None
        else FALLBACK_SHADE_LAB.get(matched_shade_name)
    )
    if reference is None or not _is_well_formed(sample_lab, reference):
        logger.warning(
            f"No usable LAB reference for shade {matched_shade_name}, using generic suggestion"
        )
        return ClinicalSuggestion(
            text=(
                f"The closest match is {matched_shade_name}. For optimal esthetic results: "
                f"Use {matched_shade_name} as your base shade with standard layering technique."
            ),
            difference=ColorDifference(
                delta_e=0.0, delta_l=0.0, delta_a=0.0, delta_b=0.0, significant=False
            ),
            reference_values=(0.0, 0.0, 0.0),
        )

    delta_l = float(sample_lab[0] - reference[0])
    delta_a = float(sample_lab[1] - reference[1])
    delta_b = float(sample_lab[2] - reference[2])
    delta_e = math.sqrt(delta_l**2 + delta_a**2 + delta_b**2)

    significant_l = abs(delta_l) > L_THRESHOLD
    significant_a = abs(delta_a) > A_THRESHOLD
    significant_b = abs(delta_b) > B_THRESHOLD
    significant_e = delta_e > DELTA_E_THRESHOLD
    significant = significant_l or significant_a or significant_b or significant_e

    name = matched_shade_name
    text = f"The closest match is {name}. "
    if not significant:
        text += (
            f"Color match is excellent (ΔE: {delta_e:.1f}). "
            f"Use {name} as a single shade or with standard layering technique."
        )
    elif significant_l:
        text += _lightness_advice(name, delta_l)
    elif significant_a:
        text += _red_green_advice(name, delta_a)
    elif significant_b:
        text += _yellow_blue_advice(name, delta_b)
    else:
        text += (
            f"The overall color difference is significant (ΔE: {delta_e:.1f}). "
            f"Consider detailed layering with {name} as your base shade, "
            "and adjust translucency based on the restoration's position and lighting conditions."
        )

    return ClinicalSuggestion(
        text=text,
        difference=ColorDifference(
            delta_e=delta_e,
            delta_l=delta_l,
            delta_a=delta_a,
            delta_b=delta_b,
            significant=significant,
        ),
        reference_values=(float(reference[0]), float(reference[1]), float(reference[2])),
    )


def _lightness_advice(name: str, delta_l: float) -> str:
    if delta_l > 0:
        return (
            f"The natural tooth appears lighter than {name} (ΔL: +{delta_l:.1f}). "
            f"Consider: (1) Use {lighter_shade(name)} enamel over {name} dentine; or "
            "(2) Increase the thickness of translucent enamel layer relative to the dentine."
        )
    return (
        f"The natural tooth appears darker than {name} (ΔL: {delta_l:.1f}). "
        f"Consider: (1) Use {name} enamel over {darker_shade(name)} dentine; or "
        "(2) Increase the thickness of the dentine layer relative to the enamel."
    )


def _red_green_advice(name: str, delta_a: float) -> str:
    if delta_a > 0:
        return (
            f"The natural tooth has more reddish/pink tones than standard {name} "
            f"(Δa: +{delta_a:.1f}). "
            f"Consider: (1) Add subtle reddish-pink tints to your {name} dentine layer; or "
            "(2) Select a more chromatic dentine material with increased opacity in cervical areas."
        )
    return (
        f"The natural tooth has more grayish/green undertones than standard {name} "
        f"(Δa: {delta_a:.1f}). "
        "Consider: (1) Add subtle blue-gray modifiers to your enamel layer; or "
        "(2) Increase the translucency of your enamel layer to create depth effects."
    )


def _yellow_blue_advice(name: str, delta_b: float) -> str:
    if delta_b > 0:
        return (
            f"The natural tooth has more yellow/warmth than standard {name} "
            f"(Δb: +{delta_b:.1f}). "
            f"Consider: (1) Use {name} enamel over {warmer_shade(name)} dentine; or "
            "(2) Slightly increase the opacity of your restoration."
        )
    return (
        f"The natural tooth has less yellow/warmth than standard {name} "
        f"(Δb: {delta_b:.1f}). "
        f"Consider: (1) Use {name} dentine with increased translucent enamel thickness; or "
        "(2) Select a more translucent enamel material."
    )


def _is_well_formed(sample_lab: LAB, reference: LAB) -> bool:
    try:
        if len(sample_lab) != 3 or len(reference) != 3:
            return False
        values = [float(v) for v in (*sample_lab, *reference)]
    except (TypeError, ValueError):
        return False
    return all(math.isfinite(v) for v in values)
