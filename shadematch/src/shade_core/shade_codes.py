"""Structured shade codes and the adjacency rules used for layering advice.

Each family is an ordered ladder from lightest to darkest. Neighbours are
looked up in that ladder instead of doing arithmetic on the name, so an
unknown or out-of-range code can never produce a shade that does not exist.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class ShadeFamily(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    OM = "OM"


_CODE_PATTERN = re.compile(r"^(OM|[ABCD])(\d+(?:\.\d+)?)$")


@dataclass(frozen=True)
class ShadeCode:
    family: ShadeFamily
    level: float

    @classmethod
    def parse(cls, name: str) -> ShadeCode | None:
        match = _CODE_PATTERN.match(name.strip().upper())
        if match is None:
            return None
        return cls(family=ShadeFamily(match.group(1)), level=float(match.group(2)))

    @property
    def name(self) -> str:
        level = int(self.level) if self.level.is_integer() else self.level
        return f"{self.family.value}{level}"


def _code(name: str) -> ShadeCode:
    parsed = ShadeCode.parse(name)
    if parsed is None:
        raise ValueError(f"invalid shade code in adjacency table: {name}")
    return parsed


# Lightest first. A5, A6 and C5 are dark extensions past the classical guide.
LADDERS: dict[ShadeFamily, tuple[ShadeCode, ...]] = {
    ShadeFamily.A: tuple(_code(n) for n in ("A1", "A2", "A3", "A4", "A5", "A6")),
    ShadeFamily.B: tuple(_code(n) for n in ("B1", "B2", "B3", "B4")),
    ShadeFamily.C: tuple(_code(n) for n in ("C1", "C2", "C3", "C4", "C5")),
    ShadeFamily.D: tuple(_code(n) for n in ("D2", "D3", "D4")),
    ShadeFamily.OM: tuple(_code(n) for n in ("OM1", "OM2", "OM3")),
}

# Half steps sit beside the ladder: (lighter, darker).
_HALF_STEPS: dict[ShadeCode, tuple[ShadeCode, ShadeCode]] = {
    _code("A3.5"): (_code("A3"), _code("A4")),
}

_DARKEST_BLEACH = LADDERS[ShadeFamily.OM][-1]
_LIGHTEST_REGULAR = (LADDERS[ShadeFamily.A][0], LADDERS[ShadeFamily.B][0])


def _build_lighter() -> dict[ShadeCode, ShadeCode]:
    table: dict[ShadeCode, ShadeCode] = {}
    for ladder in LADDERS.values():
        for lighter, darker in zip(ladder, ladder[1:]):
            table[darker] = lighter
    for code in _LIGHTEST_REGULAR:
        table[code] = _DARKEST_BLEACH
    for code, (lighter, _) in _HALF_STEPS.items():
        table[code] = lighter
    return table


def _build_darker() -> dict[ShadeCode, ShadeCode]:
    table: dict[ShadeCode, ShadeCode] = {}
    for ladder in LADDERS.values():
        for lighter, darker in zip(ladder, ladder[1:]):
            table[lighter] = darker
    table[_DARKEST_BLEACH] = LADDERS[ShadeFamily.B][0]
    for code, (_, darker) in _HALF_STEPS.items():
        table[code] = darker
    return table


def _build_warmer() -> dict[ShadeCode, ShadeCode]:
    a_shades = {code.level: code for code in LADDERS[ShadeFamily.A]}
    table: dict[ShadeCode, ShadeCode] = {}
    for code in LADDERS[ShadeFamily.B]:
        table[code] = a_shades[code.level]
    for family in (ShadeFamily.C, ShadeFamily.D):
        for code in LADDERS[family]:
            table[code] = _code("A3") if code.level <= 2 else _code("A4")
    for code in (*LADDERS[ShadeFamily.A], *_HALF_STEPS):
        if code.family is ShadeFamily.A and code.level < 4:
            table[code] = a_shades[float(int(code.level) + 1)]
    return table


LIGHTER = _build_lighter()
DARKER = _build_darker()
WARMER = _build_warmer()


def _step(table: dict[ShadeCode, ShadeCode], shade_name: str) -> str:
    code = ShadeCode.parse(shade_name)
    if code is None or code not in table:
        return shade_name
    return table[code].name


def lighter_shade(shade_name: str) -> str:
    return _step(LIGHTER, shade_name)


def darker_shade(shade_name: str) -> str:
    return _step(DARKER, shade_name)


def warmer_shade(shade_name: str) -> str:
    return _step(WARMER, shade_name)
