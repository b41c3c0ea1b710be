from __future__ import annotations

import logging
from math import cos, pi
from typing import Callable, Dict, List, Literal

from coloraide import Color as _Base
from coloraide.spaces.hct import HCT

from .colors import Hex, parse_hex
from .errors import ValidationError

log = logging.getLogger(__name__)


class C(_Base):
    """Project-local coloraide class with HCT registered."""


C.register(HCT(), overwrite=True)

FIT_HEX = {"method": "raytrace"}
Schedule = Literal["linear", "ease"]

# lightest and darkest tone used for monochromatic ramps
TONE_HI = 95.0
TONE_LO = 15.0


def _to_hex(color: _Base, **fit) -> Hex:
    return color.convert("srgb").to_string(hex=True, fit=fit or FIT_HEX).upper()


def _rotations(*degrees: float) -> Callable[[Hex, int], List[Hex]]:
    def generate(base: Hex, n: int) -> List[Hex]:
        hsl = C(base).convert("hsl")
        out = [base]
        for deg in degrees:
            out.append(_to_hex(hsl.clone().set("hue", lambda h, d=deg: (h + d) % 360)))
        return out

    return generate


def tone_steps(n: int, *, schedule: Schedule = "ease") -> List[float]:
    """n HCT tones from TONE_HI down to TONE_LO inclusive."""
    if n < 2:
        return [(TONE_HI + TONE_LO) / 2]
    out = []
    for j in range(n):
        u = j / (n - 1)
        v = 0.5 - 0.5 * cos(pi * u) if schedule == "ease" else u
        out.append(TONE_HI - (TONE_HI - TONE_LO) * v)
    return out


def monochromatic(base: Hex, n: int) -> List[Hex]:
    """Same hue and chroma, stepped through HCT tone."""
    seed = C(base).convert("hct")
    return [
        _to_hex(seed.clone().set("t", t), method="raytrace", pspace="hct")
        for t in tone_steps(n)
    ]


def shades(base: Hex, n: int) -> List[Hex]:
    """Tints to shades: from the base mixed toward white to the base mixed toward black."""
    if n == 1:
        return [base]
    c = C(base)
    tint = c.mix("white", 0.7, space="oklab")
    shade = c.mix("black", 0.7, space="oklab")
    steps = C.steps([tint, c, shade], steps=n, space="oklab", out_space="srgb")
    return [_to_hex(s) for s in steps]


HARMONIES: Dict[str, Callable[[Hex, int], List[Hex]]] = {
    "complementary": _rotations(180),
    "analogous": _rotations(-30, 30),
    "triadic": _rotations(120, 240),
    "tetradic": _rotations(90, 180, 270),
    "split-complementary": _rotations(150, 210),
    "monochromatic": monochromatic,
    "shades": shades,
}


def harmony(base: str, kind: str, n: int = 5) -> List[Hex]:
    """Colors related to `base`; `n` only applies to the monochromatic and shades kinds."""
    base = parse_hex(base)
    try:
        generate = HARMONIES[kind]
    except KeyError:
        raise ValidationError(
            f"unknown harmony {kind!r}; expected one of {sorted(HARMONIES)}"
        ) from None
    if isinstance(n, bool) or not isinstance(n, int) or not 1 <= n <= 24:
        raise ValidationError("n must be an integer between 1 and 24")
    return generate(base, n)


__all__ = ["HARMONIES", "harmony", "monochromatic", "shades", "tone_steps"]
