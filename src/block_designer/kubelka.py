# kubelka.py – Kubelka–Munk paint mixer on Smits (1999) basis spectra
#   - 7 basis spectra (W,C,M,Y,R,G,B), 35 samples over 380…720 nm
#   - sRGB companding via colour-science (IEC 61966-2-1)
#   - D65-weighted CIE 1931 2° CMFs for reflectance→XYZ integration
#   - concentration weighting share² · luminance, as in spectral.js
#   - per-color RGB residual keeps the basis round trip exact

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Iterable, Sequence

import numpy as np
from colour.colorimetry import MSDS_CMFS, SDS_ILLUMINANTS, SpectralShape
from colour.models import RGB_COLOURSPACE_sRGB, eotf_inverse_sRGB, eotf_sRGB
from colour.recovery import SDS_SMITS1999

from . import settings
from .colors import Color, Hex, hex_to_rgb01, rgb01_to_hex
from .errors import ValidationError

log = logging.getLogger(__name__)

# --- constants ---------------------------------------------------------------
_DL = 10.0  # nm step, 380…720 inclusive → 35 samples
_SHAPE = SpectralShape(380, 720, _DL)
_WL = np.arange(380.0, 720.0 + _DL / 2, _DL)

# Number of pigment "parts" a blend step is split into.
_PARTS = 100

# --- 1) basis spectra W,C,M,Y,R,G,B (7×35) -----------------------------------
# Smits spectra touch zero; a zero sample would absorb everything it is mixed
# with, so every basis is lifted to at least _FLOOR.
_FLOOR = 0.05
_ORDER = ("white", "cyan", "magenta", "yellow", "red", "green", "blue")
_SMITS = np.stack(
    [np.interp(_WL, SDS_SMITS1999[k].wavelengths, SDS_SMITS1999[k].values) for k in _ORDER]
).astype(np.float64)
_BASE = _FLOOR + (1.0 - _FLOOR) * _SMITS

# --- 2) D65-weighted CMFs (3×35) --------------------------------------------
cmf = (
    MSDS_CMFS["CIE 1931 2 Degree Standard Observer"]
    .copy()
    .align(_SHAPE)
    .values.T.astype(np.float64)  # 3×35 (x̄, ȳ, z̄)
)
d65 = SDS_ILLUMINANTS["D65"].copy().align(_SHAPE).values.astype(np.float64)
_CMF = cmf * d65[None, :]
# normalisation so that a perfect diffuser R(λ)=1 gives Y = 1
k_Y = 1.0 / (_CMF[1] * _DL).sum()

# --- 3) XYZ→linear sRGB (D65) ------------------------------------------------
_XYZ_RGB = np.asarray(RGB_COLOURSPACE_sRGB.matrix_XYZ_to_RGB, dtype=np.float64)


def _luminance(R: np.ndarray) -> float:
    return float(((_CMF[1] * _DL) @ R) * k_Y)


# --- 4) companding -----------------------------------------------------------
def _uncompand(rgb: np.ndarray) -> np.ndarray:
    return np.asarray(eotf_sRGB(np.clip(rgb, 0.0, 1.0)), dtype=np.float64)


def _compand(lrgb: np.ndarray) -> np.ndarray:
    return np.asarray(eotf_inverse_sRGB(np.clip(lrgb, 0.0, 1.0)), dtype=np.float64)


# --- 5) KM transforms --------------------------------------------------------
def _ks(r: np.ndarray) -> np.ndarray:
    # K/S = (1 - R)^2 / (2R)
    r = np.clip(r, 1e-9, 1.0)
    return (1.0 - r) ** 2 / (2.0 * r)


def _km(ks: np.ndarray) -> np.ndarray:
    # invert K/S → R; 1 + ks - sqrt(ks² + 2ks) rewritten to avoid cancellation
    ks = np.maximum(ks, 0.0)
    return 1.0 / (1.0 + ks + np.sqrt(ks * ks + 2.0 * ks))


# --- 6) linear sRGB ↔ reflectance (35×) --------------------------------------
def _lrgb_to_R(lrgb: np.ndarray) -> np.ndarray:
    """Linear sRGB in [0,1] → reflectance spectrum."""
    w = float(lrgb.min())
    lrgb = lrgb - w

    c = float(min(lrgb[1], lrgb[2]))
    m = float(min(lrgb[0], lrgb[2]))
    y = float(min(lrgb[0], lrgb[1]))

    r = float(max(0.0, min(lrgb[0] - lrgb[2], lrgb[0] - lrgb[1])))
    g = float(max(0.0, min(lrgb[1] - lrgb[2], lrgb[1] - lrgb[0])))
    b = float(max(0.0, min(lrgb[2] - lrgb[1], lrgb[2] - lrgb[0])))

    coeffs = np.array([w, c, m, y, r, g, b], dtype=np.float64)[:, None]
    R = (_BASE * coeffs).sum(axis=0)
    return np.clip(R, 1e-6, 1.0)


def _R_to_lrgb(R: np.ndarray) -> np.ndarray:
    XYZ = k_Y * (_CMF * _DL) @ R
    return _XYZ_RGB @ XYZ


# --- 7) weighted mix ---------------------------------------------------------
def _mix_linear(lrgbs: Sequence[np.ndarray], shares: Sequence[float]) -> np.ndarray:
    """Mix linear-light colors given each one's share of the paint (shares sum to 1)."""
    Rs = [_lrgb_to_R(c) for c in lrgbs]
    conc = [s * s * _luminance(R) for R, s in zip(Rs, shares)]
    total = sum(conc) or 1.0
    ks_mix = sum(_ks(R) * w for R, w in zip(Rs, conc)) / total
    # what the basis round trip loses for each input, blended linearly
    residual = sum((c - _R_to_lrgb(R)) * s for c, R, s in zip(lrgbs, Rs, shares))
    return np.clip(_R_to_lrgb(_km(ks_mix)) + residual, 0.0, 1.0)


def km_mix(rgb_a: np.ndarray, rgb_b: np.ndarray, t: float) -> np.ndarray:
    """Companded sRGB in [0,1] for A and B → companded mix at ratio t (0 = A)."""
    la, lb = _uncompand(rgb_a), _uncompand(rgb_b)
    return _compand(_mix_linear([la, lb], [1.0 - t, t]))


def mix_paint(hex_colors: Iterable[Hex]) -> Hex:
    """Mix a multiset of hex colors as if equal parts of each were stirred together."""
    counts = Counter(Color(h).hex for h in hex_colors)
    if not counts:
        return "#000000"
    total = sum(counts.values())
    lrgbs = [_uncompand(hex_to_rgb01(h)) for h in counts]
    shares = [n / total for n in counts.values()]
    return rgb01_to_hex(_compand(_mix_linear(lrgbs, shares)))


# --- 8) palette helpers ------------------------------------------------------
def _check_count(count: object, *, minimum: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValidationError(f"count must be an integer, got {count!r}")
    if count < minimum or count > settings.MAX_BLEND_COUNT:
        raise ValidationError(
            f"count must be between {minimum} and {settings.MAX_BLEND_COUNT}"
        )
    return count


def blend(color_a: Color, color_b: Color, count: int) -> list[Color]:
    """`count` interior colors running from A toward B; endpoints are excluded."""
    _check_count(count, minimum=1)
    out: list[Color] = []
    for i in range(1, count + 1):
        ratio = i / (count + 1)
        parts = (
            [color_a.hex]
            + [color_b.hex] * math.floor(ratio * _PARTS)
            + [color_a.hex] * math.floor((1 - ratio) * _PARTS)
        )
        out.append(Color(mix_paint(parts)))
    log.debug("blended %s → %s in %d steps", color_a.hex, color_b.hex, count)
    return out


def gradient(hex_a: Hex, hex_b: Hex, n: int) -> list[Hex]:
    """n stops from A to B inclusive, sampled with `km_mix`."""
    _check_count(n, minimum=2)
    a, b = hex_to_rgb01(hex_a), hex_to_rgb01(hex_b)
    return [rgb01_to_hex(km_mix(a, b, float(t))) for t in np.linspace(0.0, 1.0, n)]


__all__ = ["km_mix", "mix_paint", "blend", "gradient"]
