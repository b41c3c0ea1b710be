import numpy as np
import pytest

from block_designer.colors import Color, hex_to_rgb01, rgb01_to_hex
from block_designer.errors import ValidationError
from block_designer.kubelka import blend, gradient, km_mix, mix_paint


def luma(rgb):
    return 0.2126 * rgb[0] + 0.7152 * rgb[1] + 0.0722 * rgb[2]


def test_boundaries_red_white():
    red = np.array([1, 0, 0], np.float64)
    white = np.array([1, 1, 1], np.float64)
    assert rgb01_to_hex(km_mix(red, white, 0.0)) == "#FF0000"
    assert rgb01_to_hex(km_mix(red, white, 1.0)) == "#FFFFFF"


def test_symmetry():
    a = np.array([0.2, 0.7, 0.1], np.float64)
    b = np.array([0.9, 0.1, 0.3], np.float64)
    t = 0.37
    ab = km_mix(a, b, t)
    ba = km_mix(b, a, 1 - t)
    assert np.allclose(ab, ba, atol=1e-6)


def test_white_lightens_red():
    w = np.array([1, 1, 1], np.float64)
    r = np.array([1, 0, 0], np.float64)
    dark, mid, light = (luma(km_mix(r, w, t)) for t in (0.0, 0.5, 1.0))
    assert dark < mid < light


def test_channel_bounds():
    a = np.array([0.05, 0.2, 0.9], np.float64)
    b = np.array([0.8, 0.7, 0.1], np.float64)
    for t in np.linspace(0, 1, 9):
        rgb = km_mix(a, b, t)
        assert np.all((rgb >= -1e-6) & (rgb <= 1 + 1e-6))


def test_mix_paint_identical_colors_is_identity():
    for hex_value in ("#3A7BD5", "#000000", "#FFFFFF", "#010203"):
        assert mix_paint([hex_value] * 7) == hex_value


def test_mix_paint_empty_is_black():
    assert mix_paint([]) == "#000000"


def test_mix_paint_is_order_independent():
    assert mix_paint(["#FF0000", "#00FF00", "#00FF00"]) == mix_paint(
        ["#00FF00", "#FF0000", "#00FF00"]
    )


@pytest.mark.parametrize("count", [1, 2, 5, 12])
def test_blend_returns_count_colors(count):
    out = blend(Color("#FF0000"), Color("#0000FF"), count)
    assert len(out) == count
    assert all(isinstance(c, Color) for c in out)


def test_blend_excludes_endpoints_and_runs_from_a_to_b():
    a, b = Color("#FFFFFF"), Color("#000000")
    out = blend(a, b, 3)
    lumas = [luma(hex_to_rgb01(c.hex)) for c in out]
    assert lumas[0] > lumas[1] > lumas[2]
    assert a.hex not in [c.hex for c in out]
    assert b.hex not in [c.hex for c in out]


def test_blend_identical_endpoints_repeats_color():
    c = Color("#6D28D9")
    assert [x.hex for x in blend(c, c, 4)] == ["#6D28D9"] * 4


def test_blend_is_deterministic():
    a, b = Color("#DC2626"), Color("#2563EB")
    assert blend(a, b, 5) == blend(a, b, 5)


@pytest.mark.parametrize("count", [0, -1, 1.5, True, "2"])
def test_blend_rejects_bad_count(count):
    with pytest.raises(ValidationError):
        blend(Color("#FF0000"), Color("#0000FF"), count)


def test_gradient_includes_endpoints():
    stops = gradient("#FF0000", "#FFFFFF", 5)
    assert len(stops) == 5
    assert stops[0] == "#FF0000"
    assert stops[-1] == "#FFFFFF"
