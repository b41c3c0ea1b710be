from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Mapping

import numpy as np

from .errors import ValidationError

log = logging.getLogger(__name__)

Hex = str

HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def is_valid_hex(value: Any) -> bool:
    return isinstance(value, str) and HEX_RE.match(value) is not None


def parse_hex(value: Any) -> Hex:
    """Validate a '#RRGGBB' string and return it upper-cased."""
    if not is_valid_hex(value):
        raise ValidationError(f"invalid hex color: {value!r}")
    return value.upper()


@dataclass(frozen=True)
class Color:
    """A validated palette color; `hex` is always canonical '#RRGGBB'."""

    hex: Hex
    name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "hex", parse_hex(self.hex))
        if self.name is not None and not isinstance(self.name, str):
            raise ValidationError(f"color name must be a string: {self.name!r}")
        if not self.name:
            object.__setattr__(self, "name", None)

    @classmethod
    def parse(cls, value: Any, name: str | None = None) -> "Color":
        return cls(value, name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Color":
        if not isinstance(data, Mapping):
            raise ValidationError(f"color entry must be an object: {data!r}")
        return cls(data.get("hex"), data.get("name"))

    def to_dict(self) -> dict[str, str]:
        return {"hex": self.hex, "name": self.name or ""}

    def with_name(self, name: str | None) -> "Color":
        return replace(self, name=name)

    def with_hex(self, value: Hex) -> "Color":
        return replace(self, hex=value)

    @property
    def label(self) -> str:
        return self.name or self.hex


def hex_to_rgb01(hex_str: Hex) -> np.ndarray:
    raw = parse_hex(hex_str)[1:]
    r, g, b = (int(raw[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
    return np.array([r, g, b], dtype=np.float64)


def rgb01_to_hex(rgb: np.ndarray) -> Hex:
    # round-to-nearest, matching Math.round() for positive inputs
    u8 = np.floor(np.clip(rgb, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
    return f"#{u8[0]:02X}{u8[1]:02X}{u8[2]:02X}"


__all__ = ["Color", "Hex", "is_valid_hex", "parse_hex", "hex_to_rgb01", "rgb01_to_hex"]
