from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

from .colors import Color, Hex, is_valid_hex, parse_hex
from .errors import DecodeError, ValidationError
from .kubelka import blend

log = logging.getLogger(__name__)

PALETTE_FORMAT = "palette"
PALETTE_VERSION = "1.0.0"


class Selection:
    """Ordered queue of at most two selected hex values.

    A third toggle evicts the first-selected entry, so the selection always
    tracks the two most recent distinct clicks.
    """

    capacity = 2

    def __init__(self, items: Iterable[Hex] = ()) -> None:
        self._items: list[Hex] = []
        for item in items:
            self.toggle(item)

    def __iter__(self) -> Iterator[Hex]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, hex_value: object) -> bool:
        return hex_value in self._items

    def __repr__(self) -> str:
        return f"Selection({self._items!r})"

    def toggle(self, hex_value: Hex) -> None:
        if hex_value in self._items:
            self._items = [h for h in self._items if h != hex_value]
        elif len(self._items) < self.capacity:
            self._items = [*self._items, hex_value]
        else:
            self._items = [*self._items[1:], hex_value]

    def discard(self, hex_value: Hex) -> None:
        self._items = [h for h in self._items if h != hex_value]

    def replace(self, old: Hex, new: Hex) -> None:
        if old != new and new in self._items:
            self.discard(old)
            return
        self._items = [new if h == old else h for h in self._items]

    def clear(self) -> None:
        self._items = []

    def as_tuple(self) -> tuple[Hex, ...]:
        return tuple(self._items)


@dataclass
class PaletteStore:
    """Ordered palette plus the selection used to parametrise blends and moves."""

    colors: list[Color] = field(default_factory=list)
    selection: Selection = field(default_factory=Selection)

    # -- lookups ---------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.colors)

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self.colors)

    def index_of(self, hex_value: Hex) -> int:
        """Current position of the first entry with this hex, or -1."""
        for i, color in enumerate(self.colors):
            if color.hex == hex_value:
                return i
        return -1

    def selected_index(self) -> int:
        """Position of the single selected color; -1 unless exactly one is selected."""
        if len(self.selection) != 1:
            return -1
        return self.index_of(next(iter(self.selection)))

    def color_map(self) -> dict[str, dict[str, str]]:
        return {
            str(i): {"hex": c.hex, "name": c.name or f"Color {i + 1}"}
            for i, c in enumerate(self.colors)
        }

    def hexes(self) -> list[Hex]:
        return [c.hex for c in self.colors]

    # -- structural edits ------------------------------------------------------
    def add_color(self, hex_value: Any, name: str | None = None) -> Color | None:
        if not is_valid_hex(hex_value):
            log.warning("Rejected color %r: not a #RRGGBB value", hex_value)
            return None
        color = Color(hex_value, name)
        self.colors = [*self.colors, color]
        return color

    def remove_color(self, index: int) -> bool:
        if not self._in_range(index):
            log.debug("remove_color(%d) out of range", index)
            return False
        removed = self.colors[index]
        self.colors = [c for i, c in enumerate(self.colors) if i != index]
        self.selection.discard(removed.hex)
        return True

    def move_left(self, index: int) -> bool:
        if index <= 0 or index >= len(self.colors):
            return False
        return self._swap(index - 1, index)

    def move_right(self, index: int) -> bool:
        if index < 0 or index >= len(self.colors) - 1:
            return False
        return self._swap(index, index + 1)

    def move_selected_left(self) -> bool:
        return self.move_left(self.selected_index())

    def move_selected_right(self) -> bool:
        index = self.selected_index()
        return index >= 0 and self.move_right(index)

    def _swap(self, i: int, j: int) -> bool:
        colors = list(self.colors)
        colors[i], colors[j] = colors[j], colors[i]
        self.colors = colors
        return True

    def rename(self, index: int, name: str | None) -> bool:
        if not self._in_range(index):
            return False
        colors = list(self.colors)
        colors[index] = colors[index].with_name(name or None)
        self.colors = colors
        return True

    def recolor(self, index: int, hex_value: Any) -> bool:
        if not self._in_range(index):
            return False
        if not is_valid_hex(hex_value):
            log.warning("Rejected recolor of #%d to %r", index, hex_value)
            return False
        old = self.colors[index]
        colors = list(self.colors)
        colors[index] = old.with_hex(hex_value)
        self.colors = colors
        self.selection.replace(old.hex, colors[index].hex)
        return True

    # -- selection -------------------------------------------------------------
    def toggle_select(self, hex_value: Any) -> None:
        hex_value = parse_hex(hex_value)
        if self.index_of(hex_value) < 0:
            log.debug("toggle_select: %s is not in the palette", hex_value)
            return
        self.selection.toggle(hex_value)

    def clear_selection(self) -> None:
        self.selection.clear()

    def blend_insert(self, count: int) -> list[Color]:
        """Insert `count` blended colors between the two selected entries.

        Both ends are resolved to their current positions and blended from the
        lower index to the higher one, whatever order they were clicked in.
        """
        if len(self.selection) != 2:
            log.debug("blend_insert needs two selected colors, have %d", len(self.selection))
            return []
        indices = [self.index_of(h) for h in self.selection]
        if -1 in indices:
            log.debug("blend_insert: selected color no longer in palette")
            return []
        lo, hi = sorted(indices)
        blended = blend(self.colors[lo], self.colors[hi], count)
        self.colors = [*self.colors[: lo + 1], *blended, *self.colors[lo + 1 :]]
        self.selection.clear()
        return blended

    # -- whole-palette ---------------------------------------------------------
    def set_colors(self, colors: Iterable[Color]) -> None:
        self.colors = list(colors)
        self.selection.clear()

    def reset(self) -> None:
        self.set_colors([])

    def import_palette(self, payload: Any) -> int:
        colors = parse_palette(payload)
        self.set_colors(colors)
        log.info("Imported %d colors", len(colors))
        return len(colors)


# ----------------------------- interchange ------------------------------------


def palette_to_json(colors: Iterable[Color], *, indent: int | None = 2) -> str:
    return json.dumps([c.to_dict() for c in colors], indent=indent)


def palette_to_text(colors: Iterable[Color]) -> str:
    return "\n".join(f"{c.hex}, {c.label}" for c in colors)


def palette_document(colors: Iterable[Color], name: str = "Custom Palette") -> dict[str, Any]:
    return {
        "version": PALETTE_VERSION,
        "format": PALETTE_FORMAT,
        "name": name,
        "created": datetime.now(timezone.utc).isoformat(),
        "colors": [c.to_dict() for c in colors],
    }


def _parse_text(text: str) -> list[dict[str, Any]]:
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        hex_part, _, name = line.partition(",")
        name = name.strip()
        entries.append({"hex": hex_part.strip(), "name": name})
    return entries


def _entries(payload: Any) -> list[Any]:
    if isinstance(payload, str):
        stripped = payload.strip()
        if stripped[:1] in ("[", "{"):
            try:
                payload = json.loads(stripped)
            except json.JSONDecodeError as exc:
                raise DecodeError(f"invalid palette JSON: {exc}") from exc
        else:
            return _parse_text(stripped)
    if isinstance(payload, list):
        return payload
    if (
        isinstance(payload, dict)
        and payload.get("format") == PALETTE_FORMAT
        and isinstance(payload.get("colors"), list)
    ):
        return payload["colors"]
    raise DecodeError("unrecognised palette data: expected a color list or palette document")


def parse_palette(payload: Any) -> list[Color]:
    """Read any of the export formats; entries with a bad hex are dropped."""
    colors: list[Color] = []
    for entry in _entries(payload):
        if not isinstance(entry, dict) or not is_valid_hex(entry.get("hex")):
            continue
        try:
            color = Color.from_dict(entry)
        except ValidationError:
            continue
        if color.name and color.name.upper() == color.hex:
            color = color.with_name(None)
        colors.append(color)
    if not colors:
        raise DecodeError("no valid colors found in palette data")
    return colors


__all__ = [
    "Selection",
    "PaletteStore",
    "palette_to_json",
    "palette_to_text",
    "palette_document",
    "parse_palette",
]
