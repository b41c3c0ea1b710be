from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional

import pydantic
from pydantic import AfterValidator, BaseModel, Field, StrictInt, model_validator

from . import settings
from .colors import Hex, parse_hex
from .errors import DecodeError, ValidationError, from_pydantic

log = logging.getLogger(__name__)

Tool = Literal["paint", "erase"]
TOOLS = ("paint", "erase")

DOCUMENT_TYPE = "geometric-pattern"
DOCUMENT_VERSION = "1.0.0"
SUPPORTED_MAJOR = 1

Position = tuple[int, int]

HexStr = Annotated[str, AfterValidator(parse_hex)]


@dataclass(frozen=True)
class PatternCell:
    color: Hex | None = None
    color_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"color": self.color}
        if self.color_name is not None:
            out["colorName"] = self.color_name
        return out


EMPTY = PatternCell()


@dataclass
class Grid:
    """Row-major grid of cells; `cells[y][x]`."""

    width: int
    height: int
    cells: list[list[PatternCell]]

    @classmethod
    def blank(cls, width: int, height: int) -> "Grid":
        _check_size(width, height)
        return cls(width, height, [[EMPTY] * width for _ in range(height)])

    def copy(self) -> "Grid":
        # cells are frozen, so copying the rows is a full structural copy
        return Grid(self.width, self.height, [list(row) for row in self.cells])

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def painted(self) -> dict[Position, Hex]:
        return {
            (x, y): cell.color
            for y, row in enumerate(self.cells)
            for x, cell in enumerate(row)
            if cell.color is not None
        }

    def to_rows(self) -> list[list[dict[str, Any]]]:
        return [[cell.to_dict() for cell in row] for row in self.cells]


def _check_size(width: Any, height: Any) -> None:
    for label, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"grid {label} must be an integer, got {value!r}")
        if not 1 <= value <= settings.MAX_GRID_SIZE:
            raise ValidationError(
                f"grid {label} must be between 1 and {settings.MAX_GRID_SIZE}, got {value}"
            )


class PatternGridEditor:
    """Paint/erase editor for one grid with mirroring and bounded undo/redo.

    A stroke (pointer-down to pointer-up) is one undoable unit: the grid is
    snapshotted when the stroke begins and every cell visited afterwards is
    edited in place.
    """

    def __init__(
        self,
        width: int = settings.DEFAULT_GRID_SIZE,
        height: int = settings.DEFAULT_GRID_SIZE,
        *,
        history_limit: int = settings.HISTORY_LIMIT,
    ) -> None:
        if history_limit < 1:
            raise ValidationError("history_limit must be at least 1")
        self.history_limit = history_limit
        self.tool: Tool = "paint"
        self.selected_color: Hex | None = None
        self.selected_color_name: str | None = None
        self.mirror_horizontal = False
        self.mirror_vertical = False
        self.grid = Grid.blank(width, height)
        self._undo: deque[Grid] = deque(maxlen=history_limit)
        self._redo: deque[Grid] = deque(maxlen=history_limit)
        self._stroke_active = False
        self._last_cell: Position | None = None

    # -- properties ------------------------------------------------------------
    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def stroke_active(self) -> bool:
        return self._stroke_active

    def cell(self, x: int, y: int) -> PatternCell:
        return self.grid.cells[y][x]

    # -- grid lifecycle --------------------------------------------------------
    def initialize_grid(self, width: int, height: int) -> None:
        self._replace_grid(Grid.blank(width, height))
        log.debug("initialized %dx%d grid", width, height)

    def ensure_size(self, width: int, height: int) -> bool:
        """Re-initialise only when the requested size differs from the loaded grid."""
        if (width, height) == (self.width, self.height):
            return False
        self.initialize_grid(width, height)
        return True

    def resize_grid(self, width: int, height: int) -> None:
        # no content-preserving resize
        self.initialize_grid(width, height)

    def _replace_grid(self, grid: Grid) -> None:
        self.grid = grid
        self._undo.clear()
        self._redo.clear()
        self._stroke_active = False
        self._last_cell = None

    def clear(self) -> None:
        """Blank every cell as a single undoable step."""
        self._push_undo()
        self.grid = Grid.blank(self.width, self.height)

    # -- tool state ------------------------------------------------------------
    def set_tool(self, tool: str) -> None:
        if tool not in TOOLS:
            raise ValidationError(f"unknown tool {tool!r}; expected one of {TOOLS}")
        self.tool = tool  # type: ignore[assignment]

    def select_color(self, hex_value: Hex | None, name: str | None = None) -> None:
        if hex_value is None:
            self.selected_color, self.selected_color_name = None, None
            return
        self.selected_color = parse_hex(hex_value)
        self.selected_color_name = name
        self.tool = "paint"

    def set_mirror(self, *, horizontal: bool | None = None, vertical: bool | None = None) -> None:
        if horizontal is not None:
            self.mirror_horizontal = bool(horizontal)
        if vertical is not None:
            self.mirror_vertical = bool(vertical)

    # -- strokes ---------------------------------------------------------------
    def _push_undo(self) -> None:
        self._undo.append(self.grid.copy())
        self._redo.clear()

    def begin_stroke(self) -> None:
        if self._stroke_active:
            return
        self._push_undo()
        self._stroke_active = True
        self._last_cell = None

    def end_stroke(self) -> None:
        self._stroke_active = False
        self._last_cell = None

    def mirror_positions(self, x: int, y: int) -> list[Position]:
        """Distinct in-bounds mirror partners of (x, y), excluding (x, y) itself."""
        mx = (self.width - 1) - x
        my = (self.height - 1) - y
        candidates: list[Position] = []
        if self.mirror_horizontal and self.mirror_vertical:
            candidates = [(mx, y), (x, my), (mx, my)]
        elif self.mirror_horizontal:
            candidates = [(mx, y)]
        elif self.mirror_vertical:
            candidates = [(x, my)]
        out: list[Position] = []
        for pos in candidates:
            if pos != (x, y) and pos not in out and self.grid.in_bounds(*pos):
                out.append(pos)
        return out

    def _apply_one(self, x: int, y: int) -> None:
        row = self.grid.cells[y]
        if self.tool == "erase":
            row[x] = EMPTY
        elif self.selected_color is not None:
            if row[x].color == self.selected_color:
                row[x] = EMPTY
            else:
                row[x] = PatternCell(self.selected_color, self.selected_color_name)

    def apply_cell(self, x: int, y: int) -> list[Position]:
        """Apply the active tool at (x, y) and its mirror partners.

        Starts a stroke if none is active. Returns the positions touched; a
        repeat of the last visited cell within the stroke touches nothing.
        """
        if not self.grid.in_bounds(x, y):
            log.debug("apply_cell(%d, %d) outside %dx%d grid", x, y, self.width, self.height)
            return []
        if self.tool == "paint" and self.selected_color is None:
            return []
        if not self._stroke_active:
            self.begin_stroke()
        if self._last_cell == (x, y):
            return []
        self._last_cell = (x, y)
        touched = [(x, y), *self.mirror_positions(x, y)]
        for px, py in touched:
            self._apply_one(px, py)
        return touched

    def paint(self, x: int, y: int) -> list[Position]:
        """A single-click stroke."""
        self.end_stroke()
        touched = self.apply_cell(x, y)
        self.end_stroke()
        return touched

    # -- history ---------------------------------------------------------------
    def undo(self) -> bool:
        if not self._undo:
            return False
        self.end_stroke()
        self._redo.append(self.grid)
        self.grid = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self.end_stroke()
        self._undo.append(self.grid)
        self.grid = self._redo.pop()
        return True

    # -- import / export -------------------------------------------------------
    def export_document(self) -> dict[str, Any]:
        return {
            "version": DOCUMENT_VERSION,
            "type": DOCUMENT_TYPE,
            "gridSize": {"width": self.width, "height": self.height},
            "pattern": self.grid.to_rows(),
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }

    def export_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.export_document(), indent=indent)

    def import_document(self, document: Any) -> None:
        """Replace the grid with a pattern document; history is reset.

        The editor is untouched when the document is rejected.
        """
        grid = parse_document(document)
        self._replace_grid(grid)
        log.info("Imported %dx%d pattern", grid.width, grid.height)


# -- document schema ------------------------------------------------------------
class CellModel(BaseModel):
    color: Optional[HexStr] = None
    colorName: Optional[str] = None


class GridSize(BaseModel):
    width: StrictInt = Field(ge=1, le=settings.MAX_GRID_SIZE)
    height: StrictInt = Field(ge=1, le=settings.MAX_GRID_SIZE)


class PatternDocument(BaseModel):
    version: str
    type: Literal["geometric-pattern"]
    gridSize: GridSize
    pattern: List[List[CellModel]]
    createdAt: Optional[str] = None

    @model_validator(mode="after")
    def _pattern_matches_size(self) -> "PatternDocument":
        w, h = self.gridSize.width, self.gridSize.height
        if len(self.pattern) != h or any(len(row) != w for row in self.pattern):
            raise ValueError(f"pattern does not match gridSize {w}x{h}")
        return self


def _check_version(version: Any) -> None:
    if not isinstance(version, str) or not version.strip():
        raise DecodeError("pattern document is missing a version")
    major = version.strip().split(".", 1)[0]
    if major.isdigit() and int(major) > SUPPORTED_MAJOR:
        raise DecodeError(f"unsupported pattern document version {version}")
    if version != DOCUMENT_VERSION:
        log.warning("Reading pattern document version %s as %s", version, DOCUMENT_VERSION)


def parse_document(document: Any) -> Grid:
    """Validate an exported pattern document (dict or JSON text) into a Grid."""
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"invalid pattern JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise DecodeError("pattern document must be a JSON object")
    if document.get("type") != DOCUMENT_TYPE:
        raise DecodeError(f"not a {DOCUMENT_TYPE} document: type={document.get('type')!r}")
    _check_version(document.get("version"))

    try:
        doc = PatternDocument.model_validate(document)
    except pydantic.ValidationError as exc:
        # a missing or mistyped top-level section means this is not a pattern document
        top_level = any(len(err["loc"]) == 1 for err in exc.errors())
        raise from_pydantic(exc, DecodeError if top_level else ValidationError) from exc

    cells = [
        [PatternCell(c.color, c.colorName) if c.color else EMPTY for c in row]
        for row in doc.pattern
    ]
    return Grid(doc.gridSize.width, doc.gridSize.height, cells)


__all__ = [
    "PatternCell",
    "Grid",
    "PatternGridEditor",
    "parse_document",
    "DOCUMENT_TYPE",
    "DOCUMENT_VERSION",
]
