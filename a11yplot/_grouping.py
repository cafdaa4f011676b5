"""Fold a flat call log into plot groups, and infer the panel partition."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from ._classify import Role

logger = logging.getLogger("a11yplot")


# ---------------------------------------------------------------------------
# Plot groups
# ---------------------------------------------------------------------------

@dataclass
class PlotGroup:
    """One PRIMARY call plus the SECONDARY calls that decorate it."""

    primary: Any  # CallRecord
    secondaries: list[Any] = field(default_factory=list)
    index: int = 1

    @property
    def records(self) -> list[Any]:
        return [self.primary, *self.secondaries]


def group_calls(records) -> tuple[list[PlotGroup], list[Any]]:
    """Single pass: PRIMARY opens a group, SECONDARY joins the open one.

    SECONDARY calls seen before any PRIMARY have nothing to decorate and are
    dropped.  LAYOUT calls go to the side list; unclassified calls are
    ignored.
    """
    groups: list[PlotGroup] = []
    layout: list[Any] = []
    current: PlotGroup | None = None
    for record in records:
        if record.role is Role.PRIMARY:
            current = PlotGroup(primary=record, index=len(groups) + 1)
            groups.append(current)
        elif record.role is Role.SECONDARY:
            if current is None:
                logger.debug("Dropping %s: no plot to decorate",
                             record.function)
                continue
            current.secondaries.append(record)
        elif record.role is Role.LAYOUT:
            layout.append(record)
    return groups, layout


# ---------------------------------------------------------------------------
# Panel partition
# ---------------------------------------------------------------------------

class PanelKind(Enum):
    SINGLE = auto()
    ROW_MAJOR = auto()
    COLUMN_MAJOR = auto()
    MATRIX = auto()


@dataclass(frozen=True)
class PanelConfig:
    kind: PanelKind = PanelKind.SINGLE
    nrows: int = 1
    ncols: int = 1
    total: int = 1
    matrix: tuple | None = None

    @property
    def is_multi(self) -> bool:
        return self.total > 1

    def position(self, index: int) -> tuple[int, int]:
        """Grid cell (row, col), both 1-based, of logical plot *index*."""
        if self.kind is PanelKind.ROW_MAJOR:
            return math.ceil(index / self.ncols), (index - 1) % self.ncols + 1
        if self.kind is PanelKind.COLUMN_MAJOR:
            return (index - 1) % self.nrows + 1, math.ceil(index / self.nrows)
        if self.kind is PanelKind.MATRIX and self.matrix:
            seen: list[Any] = []
            for r, row in enumerate(self.matrix):
                for c, label in enumerate(row):
                    if label is None or label in seen:
                        continue
                    seen.append(label)
                    if len(seen) == index:
                        return r + 1, c + 1
        return 1, 1


def parse_mosaic(mosaic, empty_sentinel: Any = ".") -> tuple:
    """Normalise a ``subplot_mosaic`` layout to a tuple of rows.

    Empty cells become None.
    """
    if isinstance(mosaic, str):
        text = mosaic.strip()
        if "\n" in text:
            rows = [line.strip() for line in text.splitlines() if line.strip()]
        else:
            rows = text.split(";")
        grid = [list(row) for row in rows]
    else:
        grid = [list(row) for row in mosaic]

    def cell(value):
        if isinstance(value, list):
            value = tuple(tuple(v) if isinstance(v, list) else v
                          for v in value)
        return None if value == empty_sentinel else value

    return tuple(tuple(cell(v) for v in row) for row in grid)


def _grid_args(record) -> tuple[int, int, tuple[int, int] | None] | None:
    """(nrows, ncols, cell) declared by a grid-shaped LAYOUT record."""
    args = record.args
    if record.function in ("subplots", "add_gridspec"):
        return int(args.get("nrows", 1)), int(args.get("ncols", 1)), None

    pos = tuple(args.get("args", ()))
    if not pos:
        return 1, 1, (0, 0)
    if len(pos) == 1 and isinstance(pos[0], int) and 111 <= pos[0] <= 999:
        pos = tuple(int(d) for d in str(pos[0]))
    if len(pos) == 3:
        nrows, ncols, idx = pos
        if isinstance(idx, tuple):
            idx = idx[0]
        nrows, ncols, idx = int(nrows), int(ncols), int(idx)
        return nrows, ncols, divmod(idx - 1, ncols)
    spec = pos[0]
    get_gridspec = getattr(spec, "get_gridspec", None)
    if get_gridspec is None and hasattr(spec, "get_subplotspec"):
        spec = spec.get_subplotspec()
        get_gridspec = getattr(spec, "get_gridspec", None)
    if get_gridspec is not None:
        nrows, ncols = get_gridspec().get_geometry()
        return nrows, ncols, (spec.rowspan.start, spec.colspan.start)
    return None


def _visit_order(cells: list[tuple[int, int]], nrows: int, ncols: int
                 ) -> PanelKind:
    if len(cells) < 2:
        return PanelKind.ROW_MAJOR
    row_major = [r * ncols + c for r, c in cells]
    col_major = [c * nrows + r for r, c in cells]
    by_rows = all(a < b for a, b in zip(row_major, row_major[1:]))
    by_cols = all(a < b for a, b in zip(col_major, col_major[1:]))
    if by_cols and not by_rows:
        return PanelKind.COLUMN_MAJOR
    return PanelKind.ROW_MAJOR


def detect_panel_config(layout_records) -> PanelConfig:
    """Infer the active partition from LAYOUT records.

    A grid is declared by ``subplots``/``add_gridspec`` or by the geometry
    of ``subplot``/``add_subplot`` calls; the cells those calls visit give
    the enumeration order.  ``subplot_mosaic`` declares an explicit matrix.
    The most recent declaration wins.
    """
    config = PanelConfig()
    dims: tuple[int, int] | None = None
    cells: list[tuple[int, int]] = []
    for record in layout_records:
        if record.function == "subplot_mosaic":
            mosaic = record.args.get("mosaic")
            if mosaic is None:
                continue
            matrix = parse_mosaic(
                mosaic, record.args.get("empty_sentinel", "."))
            labels = {v for row in matrix for v in row if v is not None}
            config = PanelConfig(
                kind=PanelKind.MATRIX, nrows=len(matrix),
                ncols=max((len(row) for row in matrix), default=1),
                total=len(labels), matrix=matrix)
            dims, cells = None, []
            continue

        try:
            grid = _grid_args(record)
        except (TypeError, ValueError) as exc:
            logger.debug("Ignoring layout call %s: %s", record.source, exc)
            continue
        if grid is None:
            continue
        nrows, ncols, cell = grid
        if record.function in ("subplots", "add_gridspec") \
                or dims != (nrows, ncols):
            dims, cells = (nrows, ncols), []
        if cell is not None and cell not in cells:
            cells.append(cell)
        kind = _visit_order(cells, nrows, ncols)
        if nrows * ncols == 1:
            kind = PanelKind.SINGLE
        config = PanelConfig(kind=kind, nrows=nrows, ncols=ncols,
                             total=nrows * ncols)
    return config
