"""Per-surface call ledger: the ordered log of captured drawing calls."""
from __future__ import annotations

import functools
import logging
import reprlib
import time
from dataclasses import dataclass, field
from typing import Any

from matplotlib import _pylab_helpers

from ._classify import Role, classify
from ._grouping import PanelConfig, detect_panel_config
from ._render_tree import reset_stamps

logger = logging.getLogger("a11yplot")

_repr = reprlib.Repr()
_repr.maxstring = 40
_repr.maxother = 40
_repr.maxlist = 4


def source_expression(name: str, args: dict[str, Any]) -> str:
    """Short ``name(arg=value, ...)`` rendering for diagnostics."""
    parts = []
    for key, value in args.items():
        if key == "args":
            parts.extend(_repr.repr(v) for v in value)
        else:
            parts.append(f"{key}={_repr.repr(value)}")
    return f"{name}({', '.join(parts)})"


def is_managed(fig) -> bool:
    """Whether pyplot currently tracks *fig*."""
    return any(manager.canvas.figure is fig
               for manager in _pylab_helpers.Gcf.get_all_fig_managers())


@dataclass(frozen=True)
class CallRecord:
    """One captured drawing call.  Immutable once logged."""

    function: str
    role: Role
    args: dict[str, Any]
    source: str
    index: int
    surface_id: int
    timestamp: float
    panel: int | None = None
    payload: Any = None
    meta: dict[str, Any] = field(default_factory=dict)
    axes: Any = field(default=None, compare=False, repr=False)


class DeviceLedger:
    """Ordered records for one rendering surface plus derived cursor state."""

    def __init__(self, surface_id: int, figure: Any = None):
        self.surface_id = surface_id
        self.figure = figure
        self._records: list[CallRecord] = []
        self.plot_count = 0
        self.panel_config = PanelConfig()
        self.last_primary_index: int | None = None
        self._last_primary_axes: Any = None
        # disposal is observable only for figures pyplot tracks
        self.managed = figure is not None and is_managed(figure)
        self._close_cid: int | None = None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def append(self, function: str, args: dict[str, Any], *,
               axes: Any = None, panel: int | None = None,
               payload: Any = None, meta: dict[str, Any] | None = None,
               source: str | None = None) -> CallRecord:
        role = classify(function)
        # a second chart-starting call on the Axes of the open plot draws
        # into that plot (e.g. a density curve over a histogram)
        if (role is Role.PRIMARY and axes is not None
                and axes is self._last_primary_axes):
            role = Role.SECONDARY

        record = CallRecord(
            function=function,
            role=role,
            args=args,
            source=source or source_expression(function, args),
            index=len(self._records) + 1,
            surface_id=self.surface_id,
            timestamp=time.time(),
            panel=panel,
            payload=payload,
            meta=meta or {},
            axes=axes,
        )
        self._records.append(record)

        if role is Role.PRIMARY:
            self.plot_count += 1
            self.last_primary_index = record.index
            self._last_primary_axes = axes
        elif role is Role.LAYOUT:
            self.panel_config = detect_panel_config(self.records(Role.LAYOUT))
            # a new partition means the next drawing call opens a new plot
            self._last_primary_axes = None
        logger.debug("surface %s: #%d %s [%s]", self.surface_id,
                     record.index, record.source, role.name)
        return record

    def records(self, role: Role | None = None) -> list[CallRecord]:
        if role is None:
            return list(self._records)
        return [r for r in self._records if r.role is role]

    def clear(self) -> None:
        self._records.clear()
        self.plot_count = 0
        self.panel_config = PanelConfig()
        self.last_primary_index = None
        self._last_primary_axes = None
        if self.figure is not None:
            reset_stamps(self.figure)


class LedgerStore:
    """Ledgers keyed by surface id; one per surface, never shared."""

    def __init__(self):
        self._ledgers: dict[int, DeviceLedger] = {}
        self.last_surface: int | None = None

    def __contains__(self, surface_id: int) -> bool:
        return surface_id in self._ledgers

    def get(self, surface_id: int, figure: Any = None, *,
            create: bool = True) -> DeviceLedger | None:
        ledger = self._ledgers.get(surface_id)
        if ledger is None and create:
            ledger = DeviceLedger(surface_id, figure)
            ledger.watch(functools.partial(self._on_close, surface_id))
            self._ledgers[surface_id] = ledger
        if create:
            self.last_surface = surface_id
        return ledger

    def for_figure(self, fig, *, create: bool = True) -> DeviceLedger | None:
        return self.get(id(fig), fig, create=create)

    def has_calls(self, surface_id: int) -> bool:
        ledger = self._ledgers.get(surface_id)
        return ledger is not None and len(ledger) > 0

    def clear(self, surface_id: int) -> None:
        """Drop one surface's ledger; others are untouched."""
        ledger = self._ledgers.pop(surface_id, None)
        if self.last_surface == surface_id:
            self.last_surface = None
        if ledger is not None:
            ledger.unwatch()
            ledger.clear()

    def _on_close(self, surface_id: int, event=None) -> None:
        logger.debug("surface %s closed", surface_id)
        self.clear(surface_id)

    def prune(self) -> list[int]:
        """Drop the ledgers of pyplot figures that have been closed."""
        closed = [sid for sid, ledger in self._ledgers.items()
                  if ledger.managed and not is_managed(ledger.figure)]
        for surface_id in closed:
            self._on_close(surface_id)
        return closed

    def clear_all(self) -> None:
        for surface_id in list(self._ledgers):
            self.clear(surface_id)

    def surfaces(self) -> list[int]:
        return list(self._ledgers)

    def summary(self) -> dict[int, dict[str, Any]]:
        return {
            sid: {
                "calls": len(ledger),
                "plots": ledger.plot_count,
                "panels": ledger.panel_config.total,
                "functions": [r.function for r in ledger],
            }
            for sid, ledger in self._ledgers.items()
        }


STORE = LedgerStore()
