"""Canonicalization patchers: sort categories before a bar call executes.

Sorting happens before the original function runs, so the rendered bars
and the logged arguments always agree on order.  Patchers are idempotent:
already-sorted input comes back unchanged.
"""
from __future__ import annotations

import abc
import logging
from typing import Any

import numpy as np

from ._inputs import resolve_arg

logger = logging.getLogger("a11yplot")

# Keyword arguments that may carry one entry per bar.
PER_BAR_KWARGS = ("color", "edgecolor", "hatch", "tick_label", "yerr",
                  "xerr", "bottom", "left", "linewidth", "label", "width",
                  "height")


def _order(labels) -> list[int]:
    return sorted(range(len(labels)), key=lambda i: labels[i])


def _is_identity(order: list[int]) -> bool:
    return all(i == j for i, j in enumerate(order))


def _permute(value, order: list[int]):
    if isinstance(value, np.ndarray):
        return value[order]
    if hasattr(value, "iloc"):
        return value.iloc[order]
    return [value[i] for i in order]


def _per_bar(value, n: int) -> bool:
    if value is None or isinstance(value, (str, bytes)) or np.isscalar(value):
        return False
    try:
        return len(value) == n
    except TypeError:
        return False


def _text_labels(values) -> list[str] | None:
    if values is None or isinstance(values, (str, bytes)):
        return None
    try:
        items = list(values)
    except TypeError:
        return None
    if items and all(isinstance(v, str) for v in items):
        return items
    return None


def _resolve_data(args: dict[str, Any]) -> dict[str, Any]:
    """Follow ``data=`` string indirection so sorting sees the values."""
    if args.get("data") is None:
        return args
    return {key: value if key == "data" else resolve_arg(args, key)
            for key, value in args.items()}


class SortingPatcher(abc.ABC):
    """Rewrites a call's arguments so categories are in ascending order."""

    @abc.abstractmethod
    def can_patch(self, name: str, args: dict[str, Any]) -> bool:
        """Return True when this patcher handles the call."""

    @abc.abstractmethod
    def apply(self, name: str, args: dict[str, Any]) -> dict[str, Any]:
        """Return patched arguments (a new mapping)."""


class BarSortingPatcher(SortingPatcher):
    """``bar``/``barh`` with string categories or string tick labels."""

    def can_patch(self, name, args):
        if name not in ("bar", "barh"):
            return False
        args = _resolve_data(args)
        positions = args.get("y" if name == "barh" else "x")
        return (_text_labels(positions) is not None
                or _text_labels(args.get("tick_label")) is not None)

    def apply(self, name, args):
        args = _resolve_data(args)
        pos_key, size_key = ("y", "width") if name == "barh" else ("x", "height")
        positions = args.get(pos_key)
        labels = _text_labels(positions)
        moves_positions = labels is not None
        if labels is None:
            labels = _text_labels(args.get("tick_label"))
        order = _order(labels)
        if _is_identity(order):
            return dict(args)

        n = len(labels)
        out = dict(args)
        if moves_positions:
            out[pos_key] = _permute(positions, order)
        # numeric slots stay put; what sits in each slot moves
        if _per_bar(args.get(size_key), n):
            out[size_key] = _permute(args[size_key], order)
        for key in PER_BAR_KWARGS:
            if key in (pos_key, size_key):
                continue
            if _per_bar(args.get(key), n):
                out[key] = _permute(args[key], order)
        logger.debug("Sorted %d %s categories", n, name)
        return out


class FrameSortingPatcher(SortingPatcher):
    """``DataFrame.plot.bar``/``barh``: sort rows and columns by label."""

    def can_patch(self, name, args):
        return name in ("frame.bar", "frame.barh") and \
            hasattr(args.get("frame"), "sort_index")

    def apply(self, name, args):
        import pandas as pd

        frame = args["frame"]
        out = dict(args)
        if isinstance(frame, pd.Series):
            if not frame.index.is_monotonic_increasing:
                out["frame"] = frame.sort_index()
            return out

        x, y = args.get("x"), args.get("y")
        if x is None:
            sorted_frame = frame.sort_index(axis=0)
        elif x in frame.columns:
            # the x column becomes the category axis
            sorted_frame = frame.sort_values(by=x, kind="stable")
        else:
            sorted_frame = frame
        if isinstance(y, (list, tuple)):
            series_order = _order([str(c) for c in y])
            if not _is_identity(series_order):
                out["y"] = _permute(list(y), series_order)
        elif y is None:
            sorted_frame = sorted_frame.sort_index(axis=1)
            plotted = [c for c in frame.columns if c != x]
            series_order = [plotted.index(c) for c in sorted_frame.columns
                            if c != x]
        else:
            series_order = [0]

        if not sorted_frame.index.equals(frame.index) or \
                not sorted_frame.columns.equals(frame.columns):
            out["frame"] = sorted_frame
        if out.get("frame") is frame and out.get("y") is y:
            return out

        color = args.get("color")
        if _per_bar(color, len(series_order)) and not isinstance(color, dict) \
                and not _is_identity(series_order):
            out["color"] = _permute(color, series_order)
        logger.debug("Sorted frame %s rows and columns", frame.shape)
        return out


class PatchManager:
    """Runs the first patcher that accepts a call."""

    def __init__(self, patchers: list[SortingPatcher] | None = None):
        self._patchers = list(patchers) if patchers is not None else [
            BarSortingPatcher(), FrameSortingPatcher()]

    def register(self, patcher: SortingPatcher) -> None:
        self._patchers.append(patcher)

    def apply(self, name: str, args: dict[str, Any]) -> dict[str, Any]:
        for patcher in self._patchers:
            if patcher.can_patch(name, args):
                return patcher.apply(name, args)
        return args


_MANAGER = PatchManager()


def apply(name: str, args: dict[str, Any]) -> dict[str, Any]:
    """Canonicalize a call's arguments.  Idempotent."""
    return _MANAGER.apply(name, args)
