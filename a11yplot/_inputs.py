"""Decide, once at capture time, which input variant a call carries."""
from __future__ import annotations

import logging
from typing import Any

import matplotlib as mpl
import numpy as np

from ._types import (ExplicitEndpoints, HorizontalLine, InterceptSlope,
                     Matrix, SampleSet, ScalarSeries, VerticalLine, XYSeries)

logger = logging.getLogger("a11yplot")


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------

def resolve_arg(args: dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up *key*, following ``data=`` string indirection like matplotlib."""
    value = args.get(key, default)
    data = args.get("data")
    if isinstance(value, str) and data is not None:
        try:
            return data[value]
        except (KeyError, IndexError, TypeError):
            return value
    return value


def _labels(obj) -> tuple:
    return tuple(str(v) for v in obj)


def _is_text_sequence(values) -> bool:
    try:
        items = list(values)
    except TypeError:
        return False
    return bool(items) and all(isinstance(v, str) for v in items)


def _coords(values) -> np.ndarray:
    """Numeric coordinates, or category labels when the input is text."""
    if _is_text_sequence(values):
        return np.asarray(_labels(values), dtype=object)
    return np.asarray(values, dtype=float)


def as_datasets(x) -> list[np.ndarray]:
    """Split hist/boxplot input into datasets (2-D arrays by column)."""
    if isinstance(x, (list, tuple)) and x and np.ndim(x[0]) > 0:
        try:
            arr = np.asarray(x, dtype=float)
        except ValueError:
            # ragged list of samples
            return [np.asarray(d, dtype=float).ravel() for d in x]
        # a list of equal-length samples is one dataset per element
        return [row for row in arr]
    arr = np.asarray(x, dtype=float)
    if arr.ndim == 2:
        return [arr[:, i] for i in range(arr.shape[1])]
    return [arr.ravel()]


def split_plot_args(args: tuple) -> list[tuple]:
    """Split ``plot(*args)`` into (x, y, fmt) groups as matplotlib does."""
    groups = []
    remaining = tuple(args)
    while remaining:
        this, remaining = remaining[:2], remaining[2:]
        if remaining and isinstance(remaining[0], str):
            this += (remaining[0],)
            remaining = remaining[1:]
        fmt = ""
        if len(this) > 1 and isinstance(this[-1], str):
            fmt = this[-1]
            this = this[:-1]
        if len(this) == 1:
            y = np.asarray(this[0], dtype=float)
            x = np.arange(y.shape[0], dtype=float)
        else:
            x = _coords(this[0])
            y = np.asarray(this[1], dtype=float)
        groups.append((x, y, fmt))
    return groups


# ---------------------------------------------------------------------------
# Per-family builders
# ---------------------------------------------------------------------------

def _bar_input(name, args) -> ScalarSeries | None:
    horizontal = name == "barh"
    positions = resolve_arg(args, "y" if horizontal else "x")
    values = resolve_arg(args, "width" if horizontal else "height")
    if positions is None or values is None:
        return None
    positions = list(np.atleast_1d(np.asarray(positions, dtype=object)))
    values = np.broadcast_to(np.asarray(values, dtype=float),
                             (len(positions),)).copy()
    tick_label = args.get("tick_label")
    if _is_text_sequence(positions):
        labels = _labels(positions)
    elif tick_label is not None and not isinstance(tick_label, str) \
            and len(tick_label) == len(positions):
        labels = _labels(tick_label)
    else:
        labels = tuple(float(p) for p in positions)
    return ScalarSeries(values=values, labels=labels)


def _frame_input(args) -> ScalarSeries | Matrix | None:
    import pandas as pd

    frame = args.get("frame")
    if isinstance(frame, pd.Series):
        return ScalarSeries(values=frame.to_numpy(dtype=float),
                            labels=_labels(frame.index))
    if not isinstance(frame, pd.DataFrame):
        return None
    x, y = args.get("x"), args.get("y")
    if x is not None:
        frame = frame.set_index(x)
    if y is not None:
        frame = frame[y]
        if isinstance(frame, pd.Series):
            return ScalarSeries(values=frame.to_numpy(dtype=float),
                                labels=_labels(frame.index))
    frame = frame.select_dtypes(include="number")
    return Matrix(values=frame.to_numpy(dtype=float),
                  row_labels=_labels(frame.index),
                  col_labels=_labels(frame.columns))


def _samples_input(name, args) -> SampleSet | None:
    x = resolve_arg(args, "x")
    if x is None:
        return None
    datasets = tuple(as_datasets(x))
    if name == "boxplot":
        labels = args.get("tick_labels")
        if labels is None:
            labels = args.get("labels")
    else:
        labels = args.get("label")
        if isinstance(labels, str):
            labels = [labels]
    if labels is not None:
        labels = _labels(labels)
    return SampleSet(datasets=datasets, labels=labels)


def _plot_input(name, args) -> XYSeries | None:
    if name == "step":
        raw = (resolve_arg(args, "x"), resolve_arg(args, "y"),
               *args.get("args", ()))
    else:
        data = args.get("data")
        raw = tuple(data[a] if isinstance(a, str) and data is not None
                    and a in data else a for a in args.get("args", ()))
    if not raw:
        return None
    xs, ys, fmt = [], [], ""
    for x, y, group_fmt in split_plot_args(raw):
        fmt = fmt or group_fmt
        if y.ndim == 2:
            for i in range(y.shape[1]):
                xs.append(x if x.ndim == 1 else x[:, i])
                ys.append(y[:, i])
        else:
            xs.append(x)
            ys.append(y)
    label = args.get("label")
    if isinstance(label, str):
        names = (label,) * len(ys) if len(ys) == 1 else ()
    elif label is not None and len(label) == len(ys):
        names = _labels(label)
    else:
        names = ()
    return XYSeries(xs=tuple(xs), ys=tuple(ys), names=names, fmt=fmt)


def _scatter_input(args) -> XYSeries | None:
    x, y = resolve_arg(args, "x"), resolve_arg(args, "y")
    if x is None or y is None:
        return None
    x = _coords(x).ravel()
    y = np.asarray(y, dtype=float).ravel()
    c = resolve_arg(args, "c")
    colors = None
    if c is not None and not isinstance(c, str) and _is_text_sequence(c) \
            and len(c) == len(x):
        colors = tuple(c)
    return XYSeries(xs=(x,), ys=(y,), colors=colors)


def _axis_labels(coords, n: int) -> tuple:
    if coords is None:
        return tuple(str(i) for i in range(n))
    coords = np.asarray(coords)
    if coords.ndim != 1:
        return tuple(str(i) for i in range(n))
    if coords.shape[0] == n + 1:
        coords = (coords[:-1] + coords[1:]) / 2
    if coords.shape[0] != n:
        return tuple(str(i) for i in range(n))
    return tuple(f"{v:g}" if isinstance(v, (float, np.floating)) else str(v)
                 for v in coords.tolist())


def _heat_input(name, args) -> Matrix | None:
    import pandas as pd

    if name == "pcolormesh":
        raw = args.get("args", ())
        if len(raw) == 1:
            coords_x = coords_y = None
            table = raw[0]
        elif len(raw) == 3:
            coords_x, coords_y, table = raw
        else:
            return None
    else:
        table = args.get("X" if name == "imshow" else "Z")
        coords_x = coords_y = None
    if table is None:
        return None
    if isinstance(table, pd.DataFrame):
        return Matrix(values=table.to_numpy(dtype=float),
                      row_labels=_labels(table.index),
                      col_labels=_labels(table.columns))
    values = np.array(table, dtype=float)
    if values.ndim != 2:
        # RGB(A) images carry no scalar measure
        return None
    nrows, ncols = values.shape
    return Matrix(values=values,
                  row_labels=_axis_labels(coords_y, nrows),
                  col_labels=_axis_labels(coords_x, ncols))


def _reference_input(name, args):
    if name == "axhline":
        return HorizontalLine(y=float(args.get("y", 0)),
                              xmin=float(args.get("xmin", 0)),
                              xmax=float(args.get("xmax", 1)))
    if name == "axvline":
        return VerticalLine(x=float(args.get("x", 0)),
                            ymin=float(args.get("ymin", 0)),
                            ymax=float(args.get("ymax", 1)))
    xy1 = args.get("xy1")
    if xy1 is None:
        return None
    xy1 = (float(xy1[0]), float(xy1[1]))
    if args.get("xy2") is not None:
        xy2 = args["xy2"]
        return ExplicitEndpoints(xy1=xy1, xy2=(float(xy2[0]), float(xy2[1])))
    if args.get("slope") is not None:
        return InterceptSlope(xy1=xy1, slope=float(args["slope"]))
    return None


def describe_input(name: str, args: dict[str, Any]):
    """Return the input variant for a captured call, or None.

    Arrays are copied so later mutation by the caller cannot leak into
    extraction.  Shapes that do not fit any variant yield None; the layer
    for such a call is then left empty.
    """
    try:
        if name in ("bar", "barh"):
            return _bar_input(name, args)
        if name in ("frame.bar", "frame.barh"):
            return _frame_input(args)
        if name in ("hist", "boxplot"):
            return _samples_input(name, args)
        if name in ("plot", "step"):
            return _plot_input(name, args)
        if name == "scatter":
            return _scatter_input(args)
        if name in ("imshow", "matshow", "pcolormesh"):
            return _heat_input(name, args)
        if name in ("axline", "axhline", "axvline"):
            return _reference_input(name, args)
    except (TypeError, ValueError, KeyError, IndexError) as exc:
        logger.debug("No input variant for %s: %s", name, exc)
    return None


def image_origin(args: dict[str, Any]) -> str:
    return args.get("origin") or mpl.rcParams["image.origin"]
