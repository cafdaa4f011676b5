"""a11yplot: accessible matplotlib charts.

Captures the drawing calls that build a figure and exports it as SVG
whose root carries a ``maidr-data`` attribute: per-layer data plus CSS
selectors addressing the rendered element of every data point.

Usage:
    # Context manager
    with a11yplot.accessible() as session:
        fig, ax = plt.subplots()
        ax.bar(["b", "a"], [2, 1])
    session.result.svg

    # Decorator
    @a11yplot.accessible
    def my_plot():
        plt.hist(values)

    # Explicit lifecycle
    a11yplot.begin_capture()
    plt.plot(x, y)
    result = a11yplot.export()
    a11yplot.end_capture()
"""
from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    "accessible", "CaptureSession", "ExportResult",
    "begin_capture", "end_capture", "is_capturing", "export", "clear",
    "captured_calls", "get_fallback", "set_fallback",
    "A11yPlotError", "NoCapturedCallsError", "FallbackConfigError",
]

import functools
from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from ._api import (ExportResult, begin_capture, captured_calls, clear,
                   end_capture, export, is_capturing)
from ._config import get_fallback, set_fallback
from ._errors import A11yPlotError, FallbackConfigError, NoCapturedCallsError
from ._ledger import STORE


class CaptureSession:
    """Context manager: capture on entry, export the drawn figure on exit.

    The exported surface is the one that received the last captured call
    (or the current figure).  ``result`` holds the ExportResult.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = path
        self.result: ExportResult | None = None
        self.surface_id: int | None = None
        self._was_active = False

    def __enter__(self):
        self._was_active = is_capturing()
        begin_capture()
        return self

    def _surface(self) -> Figure | None:
        if STORE.last_surface is not None:
            ledger = STORE.get(STORE.last_surface, create=False)
            if ledger is not None and ledger.figure is not None:
                return ledger.figure
        return plt.gcf() if plt.get_fignums() else None

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                fig = self._surface()
                self.surface_id = id(fig) if fig is not None else None
                self.result = export(fig, self.path)
        finally:
            if not self._was_active:
                end_capture()
        return False


def accessible(target: Figure | Any | None = None,
               path: str | Path | None = None):
    """Accessible export of a matplotlib figure.

    Parameters
    ----------
    target : Figure, callable, or None
        - Figure: exports that figure now (its calls must have been
          captured).
        - callable: decorator mode; runs the function under capture and
          returns the ExportResult of the figure it drew.
        - None: returns a CaptureSession context manager.
    path : str or Path, optional
        Where to write the exported SVG.
    """
    # Case 1: Figure passed directly
    if isinstance(target, Figure):
        return export(target, path)

    # Case 2: Callable, decorator mode
    if callable(target):
        @functools.wraps(target)
        def wrapper(*args, **kwargs):
            with CaptureSession(path) as session:
                target(*args, **kwargs)
            return session.result
        return wrapper

    # Case 3: None, context manager mode
    if target is None:
        return CaptureSession(path)

    raise TypeError(
        f"accessible() expects a Figure, callable, or None, got {type(target)}")
