"""Capture lifecycle and export: the operations a session layer calls."""
from __future__ import annotations

import base64
import html
import io
import json
import logging
import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from ._config import get_fallback
from ._errors import NoCapturedCallsError
from ._intercept import REGISTRY
from ._ledger import STORE, CallRecord
from ._orchestrator import PlotOrchestrator
from ._render_tree import parse_svg, render_svg
from ._types import LayerKind

logger = logging.getLogger("a11yplot")

DATA_ATTRIBUTE = "maidr-data"

_MIME_TYPES = {"png": "image/png", "svg": "image/svg+xml",
               "jpeg": "image/jpeg"}

_advisory_shown = False


@dataclass
class ExportResult:
    """Annotated markup plus the data embedded in it.

    ``fallback_image`` is a data URI of a static rendering, set when the
    chart has layers without a data description and the static fallback
    is enabled.
    """

    svg: str
    data: dict[str, Any]
    fallback_image: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.fallback_image is not None

    def to_json(self) -> str:
        return json.dumps(self.data)

    def save(self, path: str | Path) -> Path:
        """Write the annotated SVG, or the static image when falling back."""
        path = Path(path)
        if self.fallback_image is not None:
            _, encoded = self.fallback_image.split(",", 1)
            path.write_bytes(base64.b64decode(encoded))
        else:
            path.write_text(self.svg, encoding="utf-8")
        return path


# ---------------------------------------------------------------------------
# Capture lifecycle
# ---------------------------------------------------------------------------

def begin_capture() -> None:
    """Start logging drawing calls.  Installs wrappers on first use."""
    REGISTRY.activate()


def end_capture() -> None:
    """Stop logging; wrappers stay installed as pass-throughs."""
    REGISTRY.deactivate()


def is_capturing() -> bool:
    return REGISTRY.active


def clear(figure: Figure | None = None) -> None:
    """Drop the captured calls of *figure* (all surfaces when None)."""
    if figure is None:
        STORE.clear_all()
    else:
        STORE.clear(id(figure))


def captured_calls(figure: Figure | None = None) -> list[CallRecord]:
    if figure is None:
        figure = plt.gcf()
    ledger = STORE.for_figure(figure, create=False)
    return ledger.records() if ledger is not None else []


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def embed_data(svg: str, data: dict[str, Any]) -> str:
    """Set the document data as an attribute of the root ``<svg>``."""
    payload = html.escape(json.dumps(data), quote=True)
    return re.sub(r"<svg\b", f'<svg {DATA_ATTRIBUTE}="{payload}"', svg,
                  count=1)


def render_fallback(fig: Figure, fmt: str) -> str:
    buf = io.BytesIO()
    fig.savefig(buf, format=fmt, bbox_inches="tight")
    encoded = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:{_MIME_TYPES[fmt]};base64,{encoded}"


def _advise_once(unsupported: list[str]) -> None:
    global _advisory_shown
    if _advisory_shown:
        return
    _advisory_shown = True
    warnings.warn(
        "Chart contains layers without an accessible description ("
        f"{', '.join(sorted(set(unsupported)))}); exported as a static "
        "image. Use a11yplot.set_fallback(enabled=False) to export the "
        "partial interactive version instead.",
        UserWarning, stacklevel=3)


def export(figure: Figure | None = None,
           path: str | Path | None = None) -> ExportResult:
    """Group, extract and match the captured calls of *figure*.

    Parameters
    ----------
    figure : Figure, optional
        Surface to export; defaults to the current pyplot figure.
    path : str or Path, optional
        Also write the result there (see ``ExportResult.save``).

    Raises
    ------
    NoCapturedCallsError
        No drawing calls were captured for the figure.

    The figure's ledger is cleared afterwards.
    """
    if figure is None:
        if not plt.get_fignums():
            raise NoCapturedCallsError("No open figure to export")
        figure = plt.gcf()
    surface_id = id(figure)
    if not STORE.has_calls(surface_id):
        raise NoCapturedCallsError(
            "No drawing calls were captured for this figure; call "
            "begin_capture() before plotting")

    try:
        with REGISTRY.suppressed():
            svg = render_svg(figure)
            orchestrator = PlotOrchestrator(STORE.get(surface_id),
                                            parse_svg(svg))
            data = orchestrator.generate_data()
            settings = get_fallback()
            image = None
            if orchestrator.should_fallback(settings):
                image = render_fallback(figure, settings.format)
                if settings.warning:
                    _advise_once([d.record.function
                                  for d in orchestrator.layers
                                  if d.kind is LayerKind.UNKNOWN])
    finally:
        STORE.clear(surface_id)

    result = ExportResult(svg=embed_data(svg, data), data=data,
                          fallback_image=image)
    if path is not None:
        result.save(path)
    logger.debug("Exported surface %s (%d layers)", surface_id,
                 len(orchestrator.layers))
    return result
