"""Base class for per-kind layer processors."""
from __future__ import annotations

import abc
import logging
import math
from typing import Any

from .._format import axis_format
from .._render_tree import Group
from .._selectors import (css_prefix_selector, fallback_selector, kind_of,
                          match_compounds)
from .._types import LayerDescriptor

logger = logging.getLogger("a11yplot")


def jsonable(value: Any) -> Any:
    """Plain Python scalar for a numpy/pandas value; NaN becomes None."""
    if hasattr(value, "item") and not isinstance(value, (list, tuple, dict)):
        try:
            value = value.item()
        except (ValueError, AttributeError):
            pass
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer():
            return int(value)
    return value


class LayerProcessor(abc.ABC):
    """Turns one LayerDescriptor into a layer of the output document."""

    layer_type = "unknown"
    # alternation of compound kinds this layer's primitives are stamped as
    element_kinds = "rect"
    # kind used for the unconfirmed, convention-only selector; None = none
    fallback_kind: str | None = None

    def __init__(self, descriptor: LayerDescriptor):
        self.descriptor = descriptor
        self.record = descriptor.record
        self.args: dict[str, Any] = self.record.args
        self.payload = self.record.payload
        self.ax = self.record.axes

    # -- extraction --------------------------------------------------------

    @abc.abstractmethod
    def extract_data(self) -> Any:
        """Return the layer's data; empty when arguments are unusable."""

    def empty_data(self) -> Any:
        return []

    # -- selectors ---------------------------------------------------------

    def ordinals(self) -> range:
        d = self.descriptor
        return range(d.ordinal, d.ordinal + d.span)

    def generate_selectors(self, tree: Group, data: Any) -> list:
        """One selector per compound node drawn by the layer's call."""
        bases = match_compounds(tree, self.descriptor.panel,
                                self.element_kinds, self.ordinals())
        if bases:
            return [css_prefix_selector(b, kind_of(b)) for b in bases]
        return self.fallback_selectors()

    def fallback_selectors(self) -> list:
        if self.fallback_kind is None:
            return []
        return [fallback_selector(self.fallback_kind, self.descriptor.panel,
                                  ordinal) for ordinal in self.ordinals()]

    # -- metadata ----------------------------------------------------------

    def title(self) -> str:
        if self.ax is None:
            return ""
        return self.ax.get_title() or self.ax.get_title("left") or ""

    def axes_labels(self) -> dict[str, Any]:
        if self.ax is None:
            return {"x": "", "y": ""}
        return {"x": self.ax.get_xlabel(), "y": self.ax.get_ylabel()}

    def formats(self) -> dict[str, Any]:
        """Explicit tick formats per axis, from the Axes' formatters."""
        if self.ax is None:
            return {}
        out = {}
        for key, axis in (("x", self.ax.xaxis), ("y", self.ax.yaxis)):
            fmt = axis_format(axis)
            if fmt is not None:
                out[key] = fmt
        return out

    def extra(self, data: Any) -> dict[str, Any]:
        """Kind-specific top-level fields."""
        return {}

    # -- assembly ----------------------------------------------------------

    def process(self, tree: Group) -> dict[str, Any]:
        """Build the layer dict.  Failures degrade to an empty layer."""
        try:
            data = self.extract_data()
        except Exception:
            logger.warning("Could not extract %s data from %s",
                           self.layer_type, self.record.source, exc_info=True)
            data = self.empty_data()

        selectors: list = []
        if data:
            try:
                selectors = self.generate_selectors(tree, data)
            except Exception:
                logger.warning("Could not match %s selectors for %s",
                               self.layer_type, self.record.source,
                               exc_info=True)

        layer = {
            "type": self.layer_type,
            "title": self.title(),
            "axes": self.axes_labels(),
            "data": data,
            "selectors": selectors,
        }
        formats = self.formats()
        if formats:
            layer["format"] = formats
        try:
            layer.update(self.extra(data))
        except Exception:
            logger.warning("Could not describe %s layer", self.layer_type,
                           exc_info=True)
        return layer
