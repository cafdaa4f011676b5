"""Bar layers: simple, dodged (grouped) and stacked."""
from __future__ import annotations

from typing import Any

from .._selectors import (css_prefix_selector, fallback_selector,
                          fold_selectors, kind_of, match_compounds)
from .._types import Matrix, ScalarSeries
from ._base import LayerProcessor, jsonable


def _horizontal(record) -> bool:
    return record.function in ("barh", "frame.barh")


def _label_format(group) -> dict[str, Any] | None:
    """Format recovered from a ``bar_label`` call decorating the bars."""
    for record in group.secondaries:
        if record.function == "bar_label" and record.meta.get("format"):
            return record.meta["format"]
    return None


class BarProcessor(LayerProcessor):
    layer_type = "bar"
    element_kinds = "rect"
    fallback_kind = "rect"

    def extract_data(self):
        series = self.payload
        if not isinstance(series, ScalarSeries):
            return []
        labels = series.labels or tuple(range(len(series.values)))
        points = []
        for label, value in zip(labels, series.values):
            if _horizontal(self.record):
                points.append({"x": jsonable(value), "y": jsonable(label)})
            else:
                points.append({"x": jsonable(label), "y": jsonable(value)})
        return points

    def generate_selectors(self, tree, data):
        # error bars drawn by the same call follow the bars; only the
        # first compound holds the bars themselves
        bases = match_compounds(tree, self.descriptor.panel, "rect",
                                [self.descriptor.ordinal])
        if bases:
            return [css_prefix_selector(bases[0], "rect")]
        return [fallback_selector("rect", self.descriptor.panel,
                                  self.descriptor.ordinal)]

    def formats(self):
        out = super().formats()
        label_fmt = _label_format(self.descriptor.group)
        if label_fmt is not None:
            out["x" if _horizontal(self.record) else "y"] = label_fmt
        return out

    def extra(self, data):
        if _horizontal(self.record):
            return {"orientation": "horz"}
        return {}


class DodgedBarProcessor(LayerProcessor):
    """Grouped bars from a 2-D table: one series per column."""

    layer_type = "dodged_bar"
    element_kinds = "rect"
    fallback_kind = "rect"

    def extract_data(self):
        table = self.payload
        if not isinstance(table, Matrix) or table.values.ndim != 2:
            return []
        horizontal = _horizontal(self.record)
        series = []
        for j, fill in enumerate(table.col_labels):
            points = []
            for i, category in enumerate(table.row_labels):
                value = jsonable(table.values[i, j])
                if horizontal:
                    points.append({"x": value, "y": category, "fill": fill})
                else:
                    points.append({"x": category, "y": value, "fill": fill})
            series.append(points)
        return series

    def group_direction(self) -> str:
        return "forward"

    def generate_selectors(self, tree, data):
        """A single comma-joined selector over every series' bars."""
        bases = match_compounds(tree, self.descriptor.panel, "rect",
                                self.ordinals())
        if not bases:
            return [fold_selectors(fallback_selector(
                "rect", self.descriptor.panel, o) for o in self.ordinals())]
        if self.group_direction() == "reverse":
            bases = bases[::-1]
        return [fold_selectors(css_prefix_selector(b, kind_of(b))
                               for b in bases)]

    def extra(self, data):
        out: dict[str, Any] = {
            "domMapping": {"groupDirection": self.group_direction()}}
        if _horizontal(self.record):
            out["orientation"] = "horz"
        return out


class StackedBarProcessor(DodgedBarProcessor):
    """Stacked bars: series stack in column order, first column at the base."""

    layer_type = "stacked_bar"
