"""Scatter layer."""
from __future__ import annotations

from .._types import XYSeries
from ._base import LayerProcessor, jsonable


class PointProcessor(LayerProcessor):
    """Points from ``scatter`` or from a marker-only ``plot``."""

    layer_type = "point"
    element_kinds = "points"
    fallback_kind = "points"

    def extract_data(self):
        series = self.payload
        if not isinstance(series, XYSeries):
            return []
        points = []
        for k, (x, y) in enumerate(zip(series.xs, series.ys)):
            for i, (xv, yv) in enumerate(zip(x, y)):
                point = {"x": jsonable(xv), "y": jsonable(yv)}
                if series.colors is not None and k == 0:
                    point["color"] = series.colors[i]
                elif len(series.ys) > 1:
                    point["color"] = (series.names[k] if series.names
                                      else f"Series {k + 1}")
                points.append(point)
        return points
