"""Line layers: data lines, density curves and reference lines."""
from __future__ import annotations

from .._types import (ExplicitEndpoints, HorizontalLine, InterceptSlope,
                      VerticalLine, XYSeries)
from ._base import LayerProcessor, jsonable

REFERENCE_FUNCTIONS = ("axline", "axhline", "axvline")


def _series_points(x, y, fill=None) -> list[dict]:
    points = []
    for xv, yv in zip(x, y):
        point = {"x": jsonable(xv), "y": jsonable(yv)}
        if fill is not None:
            point["fill"] = fill
        points.append(point)
    return points


def reference_endpoints(line, ax) -> list[dict]:
    """Two endpoints of a reference line across the Axes' view limits."""
    x0, x1 = ax.get_xlim()
    y0, y1 = ax.get_ylim()
    if isinstance(line, HorizontalLine):
        xa = x0 + line.xmin * (x1 - x0)
        xb = x0 + line.xmax * (x1 - x0)
        return _series_points((xa, xb), (line.y, line.y))
    if isinstance(line, VerticalLine):
        ya = y0 + line.ymin * (y1 - y0)
        yb = y0 + line.ymax * (y1 - y0)
        return _series_points((line.x, line.x), (ya, yb))
    if isinstance(line, ExplicitEndpoints):
        (xa, ya), (xb, yb) = line.xy1, line.xy2
        if xa == xb:
            return _series_points((xa, xa), (y0, y1))
        slope = (yb - ya) / (xb - xa)
    elif isinstance(line, InterceptSlope):
        (xa, ya), slope = line.xy1, line.slope
    else:
        return []
    return _series_points((x0, x1), (ya + slope * (x0 - xa),
                                     ya + slope * (x1 - xa)))


class LineProcessor(LayerProcessor):
    """One series per drawn line; several lines carry a ``fill`` name."""

    layer_type = "line"
    element_kinds = "lines"

    def extract_data(self):
        if self.record.function in REFERENCE_FUNCTIONS:
            if self.ax is None:
                return []
            points = reference_endpoints(self.payload, self.ax)
            return [points] if points else []

        series = self.payload
        if not isinstance(series, XYSeries):
            return []
        multi = len(series.ys) > 1
        out = []
        for k, (x, y) in enumerate(zip(series.xs, series.ys)):
            fill = None
            if multi:
                fill = series.names[k] if series.names else f"Series {k + 1}"
            out.append(_series_points(x, y, fill))
        return out


class SmoothProcessor(LayerProcessor):
    """A density or fitted curve drawn over another chart."""

    layer_type = "smooth"
    element_kinds = "lines"

    def extract_data(self):
        series = self.payload
        if not isinstance(series, XYSeries) or not series.ys:
            return []
        return [_series_points(series.xs[0], series.ys[0])]

    def ordinals(self):
        return range(self.descriptor.ordinal, self.descriptor.ordinal + 1)
