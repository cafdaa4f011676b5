"""Box-and-whisker layer."""
from __future__ import annotations

import matplotlib as mpl
from matplotlib import cbook

from .._selectors import box_component_selectors, match_compounds
from .._types import SampleSet
from ._base import LayerProcessor, jsonable


def _horizontal(args) -> bool:
    if args.get("orientation") == "horizontal":
        return True
    return args.get("vert") is False


class BoxProcessor(LayerProcessor):
    """Five-number summary and outliers per box.

    Statistics are recomputed with ``cbook.boxplot_stats`` from the
    captured samples, the same routine ``Axes.boxplot`` uses.  Horizontal
    boxes are listed in reverse, and every per-box list (data, selectors)
    follows that order.
    """

    layer_type = "box"
    element_kinds = "box"

    def _rc(self, key: str, rc_key: str):
        value = self.args.get(key)
        return mpl.rcParams[rc_key] if value is None else value

    def _stats(self) -> list[dict]:
        samples = self.payload
        if not isinstance(samples, SampleSet) or not samples.datasets:
            return []
        labels = samples.labels
        if labels is None or len(labels) != len(samples.datasets):
            positions = self.args.get("positions")
            if positions is not None and len(positions) == len(samples.datasets):
                labels = tuple(str(jsonable(p)) for p in positions)
            else:
                labels = tuple(str(i) for i in
                               range(1, len(samples.datasets) + 1))
        return cbook.boxplot_stats(
            list(samples.datasets),
            whis=self._rc("whis", "boxplot.whiskers"),
            labels=list(labels),
            autorange=bool(self.args.get("autorange", False)))

    def extract_data(self):
        boxes = []
        for stats in self._stats():
            fliers = [jsonable(v) for v in stats["fliers"]]
            boxes.append({
                "fill": stats.get("label", ""),
                "min": jsonable(stats["whislo"]),
                "q1": jsonable(stats["q1"]),
                "q2": jsonable(stats["med"]),
                "q3": jsonable(stats["q3"]),
                "max": jsonable(stats["whishi"]),
                "lowerOutliers": [v for v in fliers if v < stats["whislo"]],
                "upperOutliers": [v for v in fliers if v > stats["whishi"]],
            })
        if _horizontal(self.args):
            boxes.reverse()
        return boxes

    def generate_selectors(self, tree, data):
        bases = match_compounds(tree, self.descriptor.panel, "box",
                                [self.descriptor.ordinal])
        if not bases:
            return []
        boxes = data[::-1] if _horizontal(self.args) else data
        show_fliers = self._rc("showfliers", "boxplot.showfliers")
        fliers = []
        for box in boxes:
            # boxplot_stats lists lower outliers before upper ones
            n_lower = len(box["lowerOutliers"]) if show_fliers else 0
            n_upper = len(box["upperOutliers"]) if show_fliers else 0
            fliers.append((list(range(1, n_lower + 1)),
                           list(range(n_lower + 1, n_lower + n_upper + 1))))
        selectors = box_component_selectors(
            bases[0], fliers,
            caps=bool(self._rc("showcaps", "boxplot.showcaps")),
            means=bool(self._rc("showmeans", "boxplot.showmeans")))
        if _horizontal(self.args):
            selectors.reverse()
        return selectors

    def extra(self, data):
        horizontal = _horizontal(self.args)
        return {
            "orientation": "horz" if horizontal else "vert",
            "domMapping": {
                "iqrDirection": "forward" if horizontal else "reverse"},
        }
