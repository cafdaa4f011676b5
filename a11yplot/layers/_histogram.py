"""Histogram layer: bin counts recomputed from the captured samples."""
from __future__ import annotations

import logging

import matplotlib as mpl
import numpy as np

from .._types import SampleSet
from ._base import LayerProcessor, jsonable

logger = logging.getLogger("a11yplot")


class HistogramProcessor(LayerProcessor):
    layer_type = "hist"
    element_kinds = "rect|polygon"
    fallback_kind = "rect"

    def extract_data(self):
        samples = self.payload
        if not isinstance(samples, SampleSet) or not samples.datasets:
            return []
        if len(samples.datasets) > 1:
            logger.debug("hist with %d datasets: describing the first",
                         len(samples.datasets))
        x = np.asarray(samples.datasets[0], dtype=float)
        bins = self.args.get("bins")
        if bins is None:
            bins = mpl.rcParams["hist.bins"]
        weights = self.args.get("weights")
        keep = ~np.isnan(x)
        if weights is not None:
            weights = np.asarray(weights, dtype=float).ravel()
            weights = weights[keep] if weights.shape == x.shape else None
        counts, edges = np.histogram(
            x[keep], bins=bins, range=self.args.get("range"),
            weights=weights, density=bool(self.args.get("density", False)))

        points = []
        for count, lo, hi in zip(counts, edges[:-1], edges[1:]):
            points.append({
                "x": jsonable((lo + hi) / 2),
                "y": jsonable(count),
                "xMin": jsonable(lo),
                "xMax": jsonable(hi),
                "yMin": 0,
                "yMax": jsonable(count),
            })
        return points

    def ordinals(self):
        # only the first dataset is described
        return range(self.descriptor.ordinal, self.descriptor.ordinal + 1)

    def extra(self, data):
        if self.args.get("orientation") == "horizontal":
            return {"orientation": "horz"}
        return {}
