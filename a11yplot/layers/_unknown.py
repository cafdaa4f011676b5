"""Pass-through processor for chart kinds without a data description."""
from __future__ import annotations

from ._base import LayerProcessor


class UnknownLayerProcessor(LayerProcessor):
    """Keeps the layer in the output with empty data and selectors."""

    layer_type = "unknown"

    def extract_data(self):
        return []

    def generate_selectors(self, tree, data):
        return []

    def formats(self):
        return {}
