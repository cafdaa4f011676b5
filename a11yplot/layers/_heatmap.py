"""Heat grid layer (imshow, matshow, pcolormesh)."""
from __future__ import annotations

from .._inputs import image_origin
from .._types import Matrix
from ._base import LayerProcessor, jsonable


class HeatProcessor(LayerProcessor):
    """Cell values, bottom row first.

    ``imshow``/``matshow`` with ``origin="upper"`` draw the first input row
    at the top, so rows are reversed; ``pcolormesh`` already draws row 0 at
    the bottom.
    """

    layer_type = "heat"
    element_kinds = "mesh|image"

    @property
    def fallback_kind(self):
        return "mesh" if self.record.function == "pcolormesh" else "image"

    def _reversed(self) -> bool:
        if self.record.function == "pcolormesh":
            return False
        return image_origin(self.args) == "upper"

    def extract_data(self):
        table = self.payload
        if not isinstance(table, Matrix) or table.values.ndim != 2:
            return {}
        values = table.values
        rows = list(table.row_labels)
        if self._reversed():
            values = values[::-1]
            rows = rows[::-1]
        return {
            "points": [[jsonable(v) for v in row] for row in values],
            "x": list(table.col_labels),
            "y": rows,
        }

    def empty_data(self):
        return {}

    def axes_labels(self):
        labels = super().axes_labels()
        labels["fill"] = "value"
        return labels

    def extra(self, data):
        return {"domMapping": {"order": "row"}}
