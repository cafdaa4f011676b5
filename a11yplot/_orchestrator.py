"""PlotOrchestrator: from one surface's ledger to the output document data."""
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import Any

from ._config import FallbackSettings
from ._grouping import PanelConfig, PlotGroup, detect_panel_config, group_calls
from ._ledger import DeviceLedger
from ._render_tree import Group, emitted_compounds
from ._types import LayerDescriptor, LayerKind
from .layers import create_processor, detect_layer_kind

logger = logging.getLogger("a11yplot")


def _subplot_cell(ax) -> tuple[int, int] | None:
    """1-based (row, col) of the top-left grid cell an Axes occupies."""
    get_spec = getattr(ax, "get_subplotspec", None)
    spec = get_spec() if get_spec is not None else None
    if spec is None:
        return None
    return spec.rowspan.start + 1, spec.colspan.start + 1


class PlotOrchestrator:
    """Groups calls, detects layers and assembles the multi-panel result."""

    def __init__(self, ledger: DeviceLedger, tree: Group):
        self._ledger = ledger
        self._tree = tree
        self.groups: list[PlotGroup]
        self.groups, layout = group_calls(ledger.records())
        self.panel_config: PanelConfig = detect_panel_config(layout)
        self.layers = self._detect_layers()
        self._processors = [create_processor(d) for d in self.layers]
        logger.debug("surface %s: %d groups, %d layers, panels %s",
                     ledger.surface_id, len(self.groups), len(self.layers),
                     self.panel_config)

    def _ordinals(self) -> dict[int, int]:
        """First compound ordinal of every record, per Axes, in call order."""
        counters: dict[int, int] = defaultdict(int)
        first: dict[int, int] = {}
        for record in self._ledger.records():
            if record.axes is None:
                continue
            key = id(record.axes)
            first[record.index] = counters[key] + 1
            counters[key] += emitted_compounds(record)
        return first

    def _detect_layers(self) -> list[LayerDescriptor]:
        first = self._ordinals()
        layers = []
        for group in self.groups:
            for k, record in enumerate(group.records):
                kind = detect_layer_kind(record, group)
                if kind is None:
                    continue
                layers.append(LayerDescriptor(
                    index=len(layers) + 1,
                    kind=kind,
                    group=group,
                    record=record,
                    panel=record.panel or group.primary.panel or 1,
                    ordinal=first.get(record.index, 1),
                    span=max(1, emitted_compounds(record)),
                    secondary_index=k if k else None,
                ))
        return layers

    def _cell(self, descriptor: LayerDescriptor) -> tuple[int, int]:
        ax = descriptor.record.axes
        cell = _subplot_cell(ax) if ax is not None else None
        if cell is None:
            cell = self.panel_config.position(descriptor.panel)
        return cell

    def has_unsupported_layers(self) -> bool:
        return any(d.kind is LayerKind.UNKNOWN for d in self.layers)

    def should_fallback(self, settings: FallbackSettings) -> bool:
        return settings.enabled and self.has_unsupported_layers()

    def generate_data(self) -> dict[str, Any]:
        """The JSON-serializable document data: ``{id, subplots}``."""
        cells: dict[tuple[int, int], list[dict]] = defaultdict(list)
        for descriptor, processor in zip(self.layers, self._processors):
            layer = {"id": f"maidr-layer-{descriptor.index}"}
            layer.update(processor.process(self._tree))
            cells[self._cell(descriptor)].append(layer)

        subplots = []
        for row in sorted({r for r, _ in cells}):
            subplots.append([
                {"id": f"maidr-subplot-{row}-{col}", "layers": cells[(row, col)]}
                for col in sorted(c for r, c in cells if r == row)])
        if not subplots:
            subplots = [[{"id": "maidr-subplot-1-1", "layers": []}]]
        return {"id": f"maidr-plot-{uuid.uuid4().hex[:12]}",
                "subplots": subplots}
