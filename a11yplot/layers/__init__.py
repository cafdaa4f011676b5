"""Layer registry: maps LayerKind to processor class, plus factory function."""
from __future__ import annotations

from .._classify import PRIMARY_FUNCTIONS, Role
from .._types import LayerDescriptor, LayerKind, Matrix, XYSeries
from ._bar import BarProcessor, DodgedBarProcessor, StackedBarProcessor
from ._base import LayerProcessor
from ._boxplot import BoxProcessor
from ._heatmap import HeatProcessor
from ._histogram import HistogramProcessor
from ._line import LineProcessor, SmoothProcessor
from ._scatter import PointProcessor
from ._unknown import UnknownLayerProcessor

LAYER_REGISTRY: dict[LayerKind, type[LayerProcessor]] = {
    LayerKind.BAR: BarProcessor,
    LayerKind.DODGED_BAR: DodgedBarProcessor,
    LayerKind.STACKED_BAR: StackedBarProcessor,
    LayerKind.HISTOGRAM: HistogramProcessor,
    LayerKind.BOX: BoxProcessor,
    LayerKind.LINE: LineProcessor,
    LayerKind.POINT: PointProcessor,
    LayerKind.SMOOTH: SmoothProcessor,
    LayerKind.HEAT: HeatProcessor,
    LayerKind.UNKNOWN: UnknownLayerProcessor,
}

_LINE_CHARS = ("-", ":")


def _marker_only(record) -> bool:
    """``plot(x, y, "o")`` or ``linestyle="none"`` with a marker."""
    payload = record.payload
    fmt = payload.fmt if isinstance(payload, XYSeries) else ""
    marker = record.args.get("marker")
    linestyle = record.args.get("linestyle", record.args.get("ls"))
    fmt_marker = any(c not in "bgrcmykw" for c in fmt)
    if linestyle in ("", " ", "none", "None"):
        return bool(marker) or fmt_marker
    # a format string without a line style draws markers only
    return bool(fmt) and fmt_marker and not any(c in fmt for c in _LINE_CHARS)


def detect_layer_kind(record, group) -> LayerKind | None:
    """Chart kind drawn by *record* within *group*; None for no layer."""
    name = record.function
    if name in ("bar", "barh"):
        return LayerKind.BAR
    if name in ("frame.bar", "frame.barh"):
        if not isinstance(record.payload, Matrix):
            return LayerKind.BAR
        if record.args.get("stacked"):
            return LayerKind.STACKED_BAR
        return LayerKind.DODGED_BAR
    if name == "hist":
        return LayerKind.HISTOGRAM
    if name == "boxplot":
        return LayerKind.BOX
    if name == "scatter":
        return LayerKind.POINT
    if name in ("plot", "step"):
        if _marker_only(record):
            return LayerKind.POINT
        if record.role is Role.SECONDARY and \
                group.primary.function == "hist":
            return LayerKind.SMOOTH
        return LayerKind.LINE
    if name in ("axline", "axhline", "axvline"):
        return LayerKind.LINE
    if name in ("imshow", "matshow", "pcolormesh"):
        return LayerKind.HEAT
    if name in PRIMARY_FUNCTIONS:
        return LayerKind.UNKNOWN
    return None


def create_processor(descriptor: LayerDescriptor) -> LayerProcessor:
    """Create the processor for a layer; unknown kinds get a pass-through."""
    cls = LAYER_REGISTRY.get(descriptor.kind, UnknownLayerProcessor)
    return cls(descriptor)
