"""Layer kinds, layer descriptors and the input variants decided at capture."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

import numpy as np


class LayerKind(Enum):
    BAR = auto()
    DODGED_BAR = auto()
    STACKED_BAR = auto()
    HISTOGRAM = auto()
    BOX = auto()
    LINE = auto()
    POINT = auto()
    SMOOTH = auto()
    HEAT = auto()
    UNKNOWN = auto()


@dataclass
class LayerDescriptor:
    """One data layer detected in a plot group."""

    index: int
    kind: LayerKind
    group: Any  # PlotGroup
    record: Any  # CallRecord the layer is drawn by
    panel: int = 1
    ordinal: int = 1  # first compound ordinal on its Axes
    span: int = 1  # number of compounds the call emitted
    secondary_index: int | None = None


@dataclass(frozen=True)
class ScalarSeries:
    """A 1-D measure with optional category labels (simple bars)."""

    values: np.ndarray
    labels: tuple | None = None


@dataclass(frozen=True)
class Matrix:
    """A 2-D table with row and column labels (grouped bars, heat grids)."""

    values: np.ndarray
    row_labels: tuple = ()
    col_labels: tuple = ()


@dataclass(frozen=True)
class XYSeries:
    """One or more (x, y) series (lines, scatter)."""

    xs: tuple  # tuple[np.ndarray, ...]
    ys: tuple
    names: tuple = ()
    fmt: str = ""
    colors: tuple | None = None


@dataclass(frozen=True)
class SampleSet:
    """Raw samples, one array per dataset (histograms, box plots)."""

    datasets: tuple  # tuple[np.ndarray, ...]
    labels: tuple | None = None


@dataclass(frozen=True)
class ExplicitEndpoints:
    xy1: tuple[float, float]
    xy2: tuple[float, float]


@dataclass(frozen=True)
class InterceptSlope:
    xy1: tuple[float, float]
    slope: float


@dataclass(frozen=True)
class HorizontalLine:
    y: float
    xmin: float = 0.0
    xmax: float = 1.0


@dataclass(frozen=True)
class VerticalLine:
    x: float
    ymin: float = 0.0
    ymax: float = 1.0


InputVariant = (ScalarSeries | Matrix | XYSeries | SampleSet
                | ExplicitEndpoints | InterceptSlope
                | HorizontalLine | VerticalLine)


@dataclass
class FormatConfig:
    """Numeric label format recovered from a formatter or callback."""

    type: str = "number"  # number | percent | currency | scientific
    decimals: int | None = None
    prefix: str = ""
    suffix: str = ""
    scale: float = 1.0
    currency: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.decimals is not None:
            out["decimals"] = self.decimals
        if self.prefix:
            out["prefix"] = self.prefix
        if self.suffix:
            out["suffix"] = self.suffix
        if self.scale != 1.0:
            out["scale"] = self.scale
        if self.currency:
            out["currency"] = self.currency
        out.update(self.extra)
        return out
