"""Drawing-call classification: which role a function plays in a chart."""
from __future__ import annotations

from enum import Enum, auto


class Role(Enum):
    PRIMARY = auto()
    SECONDARY = auto()
    LAYOUT = auto()
    UNCLASSIFIED = auto()


# Calls that start a new logical plot.
PRIMARY_FUNCTIONS = frozenset({
    "bar", "barh", "hist", "boxplot", "violinplot",
    "plot", "step", "scatter",
    "imshow", "matshow", "pcolormesh",
    "pie", "stem", "errorbar", "fill_between", "stackplot",
    "contour", "contourf", "hexbin",
    "frame.bar", "frame.barh",
})

# Calls that decorate the plot opened by the last PRIMARY call.
SECONDARY_FUNCTIONS = frozenset({
    "axline", "axhline", "axvline",
    "bar_label", "text", "annotate", "legend", "grid",
    "set_title", "set_xlabel", "set_ylabel",
})

# Calls that partition the canvas.
LAYOUT_FUNCTIONS = frozenset({
    "subplots", "subplot", "add_subplot", "subplot_mosaic", "add_gridspec",
})


def normalize_name(name: str) -> str:
    """Strip a dispatch qualifier: ``Axes.bar`` and ``pyplot.bar`` are ``bar``.

    The ``frame.`` namespace is kept because the pandas accessor methods
    share their short names with the Axes methods.
    """
    if name.startswith("frame."):
        return name
    return name.rsplit(".", 1)[-1]


def classify(name: str) -> Role:
    """Return the role of a drawing function, UNCLASSIFIED if unknown."""
    name = normalize_name(name)
    if name in PRIMARY_FUNCTIONS:
        return Role.PRIMARY
    if name in SECONDARY_FUNCTIONS:
        return Role.SECONDARY
    if name in LAYOUT_FUNCTIONS:
        return Role.LAYOUT
    return Role.UNCLASSIFIED


def all_classified() -> frozenset[str]:
    return PRIMARY_FUNCTIONS | SECONDARY_FUNCTIONS | LAYOUT_FUNCTIONS
