"""Render tree: stamp artist names during capture, parse them back from SVG.

Every compound node created by a logged call is named

    mpl-plot-<panel>-<kind>-<ordinal>.<child>

where *panel* is the 1-based position of the Axes in its figure, *kind* is
the primitive family (rect, lines, points, mesh, image, polygon,
collection, box) and *ordinal* is a per-Axes counter advanced once per
compound.  The SVG backend writes each artist's gid as the ``id`` of the
element that holds it, so the names survive into the exported markup.
"""
from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

import matplotlib as mpl
from matplotlib.collections import PathCollection, QuadMesh
from matplotlib.container import BarContainer
from matplotlib.figure import Figure
from matplotlib.image import AxesImage
from matplotlib.lines import Line2D

from ._types import Matrix, SampleSet, XYSeries

NAMESPACE = "mpl-plot"
NAME_RE = re.compile(
    rf"^{NAMESPACE}-(?P<panel>\d+)-(?P<kind>[a-z]+)-(?P<ordinal>\d+)"
    r"\.(?P<child>\d+)$")

_ORDINAL_ATTR = "_a11yplot_ordinal"

# Calls that draw nothing the tree names.
_NON_EMITTING = frozenset({
    "bar_label", "text", "annotate", "legend", "grid",
    "set_title", "set_xlabel", "set_ylabel",
    "subplots", "subplot", "add_subplot", "subplot_mosaic", "add_gridspec",
})


# ---------------------------------------------------------------------------
# Typed tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Leaf:
    name: str
    kind: str


@dataclass(frozen=True)
class Group:
    name: str
    children: tuple = field(default_factory=tuple)
    tag: str = "g"


Node = Leaf | Group


def walk(node, stop: Callable[[Group], bool] | None = None) -> Iterator[Node]:
    """Depth-first pre-order traversal.

    *node* may be a single node or a list of nodes.  Children of a Group for
    which *stop* returns True are not visited.
    """
    if isinstance(node, (list, tuple)):
        for child in node:
            yield from walk(child, stop)
        return
    yield node
    if isinstance(node, Group) and not (stop is not None and stop(node)):
        yield from walk(node.children, stop)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _convert(elem: ET.Element) -> Node:
    tag = _local(elem.tag)
    name = elem.get("id", "")
    children = list(elem)
    if children or tag in ("svg", "g", "defs", "a", "clipPath"):
        return Group(name, tuple(_convert(c) for c in children), tag)
    return Leaf(name, tag)


def parse_svg(svg: str) -> Group:
    """Parse exported SVG markup into a typed tree."""
    root = ET.fromstring(svg.encode("utf-8"))
    node = _convert(root)
    if isinstance(node, Leaf):
        return Group(node.name, (), node.kind)
    return node


def render_svg(fig: Figure) -> str:
    buf = io.BytesIO()
    fig.savefig(buf, format="svg")
    return buf.getvalue().decode("utf-8")


# ---------------------------------------------------------------------------
# Stamping
# ---------------------------------------------------------------------------

def root_figure(artist) -> Figure | None:
    fig = getattr(artist, "figure", None)
    while fig is not None and getattr(fig, "figure", fig) is not fig:
        fig = fig.figure
    return fig


def panel_index(ax) -> int:
    """1-based position of *ax* among its figure's Axes."""
    fig = root_figure(ax)
    if fig is None:
        return 1
    try:
        return fig.axes.index(ax) + 1
    except ValueError:
        return 1


def compound_name(panel: int, kind: str, ordinal: int) -> str:
    return f"{NAMESPACE}-{panel}-{kind}-{ordinal}"


@dataclass
class Snapshot:
    """Identity of the artists an Axes held before a call."""

    lines: set[int] = field(default_factory=set)
    patches: set[int] = field(default_factory=set)
    collections: set[int] = field(default_factory=set)
    images: set[int] = field(default_factory=set)
    containers: set[int] = field(default_factory=set)


def snapshot(ax) -> Snapshot:
    if ax is None:
        return Snapshot()
    return Snapshot(
        lines={id(a) for a in ax.lines},
        patches={id(a) for a in ax.patches},
        collections={id(a) for a in ax.collections},
        images={id(a) for a in ax.images},
        containers={id(c) for c in ax.containers},
    )


def is_marker_only(line: Line2D) -> bool:
    marker = line.get_marker()
    has_marker = marker not in (None, "None", "none", "", " ")
    return has_marker and line.get_linestyle() in ("None", "none", "", " ")


def _collection_kind(coll) -> str:
    if isinstance(coll, PathCollection):
        return "points"
    if isinstance(coll, QuadMesh):
        return "mesh"
    return "collection"


def _next(ax) -> int:
    ordinal = getattr(ax, _ORDINAL_ATTR, 0) + 1
    setattr(ax, _ORDINAL_ATTR, ordinal)
    return ordinal


def _stamp_boxplot(ax, result: dict[str, list], panel: int) -> None:
    base = compound_name(panel, "box", _next(ax))
    boxes = result.get("boxes", [])
    medians = result.get("medians", [])
    whiskers = result.get("whiskers", [])
    caps = result.get("caps", [])
    means = result.get("means", [])
    fliers = result.get("fliers", [])
    child = 0
    for i in range(len(boxes)):
        parts = [boxes[i]]
        if i < len(medians):
            parts.append(medians[i])
        parts.extend(whiskers[2 * i:2 * i + 2])
        parts.extend(caps[2 * i:2 * i + 2])
        if i < len(means):
            parts.append(means[i])
        # an empty flier line draws nothing, so it gets no node either
        if i < len(fliers) and len(fliers[i].get_xdata()) > 0:
            parts.append(fliers[i])
        for artist in parts:
            child += 1
            artist.set_gid(f"{base}.{child}")


def stamp_call(name: str, ax, before: Snapshot, result: Any) -> int:
    """Name every artist *name* added to *ax* since *before* was taken.

    Returns the number of compound nodes named.
    """
    if ax is None:
        return 0
    start = getattr(ax, _ORDINAL_ATTR, 0)
    panel = panel_index(ax)
    if name == "boxplot" and isinstance(result, dict):
        _stamp_boxplot(ax, result, panel)
        return getattr(ax, _ORDINAL_ATTR, 0) - start

    contained: set[int] = set()
    for container in ax.containers:
        if id(container) in before.containers:
            continue
        if isinstance(container, BarContainer):
            base = compound_name(panel, "rect", _next(ax))
            for j, patch in enumerate(container.patches, 1):
                patch.set_gid(f"{base}.{j}")
                contained.add(id(patch))

    for line in ax.lines:
        if id(line) not in before.lines:
            kind = "points" if is_marker_only(line) else "lines"
            line.set_gid(f"{compound_name(panel, kind, _next(ax))}.1")
    for coll in ax.collections:
        if id(coll) not in before.collections:
            kind = _collection_kind(coll)
            coll.set_gid(f"{compound_name(panel, kind, _next(ax))}.1")
    for image in ax.images:
        if id(image) not in before.images and isinstance(image, AxesImage):
            image.set_gid(f"{compound_name(panel, 'image', _next(ax))}.1")

    loose = [p for p in ax.patches
             if id(p) not in before.patches and id(p) not in contained]
    if loose:
        base = compound_name(panel, "polygon", _next(ax))
        for j, patch in enumerate(loose, 1):
            patch.set_gid(f"{base}.{j}")
    return getattr(ax, _ORDINAL_ATTR, 0) - start


def reset_stamps(fig: Figure) -> None:
    for ax in fig.axes:
        if hasattr(ax, _ORDINAL_ATTR):
            setattr(ax, _ORDINAL_ATTR, 0)


# ---------------------------------------------------------------------------
# Ledger-side prediction
# ---------------------------------------------------------------------------

def emitted_compounds(record) -> int:
    """Number of compound nodes a logged call contributes to its Axes.

    The count stamped at capture time is used when the record carries one;
    otherwise it is predicted from the captured arguments.
    """
    emitted = record.meta.get("emitted")
    if emitted is not None:
        return emitted
    name = record.function
    if name in _NON_EMITTING:
        return 0
    payload = record.payload
    if name in ("plot", "step") and isinstance(payload, XYSeries):
        return len(payload.ys)
    if name in ("frame.bar", "frame.barh") and isinstance(payload, Matrix):
        return payload.values.shape[1]
    if name in ("bar", "barh"):
        errs = sum(record.args.get(k) is not None for k in ("xerr", "yerr"))
        capsize = record.args.get("capsize", mpl.rcParams["errorbar.capsize"])
        # error bars add one LineCollection per direction, plus cap lines
        return 1 + errs + (2 * errs if errs and capsize else 0)
    if name == "hist" and isinstance(payload, SampleSet):
        histtype = record.args.get("histtype", "bar")
        if histtype in ("bar", "barstacked"):
            return len(payload.datasets)
    return 1
