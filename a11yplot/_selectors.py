"""Render tree matcher: turn named tree nodes into CSS selectors."""
from __future__ import annotations

import logging
import re
from typing import Iterable

from ._render_tree import NAME_RE, NAMESPACE, Group, compound_name, walk

logger = logging.getLogger("a11yplot")

# What a selector targets under each compound kind.
ELEMENT_TARGETS: dict[str, str] = {
    "rect": "> path",
    "polygon": "> path",
    "lines": "> path",
    "collection": "> path",
}


def _skip_definitions(node: Group) -> bool:
    return node.tag in ("defs", "clipPath")


def find_nodes(tree, pattern: str | re.Pattern) -> list[str]:
    """Names of all nodes whose name fully matches *pattern*, in tree order."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    return [node.name for node in walk(tree, stop=_skip_definitions)
            if node.name and regex.fullmatch(node.name)]


def compound_names(names: Iterable[str]) -> list[str]:
    """Fold child names (``base.j``) to their distinct compound bases."""
    seen: dict[str, None] = {}
    for name in names:
        seen.setdefault(name.rsplit(".", 1)[0], None)
    return list(seen)


def child_pattern(panel: int, kinds: str, ordinal: int | str) -> str:
    """Regex for the children of one compound (or any, with ordinal r"\\d+")."""
    return rf"{NAMESPACE}-{panel}-(?:{kinds})-{ordinal}\.\d+"


def css_prefix_selector(base: str, kind: str) -> str:
    """Selector for every primitive under the compound named *base*."""
    if kind == "image":
        return f"image[id^='{base}.']"
    prefix = f"g[id^='{base}.']"
    if kind in ("points", "mesh"):
        # collections fall back to one <path> per item when <use> does not pay
        return f"{prefix} use, {prefix} > path"
    return f"{prefix} {ELEMENT_TARGETS.get(kind, '> path')}"


def kind_of(base: str) -> str:
    m = NAME_RE.match(base + ".1")
    return m.group("kind") if m else "rect"


def fold_selectors(selectors: Iterable[str]) -> str:
    """Join several selectors into one multi-target selector."""
    return ", ".join(s for s in selectors if s)


def fallback_selector(kind: str, panel: int, ordinal: int) -> str:
    """Selector built from the naming convention alone, unconfirmed."""
    return css_prefix_selector(compound_name(panel, kind, ordinal), kind)


def match_compounds(tree, panel: int, kinds: str, ordinals: Iterable[int]
                    ) -> list[str]:
    """Compound bases present in *tree* for the given ordinals, in order."""
    found = []
    for ordinal in ordinals:
        names = find_nodes(tree, child_pattern(panel, kinds, ordinal))
        found.extend(compound_names(names))
    return found


# ---------------------------------------------------------------------------
# Box plots
# ---------------------------------------------------------------------------

def outlier_shift_offsets(outlier_counts: list[int]) -> list[int]:
    """Running sibling-index correction per box.

    A box without outliers has no flier node, so every later box starts one
    sibling earlier than the fixed per-box stride predicts.  Entry *i* is
    the number of outlier-free boxes before box *i*.  Tied to the order the
    stamping pass emits box children (fliers last in each box).
    """
    offsets = []
    missing = 0
    for count in outlier_counts:
        offsets.append(missing)
        if count == 0:
            missing += 1
    return offsets


def box_component_selectors(base: str, fliers: list[tuple[list[int], list[int]]],
                            *, caps: bool = True, means: bool = False
                            ) -> list[dict]:
    """Per-box selectors in structural (stamping) order.

    Each entry of *fliers* holds the 1-based positions of one box's lower
    and upper outliers within its rendered flier marker list.  Returns
    ``{lowerOutliers, min, iq, q2, max, upperOutliers}`` dicts; outlier
    selectors are one per point.
    """
    stride = 4 + (2 if caps else 0) + (1 if means else 0)
    offsets = outlier_shift_offsets([len(lo) + len(hi) for lo, hi in fliers])

    def node(j: int) -> str:
        return f"g[id='{base}.{j}']"

    out = []
    for i, (lower, upper) in enumerate(fliers):
        start = (stride + 1) * i - offsets[i]
        box, median = start + 1, start + 2
        whisker_lo, whisker_hi = start + 3, start + 4
        # caps sit on the whisker ends; the whisker line is the addressable
        # extent when caps are hidden
        cap_lo = start + 5 if caps else whisker_lo
        cap_hi = start + 6 if caps else whisker_hi
        flier_node = node(start + stride + 1)
        entry = {
            "lowerOutliers": [f"{flier_node} use:nth-of-type({k})"
                              for k in lower],
            "min": f"{node(cap_lo)} > path",
            "iq": f"{node(box)} > path",
            "q2": f"{node(median)} > path",
            "max": f"{node(cap_hi)} > path",
            "upperOutliers": [f"{flier_node} use:nth-of-type({k})"
                              for k in upper],
        }
        out.append(entry)
    logger.debug("Box selectors for %s: offsets %s", base, offsets)
    return out
