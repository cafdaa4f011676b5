"""Interception layer: wrap drawing functions so calls are logged.

Wrappers are installed once per process.  Capture is toggled with the
registry's active flag; while inactive (or while a wrapped call is already
running) every wrapper is a plain pass-through to the original.
"""
from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Iterator

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.axes import Axes
from matplotlib.figure import Figure, FigureBase

from . import _patchers
from ._classify import (LAYOUT_FUNCTIONS, PRIMARY_FUNCTIONS,
                        SECONDARY_FUNCTIONS, Role, classify)
from ._format import extract_format_config, resolve_labels
from ._inputs import describe_input
from ._ledger import STORE, LedgerStore
from ._render_tree import (Snapshot, panel_index, root_figure, snapshot,
                           stamp_call)

logger = logging.getLogger("a11yplot")

_ORIGINAL_ATTR = "__a11yplot_original__"

# Resolved through the Axes subclass actually used (e.g. 3-D axes).
DISPATCHED_METHODS = ("plot", "scatter")

# Drawing functions that open their own figure instead of using gca().
_PYPLOT_SKIP = frozenset({"matshow"})


class Binding(Enum):
    """How a wrapped callable relates to the surface it draws on."""

    METHOD = auto()     # Axes / Figure method, target is ``self``
    PYPLOT = auto()     # pyplot state-machine function
    ACCESSOR = auto()   # pandas ``DataFrame.plot`` accessor method


@dataclass
class InterceptedFunction:
    """One entry of the interception registry."""

    name: str
    owner: Any
    attribute: str
    binding: Binding
    original: Callable
    wrapper: Callable | None = None

    @property
    def role(self) -> Role:
        return classify(self.name)


@dataclass
class PreparedCall:
    """Arguments and context of a call about to run under capture."""

    flat: dict[str, Any]
    call_args: tuple
    call_kwargs: dict[str, Any]
    target: Any = None
    axes: Any = None
    before: Snapshot = field(default_factory=Snapshot)
    meta: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Argument binding
# ---------------------------------------------------------------------------

def bind_arguments(func: Callable, args: tuple, kwargs: dict
                   ) -> inspect.BoundArguments | None:
    try:
        return inspect.signature(func).bind(*args, **kwargs)
    except (TypeError, ValueError):
        return None


def flatten_arguments(bound: inspect.BoundArguments) -> dict[str, Any]:
    """Name -> value mapping; ``**kwargs`` are inlined, ``*args`` kept as
    ``args``.  The bound instance (``self``) is not included."""
    flat: dict[str, Any] = {}
    params = bound.signature.parameters
    for i, (name, value) in enumerate(bound.arguments.items()):
        kind = params[name].kind
        if i == 0 and name == "self":
            continue
        if kind is inspect.Parameter.VAR_KEYWORD:
            flat.update(value)
        elif kind is inspect.Parameter.VAR_POSITIONAL:
            flat["args"] = tuple(value)
        else:
            flat[name] = value
    return flat


def apply_flat(bound: inspect.BoundArguments, flat: dict[str, Any],
               removed: tuple[str, ...] = ()) -> None:
    """Write (patched) flat arguments back into *bound*, in place."""
    params = bound.signature.parameters
    varpos = next((n for n, p in params.items()
                   if p.kind is inspect.Parameter.VAR_POSITIONAL), None)
    varkw = next((n for n, p in params.items()
                  if p.kind is inspect.Parameter.VAR_KEYWORD), None)
    for key in removed:
        if key in params:
            bound.arguments.pop(key, None)
        elif varkw is not None:
            bound.arguments.get(varkw, {}).pop(key, None)
    for key, value in flat.items():
        if key == "args" and varpos is not None:
            bound.arguments[varpos] = tuple(value)
        elif key in params and params[key].kind not in (
                inspect.Parameter.VAR_POSITIONAL,
                inspect.Parameter.VAR_KEYWORD):
            bound.arguments[key] = value
        elif varkw is not None:
            extra = dict(bound.arguments.get(varkw, {}))
            extra[key] = value
            bound.arguments[varkw] = extra


# ---------------------------------------------------------------------------
# Surfaces
# ---------------------------------------------------------------------------

def _suppress_auto_display(fig: Figure) -> None:
    """Hide the auto-displayed canvas of a figure created behind the scenes."""
    # ipympl canvases are ipywidgets that display themselves on creation
    try:
        fig.canvas.layout.display = 'none'
        fig.canvas.layout.height = '0px'
    except AttributeError:
        pass


def ensure_surface() -> Figure:
    """Return the current figure, creating a hidden one if none is open."""
    if plt.get_fignums():
        return plt.gcf()
    fig = plt.figure()
    _suppress_auto_display(fig)
    logger.debug("Created surface %s for capture", id(fig))
    return fig


def _axes_of(value) -> Axes | None:
    if isinstance(value, Axes):
        return value
    if isinstance(value, np.ndarray) and value.size:
        first = value.flat[0]
        return first if isinstance(first, Axes) else None
    return None


def _surface_of(target, axes, result) -> Figure | None:
    if axes is not None:
        return root_figure(axes)
    if isinstance(target, FigureBase):
        return target if isinstance(target, Figure) else root_figure(target)
    if isinstance(result, Figure):
        return result
    if isinstance(result, tuple) and result and isinstance(result[0], Figure):
        return result[0]
    result_axes = _axes_of(result)
    if result_axes is not None:
        return root_figure(result_axes)
    if plt.get_fignums():
        return plt.gcf()
    return None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def _defining_class(cls: type, name: str) -> type | None:
    for klass in cls.__mro__:
        if name in klass.__dict__:
            return klass
    return None


def _iter_subclasses(cls: type) -> Iterator[type]:
    for sub in cls.__subclasses__():
        yield sub
        yield from _iter_subclasses(sub)


class InterceptionRegistry:
    """Original and wrapper for every intercepted drawing function."""

    def __init__(self, store: LedgerStore = STORE):
        self.store = store
        self.entries: dict[tuple[int, str], InterceptedFunction] = {}
        self.active = False
        self.guard = False
        self.installed = False
        self._close_original: Callable | None = None

    # -- lifecycle ---------------------------------------------------------

    def install(self) -> None:
        """Wrap every classified function.  Runs once; later calls rescan
        only for Axes subclasses that override a dispatched method."""
        if not self.installed:
            for name in sorted(PRIMARY_FUNCTIONS | SECONDARY_FUNCTIONS):
                if name.startswith("frame."):
                    continue
                owner = _defining_class(Axes, name)
                if owner is not None:
                    self._wrap(owner, name, name, Binding.METHOD)
                if name not in _PYPLOT_SKIP and hasattr(plt, name):
                    self._wrap(plt, name, name, Binding.PYPLOT)
            for name in sorted(LAYOUT_FUNCTIONS):
                owner = _defining_class(Figure, name)
                if owner is not None:
                    self._wrap(owner, name, name, Binding.METHOD)
                if hasattr(plt, name):
                    self._wrap(plt, name, name, Binding.PYPLOT)
            for attr in ("bar", "barh"):
                self._wrap(pd.plotting.PlotAccessor, attr, f"frame.{attr}",
                           Binding.ACCESSOR)
            self._wrap_close()
            self.installed = True
            logger.debug("Installed %d wrappers", len(self.entries))
        self.wrap_dispatch_overrides()

    def wrap_dispatch_overrides(self) -> None:
        """Wrap ``plot``/``scatter`` overrides on Axes subclasses."""
        for cls in _iter_subclasses(Axes):
            for name in DISPATCHED_METHODS:
                impl = cls.__dict__.get(name)
                if impl is None or hasattr(impl, _ORIGINAL_ATTR):
                    continue
                self._wrap(cls, name, name, Binding.METHOD)

    def uninstall(self) -> None:
        """Restore every original."""
        for entry in self.entries.values():
            setattr(entry.owner, entry.attribute, entry.original)
        self.entries.clear()
        if self._close_original is not None:
            plt.close = self._close_original
            self._close_original = None
        self.installed = False
        self.active = False

    def _wrap_close(self) -> None:
        """Drop the ledgers of the figures ``pyplot.close`` disposes of."""
        original = plt.close
        if hasattr(original, _ORIGINAL_ATTR):
            return
        store = self.store

        @functools.wraps(original)
        def close(*args, **kwargs):
            try:
                return original(*args, **kwargs)
            finally:
                store.prune()

        setattr(close, _ORIGINAL_ATTR, original)
        plt.close = close
        self._close_original = original

    def activate(self) -> None:
        self.install()
        self.active = True

    def deactivate(self) -> None:
        self.active = False

    def suppressed(self):
        """Context manager: wrapped calls made inside are not logged."""
        return _Suppressed(self)

    def _wrap(self, owner, attribute: str, name: str, binding: Binding) -> None:
        key = (id(owner), attribute)
        current = getattr(owner, attribute)
        if key in self.entries or hasattr(current, _ORIGINAL_ATTR):
            return
        if isinstance(owner, type):
            current = owner.__dict__[attribute]
        entry = InterceptedFunction(name=name, owner=owner,
                                    attribute=attribute, binding=binding,
                                    original=current)
        entry.wrapper = self._make_wrapper(entry)
        setattr(owner, attribute, entry.wrapper)
        self.entries[key] = entry

    def _make_wrapper(self, entry: InterceptedFunction) -> Callable:
        original = entry.original
        registry = self

        @functools.wraps(original)
        def wrapper(*args, **kwargs):
            if not registry.active or registry.guard:
                return original(*args, **kwargs)
            registry.guard = True
            try:
                return registry._capture(entry, args, kwargs)
            finally:
                registry.guard = False

        setattr(wrapper, _ORIGINAL_ATTR, original)
        return wrapper

    # -- capture -----------------------------------------------------------

    def _capture(self, entry: InterceptedFunction, args: tuple,
                 kwargs: dict) -> Any:
        try:
            prepared = self._prepare(entry, args, kwargs)
        except Exception:
            logger.warning("Could not prepare capture of %s", entry.name,
                           exc_info=True)
            return entry.original(*args, **kwargs)

        result = entry.original(*prepared.call_args, **prepared.call_kwargs)

        try:
            self._log(entry, prepared, result)
        except Exception:
            logger.warning("Could not log call to %s", entry.name,
                           exc_info=True)
        return result

    def _prepare(self, entry: InterceptedFunction, args: tuple,
                 kwargs: dict) -> PreparedCall:
        drawing = entry.role is not Role.LAYOUT
        if entry.binding is Binding.PYPLOT and drawing:
            ensure_surface()

        bound = bind_arguments(entry.original, args, kwargs)
        if bound is None:
            flat = {"args": tuple(args), **kwargs}
            return PreparedCall(flat=flat, call_args=args, call_kwargs=kwargs)

        flat = flatten_arguments(bound)
        target = None
        axes = None
        if entry.binding is Binding.METHOD:
            target = args[0] if args else None
            axes = target if isinstance(target, Axes) else None
        elif entry.binding is Binding.PYPLOT and drawing:
            axes = plt.gca()
        elif entry.binding is Binding.ACCESSOR:
            target = args[0]
            flat["frame"] = target._parent
            axes = flat.get("ax")

        meta: dict[str, Any] = {}
        patched = _patchers.apply(entry.name, flat)
        removed: tuple[str, ...] = ()
        if entry.name == "bar_label":
            patched, removed = self._resolve_label_format(patched, meta)

        call_args, call_kwargs = args, kwargs
        if patched is not flat or removed:
            if entry.binding is Binding.ACCESSOR:
                frame = patched.pop("frame")
                flat_for_call = {k: v for k, v in patched.items()}
                apply_flat(bound, flat_for_call, removed)
                call_args = (type(target)(frame), *bound.args[1:])
                call_kwargs = bound.kwargs
                patched["frame"] = frame
            else:
                apply_flat(bound, patched, removed)
                call_args, call_kwargs = bound.args, bound.kwargs

        return PreparedCall(flat=patched, call_args=tuple(call_args),
                            call_kwargs=dict(call_kwargs), target=target,
                            axes=axes, before=snapshot(axes), meta=meta)

    @staticmethod
    def _resolve_label_format(flat: dict[str, Any], meta: dict[str, Any]
                              ) -> tuple[dict[str, Any], tuple[str, ...]]:
        """Record the label format and pre-render callback labels."""
        fmt = flat.get("fmt")
        if fmt is None:
            return flat, ()
        config = extract_format_config(fmt)
        if config is not None:
            meta["format"] = config.to_dict()
        container = flat.get("container")
        if callable(fmt) and flat.get("labels") is None \
                and hasattr(container, "datavalues"):
            out = dict(flat)
            out["labels"] = resolve_labels(fmt, container.datavalues)
            del out["fmt"]
            return out, ("fmt",)
        return flat, ()

    def _log(self, entry: InterceptedFunction, prepared: PreparedCall,
             result: Any) -> None:
        axes = prepared.axes
        if axes is None and entry.role is not Role.LAYOUT:
            axes = _axes_of(result)
        fig = _surface_of(prepared.target, axes, result)
        if fig is None:
            return
        meta = dict(prepared.meta)
        if axes is not None:
            before = prepared.before if prepared.axes is axes else Snapshot()
            meta["emitted"] = stamp_call(entry.name, axes, before, result)
        payload = describe_input(entry.name, prepared.flat)
        ledger = self.store.for_figure(fig)
        ledger.append(entry.name, prepared.flat, axes=axes,
                      panel=panel_index(axes) if axes is not None else None,
                      payload=payload, meta=meta)


class _Suppressed:
    def __init__(self, registry: InterceptionRegistry):
        self._registry = registry
        self._previous = False

    def __enter__(self):
        self._previous = self._registry.guard
        self._registry.guard = True
        return self._registry

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._registry.guard = self._previous
        return False


REGISTRY = InterceptionRegistry()
