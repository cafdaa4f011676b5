"""Tests for layer detection and per-kind data extraction.

Each test draws a real chart under capture, renders it, and checks the
layer the orchestrator assembles for it.

Run:  python -m pytest tests/test_layers.py -v
"""
from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from matplotlib import cbook, ticker

from a11yplot._classify import Role
from a11yplot._grouping import PlotGroup
from a11yplot._inputs import describe_input
from a11yplot._intercept import REGISTRY
from a11yplot._ledger import STORE, CallRecord
from a11yplot._orchestrator import PlotOrchestrator
from a11yplot._render_tree import Group, parse_svg, render_svg
from a11yplot._types import LayerDescriptor, LayerKind, SampleSet
from a11yplot.layers import create_processor, detect_layer_kind
from a11yplot.layers._bar import BarProcessor
from a11yplot.layers._boxplot import BoxProcessor


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _layers(fig) -> list[dict]:
    with REGISTRY.suppressed():
        tree = parse_svg(render_svg(fig))
    data = PlotOrchestrator(STORE.for_figure(fig), tree).generate_data()
    return [layer for row in data["subplots"] for cell in row
            for layer in cell["layers"]]


def _record(function, args=None, payload=None, role=Role.PRIMARY):
    return CallRecord(function=function, role=role, args=args or {},
                      source=f"{function}()", index=1, surface_id=0,
                      timestamp=0.0, payload=payload)


def _descriptor(kind, record):
    return LayerDescriptor(index=1, kind=kind, group=PlotGroup(record),
                           record=record)


# ---------------------------------------------------------------------------
# Layer kind detection
# ---------------------------------------------------------------------------

class TestDetectLayerKind:
    @pytest.mark.parametrize("name,kind", [
        ("bar", LayerKind.BAR), ("barh", LayerKind.BAR),
        ("hist", LayerKind.HISTOGRAM), ("boxplot", LayerKind.BOX),
        ("scatter", LayerKind.POINT), ("plot", LayerKind.LINE),
        ("axhline", LayerKind.LINE), ("imshow", LayerKind.HEAT),
        ("pcolormesh", LayerKind.HEAT), ("pie", LayerKind.UNKNOWN),
        ("violinplot", LayerKind.UNKNOWN),
    ])
    def test_kinds(self, name, kind):
        record = _record(name)
        assert detect_layer_kind(record, PlotGroup(record)) is kind

    def test_decorations_have_no_layer(self):
        primary = _record("bar")
        label = _record("bar_label", role=Role.SECONDARY)
        assert detect_layer_kind(label, PlotGroup(primary, [label])) is None

    def test_marker_only_plot_is_point(self):
        args = {"args": ([1], [2], "o")}
        record = _record("plot", args, describe_input("plot", args))
        assert detect_layer_kind(record, PlotGroup(record)) is LayerKind.POINT
        args = {"args": ([1], [2], "r--")}
        record = _record("plot", args, describe_input("plot", args))
        assert detect_layer_kind(record, PlotGroup(record)) is LayerKind.LINE

    def test_curve_over_histogram_is_smooth(self):
        hist = _record("hist")
        curve = _record("plot", role=Role.SECONDARY)
        group = PlotGroup(hist, [curve])
        assert detect_layer_kind(curve, group) is LayerKind.SMOOTH

    def test_unknown_kind_gets_pass_through(self):
        record = _record("pie")
        layer = create_processor(
            _descriptor(LayerKind.UNKNOWN, record)).process(Group("svg"))
        assert layer["type"] == "unknown"
        assert layer["data"] == []
        assert layer["selectors"] == []


# ---------------------------------------------------------------------------
# Degraded input
# ---------------------------------------------------------------------------

class TestDegradedLayers:
    def test_missing_payload_gives_empty_layer(self):
        record = _record("bar")
        layer = BarProcessor(_descriptor(LayerKind.BAR, record)).process(
            Group("svg"))
        assert layer["data"] == []
        assert layer["selectors"] == []
        assert layer["title"] == ""

    def test_recompute_failure_contained(self, monkeypatch):
        def boom(*args, **kwargs):
            raise ValueError("bad samples")

        monkeypatch.setattr(cbook, "boxplot_stats", boom)
        record = _record("boxplot",
                         payload=SampleSet(datasets=(np.arange(5.0),)))
        layer = BoxProcessor(_descriptor(LayerKind.BOX, record)).process(
            Group("svg"))
        assert layer["data"] == []
        assert layer["orientation"] == "vert"


# ---------------------------------------------------------------------------
# Bars
# ---------------------------------------------------------------------------

class TestBarLayers:
    def test_simple_bar(self, capture):
        fig, ax = plt.subplots()
        ax.bar(["b", "c", "a"], [2, 3, 1])
        ax.set_title("Sales")
        ax.set_xlabel("Region")
        layer, = _layers(fig)
        assert layer["type"] == "bar"
        assert layer["title"] == "Sales"
        assert layer["axes"] == {"x": "Region", "y": ""}
        assert layer["data"] == [{"x": "a", "y": 1}, {"x": "b", "y": 2},
                                 {"x": "c", "y": 3}]
        assert layer["selectors"] == ["g[id^='mpl-plot-1-rect-1.'] > path"]

    def test_horizontal_bar(self, capture):
        fig, ax = plt.subplots()
        ax.barh(["y", "x"], [1.5, 2.5])
        layer, = _layers(fig)
        assert layer["orientation"] == "horz"
        assert layer["data"] == [{"x": 2.5, "y": "x"}, {"x": 1.5, "y": "y"}]

    def test_bar_label_format(self, capture):
        fig, ax = plt.subplots()
        bars = ax.bar(["a", "b"], [10, 20])
        ax.bar_label(bars, fmt="${:,.2f}")
        layer, = _layers(fig)
        assert layer["format"]["y"] == {"type": "currency", "decimals": 2,
                                        "prefix": "$", "currency": "USD",
                                        "grouping": True}

    def test_axis_formatter(self, capture):
        fig, ax = plt.subplots()
        ax.bar([1, 2], [0.1, 0.2])
        ax.yaxis.set_major_formatter(ticker.PercentFormatter(xmax=1))
        layer, = _layers(fig)
        assert layer["format"]["y"]["type"] == "percent"
        assert "x" not in layer["format"]

    def test_dodged_bars(self, capture):
        df = pd.DataFrame({"B": [3, 4], "A": [1, 2]}, index=["x", "y"])
        fig, ax = plt.subplots()
        df.plot.bar(ax=ax)
        layer, = _layers(fig)
        assert layer["type"] == "dodged_bar"
        assert layer["data"] == [
            [{"x": "x", "y": 1, "fill": "A"}, {"x": "y", "y": 2, "fill": "A"}],
            [{"x": "x", "y": 3, "fill": "B"}, {"x": "y", "y": 4, "fill": "B"}],
        ]
        assert layer["selectors"] == [
            "g[id^='mpl-plot-1-rect-1.'] > path, "
            "g[id^='mpl-plot-1-rect-2.'] > path"]
        assert layer["domMapping"] == {"groupDirection": "forward"}

    def test_stacked_bars(self, capture):
        df = pd.DataFrame({"A": [1, 2], "B": [3, 4]}, index=["x", "y"])
        fig, ax = plt.subplots()
        df.plot.bar(stacked=True, ax=ax)
        layer, = _layers(fig)
        assert layer["type"] == "stacked_bar"
        assert len(layer["data"]) == 2
        assert len(layer["selectors"]) == 1

    def test_series_accessor_is_simple_bar(self, capture):
        s = pd.Series([2, 1], index=["b", "a"])
        fig, ax = plt.subplots()
        s.plot.barh(ax=ax)
        layer, = _layers(fig)
        assert layer["type"] == "bar"
        assert layer["orientation"] == "horz"
        assert layer["data"] == [{"x": 1, "y": "a"}, {"x": 2, "y": "b"}]


# ---------------------------------------------------------------------------
# Distributions
# ---------------------------------------------------------------------------

class TestHistogram:
    def test_bins_recomputed(self, capture):
        fig, ax = plt.subplots()
        ax.hist([1, 2, 2, 3, 3, 3], bins=3)
        layer, = _layers(fig)
        assert layer["type"] == "hist"
        assert [p["y"] for p in layer["data"]] == [1, 2, 3]
        assert layer["data"][0]["xMin"] == 1
        assert layer["data"][-1]["xMax"] == 3
        assert all(p["yMin"] == 0 for p in layer["data"])
        assert layer["selectors"] == ["g[id^='mpl-plot-1-rect-1.'] > path"]

    def test_density_curve_is_smooth_layer(self, capture):
        rng = np.random.default_rng(0)
        fig, ax = plt.subplots()
        ax.hist(rng.normal(size=200), bins=10, density=True)
        xs = np.linspace(-3, 3, 20)
        ax.plot(xs, np.exp(-xs ** 2 / 2) / np.sqrt(2 * np.pi))
        hist, curve = _layers(fig)
        assert hist["type"] == "hist"
        assert curve["type"] == "smooth"
        assert len(curve["data"][0]) == 20
        assert curve["selectors"] == ["g[id^='mpl-plot-1-lines-2.'] > path"]


class TestBoxplot:
    DATA = [
        [1, 2, 3, 4, 5, 100],
        [1, 2, 3, 4, 5],
        [-100, 1, 2, 3, 4, 5, 200, 300],
    ]

    def test_statistics(self, capture):
        fig, ax = plt.subplots()
        ax.boxplot(self.DATA)
        layer, = _layers(fig)
        assert layer["type"] == "box"
        assert layer["orientation"] == "vert"
        assert layer["domMapping"] == {"iqrDirection": "reverse"}
        assert layer["data"][0] == {
            "fill": "1", "min": 1, "q1": 2.25, "q2": 3.5, "q3": 4.75,
            "max": 5, "lowerOutliers": [], "upperOutliers": [100]}
        assert layer["data"][2]["lowerOutliers"] == [-100]
        assert layer["data"][2]["upperOutliers"] == [200, 300]

    def test_selectors_skip_missing_fliers(self, capture):
        fig, ax = plt.subplots()
        ax.boxplot(self.DATA)
        layer, = _layers(fig)
        third = layer["selectors"][2]
        assert third["iq"] == "g[id='mpl-plot-1-box-1.14'] > path"
        assert third["lowerOutliers"] == [
            "g[id='mpl-plot-1-box-1.20'] use:nth-of-type(1)"]
        assert third["upperOutliers"][-1] == \
            "g[id='mpl-plot-1-box-1.20'] use:nth-of-type(3)"

    def test_tick_labels(self, capture):
        fig, ax = plt.subplots()
        ax.boxplot(self.DATA[:2], tick_labels=["a", "b"])
        layer, = _layers(fig)
        assert [b["fill"] for b in layer["data"]] == ["a", "b"]

    def test_horizontal_reversed(self, capture):
        fig, ax = plt.subplots()
        ax.boxplot(self.DATA, orientation="horizontal")
        layer, = _layers(fig)
        assert layer["orientation"] == "horz"
        assert layer["domMapping"] == {"iqrDirection": "forward"}
        assert [b["fill"] for b in layer["data"]] == ["3", "2", "1"]
        assert layer["selectors"][0]["iq"] == \
            "g[id='mpl-plot-1-box-1.14'] > path"


# ---------------------------------------------------------------------------
# Lines and points
# ---------------------------------------------------------------------------

class TestLines:
    def test_single_line(self, capture):
        fig, ax = plt.subplots()
        ax.plot([1, 2, 3], [4, 5, 6])
        layer, = _layers(fig)
        assert layer["type"] == "line"
        assert layer["data"] == [[{"x": 1, "y": 4}, {"x": 2, "y": 5},
                                  {"x": 3, "y": 6}]]
        assert layer["selectors"] == ["g[id^='mpl-plot-1-lines-1.'] > path"]

    def test_columns_become_series(self, capture):
        fig, ax = plt.subplots()
        ax.plot([0, 1], np.array([[1, 10], [2, 20]]))
        layer, = _layers(fig)
        assert [s[0]["fill"] for s in layer["data"]] == ["Series 1",
                                                         "Series 2"]
        assert [s[1]["y"] for s in layer["data"]] == [2, 20]
        assert len(layer["selectors"]) == 2

    def test_category_x_kept_as_labels(self, capture):
        fig, ax = plt.subplots()
        ax.plot(["Jan", "Feb", "Mar"], [1, 2, 3])
        layer, = _layers(fig)
        assert layer["type"] == "line"
        assert layer["data"] == [[{"x": "Jan", "y": 1}, {"x": "Feb", "y": 2},
                                  {"x": "Mar", "y": 3}]]
        assert layer["selectors"] == ["g[id^='mpl-plot-1-lines-1.'] > path"]

    def test_line_after_errorbar_keeps_selectors(self, capture):
        fig, ax = plt.subplots()
        ax.errorbar([1, 2], [1, 2], yerr=[0.1, 0.2], capsize=2)
        ax.plot([1, 2], [2, 1])
        errorbar, line = _layers(fig)
        assert errorbar["type"] == "unknown"
        assert line["type"] == "line"
        assert line["data"] == [[{"x": 1, "y": 2}, {"x": 2, "y": 1}]]
        assert line["selectors"] == ["g[id^='mpl-plot-1-lines-5.'] > path"]

    def test_reference_lines(self, capture):
        fig, ax = plt.subplots()
        ax.plot([0, 10], [0, 10])
        ax.axhline(5)
        ax.axline((0, 0), slope=2)
        line, hline, axline = _layers(fig)
        x0, x1 = ax.get_xlim()
        assert hline["data"] == [[{"x": pytest.approx(x0), "y": 5},
                                  {"x": pytest.approx(x1), "y": 5}]]
        assert hline["selectors"] == ["g[id^='mpl-plot-1-lines-2.'] > path"]
        first, last = axline["data"][0]
        assert first["y"] == pytest.approx(2 * first["x"])
        assert last["y"] == pytest.approx(2 * last["x"])

    def test_vertical_reference(self, capture):
        fig, ax = plt.subplots()
        ax.plot([0, 1], [0, 4])
        ax.axvline(x=0.5, ymin=0, ymax=0.5)
        _, vline = _layers(fig)
        y0, y1 = ax.get_ylim()
        bottom, top = vline["data"][0]
        assert bottom["x"] == top["x"] == 0.5
        assert top["y"] == pytest.approx(y0 + 0.5 * (y1 - y0))


class TestPoints:
    def test_scatter(self, capture):
        fig, ax = plt.subplots()
        ax.scatter([1, 2], [3, 4])
        layer, = _layers(fig)
        assert layer["type"] == "point"
        assert layer["data"] == [{"x": 1, "y": 3}, {"x": 2, "y": 4}]
        assert layer["selectors"] == [
            "g[id^='mpl-plot-1-points-1.'] use, "
            "g[id^='mpl-plot-1-points-1.'] > path"]

    def test_marker_only_plot(self, capture):
        fig, ax = plt.subplots()
        ax.plot([1, 2], [3, 4], "o")
        layer, = _layers(fig)
        assert layer["type"] == "point"
        assert layer["selectors"][0].startswith(
            "g[id^='mpl-plot-1-points-1.']")

    def test_named_colors(self, capture):
        fig, ax = plt.subplots()
        ax.scatter([1, 2], [3, 4], c=["red", "blue"])
        layer, = _layers(fig)
        assert [p["color"] for p in layer["data"]] == ["red", "blue"]

    def test_category_x(self, capture):
        fig, ax = plt.subplots()
        ax.scatter(["x", "y", "z"], [1, 2, 3])
        layer, = _layers(fig)
        assert layer["data"] == [{"x": "x", "y": 1}, {"x": "y", "y": 2},
                                 {"x": "z", "y": 3}]
        assert layer["selectors"]


# ---------------------------------------------------------------------------
# Heat grids
# ---------------------------------------------------------------------------

class TestHeat:
    def test_imshow_rows_reversed(self, capture):
        fig, ax = plt.subplots()
        ax.imshow([[1, 2], [3, 4]])
        layer, = _layers(fig)
        assert layer["type"] == "heat"
        assert layer["data"] == {"points": [[3, 4], [1, 2]],
                                 "x": ["0", "1"], "y": ["1", "0"]}
        assert layer["axes"]["fill"] == "value"
        assert layer["domMapping"] == {"order": "row"}
        assert layer["selectors"] == ["image[id^='mpl-plot-1-image-1.']"]

    def test_imshow_lower_origin_kept(self, capture):
        fig, ax = plt.subplots()
        ax.imshow([[1, 2], [3, 4]], origin="lower")
        layer, = _layers(fig)
        assert layer["data"]["points"] == [[1, 2], [3, 4]]

    def test_pcolormesh_not_reversed(self, capture):
        fig, ax = plt.subplots()
        ax.pcolormesh([0, 1, 2], [0, 10, 20], np.array([[1, 2], [3, 4]]))
        layer, = _layers(fig)
        assert layer["data"] == {"points": [[1, 2], [3, 4]],
                                 "x": ["0.5", "1.5"], "y": ["5", "15"]}
        assert layer["selectors"][0].startswith(
            "g[id^='mpl-plot-1-mesh-1.']")

    def test_dataframe_labels(self, capture):
        df = pd.DataFrame([[1, 2]], index=["r"], columns=["c1", "c2"])
        fig, ax = plt.subplots()
        ax.imshow(df)
        layer, = _layers(fig)
        assert layer["data"]["x"] == ["c1", "c2"]
        assert layer["data"]["y"] == ["r"]
