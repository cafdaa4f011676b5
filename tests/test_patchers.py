"""Tests for category-sorting patchers.

Run:  python -m pytest tests/test_patchers.py -v
"""
from __future__ import annotations

import numpy as np
import pandas as pd

from a11yplot import _patchers
from a11yplot._patchers import (BarSortingPatcher, FrameSortingPatcher,
                                PatchManager)


class TestBarSorting:
    def test_categories_sorted_jointly(self):
        args = {"x": ["C", "A", "B"], "height": [3, 1, 2],
                "color": ["red", "green", "blue"]}
        out = _patchers.apply("bar", args)
        assert out["x"] == ["A", "B", "C"]
        assert out["height"] == [1, 2, 3]
        assert out["color"] == ["green", "blue", "red"]

    def test_input_not_mutated(self):
        args = {"x": ["b", "a"], "height": [2, 1]}
        _patchers.apply("bar", args)
        assert args == {"x": ["b", "a"], "height": [2, 1]}

    def test_idempotent(self):
        args = {"x": ["C", "A", "B"], "height": np.array([3.0, 1.0, 2.0])}
        once = _patchers.apply("bar", args)
        twice = _patchers.apply("bar", once)
        assert list(twice["x"]) == list(once["x"])
        np.testing.assert_array_equal(twice["height"], once["height"])

    def test_barh_sorts_width(self):
        out = _patchers.apply("barh", {"y": ["z", "y"], "width": [1, 2],
                                       "xerr": [0.1, 0.2]})
        assert out["y"] == ["y", "z"]
        assert out["width"] == [2, 1]
        assert out["xerr"] == [0.2, 0.1]

    def test_tick_label_moves_with_heights(self):
        out = _patchers.apply("bar", {"x": [0, 1, 2], "height": [5, 6, 7],
                                      "tick_label": ["c", "a", "b"]})
        assert out["x"] == [0, 1, 2]
        assert out["tick_label"] == ["a", "b", "c"]
        assert out["height"] == [6, 7, 5]

    def test_scalar_kwargs_untouched(self):
        out = _patchers.apply("bar", {"x": ["b", "a"], "height": [1, 2],
                                      "color": "red", "width": 0.5})
        assert out["color"] == "red"
        assert out["width"] == 0.5

    def test_data_indirection_resolved_and_sorted(self):
        data = {"cat": ["b", "c", "a"], "val": [2, 3, 1]}
        args = {"x": "cat", "height": "val", "color": "red", "data": data}
        assert BarSortingPatcher().can_patch("bar", args)
        out = _patchers.apply("bar", args)
        assert out["x"] == ["a", "b", "c"]
        assert out["height"] == [1, 2, 3]
        assert out["color"] == "red"
        assert data == {"cat": ["b", "c", "a"], "val": [2, 3, 1]}

    def test_data_frame_indirection(self):
        df = pd.DataFrame({"cat": ["b", "a"], "val": [2.0, 1.0]})
        out = _patchers.apply("barh", {"y": "cat", "width": "val",
                                       "data": df})
        assert list(out["y"]) == ["a", "b"]
        assert list(out["width"]) == [1.0, 2.0]

    def test_numeric_positions_not_patched(self):
        assert not BarSortingPatcher().can_patch(
            "bar", {"x": [2, 1], "height": [1, 2]})

    def test_other_functions_pass_through(self):
        args = {"args": (["b", "a"], [1, 2])}
        assert _patchers.apply("plot", args) is args


class TestFrameSorting:
    def test_rows_and_columns_sorted(self):
        df = pd.DataFrame({"z": [1, 2], "a": [3, 4]}, index=["r2", "r1"])
        out = _patchers.apply("frame.bar", {"frame": df})
        assert list(out["frame"].index) == ["r1", "r2"]
        assert list(out["frame"].columns) == ["a", "z"]
        assert out["frame"].loc["r1", "z"] == 2

    def test_color_list_follows_columns(self):
        df = pd.DataFrame({"z": [1], "a": [2], "m": [3]})
        out = _patchers.apply("frame.bar", {"frame": df,
                                            "color": ["red", "green", "blue"]})
        assert list(out["frame"].columns) == ["a", "m", "z"]
        assert out["color"] == ["green", "blue", "red"]

    def test_series_sorted_by_index(self):
        s = pd.Series([1, 2, 3], index=["c", "a", "b"])
        out = _patchers.apply("frame.barh", {"frame": s})
        assert list(out["frame"].index) == ["a", "b", "c"]
        assert list(out["frame"]) == [2, 3, 1]

    def test_sorted_frame_unchanged(self):
        df = pd.DataFrame({"a": [1], "b": [2]}, index=["x"])
        out = _patchers.apply("frame.bar", {"frame": df})
        assert out["frame"] is df

    def test_rows_sorted_by_x_column(self):
        df = pd.DataFrame({"cat": ["c", "a", "b"], "v": [3, 1, 2]})
        out = FrameSortingPatcher().apply("frame.bar",
                                          {"frame": df, "x": "cat"})
        assert list(out["frame"]["cat"]) == ["a", "b", "c"]
        assert list(out["frame"]["v"]) == [1, 2, 3]

    def test_y_columns_sorted_with_colors(self):
        df = pd.DataFrame({"cat": ["a", "b"], "z": [1, 2], "m": [3, 4]})
        out = _patchers.apply("frame.bar", {"frame": df, "x": "cat",
                                            "y": ["z", "m"],
                                            "color": ["red", "blue"]})
        assert out["frame"] is df
        assert out["y"] == ["m", "z"]
        assert out["color"] == ["blue", "red"]

    def test_x_column_excluded_from_series_order(self):
        df = pd.DataFrame({"z": [1], "cat": ["a"], "m": [2]})
        out = _patchers.apply("frame.bar", {"frame": df, "x": "cat",
                                            "color": ["red", "blue"]})
        assert list(out["frame"].columns) == ["cat", "m", "z"]
        assert out["color"] == ["blue", "red"]

    def test_sorted_x_frame_idempotent(self):
        df = pd.DataFrame({"cat": ["a", "b"], "v": [1, 2]})
        out = _patchers.apply("frame.bar", {"frame": df, "x": "cat"})
        assert out["frame"] is df


class TestPatchManager:
    def test_first_accepting_patcher_wins(self):
        calls = []

        class Recorder(BarSortingPatcher):
            def apply(self, name, args):
                calls.append(name)
                return args

        manager = PatchManager([Recorder(), BarSortingPatcher()])
        manager.apply("bar", {"x": ["b", "a"], "height": [1, 2]})
        assert calls == ["bar"]
