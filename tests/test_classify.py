"""Tests for drawing-call classification.

Run:  python -m pytest tests/test_classify.py -v
"""
from __future__ import annotations

import pytest

from a11yplot._classify import (LAYOUT_FUNCTIONS, PRIMARY_FUNCTIONS,
                                SECONDARY_FUNCTIONS, Role, all_classified,
                                classify, normalize_name)


class TestClassify:
    @pytest.mark.parametrize("name", ["bar", "hist", "boxplot", "plot",
                                      "scatter", "imshow", "pie",
                                      "frame.bar"])
    def test_primary(self, name):
        assert classify(name) is Role.PRIMARY

    @pytest.mark.parametrize("name", ["axhline", "axline", "bar_label",
                                      "legend", "set_title"])
    def test_secondary(self, name):
        assert classify(name) is Role.SECONDARY

    @pytest.mark.parametrize("name", ["subplots", "subplot", "add_subplot",
                                      "subplot_mosaic", "add_gridspec"])
    def test_layout(self, name):
        assert classify(name) is Role.LAYOUT

    def test_unknown_is_unclassified(self):
        assert classify("savefig") is Role.UNCLASSIFIED
        assert classify("") is Role.UNCLASSIFIED

    def test_dispatch_qualifier_ignored(self):
        assert classify("Axes.bar") is Role.PRIMARY
        assert classify("matplotlib.pyplot.subplots") is Role.LAYOUT

    def test_frame_namespace_kept(self):
        assert normalize_name("frame.barh") == "frame.barh"
        assert normalize_name("Axes.barh") == "barh"

    def test_tables_disjoint(self):
        assert not PRIMARY_FUNCTIONS & SECONDARY_FUNCTIONS
        assert not PRIMARY_FUNCTIONS & LAYOUT_FUNCTIONS
        assert not SECONDARY_FUNCTIONS & LAYOUT_FUNCTIONS
        assert len(all_classified()) == (len(PRIMARY_FUNCTIONS)
                                         + len(SECONDARY_FUNCTIONS)
                                         + len(LAYOUT_FUNCTIONS))

    def test_pure(self):
        assert [classify("bar") for _ in range(3)] == [Role.PRIMARY] * 3
