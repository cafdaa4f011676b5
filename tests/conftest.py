"""Shared fixtures: headless backend, capture lifecycle, isolated config."""
from __future__ import annotations

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # headless backend

import matplotlib.pyplot as plt
import pytest

# Add the parent dir so `a11yplot` is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from a11yplot import _api, _config
from a11yplot._intercept import REGISTRY
from a11yplot._ledger import STORE


@pytest.fixture
def capture():
    """Install and activate the wrappers; restore the originals afterwards."""
    STORE.clear_all()
    REGISTRY.activate()
    yield REGISTRY
    REGISTRY.uninstall()
    STORE.clear_all()
    plt.close("all")


@pytest.fixture(autouse=True)
def tmp_config(tmp_path, monkeypatch):
    """Redirect config storage to a temp directory."""
    cfg_file = tmp_path / "config.json"
    monkeypatch.setattr("a11yplot._config.CONFIG_DIR", tmp_path)
    monkeypatch.setattr("a11yplot._config.CONFIG_FILE", cfg_file)
    monkeypatch.setattr(_api, "_advisory_shown", False)
    _config.reset_fallback()
    yield cfg_file
    _config.reset_fallback()
