"""Exception types raised to callers."""
from __future__ import annotations


class A11yPlotError(Exception):
    """Base class for errors surfaced by a11yplot."""


class NoCapturedCallsError(A11yPlotError, RuntimeError):
    """Export was requested for a surface that has no captured calls."""


class FallbackConfigError(A11yPlotError, ValueError):
    """Invalid static-fallback settings."""
