"""Static-image fallback settings, persisted in ~/.a11yplot/config.json."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path

from ._errors import FallbackConfigError

logger = logging.getLogger("a11yplot")

CONFIG_DIR = Path.home() / ".a11yplot"
CONFIG_FILE = CONFIG_DIR / "config.json"

FALLBACK_FORMATS = ("png", "svg", "jpeg")


@dataclass(frozen=True)
class FallbackSettings:
    """Whether unsupported charts export as a static image instead."""

    enabled: bool = True
    format: str = "png"
    warning: bool = True


def _load_config() -> dict:
    if CONFIG_FILE.exists():
        try:
            return json.loads(CONFIG_FILE.read_text())
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable config %s", CONFIG_FILE)
    return {}


def _save_config(cfg: dict) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _validate(settings: FallbackSettings) -> FallbackSettings:
    if settings.format not in FALLBACK_FORMATS:
        raise FallbackConfigError(
            f"format must be one of {', '.join(FALLBACK_FORMATS)}, "
            f"got {settings.format!r}")
    return settings


_current: FallbackSettings | None = None


def get_fallback() -> FallbackSettings:
    """Current settings; loaded from the config file on first use."""
    global _current
    if _current is None:
        stored = _load_config().get("fallback", {})
        known = {k: v for k, v in stored.items()
                 if k in FallbackSettings.__dataclass_fields__}
        try:
            _current = _validate(FallbackSettings(**known))
        except FallbackConfigError as exc:
            logger.warning("Ignoring stored fallback settings: %s", exc)
            _current = FallbackSettings()
    return _current


def set_fallback(enabled: bool | None = None, format: str | None = None,
                 warning: bool | None = None, *,
                 persist: bool = False) -> FallbackSettings:
    """Update the fallback settings and return the previous ones.

    Parameters
    ----------
    enabled : bool, optional
        Export unsupported charts as a static image.
    format : {"png", "svg", "jpeg"}, optional
        Image format of the fallback.
    warning : bool, optional
        Emit a one-time advisory when the fallback is used.
    persist : bool
        Also write the settings to ``CONFIG_FILE``.
    """
    global _current
    previous = get_fallback()
    changes = {k: v for k, v in (("enabled", enabled), ("format", format),
                                 ("warning", warning)) if v is not None}
    if "format" in changes:
        changes["format"] = str(changes["format"]).lower()
    _current = _validate(replace(previous, **changes))
    if persist:
        cfg = _load_config()
        cfg["fallback"] = asdict(_current)
        _save_config(cfg)
    return previous


def reset_fallback() -> None:
    """Forget in-memory settings; the next read reloads the config file."""
    global _current
    _current = None
