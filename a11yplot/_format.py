"""Recover numeric label formats from matplotlib formatters and callbacks.

The accessibility runtime re-expresses values itself (for speech and
braille), so a label callback is reduced to a small description:
format family, decimals, literal prefix/suffix, scale and currency code.
"""
from __future__ import annotations

import re
from typing import Any, Callable

from matplotlib import ticker

from ._types import FormatConfig

# Prefix symbol -> ISO 4217 code.  Longer symbols first so "R$" wins over "$".
CURRENCY_SYMBOLS: dict[str, str] = {
    "US$": "USD", "NZ$": "NZD", "HK$": "HKD", "R$": "BRL", "C$": "CAD",
    "A$": "AUD", "S$": "SGD", "CHF": "CHF", "kr": "SEK", "zł": "PLN",
    "$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY", "₹": "INR",
    "₩": "KRW", "₽": "RUB", "₪": "ILS", "₱": "PHP", "฿": "THB",
}

_NEW_STYLE = re.compile(r"\{(?P<field>[^{}:!]*)(?:![rsa])?(?::(?P<spec>[^{}]*))?\}")
_NEW_SPEC = re.compile(
    r"^(?:.?[<>=^])?[+\- ]?z?#?0?(?P<width>\d+)?(?P<group>[,_])?"
    r"(?:\.(?P<precision>\d+))?(?P<conv>[bcdeEfFgGnosxX%])?$")
_OLD_STYLE = re.compile(
    r"%(?:\([^)]*\))?[#0\- +]*(?:\d+|\*)?(?:\.(?P<precision>\d+))?[hlL]?"
    r"(?P<conv>[diouxXeEfFgGcrs])")


def currency_code(prefix: str) -> str | None:
    """Map a literal label prefix to a currency code, or None."""
    prefix = prefix.strip()
    if not prefix:
        return None
    for symbol, code in CURRENCY_SYMBOLS.items():
        if prefix.endswith(symbol):
            return code
    if re.fullmatch(r"[A-Z]{3}", prefix):
        return prefix
    return None


def _classify(cfg: FormatConfig, conv: str | None) -> FormatConfig:
    if conv in ("e", "E"):
        cfg.type = "scientific"
    elif conv == "%" or cfg.suffix.rstrip().endswith("%"):
        cfg.type = "percent"
    else:
        code = currency_code(cfg.prefix)
        if code is not None:
            cfg.type = "currency"
            cfg.currency = code
    return cfg


def parse_template(template: str) -> FormatConfig | None:
    """Describe a ``str.format`` or ``%``-style single-value template."""
    m = _NEW_STYLE.search(template)
    if m is not None:
        spec = _NEW_SPEC.match(m.group("spec") or "")
        if spec is None:
            return None
        cfg = FormatConfig(prefix=template[:m.start()],
                           suffix=template[m.end():])
        conv = spec.group("conv")
        if spec.group("precision") is not None:
            cfg.decimals = int(spec.group("precision"))
        elif conv == "d":
            cfg.decimals = 0
        if conv == "%":
            cfg.scale = 100.0
            cfg.suffix = "%" + cfg.suffix
        if spec.group("group"):
            cfg.extra["grouping"] = True
        return _classify(cfg, conv)

    m = _OLD_STYLE.search(template)
    if m is None:
        return None
    cfg = FormatConfig(prefix=template[:m.start()],
                       suffix=template[m.end():].replace("%%", "%"))
    conv = m.group("conv")
    if m.group("precision") is not None:
        cfg.decimals = int(m.group("precision"))
    elif conv in ("d", "i"):
        cfg.decimals = 0
    return _classify(cfg, conv)


def extract_format_config(fmt: Any) -> FormatConfig | None:
    """Describe a label formatter.

    Parameters
    ----------
    fmt : str, matplotlib.ticker.Formatter, or callable
        Accepted families: format templates, PercentFormatter,
        StrMethodFormatter, FormatStrFormatter, EngFormatter,
        FuncFormatter wrapping any of these, and bound ``str.format``.

    Returns
    -------
    FormatConfig or None when the family is not recognised.
    """
    if isinstance(fmt, str):
        return parse_template(fmt)
    if isinstance(fmt, ticker.PercentFormatter):
        cfg = FormatConfig(type="percent", decimals=fmt.decimals,
                           suffix=fmt.symbol or "",
                           scale=100.0 / fmt.xmax if fmt.xmax else 1.0)
        return cfg
    if isinstance(fmt, ticker.StrMethodFormatter):
        return parse_template(fmt.fmt)
    if isinstance(fmt, ticker.FormatStrFormatter):
        return parse_template(fmt.fmt)
    if isinstance(fmt, ticker.EngFormatter):
        cfg = FormatConfig(decimals=fmt.places, suffix=fmt.unit or "")
        cfg.extra["notation"] = "engineering"
        return cfg
    if isinstance(fmt, ticker.ScalarFormatter):
        return FormatConfig()
    if isinstance(fmt, ticker.FuncFormatter):
        return extract_format_config(fmt.func)
    # "{:.1f}".format
    owner = getattr(fmt, "__self__", None)
    if isinstance(owner, str) and getattr(fmt, "__name__", "") == "format":
        return parse_template(owner)
    return None


def axis_format(axis) -> dict[str, Any] | None:
    """Format description for an axis with an explicitly chosen formatter."""
    formatter = axis.get_major_formatter()
    # EngFormatter derives from ScalarFormatter in recent matplotlib
    if type(formatter) in (ticker.ScalarFormatter, ticker.NullFormatter,
                           ticker.LogFormatterSciNotation):
        return None
    if type(formatter).__name__ == "StrCategoryFormatter":
        return None
    cfg = extract_format_config(formatter)
    return cfg.to_dict() if cfg is not None else None


def resolve_labels(fmt: Callable, values) -> list[str]:
    """Evaluate a label callback once per value, as ``bar_label`` would."""
    labels = []
    for value in values:
        # bar_label leaves NaN bars unlabelled
        labels.append("" if value != value else fmt(value))
    return labels
