"""Rendering helpers for change descriptions."""

from __future__ import annotations

import re
from typing import Any

CURRENCY_SYMBOL = "₹"

_WHITESPACE = re.compile(r"\s+")


def format_currency(value: Any, symbol: str = CURRENCY_SYMBOL) -> str:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        amount = 0.0
    if amount != amount:  # NaN
        amount = 0.0
    return f"{symbol}{amount:.2f}"


def format_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def derive_fuel_id(name: str) -> str:
    return _WHITESPACE.sub("-", name.strip().lower())
