from __future__ import annotations

from .units import from_base_units


def format_token_amount(value: int, decimals: int) -> str:
    # Fixed-point without exponent; trailing zeros dropped.
    text = f"{from_base_units(value, decimals):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
