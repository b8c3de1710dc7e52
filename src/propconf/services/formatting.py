# src/propconf/services/formatting.py
from __future__ import annotations

import re
from typing import Any

_DIGITS = re.compile(r"^\d+$")
_CRORE_SUFFIX = re.compile(r"\s*cr\s*$", re.IGNORECASE)
_BHK_SPLIT = re.compile(r"[, ]+")
_DECIMAL = re.compile(r"^(\d+\.?\d*|\.\d+)$")

# keystroke-level: partial forms like "12." or "100-" are still accepted
_AREA_SINGLE = re.compile(r"^\d*\.?\d*$")
_AREA_RANGE = re.compile(r"^\d*\.?\d*\s*-\s*\d*\.?\d*$")

_HAS_UNIT = re.compile(r"(cr|crore|lakh|million|billion)", re.IGNORECASE)
_AMOUNT = re.compile(r"[\d.]+")
_AMOUNT_WITH_UNIT = re.compile(r"₹?\s*([\d.,]+)\s*([a-zA-Z]+)?")


def format_bhk_input(raw: str | None) -> str:
    """
    "2, 3" -> "2BHK, 3BHK"; "2BHK, Studio" stays as typed; "" -> "".

    Runs on every keystroke, so a trailing separator survives:
    "2," -> "2BHK, " leaves room to type the next token.
    """
    if not raw:
        return ""
    out = []
    for token in _BHK_SPLIT.split(raw):
        token = token.strip()
        # anything already mentioning bhk, or a word like "Studio", stays
        out.append(f"{token}BHK" if _DIGITS.match(token) else token)
    return ", ".join(out)


def format_price_input(raw: str | None) -> str:
    """
    Crore price box: "5.5" -> "5.5 Cr", "5.5 cr" -> "5.5 Cr".

    Input that isn't a number once the suffix is stripped is returned
    untouched, so half-typed values are never mangled.
    """
    if raw is None:
        return ""
    cleaned = _CRORE_SUFFIX.sub("", raw).strip()
    if not cleaned:
        return ""
    if _DECIMAL.match(cleaned):
        return f"{cleaned} Cr"
    return raw


def accept_area_input(raw: str | None) -> bool:
    """Whether an area / plot-size keystroke may be written to form state."""
    if raw is None or raw == "":
        return True
    return bool(_AREA_SINGLE.match(raw) or _AREA_RANGE.match(raw))


def format_price_label(price: Any) -> dict[str, str] | None:
    """
    Headline price for cards: 2.5 -> "₹ 2.5 Cr onwards".
    """
    if price is None or price == "" or price == 0:
        return None

    s = str(price)
    if "assured" in s.lower():
        return {"label": "₹ Assured Best Price", "variant": "assured"}

    if not _HAS_UNIT.search(s):
        m = _AMOUNT.search(s)
        if m:
            try:
                amount = float(m.group(0))
            except ValueError:
                amount = None
            if amount is not None:
                shown = str(int(amount)) if amount.is_integer() else f"{amount:.1f}"
                return {"label": f"₹ {shown} Cr onwards", "variant": "default"}

    m = _AMOUNT_WITH_UNIT.search(s)
    if m:
        unit = f" {m.group(2)}" if m.group(2) else " Cr"
        return {"label": f"₹ {m.group(1)}{unit} onwards", "variant": "default"}

    return {"label": s, "variant": "default"}
