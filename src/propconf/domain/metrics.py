from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from pydantic import BaseModel

from propconf.domain.property import PRICE_TIERS, parse_crore

_FIRST_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_TOKEN_SPLIT = re.compile(r"[,\s]+")


@dataclass
class PropertySummary:
    """
    The derived values every card, filter and detail page reads.

    Computed once per property from its config list (with the legacy flat
    columns as fallback) so no page has to aggregate on its own.
    """
    lowest_price: float | None = None
    area_range_label: str | None = None
    bhk_labels: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _value(entry: Any, key: str) -> Any:
    if isinstance(entry, BaseModel):
        return getattr(entry, key, None)
    if isinstance(entry, Mapping):
        return entry.get(key)
    return None


def as_price(v: Any) -> float | None:
    """
    Lenient read-side number: None, "", garbage, negatives and non-finite
    values all count as "no price". Zero is a price.
    """
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
    try:
        f = float(v)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f) or f < 0:
        return None
    return f


def split_tokens(text: Any) -> list[str]:
    if not text:
        return []
    return [t for t in _TOKEN_SPLIT.split(str(text)) if t]


def format_area(v: float) -> str:
    return str(int(v)) if float(v).is_integer() else str(v)


# ----------------------------
# Lowest price
# ----------------------------

def _tier_prices(entries: Iterable[Any]) -> list[float]:
    prices: list[float] = []
    for entry in entries:
        for tier in PRICE_TIERS:
            p = as_price(_value(entry, tier))
            if p is not None:
                prices.append(p)
    return prices


def lowest_price(
    configs: Sequence[Any],
    fallback: Mapping[str, Any] | None = None,
) -> float | None:
    """
    Minimum over every price tier of every building.

    When no building carries a price, the flat tier columns of `fallback`
    (the legacy row) are tried instead.
    """
    prices = _tier_prices(configs)
    if not prices and fallback is not None:
        prices = _tier_prices([fallback])
    return min(prices) if prices else None


def apartment_price(raw_price: Any) -> float | None:
    """Apartments carry one crore figure per project ("5.5 Cr" or 5.5)."""
    try:
        return parse_crore(raw_price)
    except ValueError:
        return None


# ----------------------------
# Area range
# ----------------------------

def area_range_label(
    configs: Sequence[Any],
    fallback_plot_size: str | None = None,
) -> str | None:
    areas: list[float] = []
    for entry in configs:
        plot = _value(entry, "plot_size")
        if not plot:
            continue
        m = _FIRST_NUMBER.search(str(plot))
        if m:
            areas.append(float(m.group(0)))

    if not areas:
        if fallback_plot_size and str(fallback_plot_size).strip():
            return str(fallback_plot_size).strip()
        return None

    lo, hi = min(areas), max(areas)
    if lo == hi:
        return f"{format_area(lo)} sqyd"
    return f"{format_area(lo)}-{format_area(hi)} sqyd"


# ----------------------------
# BHK labels
# ----------------------------

def bhk_labels(configs: Sequence[Any]) -> list[str]:
    seen: set[str] = set()
    labels: list[str] = []
    for entry in configs:
        for token in split_tokens(_value(entry, "bhk")):
            if token not in seen:
                seen.add(token)
                labels.append(token)
    return labels
