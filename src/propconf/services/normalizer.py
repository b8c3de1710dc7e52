# src/propconf/services/normalizer.py
from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger
from pydantic import BaseModel

from propconf.domain.errors import ParseError
from propconf.domain.property import (
    APARTMENT,
    BUILDER_FLOOR,
    CONFIG_COLUMN,
    CONFIG_MODEL,
    NUMBER_FIELD,
    PRICE_TIERS,
    PropertyKind,
    SubUnit,
    parse_kind,
)

ConfigList = list[Any]

# Flat columns a builder-floor row carried before building_config existed
_LEGACY_BUILDING_TEXT = (
    "plot_size",
    "facing",
    "roof_rights",
    "condition",
    "status",
    "category",
    "possession_date",
    "owner_name",
    "comments",
    "brochure_url",
)
_LEGACY_BUILDING_FLAGS = ("has_basement", "is_triplex", "is_gated")


def parse_config_column(value: Any) -> ConfigList | None:
    """
    Decode a structured config column.

    Returns None when the column is absent, blank, or not a list.
    Raises ParseError when a string value is not valid JSON.
    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = json.loads(value)
        except json.JSONDecodeError as err:
            raise ParseError(f"config column is not valid JSON: {err}") from err
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def _row_kind(raw: Mapping[str, Any]) -> PropertyKind | None:
    for key in ("kind", "type"):
        v = raw.get(key)
        if v:
            try:
                return parse_kind(v)
            except ValueError:
                continue
    return None


def _text(v: Any) -> str:
    return "" if v is None else str(v)


def _legacy_building(raw: Mapping[str, Any]) -> dict[str, Any]:
    entry: dict[str, Any] = {"building_number": 1}
    for key in _LEGACY_BUILDING_TEXT:
        entry[key] = _text(raw.get(key))
    entry["floors_count"] = _text(raw.get("floors_count"))
    for tier in PRICE_TIERS:
        entry[tier] = _text(raw.get(tier))
    for flag in _LEGACY_BUILDING_FLAGS:
        entry[flag] = bool(raw.get(flag))
    return entry


def _legacy_tower(raw: Mapping[str, Any]) -> dict[str, Any]:
    bhk = raw.get("bhk_config")
    if isinstance(bhk, (list, tuple)):
        bhk = ", ".join(str(b) for b in bhk if b)
    return {
        "tower_number": 1,
        "bhk": _text(bhk),
        "area_sqft": "",
        "flats_per_floor": "",
        "floors_in_tower": "",
        "lifts": "",
        "penthouse": False,
        "parking_per_floor": "",
        "no_of_basements": "",
    }


def _structured(raw: Mapping[str, Any], column: str) -> ConfigList | None:
    try:
        return parse_config_column(raw.get(column))
    except ParseError as err:
        logger.warning(
            "Falling back to legacy columns for id={} ({})",
            raw.get("id"),
            err,
        )
        return None


def normalize(raw: Mapping[str, Any] | Sequence[Any] | str, kind: PropertyKind | None = None) -> ConfigList:
    """
    Return a property's config list, whichever shape it was stored in.

    - An already-structured list (or its JSON string) comes back verbatim.
    - A record whose structured column holds a non-empty list returns that list.
    - Anything else gets a single entry synthesized from the flat legacy columns.
    """
    if isinstance(raw, str):
        try:
            parsed = parse_config_column(raw)
        except ParseError as err:
            logger.warning("Ignoring unparseable config list ({})", err)
            parsed = None
        return parsed or []

    if not isinstance(raw, Mapping):
        return list(raw)

    kind = kind or _row_kind(raw)
    columns = [CONFIG_COLUMN[kind]] if kind else list(CONFIG_COLUMN.values())
    for column in columns:
        found = _structured(raw, column)
        if found:
            return found

    if kind == BUILDER_FLOOR:
        return [_legacy_building(raw)]
    if kind == APARTMENT:
        return [_legacy_tower(raw)]
    raise ValueError(f"cannot tell the kind of property id={raw.get('id')!r}")


def load_configs(
    raw: Mapping[str, Any] | Sequence[Any] | str, kind: PropertyKind
) -> list[SubUnit]:
    """Normalize and parse into TowerConfig / BuildingConfig instances."""
    model = CONFIG_MODEL[kind]
    number_field = NUMBER_FIELD[kind]
    units: list[SubUnit] = []
    for index, entry in enumerate(normalize(raw, kind)):
        if isinstance(entry, model):
            units.append(entry)
            continue
        data = entry.model_dump() if isinstance(entry, BaseModel) else dict(entry)
        if data.get(number_field) in (None, ""):
            data[number_field] = index + 1
        units.append(model.model_validate(data))
    return units
