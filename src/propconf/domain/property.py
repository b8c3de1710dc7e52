# src/propconf/domain/property.py
from __future__ import annotations

import math
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Both kinds of listing we carry
PropertyKind = Literal["apartment", "builder_floor"]

APARTMENT: PropertyKind = "apartment"
BUILDER_FLOOR: PropertyKind = "builder_floor"

Facing = Literal[
    "North",
    "South",
    "East",
    "West",
    "North-East",
    "North-West",
    "South-East",
    "South-West",
]
RoofRights = Literal["full", "half", "1/3", "1/4"]
Condition = Literal["new", "old"]
BuildingStatus = Literal["ready-to-move", "under-construction"]
Category = Literal["deendayal", "regular"]

PRICE_TIERS = ("price_top", "price_mid1", "price_mid2", "price_ug")

_SLUG_JUNK = re.compile(r"[^a-z0-9]+")
_SLUG_OK = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def slugify(name: str | None) -> str:
    """
    "Godrej Sora!!" -> "godrej-sora", "  A B  " -> "a-b".
    """
    if not name:
        return ""
    return _SLUG_JUNK.sub("-", name.lower()).strip("-")


def is_valid_slug(slug: str) -> bool:
    """Lowercase letters and digits in runs joined by single hyphens."""
    return bool(_SLUG_OK.fullmatch(slug))


def parse_kind(value: Any) -> PropertyKind:
    """
    Accept the canonical kinds plus the hyphenated `builder-floor`
    spelling older rows carry in their `type` column.
    """
    s = str(value or "").strip().lower().replace("-", "_")
    if s == APARTMENT:
        return APARTMENT
    if s == BUILDER_FLOOR:
        return BUILDER_FLOOR
    raise ValueError(f"unknown property kind: {value!r}")


def entity_folder(kind: PropertyKind) -> str:
    return "builder-floors" if kind == BUILDER_FLOOR else "properties"


# ----------------------------
# Field coercion
# ----------------------------

def _blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def _to_optional_int(v: Any, *, minimum: int) -> int | None:
    if _blank(v):
        return None
    if isinstance(v, bool):
        raise ValueError("expected a whole number")
    if isinstance(v, float):
        if not v.is_integer():
            raise ValueError("expected a whole number")
        v = int(v)
    if isinstance(v, str):
        s = v.strip()
        if not s.isdigit():
            raise ValueError(f"expected a whole number, got {v!r}")
        v = int(s)
    if not isinstance(v, int):
        raise ValueError(f"expected a whole number, got {type(v)}")
    if v < minimum:
        raise ValueError(f"must be >= {minimum}")
    return v


def _to_optional_price(v: Any) -> float | None:
    if _blank(v):
        return None
    if isinstance(v, bool):
        raise ValueError("price must be numeric")
    try:
        f = float(v.strip() if isinstance(v, str) else v)
    except (TypeError, ValueError) as err:
        raise ValueError(f"price must be numeric, got {v!r}") from err
    if not math.isfinite(f) or f < 0:
        raise ValueError("price must be a finite non-negative number")
    return f


def _to_text(v: Any) -> str:
    if v is None:
        return ""
    return str(v)


def _to_choice(v: Any) -> Any:
    return None if _blank(v) else v


# ----------------------------
# Sub-units
# ----------------------------

class TowerConfig(BaseModel):
    """One tower of an apartment project."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    tower_number: int = Field(default=1, ge=1)
    bhk: str = ""
    area_sqft: str = ""
    flats_per_floor: int | None = None
    floors_in_tower: str = ""
    lifts: int | None = None
    penthouse: bool = False
    parking_per_floor: int | None = None
    no_of_basements: int | None = None

    @field_validator("bhk", "area_sqft", "floors_in_tower", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _to_text(v)

    @field_validator(
        "flats_per_floor",
        "lifts",
        "parking_per_floor",
        "no_of_basements",
        mode="before",
    )
    @classmethod
    def _non_negative(cls, v: Any) -> int | None:
        return _to_optional_int(v, minimum=0)

    @field_validator("penthouse", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return bool(v)


class BuildingConfig(BaseModel):
    """One building on a builder-floor plot, with its own price tiers."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    building_number: int = Field(default=1, ge=1)
    plot_size: str = ""
    facing: Facing | None = None
    floors_count: int | None = None
    roof_rights: RoofRights | None = None
    condition: Condition | None = None
    status: BuildingStatus | None = None
    category: Category | None = None
    possession_date: str = ""
    owner_name: str = ""
    comments: str = ""
    brochure_url: str | None = None

    price_top: float | None = None
    price_mid1: float | None = None
    price_mid2: float | None = None
    price_ug: float | None = None

    has_basement: bool = False
    is_triplex: bool = False
    is_gated: bool = False

    @field_validator("plot_size", "possession_date", "owner_name", "comments", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _to_text(v)

    @field_validator("facing", "roof_rights", "condition", "status", "category", mode="before")
    @classmethod
    def _choice(cls, v: Any) -> Any:
        return _to_choice(v)

    @field_validator("brochure_url", mode="before")
    @classmethod
    def _url(cls, v: Any) -> str | None:
        return None if _blank(v) else str(v).strip()

    @field_validator("floors_count", mode="before")
    @classmethod
    def _positive(cls, v: Any) -> int | None:
        return _to_optional_int(v, minimum=1)

    @field_validator(*PRICE_TIERS, mode="before")
    @classmethod
    def _price(cls, v: Any) -> float | None:
        return _to_optional_price(v)

    @field_validator("has_basement", "is_triplex", "is_gated", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return bool(v)

    def tier_prices(self) -> list[float]:
        return [p for p in (getattr(self, t) for t in PRICE_TIERS) if p is not None]


SubUnit = TowerConfig | BuildingConfig

CONFIG_MODEL: dict[str, type[TowerConfig] | type[BuildingConfig]] = {
    APARTMENT: TowerConfig,
    BUILDER_FLOOR: BuildingConfig,
}

# Column holding the structured list, per kind
CONFIG_COLUMN: dict[str, str] = {
    APARTMENT: "tower_bhk_config",
    BUILDER_FLOOR: "building_config",
}

NUMBER_FIELD: dict[str, str] = {
    APARTMENT: "tower_number",
    BUILDER_FLOOR: "building_number",
}


def unit_number(unit: SubUnit) -> int:
    if isinstance(unit, TowerConfig):
        return unit.tower_number
    return unit.building_number


def default_config(kind: PropertyKind, number: int = 1) -> SubUnit:
    model = CONFIG_MODEL[kind]
    return model(**{NUMBER_FIELD[kind]: number})


# Top-level fields that only mean something for one kind
APARTMENT_ONLY_FIELDS: dict[str, Any] = {
    "price": None,
    "area": None,
    "amenities": [],
    "project_status": None,
    "possession_date": None,
    "is_featured": False,
    "total_towers": None,
    "total_units": None,
    "club_house": False,
    "club_house_area": None,
    "project_highlights": [],
    "nearby_landmarks": [],
    "connectivity": None,
    "payment_plan": None,
}

BUILDER_FLOOR_ONLY_FIELDS: dict[str, Any] = {
    "facing": None,
    "plot_number": None,
    "total_land_parcel": None,
    "status": None,
}


def exclusive_fields(kind: PropertyKind) -> dict[str, Any]:
    """Defaults of the top-level fields that belong to `kind` alone."""
    return APARTMENT_ONLY_FIELDS if kind == APARTMENT else BUILDER_FLOOR_ONLY_FIELDS


def parse_crore(v: Any) -> float | None:
    """
    "5.5 Cr" / "5.5 crore" / "5.5" / 5.5 -> 5.5, blank -> None.
    """
    if _blank(v):
        return None
    if isinstance(v, str):
        v = re.sub(r"\s*(crore|cr)\s*$", "", v, flags=re.IGNORECASE).strip()
        if not v:
            return None
    return _to_optional_price(v)


# ----------------------------
# Property
# ----------------------------

class PropertyRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str | None = None
    name: str = ""
    slug: str = ""
    kind: PropertyKind
    location: str = ""
    developer: str | None = None
    short_description: str | None = None
    full_description: str | None = None

    configs: list[SubUnit] = Field(default_factory=list)

    cover_image_url: str | None = None
    gallery_image_urls: list[str] = Field(default_factory=list)
    brochure_url: str | None = None

    # apartment only
    price: float | None = None
    area: str | None = None
    amenities: list[str] = Field(default_factory=list)
    project_status: str | None = None
    possession_date: str | None = None
    is_featured: bool = False
    total_towers: int | None = None
    total_units: int | None = None
    club_house: bool = False
    club_house_area: str | None = None
    project_highlights: list[str] = Field(default_factory=list)
    nearby_landmarks: list[str] = Field(default_factory=list)
    connectivity: str | None = None
    payment_plan: str | None = None

    # builder floor only
    facing: Facing | None = None
    plot_number: str | None = None
    total_land_parcel: str | None = None
    status: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _typed_configs(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        kind = parse_kind(data.get("kind"))
        data["kind"] = kind
        model = CONFIG_MODEL[kind]
        raw = data.get("configs") or []
        data["configs"] = [
            c if isinstance(c, model) else model.model_validate(
                c.model_dump() if isinstance(c, BaseModel) else c
            )
            for c in raw
        ]
        return data

    @field_validator("price", mode="before")
    @classmethod
    def _crore(cls, v: Any) -> float | None:
        return parse_crore(v)

    @field_validator("total_towers", "total_units", mode="before")
    @classmethod
    def _count(cls, v: Any) -> int | None:
        return _to_optional_int(v, minimum=0)

    @field_validator(
        "developer",
        "short_description",
        "full_description",
        "cover_image_url",
        "brochure_url",
        "area",
        "project_status",
        "possession_date",
        "club_house_area",
        "connectivity",
        "payment_plan",
        "plot_number",
        "total_land_parcel",
        "status",
        "facing",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if _blank(v):
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("amenities", "project_highlights", "nearby_landmarks", mode="before")
    @classmethod
    def _csv_list(cls, v: Any) -> list[str]:
        if _blank(v):
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [s.strip() for s in v if s and str(s).strip()]

    @model_validator(mode="after")
    def _check(self) -> "PropertyRecord":
        if not self.slug:
            self.slug = slugify(self.name)
        elif not is_valid_slug(self.slug):
            raise ValueError(f"invalid slug {self.slug!r}: use lowercase letters, digits and hyphens")
        if not self.configs:
            raise ValueError("a property needs at least one sub-unit")
        numbers = [unit_number(c) for c in self.configs]
        if len(set(numbers)) != len(numbers):
            raise ValueError(f"duplicate sub-unit numbers: {numbers}")
        # kind-irrelevant fields never survive on the record
        other = BUILDER_FLOOR if self.kind == APARTMENT else APARTMENT
        for field, default in exclusive_fields(other).items():
            setattr(self, field, list(default) if isinstance(default, list) else default)
        return self
