# src/propconf/services/wizard.py
"""
Multi-step admin form controller for creating and editing properties.

The config-list transforms at the top of the module are pure: each takes
the current tuple of sub-units and returns a new one, leaving the input
untouched. `Wizard` strings them together with the step machine, the
top-level form fields and the asset session.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Literal

from loguru import logger
from pydantic import ValidationError as SchemaError

from propconf.domain.errors import ValidationError
from propconf.domain.ports import GalleryImageRow
from propconf.domain.property import (
    APARTMENT,
    APARTMENT_ONLY_FIELDS,
    BUILDER_FLOOR,
    BUILDER_FLOOR_ONLY_FIELDS,
    CONFIG_MODEL,
    NUMBER_FIELD,
    BuildingConfig,
    PropertyKind,
    PropertyRecord,
    SubUnit,
    default_config,
    exclusive_fields,
    slugify,
    unit_number,
)
from propconf.services.assets import AssetSession, ExistingAsset
from propconf.services.formatting import (
    accept_area_input,
    format_bhk_input,
    format_price_input,
)
from propconf.services.properties import record_from_row

Mode = Literal["create", "edit"]

# Step names
KIND = "kind"
BASIC_INFO = "basic_info"
DETAILS = "details"
DETAILS_MORE = "details_more"
BUILDINGS = "building_details"
PRICING = "pricing"
IMAGES = "images"
REVIEW = "review"

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"

NUMBER_FIELD_BY_MODEL = {CONFIG_MODEL[k]: NUMBER_FIELD[k] for k in CONFIG_MODEL}

# area-style inputs that only take numbers or "min-max"
_AREA_FIELDS = {"area_sqft", "area"}

COMMON_FORM_FIELDS: dict[str, Any] = {
    "name": "",
    "slug": "",
    "location": "",
    "developer": "",
    "short_description": "",
    "full_description": "",
}


def step_sequence(kind: PropertyKind | None, mode: Mode) -> tuple[str, ...]:
    if mode == "edit":
        if kind == BUILDER_FLOOR:
            return (BASIC_INFO, BUILDINGS, PRICING, IMAGES, REVIEW)
        return (BASIC_INFO, DETAILS, DETAILS_MORE, IMAGES, REVIEW)
    if kind == BUILDER_FLOOR:
        return (KIND, BASIC_INFO, BUILDINGS, PRICING, IMAGES, REVIEW)
    return (KIND, BASIC_INFO, DETAILS, IMAGES, REVIEW)


def _form_defaults(kind: PropertyKind) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for field, default in exclusive_fields(kind).items():
        if isinstance(default, list):
            out[field] = []
        elif isinstance(default, bool):
            out[field] = default
        else:
            out[field] = ""
    return out


# ----------------------------
# Config list transforms
# ----------------------------

def append_config(configs: Sequence[SubUnit], kind: PropertyKind) -> tuple[SubUnit, ...]:
    """Add a blank sub-unit numbered one past the highest existing number."""
    number = max((unit_number(c) for c in configs), default=0) + 1
    return (*configs, default_config(kind, number))


def remove_config(configs: Sequence[SubUnit], index: int) -> tuple[SubUnit, ...]:
    """
    Drop the sub-unit at `index`. The survivors keep their numbers, so
    removing tower 2 of 1,2,3 leaves 1,3.
    """
    if len(configs) <= 1:
        raise ValidationError("A property needs at least one sub-unit")
    if not 0 <= index < len(configs):
        raise ValidationError(f"No sub-unit at position {index}")
    return tuple(c for i, c in enumerate(configs) if i != index)


def update_config(
    configs: Sequence[SubUnit],
    index: int,
    field: str,
    value: Any,
) -> tuple[SubUnit, ...]:
    """
    Replace one field of one sub-unit. Siblings are reused as-is.

    Area keystrokes that aren't a number or range return `configs`
    unchanged; values the schema refuses raise ValidationError.
    """
    if not 0 <= index < len(configs):
        raise ValidationError(f"No sub-unit at position {index}")

    unit = configs[index]
    if field not in type(unit).model_fields:
        raise ValidationError(f"Unknown field {field!r} for {type(unit).__name__}")

    if field == "bhk":
        value = format_bhk_input(value)
    elif field in _AREA_FIELDS and isinstance(value, str) and not accept_area_input(value):
        return tuple(configs)

    data = unit.model_dump()
    data[field] = value
    try:
        updated = type(unit).model_validate(data)
    except SchemaError as err:
        raise ValidationError(f"Invalid value for {field}: {value!r}") from err

    if field == NUMBER_FIELD_BY_MODEL[type(unit)]:
        taken = {unit_number(c) for i, c in enumerate(configs) if i != index}
        if unit_number(updated) in taken:
            raise ValidationError(f"Number {unit_number(updated)} is already used")

    return tuple(updated if i == index else c for i, c in enumerate(configs))


def _price_text(price: float | None) -> str:
    if price is None:
        return ""
    shown = str(int(price)) if float(price).is_integer() else str(price)
    return format_price_input(shown)


# ----------------------------
# Controller
# ----------------------------

class Wizard:
    def __init__(
        self,
        *,
        mode: Mode = "create",
        kind: PropertyKind | None = None,
        fields: Mapping[str, Any] | None = None,
        configs: Sequence[SubUnit] = (),
        assets: AssetSession | None = None,
        property_id: int | str | None = None,
    ) -> None:
        if mode == "edit" and kind is None:
            raise ValueError("the edit flow needs a known property kind")
        self.mode: Mode = mode
        self.kind = kind
        self.property_id = property_id
        self.step = 1
        self.fields: dict[str, Any] = dict(COMMON_FORM_FIELDS)
        if kind is not None:
            self.fields.update(_form_defaults(kind))
        self.fields.update(fields or {})
        self.configs: tuple[SubUnit, ...] = tuple(configs)
        if kind is not None and not self.configs:
            self.configs = (default_config(kind),)
        self.assets = assets or AssetSession()
        self.saving = False
        self.error: str | None = None

    # ----------------------------
    # Constructors
    # ----------------------------

    @classmethod
    def create(cls, kind: PropertyKind | None = None) -> "Wizard":
        return cls(mode="create", kind=kind)

    @classmethod
    def edit(
        cls,
        row: Mapping[str, Any],
        gallery_rows: list[GalleryImageRow] | None = None,
    ) -> "Wizard":
        """Open the edit flow on a persisted row (legacy rows are migrated on read)."""
        record = record_from_row(row, gallery_rows)

        fields: dict[str, Any] = {f: getattr(record, f) or "" for f in COMMON_FORM_FIELDS}
        for field in exclusive_fields(record.kind):
            value = getattr(record, field)
            if field == "price":
                value = _price_text(value)
            elif field in ("project_highlights", "nearby_landmarks"):
                value = ", ".join(value)
            elif value is None:
                value = ""
            fields[field] = value

        if gallery_rows:
            gallery = [
                ExistingAsset(url=g["image_url"], id=g["id"], display_order=g.get("display_order") or 0)
                for g in sorted(gallery_rows, key=lambda g: g.get("display_order") or 0)
            ]
            assets = AssetSession.from_existing(
                cover_url=record.cover_image_url,
                gallery=gallery,
                brochure_url=record.brochure_url,
            )
        else:
            assets = AssetSession.from_existing(
                cover_url=record.cover_image_url,
                gallery=record.gallery_image_urls,
                brochure_url=record.brochure_url,
            )

        return cls(
            mode="edit",
            kind=record.kind,
            fields=fields,
            configs=record.configs,
            assets=assets,
            property_id=record.id,
        )

    # ----------------------------
    # Steps
    # ----------------------------

    @property
    def steps(self) -> tuple[str, ...]:
        return step_sequence(self.kind, self.mode)

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def current_step(self) -> str:
        return self.steps[self.step - 1]

    @property
    def is_final_step(self) -> bool:
        return self.step == self.total_steps

    def validate_step(self, step: int | None = None) -> bool:
        step = self.step if step is None else step
        if not 1 <= step <= self.total_steps:
            return False
        name = self.steps[step - 1]
        if name == KIND:
            return self.kind is not None
        if name == BASIC_INFO:
            return bool(str(self.fields.get("name") or "").strip()) and bool(
                str(self.fields.get("location") or "").strip()
            )
        if name == IMAGES and self.mode == "create":
            return self.assets.has_cover()
        # details, pricing and review may be left blank
        return True

    def next(self) -> int:
        if not self.validate_step():
            self.error = REQUIRED_FIELDS_MESSAGE
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        self.error = None
        if self.step < self.total_steps:
            self.step += 1
            logger.debug("Wizard advanced to step {} ({})", self.step, self.current_step)
        return self.step

    def prev(self) -> int:
        if self.step > 1:
            self.step -= 1
        return self.step

    # ----------------------------
    # Kind & top-level fields
    # ----------------------------

    def set_kind(self, kind: PropertyKind) -> None:
        """
        Choose the property kind (create flow only).

        Switching kinds drops every field that belongs to the old kind and
        reseeds the config list with one blank sub-unit of the new kind.
        """
        if self.mode != "create":
            raise ValidationError("The kind of an existing property cannot change")
        if kind not in (APARTMENT, BUILDER_FLOOR):
            raise ValidationError(f"Unknown property kind: {kind!r}")
        if kind == self.kind:
            return

        for field in (*APARTMENT_ONLY_FIELDS, *BUILDER_FLOOR_ONLY_FIELDS):
            self.fields.pop(field, None)
        self.fields.update(_form_defaults(kind))

        self.assets.building_brochure_files.clear()
        self.configs = (default_config(kind),)
        self.kind = kind
        logger.debug("Wizard kind set to {}", kind)

    def set_field(self, field: str, value: Any) -> bool:
        """
        Update one top-level field. Returns False when the input was not
        taken (area keystroke rejected, or field foreign to the kind).
        """
        if field in COMMON_FORM_FIELDS:
            self.fields[field] = value
            if field == "name":
                self.fields["slug"] = slugify(value)
            return True

        if self.kind is None or field not in exclusive_fields(self.kind):
            # e.g. `facing` on an apartment
            logger.debug("Ignoring {} for kind {}", field, self.kind)
            return False

        if field == "price" and isinstance(value, str):
            value = format_price_input(value)
        elif field in _AREA_FIELDS and isinstance(value, str) and not accept_area_input(value):
            return False

        self.fields[field] = value
        return True

    # ----------------------------
    # Sub-units
    # ----------------------------

    def _require_kind(self) -> PropertyKind:
        if self.kind is None:
            raise ValidationError("Choose a property kind first")
        return self.kind

    def add_config(self) -> SubUnit:
        self.configs = append_config(self.configs, self._require_kind())
        return self.configs[-1]

    def remove_config(self, index: int) -> None:
        removed = self.configs[index] if 0 <= index < len(self.configs) else None
        self.configs = remove_config(self.configs, index)
        if isinstance(removed, BuildingConfig):
            self.assets.forget_building(removed.building_number)

    def set_config_field(self, index: int, field: str, value: Any) -> SubUnit:
        self._require_kind()
        self.configs = update_config(self.configs, index, field, value)
        return self.configs[index]

    # ----------------------------
    # Output
    # ----------------------------

    def to_record(self, **overrides: Any) -> PropertyRecord:
        """
        The record this wizard would save, with the asset URLs known so far.

        Raises ValidationError when the form can't be turned into a record.
        """
        kind = self._require_kind()
        data: dict[str, Any] = dict(self.fields)
        data.update(
            id=self.property_id,
            kind=kind,
            configs=list(self.configs),
            cover_image_url=self.assets.current_cover_url(),
            gallery_image_urls=[a.url for a in self.assets.kept],
            brochure_url=self.assets.brochure_url,
        )
        if not data.get("slug"):
            data["slug"] = slugify(data.get("name"))
        data.update(overrides)
        try:
            return PropertyRecord.model_validate(data)
        except SchemaError as err:
            first = err.errors()[0] if err.errors() else {}
            where = ".".join(str(p) for p in first.get("loc", ()))
            msg = first.get("msg", str(err))
            raise ValidationError(f"{where}: {msg}" if where else msg) from err
