# src/propconf/services/validation.py

import math
from typing import Any

from propconf.adapters.config import config
from propconf.domain.errors import PersistenceError, ValidationError
from propconf.domain.metrics import as_price, bhk_labels, lowest_price
from propconf.domain.ports import LocalFile
from propconf.domain.property import (
    APARTMENT,
    BUILDER_FLOOR,
    CONFIG_COLUMN,
    PropertyRecord,
)
from propconf.services.normalizer import normalize

PDF_CONTENT_TYPE = "application/pdf"

# Fields every write must carry, whatever the kind
COMMON_FIELDS = [
    "name",
    "slug",
    "location",
    "developer",
    "short_description",
    "full_description",
]

# Fields that must come back from the store exactly as sent
ROUND_TRIP_FIELDS = {
    APARTMENT: ["project_status", "price"],
    BUILDER_FLOOR: ["status"],
}


def validate_brochure(file: LocalFile, max_bytes: int | None = None) -> LocalFile:
    """
    Brochures are checked when picked, before anything is uploaded:
      - must declare a PDF content type
      - must fit under BROCHURE_MAX_BYTES (10MB by default)
    """
    limit = max_bytes if max_bytes is not None else config.BROCHURE_MAX_BYTES
    if file.content_type != PDF_CONTENT_TYPE:
        raise ValidationError("Please upload a PDF file for the brochure")
    if file.size > limit:
        raise ValidationError(
            f"Brochure must be less than {limit // (1024 * 1024)}MB"
        )
    return file


def _to_num_optional(val: Any) -> float | None:
    """
    Save-time price coercion: blank -> None, never 0.
    Anything that is not a finite non-negative number is rejected.
    """
    if val is None:
        return None
    if isinstance(val, str) and not val.strip():
        return None
    f = as_price(val)
    if f is None:
        raise ValidationError(f"Invalid price: {val!r}")
    return f


def prepare_write_payload(record: PropertyRecord) -> dict[str, Any]:
    """
    Flatten a record into the shape the record write contract accepts.

    Responsibilities:
      - Blank text goes out as null.
      - The config list travels under a single column.
      - Only fields that belong to the record's kind are written.
      - Apartment `bhk_config` carries the consolidated BHK labels.
    """
    payload: dict[str, Any] = {"kind": record.kind}
    for field in COMMON_FIELDS:
        v = getattr(record, field)
        payload[field] = v if v not in ("",) else None

    payload["image_url"] = record.cover_image_url
    payload["gallery_images"] = list(record.gallery_image_urls) or None
    payload["brochure_url"] = record.brochure_url

    units = [c.model_dump(mode="json") for c in record.configs]

    if record.kind == APARTMENT:
        payload.update(
            price=_to_num_optional(record.price),
            area=record.area,
            amenities=list(record.amenities),
            project_status=record.project_status,
            possession_date=record.possession_date,
            is_featured=bool(record.is_featured),
            total_towers=record.total_towers,
            total_units=record.total_units,
            club_house=bool(record.club_house),
            club_house_area=record.club_house_area if record.club_house else None,
            project_highlights=list(record.project_highlights),
            nearby_landmarks=list(record.nearby_landmarks),
            connectivity=record.connectivity,
            payment_plan=record.payment_plan,
            bhk_config=bhk_labels(record.configs),
        )
    else:
        for unit in units:
            for tier in ("price_top", "price_mid1", "price_mid2", "price_ug"):
                unit[tier] = _to_num_optional(unit.get(tier))
        payload.update(
            facing=record.facing,
            plot_number=record.plot_number,
            total_land_parcel=record.total_land_parcel,
            status=record.status,
        )

    payload[CONFIG_COLUMN[record.kind]] = units
    return payload


def _same(sent: Any, got: Any) -> bool:
    if isinstance(sent, (int, float)) and not isinstance(sent, bool):
        g = as_price(got)
        return g is not None and math.isclose(float(sent), g, rel_tol=1e-9)
    if sent in (None, "") and got in (None, ""):
        return True
    return sent == got


def verify_round_trip(kind: str, sent: dict[str, Any], row: dict[str, Any] | None) -> None:
    """
    The store answered "ok" -- check it kept what we sent.

    Raises PersistenceError on the first mismatch.
    """
    if not row:
        raise PersistenceError("Store returned no row for the write")

    for field in ROUND_TRIP_FIELDS.get(kind, []):
        if field in sent and not _same(sent[field], row.get(field)):
            raise PersistenceError(
                f'{field} update failed. Expected "{sent[field]}" but got "{row.get(field)}"'
            )

    if kind == BUILDER_FLOOR:
        expected = lowest_price(sent.get(CONFIG_COLUMN[kind]) or [])
        got = lowest_price(normalize(row, kind))
        if expected != got:
            raise PersistenceError(
                f'price update failed. Expected lowest "{expected}" but got "{got}"'
            )
