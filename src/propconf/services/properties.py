# src/propconf/services/properties.py
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from propconf.domain.errors import SecondaryEffectError
from propconf.domain.metrics import (
    PropertySummary,
    apartment_price,
    area_range_label,
    bhk_labels,
    lowest_price,
)
from propconf.domain.ports import (
    AssetStorage,
    GalleryImageRow,
    GalleryRepository,
    PropertyRepository,
)
from propconf.domain.property import (
    BUILDER_FLOOR,
    CONFIG_COLUMN,
    BuildingConfig,
    PropertyKind,
    PropertyRecord,
    parse_kind,
)
from propconf.services.formatting import format_price_label
from propconf.services.normalizer import load_configs, normalize


def row_kind(row: Mapping[str, Any]) -> PropertyKind:
    return parse_kind(row.get("kind") or row.get("type"))


def record_from_row(
    row: Mapping[str, Any],
    gallery_rows: list[GalleryImageRow] | None = None,
) -> PropertyRecord:
    """Build a typed record from a persisted row, legacy or current."""
    kind = row_kind(row)
    data = {k: v for k, v in row.items() if k not in CONFIG_COLUMN.values()}
    data["kind"] = kind
    data["configs"] = load_configs(row, kind)
    data["cover_image_url"] = row.get("image_url") or row.get("cover_image_url")

    if gallery_rows:
        ordered = sorted(gallery_rows, key=lambda g: g.get("display_order") or 0)
        data["gallery_image_urls"] = [g["image_url"] for g in ordered]
    else:
        data["gallery_image_urls"] = list(
            row.get("gallery_images") or row.get("gallery_image_urls") or []
        )
    return PropertyRecord.model_validate(data)


def summarize(
    source: PropertyRecord | Mapping[str, Any],
    kind: PropertyKind | None = None,
) -> PropertySummary:
    """
    The one place lowest price, area range and BHK labels are derived.

    Accepts either a typed record or a raw row (structured or legacy).
    """
    if isinstance(source, PropertyRecord):
        kind = source.kind
        configs: list[Any] = list(source.configs)
        flat: Mapping[str, Any] = {}
        price, area = source.price, source.area
    else:
        kind = kind or row_kind(source)
        configs = normalize(source, kind)
        flat = source
        price, area = source.get("price"), source.get("area")

    if kind == BUILDER_FLOOR:
        return PropertySummary(
            lowest_price=lowest_price(configs, fallback=flat),
            area_range_label=area_range_label(configs, flat.get("plot_size")),
            bhk_labels=[],
        )

    return PropertySummary(
        lowest_price=apartment_price(price),
        area_range_label=(str(area).strip() or None) if area else None,
        bhk_labels=bhk_labels(configs),
    )


def card(row: Mapping[str, Any]) -> dict[str, Any]:
    """Listing-card view of a row with its summary precomputed."""
    summary = summarize(row)
    kind = row_kind(row)
    label = format_price_label(summary.lowest_price)
    return {
        "id": row.get("id"),
        "name": row.get("name"),
        "slug": row.get("slug"),
        "kind": kind,
        "location": row.get("location"),
        "developer": row.get("developer"),
        "image_url": row.get("image_url"),
        "short_description": row.get("short_description") or row.get("comments") or "",
        "status": row.get("status") if kind == BUILDER_FLOOR else row.get("project_status"),
        "price_label": label["label"] if label else None,
        **summary.as_dict(),
    }


# ----------------------------
# Read / delete paths
# ----------------------------

@dataclass
class CardPage:
    items: list[dict[str, Any]]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size)


async def list_cards(
    repo: PropertyRepository,
    *,
    kind: PropertyKind | None = None,
    location: str | None = None,
    developer: str | None = None,
    area: str | None = None,
    page: int = 1,
    page_size: int = 12,
) -> CardPage:
    """
    One page of listing cards plus the exact count of matching rows.

    Pages are 1-based; anything below 1 reads as the first page.
    """
    page = max(1, page)
    filters = dict(kind=kind, location=location, developer=developer, area=area)
    rows = await repo.search(**filters, limit=page_size, offset=(page - 1) * page_size)
    total = await repo.count(**filters)
    return CardPage(items=[card(r) for r in rows], total=total, page=page, page_size=page_size)


async def get_detail(
    repo: PropertyRepository,
    gallery: GalleryRepository,
    slug: str,
) -> tuple[PropertyRecord, PropertySummary] | None:
    row = await repo.get_by_slug(slug)
    if row is None:
        return None
    images = await gallery.list_for(row["id"])
    record = record_from_row(row, images)
    return record, summarize(row)


async def delete_property(
    property_id: int | str,
    *,
    properties: PropertyRepository,
    gallery: GalleryRepository,
    storage: AssetStorage,
) -> bool:
    """
    Delete a property, then (best-effort) its gallery rows and stored files.

    Returns False when the property does not exist. Failures after the
    record itself is gone are logged and swallowed.
    """
    row = await properties.get(property_id)
    if row is None:
        return False

    images = await gallery.list_for(property_id)
    record = record_from_row(row, images)
    await properties.delete(property_id)

    try:
        await gallery.delete_for(property_id)
    except Exception as err:
        logger.warning("{}", SecondaryEffectError(f"gallery cleanup for {property_id} failed: {err}"))

    urls = [record.cover_image_url, record.brochure_url, *record.gallery_image_urls]
    urls += [c.brochure_url for c in record.configs if isinstance(c, BuildingConfig)]
    for url in dict.fromkeys(u for u in urls if u):
        try:
            await storage.delete(url)
        except Exception as err:
            logger.warning("{}", SecondaryEffectError(f"could not remove {url}: {err}"))

    logger.info("Deleted property id={} slug={}", property_id, record.slug)
    return True
