# src/propconf/api/schemas.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from propconf.domain.property import PropertyKind


class SummaryOut(BaseModel):
    lowest_price: float | None = None
    area_range_label: str | None = None
    bhk_labels: list[str] = []


class PropertyCard(SummaryOut):
    """
    Listing card for /properties.

    Permissive so new card fields don't break older clients.
    """
    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    name: str | None = None
    slug: str | None = None
    kind: PropertyKind
    location: str | None = None
    developer: str | None = None
    image_url: str | None = None
    short_description: str = ""
    status: str | None = None
    price_label: str | None = None


class PropertyDetail(BaseModel):
    """Normalized record plus its precomputed summary."""

    property: dict[str, Any]
    summary: SummaryOut
    price_label: str | None = None


class DeleteResponse(BaseModel):
    deleted: bool
    id: int | str


class PropertyPage(BaseModel):
    items: list[PropertyCard]
    total: int
    page: int
    page_size: int
    total_pages: int
