# src/propconf/domain/ports.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, TypedDict


# ----------------------------
# Raw rows
# ----------------------------

class PropertyRow(TypedDict, total=False):
    """
    A persisted property as the storage layer hands it back.

    The structured config list may arrive as a native list or as a
    JSON-encoded string; legacy rows carry flat columns instead.
    """
    id: int | str
    name: str
    slug: str
    kind: str
    type: str
    location: str
    developer: str | None
    tower_bhk_config: Any
    building_config: Any
    bhk_config: list[str] | str | None
    price: Any
    area: str | None
    plot_size: str | None
    price_top: Any
    price_mid1: Any
    price_mid2: Any
    price_ug: Any
    image_url: str | None
    gallery_images: list[str] | None
    brochure_url: str | None
    status: str | None
    project_status: str | None
    created_at: str


class GalleryImageRow(TypedDict):
    id: int
    property_id: int | str
    image_url: str
    display_order: int


# ----------------------------
# Files chosen in the browser, not yet uploaded
# ----------------------------

@dataclass(frozen=True)
class LocalFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot else "bin"


# ----------------------------
# Property storage
# ----------------------------

class PropertyRepository(Protocol):
    async def create(self, payload: dict[str, Any]) -> PropertyRow:
        ...

    async def update(self, property_id: int | str, payload: dict[str, Any]) -> PropertyRow:
        ...

    async def get(self, property_id: int | str) -> PropertyRow | None:
        ...

    async def get_by_slug(self, slug: str) -> PropertyRow | None:
        ...

    async def search(
        self,
        *,
        kind: str | None = None,
        location: str | None = None,
        developer: str | None = None,
        area: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[PropertyRow]:
        """Newest first. Text filters are case-insensitive substring matches."""
        ...

    async def count(
        self,
        *,
        kind: str | None = None,
        location: str | None = None,
        developer: str | None = None,
        area: str | None = None,
    ) -> int:
        ...

    async def delete(self, property_id: int | str) -> None:
        ...


class GalleryRepository(Protocol):
    async def list_for(self, property_id: int | str) -> list[GalleryImageRow]:
        ...

    async def insert_many(
        self, property_id: int | str, images: list[dict[str, Any]]
    ) -> list[GalleryImageRow]:
        ...

    async def delete_many(self, image_ids: list[int]) -> None:
        ...

    async def delete_for(self, property_id: int | str) -> None:
        ...


# ----------------------------
# Object storage (upload contract)
# ----------------------------

class AssetStorage(Protocol):
    async def upload(self, file: LocalFile, path: str) -> str:
        """Store `file` at `path` and return its public URL. Raises UploadError."""
        ...

    async def delete(self, url: str) -> None:
        ...


# ----------------------------
# Secondary collaborators
# ----------------------------

class DeveloperDirectory(Protocol):
    async def sync(self, developer_name: str) -> None:
        ...


class IdentityService(Protocol):
    def is_admin(self, credentials: str | None) -> bool:
        ...
