import copy
import json
from datetime import datetime, timezone
from typing import Any

from propconf.domain.errors import PersistenceError, UploadError
from propconf.domain.ports import (
    AssetStorage,
    DeveloperDirectory,
    GalleryImageRow,
    GalleryRepository,
    LocalFile,
    PropertyRepository,
    PropertyRow,
)
from propconf.domain.property import CONFIG_COLUMN, parse_kind, slugify


class InMemoryPropertyRepository(PropertyRepository):
    """
    Dict-backed property store.

    `json_columns=True` stores the config list as a JSON string, the way
    some hosted databases hand it back.
    """

    def __init__(self, rows: list[dict[str, Any]] | None = None, *, json_columns: bool = False) -> None:
        self._rows: dict[Any, dict[str, Any]] = {}
        self._next_id = 1
        self.json_columns = json_columns
        self.writes: list[dict[str, Any]] = []
        for row in rows or []:
            self.seed(row)

    def seed(self, row: dict[str, Any]) -> PropertyRow:
        """Insert a row verbatim (legacy shapes included), bypassing write checks."""
        rec = copy.deepcopy(row)
        if rec.get("id") is None:
            rec["id"] = self._next_id
        if isinstance(rec["id"], int):
            self._next_id = max(self._next_id, rec["id"] + 1)
        rec.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self._rows[rec["id"]] = rec
        return copy.deepcopy(rec)

    def _store(self, payload: dict[str, Any]) -> dict[str, Any]:
        rec = copy.deepcopy(payload)
        for column in CONFIG_COLUMN.values():
            if self.json_columns and isinstance(rec.get(column), list):
                rec[column] = json.dumps(rec[column])
        return rec

    async def create(self, payload: dict[str, Any]) -> PropertyRow:
        self.writes.append(copy.deepcopy(payload))
        slug = payload.get("slug")
        if slug and any(r.get("slug") == slug for r in self._rows.values()):
            raise PersistenceError(f"A property with slug {slug!r} already exists")
        rec = self._store(payload)
        rec["id"] = self._next_id
        self._next_id += 1
        rec["created_at"] = datetime.now(timezone.utc).isoformat()
        self._rows[rec["id"]] = rec
        return copy.deepcopy(rec)

    async def update(self, property_id: int | str, payload: dict[str, Any]) -> PropertyRow:
        self.writes.append(copy.deepcopy(payload))
        if property_id not in self._rows:
            raise PersistenceError(f"Property {property_id} not found")
        self._rows[property_id].update(self._store(payload))
        return copy.deepcopy(self._rows[property_id])

    async def get(self, property_id: int | str) -> PropertyRow | None:
        row = self._rows.get(property_id)
        return copy.deepcopy(row) if row else None

    async def get_by_slug(self, slug: str) -> PropertyRow | None:
        for row in self._rows.values():
            if row.get("slug") == slug:
                return copy.deepcopy(row)
        return None

    def _matching(
        self,
        kind: str | None,
        location: str | None,
        developer: str | None,
        area: str | None,
    ) -> list[dict[str, Any]]:
        # newest insert first among equal timestamps
        rows = list(reversed(self._rows.values()))
        if kind:
            wanted = parse_kind(kind)
            rows = [r for r in rows if _kind_of(r) == wanted]
        if location:
            rows = [r for r in rows if _contains(r.get("location"), location)]
        if developer:
            rows = [r for r in rows if _contains(r.get("developer"), developer)]
        if area:
            rows = [r for r in rows if _area_matches(r, area)]
        rows.sort(key=lambda r: str(r.get("created_at") or ""), reverse=True)
        return rows

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
        rows = self._matching(kind, location, developer, area)
        return [copy.deepcopy(r) for r in rows[offset : offset + limit]]

    async def count(
        self,
        *,
        kind: str | None = None,
        location: str | None = None,
        developer: str | None = None,
        area: str | None = None,
    ) -> int:
        return len(self._matching(kind, location, developer, area))

    async def delete(self, property_id: int | str) -> None:
        if self._rows.pop(property_id, None) is None:
            raise PersistenceError(f"Property {property_id} not found")

    def all(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(r) for r in self._rows.values()]


def _kind_of(row: dict[str, Any]) -> str | None:
    try:
        return parse_kind(row.get("kind") or row.get("type"))
    except ValueError:
        return None


def _contains(value: Any, needle: str) -> bool:
    return needle.lower() in str(value or "").lower()


def _area_matches(row: dict[str, Any], needle: str) -> bool:
    if _contains(row.get("area"), needle) or _contains(row.get("plot_size"), needle):
        return True
    buildings = row.get("building_config")
    if isinstance(buildings, str):
        return _contains(buildings, needle)
    return any(_contains(b.get("plot_size"), needle) for b in buildings or [] if isinstance(b, dict))


class InMemoryGalleryRepository(GalleryRepository):
    def __init__(self) -> None:
        self._items: list[GalleryImageRow] = []
        self._next_id = 1

    async def list_for(self, property_id: int | str) -> list[GalleryImageRow]:
        rows = [dict(g) for g in self._items if g["property_id"] == property_id]
        return sorted(rows, key=lambda g: g["display_order"])  # type: ignore[return-value]

    async def insert_many(
        self, property_id: int | str, images: list[dict[str, Any]]
    ) -> list[GalleryImageRow]:
        out: list[GalleryImageRow] = []
        for img in images:
            row: GalleryImageRow = {
                "id": self._next_id,
                "property_id": property_id,
                "image_url": img["image_url"],
                "display_order": int(img.get("display_order") or 0),
            }
            self._next_id += 1
            self._items.append(row)
            out.append(dict(row))  # type: ignore[arg-type]
        return out

    async def delete_many(self, image_ids: list[int]) -> None:
        drop = set(image_ids)
        self._items = [g for g in self._items if g["id"] not in drop]

    async def delete_for(self, property_id: int | str) -> None:
        self._items = [g for g in self._items if g["property_id"] != property_id]


class InMemoryDeveloperDirectory(DeveloperDirectory):
    def __init__(self) -> None:
        self.developers: dict[str, dict[str, Any]] = {}

    async def sync(self, developer_name: str) -> None:
        slug = slugify(developer_name)
        if slug and slug not in self.developers:
            self.developers[slug] = {"name": developer_name.strip(), "slug": slug}


class InMemoryAssetStorage(AssetStorage):
    """
    Records every upload; `fail_on` makes uploads whose path contains
    any of the given fragments raise UploadError.
    """

    def __init__(self, base_url: str = "https://cdn.test", fail_on: tuple[str, ...] = ()) -> None:
        self.base_url = base_url.rstrip("/")
        self.fail_on = fail_on
        self.objects: dict[str, bytes] = {}
        self.uploads: list[str] = []
        self.deleted: list[str] = []

    async def upload(self, file: LocalFile, path: str) -> str:
        self.uploads.append(path)
        if any(frag in path for frag in self.fail_on):
            raise UploadError(f"Upload rejected: {path}")
        self.objects[path] = file.data
        return f"{self.base_url}/{path}"

    async def delete(self, url: str) -> None:
        self.deleted.append(url)
        prefix = self.base_url + "/"
        if url.startswith(prefix):
            self.objects.pop(url[len(prefix):], None)
