# src/propconf/adapters/sql_repo.py
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import JSON, Column, Field, Session, SQLModel, create_engine, select

from propconf.domain.errors import PersistenceError
from propconf.domain.ports import GalleryImageRow, PropertyRow
from propconf.domain.property import CONFIG_COLUMN, parse_kind, slugify


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Properties ----------

class PropertyTableRow(SQLModel, table=True):
    __tablename__ = "properties"

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow, index=True)

    kind: str = Field(index=True)
    name: str = ""
    slug: str = Field(index=True, unique=True)
    location: str = Field(default="", index=True)
    developer: str | None = Field(default=None, index=True)
    area: str | None = None
    plot_size: str | None = None

    image_url: str | None = None
    brochure_url: str | None = None

    price: float | None = None
    status: str | None = None
    project_status: str | None = None

    # structured config lists, JSON-encoded text
    tower_bhk_config: str | None = None
    building_config: str | None = None

    # every other column of the write payload (and legacy flat columns)
    attrs: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))


_COLUMNS = [
    "kind",
    "name",
    "slug",
    "location",
    "developer",
    "area",
    "plot_size",
    "image_url",
    "brochure_url",
    "price",
    "status",
    "project_status",
    "tower_bhk_config",
    "building_config",
]


def _encode(column: str, value: Any) -> Any:
    if column in CONFIG_COLUMN.values() and isinstance(value, list):
        return json.dumps(value)
    if column == "kind" and value:
        return parse_kind(value)
    return value


def _apply(row: PropertyTableRow, payload: dict[str, Any]) -> None:
    attrs = dict(row.attrs or {})
    for key, value in payload.items():
        if key in ("id", "created_at"):
            continue
        if key in _COLUMNS:
            setattr(row, key, _encode(key, value))
        else:
            attrs[key] = value
    row.attrs = attrs
    if not row.slug:
        row.slug = slugify(row.name)


def _to_dict(row: PropertyTableRow) -> PropertyRow:
    out: dict[str, Any] = dict(row.attrs or {})
    out.update({c: getattr(row, c) for c in _COLUMNS})
    out["id"] = row.id
    out["created_at"] = row.created_at.isoformat()
    return out  # type: ignore[return-value]


def _filtered(stmt: Any, kind: str | None, location: str | None, developer: str | None, area: str | None) -> Any:
    if kind:
        stmt = stmt.where(PropertyTableRow.kind == parse_kind(kind))
    if location:
        stmt = stmt.where(PropertyTableRow.location.ilike(f"%{location}%"))
    if developer:
        stmt = stmt.where(PropertyTableRow.developer.ilike(f"%{developer}%"))
    if area:
        # apartments: area; builder floors: flat plot_size or any building's plot size
        needle = f"%{area}%"
        stmt = stmt.where(
            or_(
                PropertyTableRow.area.ilike(needle),
                PropertyTableRow.plot_size.ilike(needle),
                PropertyTableRow.building_config.ilike(needle),
            )
        )
    return stmt


class SqlPropertyRepository:
    def __init__(self, uri: str = "sqlite:///propconf.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    async def create(self, payload: dict[str, Any]) -> PropertyRow:
        row = PropertyTableRow(kind=parse_kind(payload.get("kind")), slug="")
        _apply(row, payload)
        try:
            with Session(self.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return _to_dict(row)
        except SQLAlchemyError as err:
            raise PersistenceError(f"Could not create property: {err}") from err

    async def update(self, property_id: int | str, payload: dict[str, Any]) -> PropertyRow:
        try:
            with Session(self.engine) as session:
                row = session.get(PropertyTableRow, int(property_id))
                if row is None:
                    raise PersistenceError(f"Property {property_id} not found")
                _apply(row, payload)
                session.add(row)
                session.commit()
                session.refresh(row)
                return _to_dict(row)
        except SQLAlchemyError as err:
            raise PersistenceError(f"Could not update property {property_id}: {err}") from err

    async def get(self, property_id: int | str) -> PropertyRow | None:
        with Session(self.engine) as session:
            row = session.get(PropertyTableRow, int(property_id))
            return _to_dict(row) if row else None

    async def get_by_slug(self, slug: str) -> PropertyRow | None:
        with Session(self.engine) as session:
            stmt = select(PropertyTableRow).where(PropertyTableRow.slug == slug)
            row = session.exec(stmt).first()
            return _to_dict(row) if row else None

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
        with Session(self.engine) as session:
            stmt = _filtered(select(PropertyTableRow), kind, location, developer, area)
            stmt = (
                stmt.order_by(PropertyTableRow.created_at.desc(), PropertyTableRow.id.desc())
                .offset(offset)
                .limit(limit)
            )
            return [_to_dict(r) for r in session.exec(stmt)]

    async def count(
        self,
        *,
        kind: str | None = None,
        location: str | None = None,
        developer: str | None = None,
        area: str | None = None,
    ) -> int:
        with Session(self.engine) as session:
            stmt = _filtered(
                select(func.count()).select_from(PropertyTableRow), kind, location, developer, area
            )
            return int(session.exec(stmt).one())

    async def delete(self, property_id: int | str) -> None:
        with Session(self.engine) as session:
            row = session.get(PropertyTableRow, int(property_id))
            if row is None:
                raise PersistenceError(f"Property {property_id} not found")
            session.delete(row)
            session.commit()


# ---------- Gallery images ----------

class GalleryImageTableRow(SQLModel, table=True):
    __tablename__ = "gallery_images"

    id: int | None = Field(default=None, primary_key=True)
    property_id: int = Field(index=True)
    image_url: str
    display_order: int = Field(default=0, index=True)


def _gallery_dict(row: GalleryImageTableRow) -> GalleryImageRow:
    return {
        "id": int(row.id),  # type: ignore[arg-type]
        "property_id": row.property_id,
        "image_url": row.image_url,
        "display_order": row.display_order,
    }


class SqlGalleryRepository:
    def __init__(self, uri: str = "sqlite:///propconf.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    async def list_for(self, property_id: int | str) -> list[GalleryImageRow]:
        with Session(self.engine) as session:
            stmt = (
                select(GalleryImageTableRow)
                .where(GalleryImageTableRow.property_id == int(property_id))
                .order_by(GalleryImageTableRow.display_order)
            )
            return [_gallery_dict(r) for r in session.exec(stmt)]

    async def insert_many(
        self, property_id: int | str, images: list[dict[str, Any]]
    ) -> list[GalleryImageRow]:
        rows = [
            GalleryImageTableRow(
                property_id=int(property_id),
                image_url=img["image_url"],
                display_order=int(img.get("display_order") or 0),
            )
            for img in images
        ]
        try:
            with Session(self.engine) as session:
                session.add_all(rows)
                session.commit()
                for r in rows:
                    session.refresh(r)
                return [_gallery_dict(r) for r in rows]
        except SQLAlchemyError as err:
            raise PersistenceError(f"Could not insert gallery images: {err}") from err

    async def delete_many(self, image_ids: list[int]) -> None:
        if not image_ids:
            return
        with Session(self.engine) as session:
            stmt = select(GalleryImageTableRow).where(GalleryImageTableRow.id.in_(image_ids))
            for row in session.exec(stmt):
                session.delete(row)
            session.commit()

    async def delete_for(self, property_id: int | str) -> None:
        with Session(self.engine) as session:
            stmt = select(GalleryImageTableRow).where(
                GalleryImageTableRow.property_id == int(property_id)
            )
            for row in session.exec(stmt):
                session.delete(row)
            session.commit()


# ---------- Developers ----------

class DeveloperRow(SQLModel, table=True):
    __tablename__ = "developers"

    id: int | None = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=_utcnow)
    name: str
    slug: str = Field(index=True, unique=True)


class SqlDeveloperDirectory:
    def __init__(self, uri: str = "sqlite:///propconf.db"):
        self.engine = create_engine(uri, echo=False)
        SQLModel.metadata.create_all(self.engine)

    async def sync(self, developer_name: str) -> None:
        name = developer_name.strip()
        slug = slugify(name)
        if not slug:
            return
        try:
            with Session(self.engine) as session:
                stmt = select(DeveloperRow).where(DeveloperRow.slug == slug)
                if session.exec(stmt).first() is not None:
                    return
                session.add(DeveloperRow(name=name, slug=slug))
                session.commit()
        except SQLAlchemyError as err:
            raise PersistenceError(f"Could not sync developer {name!r}: {err}") from err

    def all(self) -> list[DeveloperRow]:
        with Session(self.engine) as session:
            return list(session.exec(select(DeveloperRow).order_by(DeveloperRow.name)))
