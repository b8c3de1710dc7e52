# src/propconf/api/http.py
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, FastAPI, Header, HTTPException, Query

from propconf.adapters.config import config
from propconf.adapters.identity import TokenIdentity
from propconf.adapters.logging_utils import get_logger
from propconf.adapters.sql_repo import SqlGalleryRepository, SqlPropertyRepository
from propconf.adapters.storage import make_storage
from propconf.domain.errors import (
    PersistenceError,
    PropconfError,
    UploadError,
    ValidationError,
)
from propconf.domain.ports import (
    AssetStorage,
    GalleryRepository,
    IdentityService,
    PropertyRepository,
)
from propconf.domain.property import PropertyKind, parse_kind
from propconf.services.formatting import format_price_label
from propconf.services.properties import delete_property, get_detail, list_cards
from .schemas import DeleteResponse, PropertyDetail, PropertyPage, SummaryOut

app = FastAPI(title="propconf")

log = get_logger("propconf.api")


# -------------------------------------------------------------------
# Collaborators (overridden in tests via app.dependency_overrides)
# -------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_properties() -> PropertyRepository:
    return SqlPropertyRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_gallery() -> GalleryRepository:
    return SqlGalleryRepository(config.DB_URI)


@lru_cache(maxsize=1)
def get_storage() -> AssetStorage:
    return make_storage()


@lru_cache(maxsize=1)
def get_identity() -> IdentityService:
    return TokenIdentity()


def require_admin(
    authorization: str | None = Header(default=None),
    identity: IdentityService = Depends(get_identity),
) -> None:
    if not identity.is_admin(authorization):
        log.info("admin check failed", extra={"context": {"has_credentials": bool(authorization)}})
        raise HTTPException(status_code=401, detail="Admin access required")


def _http_error(err: PropconfError) -> HTTPException:
    if isinstance(err, ValidationError):
        return HTTPException(status_code=422, detail=str(err))
    if isinstance(err, UploadError):
        return HTTPException(status_code=502, detail=str(err))
    if isinstance(err, PersistenceError):
        return HTTPException(status_code=500, detail=str(err))
    return HTTPException(status_code=400, detail=str(err))


# -------------------------------------------------------------------
# Public reads
# -------------------------------------------------------------------

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": config.ENV}


@app.get("/properties", response_model=PropertyPage)
async def properties_list(
    kind: str | None = Query(default=None, description="apartment | builder_floor"),
    location: str | None = Query(default=None),
    developer: str | None = Query(default=None),
    area: str | None = Query(default=None, description="area (apartments) or plot size (builder floors)"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=config.LISTING_PAGE_SIZE, ge=1, le=200),
    repo: PropertyRepository = Depends(get_properties),
) -> PropertyPage:
    wanted: PropertyKind | None = None
    if kind:
        try:
            wanted = parse_kind(kind)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

    result = await list_cards(
        repo,
        kind=wanted,
        location=location,
        developer=developer,
        area=area,
        page=page,
        page_size=page_size,
    )
    log.info(
        "listed properties",
        extra={
            "context": {
                "kind": wanted,
                "location": location,
                "developer": developer,
                "area": area,
                "page": page,
                "count": len(result.items),
                "total": result.total,
            }
        },
    )
    return PropertyPage(
        items=result.items,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@app.get("/properties/{slug}", response_model=PropertyDetail)
async def property_detail(
    slug: str,
    repo: PropertyRepository = Depends(get_properties),
    gallery: GalleryRepository = Depends(get_gallery),
) -> PropertyDetail:
    try:
        found = await get_detail(repo, gallery, slug)
    except PropconfError as e:
        raise _http_error(e) from e
    except ValueError as e:
        # stored row that no longer validates
        log.error("unreadable property row", extra={"context": {"slug": slug, "error": str(e)}})
        raise HTTPException(status_code=500, detail="Stored property could not be read") from e

    if found is None:
        raise HTTPException(status_code=404, detail=f"No property with slug {slug!r}")

    record, summary = found
    label = format_price_label(summary.lowest_price)
    return PropertyDetail(
        property=record.model_dump(mode="json"),
        summary=SummaryOut(**summary.as_dict()),
        price_label=label["label"] if label else None,
    )


# -------------------------------------------------------------------
# Admin
# -------------------------------------------------------------------

@app.delete(
    "/admin/properties/{property_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(require_admin)],
)
async def property_delete(
    property_id: int,
    repo: PropertyRepository = Depends(get_properties),
    gallery: GalleryRepository = Depends(get_gallery),
    storage: AssetStorage = Depends(get_storage),
) -> DeleteResponse:
    try:
        deleted = await delete_property(property_id, properties=repo, gallery=gallery, storage=storage)
    except PropconfError as e:
        raise _http_error(e) from e

    if not deleted:
        raise HTTPException(status_code=404, detail=f"Property {property_id} not found")

    log.info("deleted property", extra={"context": {"property_id": property_id}})
    return DeleteResponse(deleted=True, id=property_id)
