# src/propconf/services/submit.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from propconf.domain.errors import PersistenceError, PropconfError, SecondaryEffectError
from propconf.domain.ports import (
    AssetStorage,
    DeveloperDirectory,
    GalleryRepository,
    PropertyRepository,
)
from propconf.domain.property import BUILDER_FLOOR, BuildingConfig, PropertyRecord
from propconf.services.assets import ExistingAsset, asset_path
from propconf.services.validation import prepare_write_payload, verify_round_trip
from propconf.services.wizard import Wizard


def epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class SubmitResult:
    ok: bool
    record: PropertyRecord | None = None
    error: str | None = None


class SubmitService:
    """
    Runs the one sequence of network effects a wizard is allowed:

        cover -> gallery files (in order) -> brochure(s)
        -> create/update record -> developer sync (best-effort)
        -> delete removed gallery rows -> insert new gallery rows

    Any failure before the record write aborts with nothing persisted.
    Files already uploaded by an aborted attempt are left in storage.
    """

    def __init__(
        self,
        properties: PropertyRepository,
        gallery: GalleryRepository,
        storage: AssetStorage,
        developers: DeveloperDirectory | None = None,
        clock: Callable[[], int] = epoch_ms,
    ) -> None:
        self.properties = properties
        self.gallery = gallery
        self.storage = storage
        self.developers = developers
        self.clock = clock

    async def submit(self, wizard: Wizard) -> SubmitResult:
        if wizard.saving:
            return SubmitResult(ok=False, error="A save is already in progress")
        if not wizard.is_final_step:
            return SubmitResult(ok=False, error="Finish every step before saving")

        wizard.saving = True
        wizard.error = None
        try:
            record = await self._run(wizard)
        except PropconfError as err:
            logger.warning("Submit failed for {!r}: {}", wizard.fields.get("name"), err)
            wizard.error = str(err)
            return SubmitResult(ok=False, error=str(err))
        finally:
            wizard.saving = False

        return SubmitResult(ok=True, record=record)

    async def _run(self, wizard: Wizard) -> PropertyRecord:
        # fails here, before any upload, when the form can't become a record
        record = wizard.to_record()
        assets = wizard.assets
        kind, slug = record.kind, record.slug
        ts = self.clock()

        cover_url = assets.current_cover_url()
        if assets.cover_file is not None:
            f = assets.cover_file
            cover_url = await self.storage.upload(f, asset_path(kind, slug, "cover", f.extension, ts=ts))

        uploaded: list[str] = []
        for i, f in enumerate(assets.to_add):
            path = asset_path(kind, slug, "image", f.extension, ts=ts, index=i)
            uploaded.append(await self.storage.upload(f, path))

        brochure_url = assets.brochure_url
        if assets.brochure_file is not None:
            brochure_url = await self.storage.upload(
                assets.brochure_file, asset_path(kind, slug, "brochure", "pdf", ts=ts)
            )

        configs = list(record.configs)
        if kind == BUILDER_FLOOR:
            configs = [await self._building_brochure(c, wizard, slug, ts) for c in configs]

        final = record.model_copy(
            update={
                "cover_image_url": cover_url,
                "gallery_image_urls": assets.final_gallery(uploaded),
                "brochure_url": brochure_url,
                "configs": configs,
            }
        )
        payload = prepare_write_payload(final)

        if wizard.mode == "create":
            row = await self.properties.create(payload)
        else:
            row = await self.properties.update(wizard.property_id, payload)
        verify_round_trip(kind, payload, row)
        property_id = row["id"]
        logger.info("Saved {} id={} slug={}", kind, property_id, slug)

        await self._sync_developer(final.developer)

        removed_ids = [a.id for a in assets.to_remove if a.id is not None]
        start = assets.next_display_order()
        try:
            if removed_ids:
                await self.gallery.delete_many(removed_ids)
            inserted = []
            if uploaded:
                inserted = await self.gallery.insert_many(
                    property_id,
                    [
                        {"image_url": url, "display_order": start + i + 1}
                        for i, url in enumerate(uploaded)
                    ],
                )
        except PropconfError:
            raise
        except Exception as err:
            raise PersistenceError(f"Gallery update failed: {err}") from err

        gallery = list(assets.kept)
        if inserted:
            gallery += [
                ExistingAsset(url=g["image_url"], id=g["id"], display_order=g["display_order"])
                for g in inserted
            ]
        else:
            gallery += [
                ExistingAsset(url=url, display_order=start + i + 1)
                for i, url in enumerate(uploaded)
            ]
        assets.commit(cover_url=cover_url, gallery=gallery, brochure_url=brochure_url)

        wizard.configs = tuple(final.configs)
        wizard.property_id = property_id
        wizard.mode = "edit"
        wizard.step = wizard.total_steps
        return final.model_copy(update={"id": property_id})

    async def _building_brochure(
        self, unit: BuildingConfig, wizard: Wizard, slug: str, ts: int
    ) -> BuildingConfig:
        n = unit.building_number
        f = wizard.assets.building_brochure_files.get(n)
        if f is None:
            return unit
        path = asset_path(BUILDER_FLOOR, slug, f"building-{n}-brochure", "pdf", ts=ts)
        url = await self.storage.upload(f, path)
        return unit.model_copy(update={"brochure_url": url})

    async def _sync_developer(self, name: str | None) -> None:
        if not name or self.developers is None:
            return
        try:
            await self.developers.sync(name)
        except Exception as err:
            logger.warning("{}", SecondaryEffectError(f"developer sync for {name!r} failed: {err}"))
