# src/propconf/services/assets.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from loguru import logger

from propconf.domain.errors import ValidationError
from propconf.domain.ports import LocalFile
from propconf.domain.property import PropertyKind, entity_folder
from propconf.services.validation import validate_brochure


def asset_path(
    kind: PropertyKind,
    slug: str,
    role: str,
    ext: str,
    *,
    ts: int,
    index: int | None = None,
) -> str:
    """
    {entity-type}/{slug}/{role}-{timestamp}[-{index}].{ext}

    e.g. "builder-floors/dlf-floors/image-1718000000000-2.jpg"
    """
    suffix = f"-{index}" if index is not None else ""
    return f"{entity_folder(kind)}/{slug}/{role}-{ts}{suffix}.{ext}"


@dataclass(frozen=True)
class ExistingAsset:
    url: str
    # gallery row id, when the image lives in the gallery table
    id: int | None = None
    display_order: int = 0


@dataclass
class AssetSession:
    """
    Per-edit bookkeeping of media and documents.

    Nothing here touches storage; the submit sequence reads the three sets
    (kept / to_add / to_remove) and performs the uploads and deletions.
    """
    kept: list[ExistingAsset] = field(default_factory=list)
    to_add: list[LocalFile] = field(default_factory=list)
    to_remove: list[ExistingAsset] = field(default_factory=list)

    cover_url: str | None = None
    cover_file: LocalFile | None = None
    cover_removed: bool = False

    brochure_url: str | None = None
    brochure_file: LocalFile | None = None

    # builder floors: one brochure per building, keyed by building number
    building_brochure_files: dict[int, LocalFile] = field(default_factory=dict)

    @classmethod
    def from_existing(
        cls,
        *,
        cover_url: str | None = None,
        gallery: Iterable[ExistingAsset | str] = (),
        brochure_url: str | None = None,
    ) -> "AssetSession":
        kept = [
            g if isinstance(g, ExistingAsset) else ExistingAsset(url=g, display_order=i + 1)
            for i, g in enumerate(gallery)
        ]
        return cls(kept=kept, cover_url=cover_url or None, brochure_url=brochure_url or None)

    # ----------------------------
    # Cover
    # ----------------------------

    def choose_cover(self, file: LocalFile) -> None:
        self.cover_file = file
        self.cover_removed = False

    def remove_cover(self) -> None:
        self.cover_file = None
        if self.cover_url:
            self.cover_removed = True

    def has_cover(self) -> bool:
        if self.cover_file is not None:
            return True
        return bool(self.cover_url) and not self.cover_removed

    def current_cover_url(self) -> str | None:
        """Cover URL to persist when no new file is uploaded."""
        return None if self.cover_removed else self.cover_url

    # ----------------------------
    # Gallery
    # ----------------------------

    def add_images(self, files: Iterable[LocalFile]) -> None:
        self.to_add.extend(files)

    def discard_new_image(self, index: int) -> None:
        if not 0 <= index < len(self.to_add):
            raise ValidationError(f"No new image at position {index}")
        del self.to_add[index]

    def remove_existing(self, key: str | int) -> ExistingAsset:
        """Move an existing image (by URL or gallery row id) to `to_remove`."""
        for i, asset in enumerate(self.kept):
            if asset.url == key or (asset.id is not None and asset.id == key):
                del self.kept[i]
                self.to_remove.append(asset)
                logger.debug("Marked gallery image for removal: {}", asset.url)
                return asset
        raise ValidationError(f"Unknown gallery image: {key!r}")

    def final_gallery(self, uploaded: Iterable[str]) -> list[str]:
        return [a.url for a in self.kept] + list(uploaded)

    def next_display_order(self) -> int:
        return max((a.display_order for a in self.kept), default=0)

    # ----------------------------
    # Brochures
    # ----------------------------

    def choose_brochure(self, file: LocalFile) -> None:
        self.brochure_file = validate_brochure(file)

    def choose_building_brochure(self, building_number: int, file: LocalFile) -> None:
        self.building_brochure_files[building_number] = validate_brochure(file)

    def forget_building(self, building_number: int) -> None:
        self.building_brochure_files.pop(building_number, None)

    # ----------------------------
    # After a successful save
    # ----------------------------

    def commit(
        self,
        *,
        cover_url: str | None,
        gallery: Iterable[ExistingAsset],
        brochure_url: str | None,
    ) -> None:
        self.kept = list(gallery)
        self.to_add = []
        self.to_remove = []
        self.cover_url = cover_url
        self.cover_file = None
        self.cover_removed = False
        self.brochure_url = brochure_url
        self.brochure_file = None
        self.building_brochure_files = {}
