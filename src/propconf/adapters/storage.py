# src/propconf/adapters/storage.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path

import requests
from loguru import logger

from propconf.adapters.config import config
from propconf.domain.errors import UploadError
from propconf.domain.ports import LocalFile


class LocalFileStorage:
    """Filesystem-backed upload contract, served under PUBLIC_BASE_URL."""

    def __init__(self, base_dir: str | None = None, base_url: str | None = None):
        self.base_dir = Path(base_dir or config.STORAGE_DIR)
        self.base_url = (base_url or config.PUBLIC_BASE_URL).rstrip("/")
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        target = (self.base_dir / path).resolve()
        if self.base_dir.resolve() not in target.parents:
            raise UploadError(f"Refusing to write outside storage: {path}")
        return target

    async def upload(self, file: LocalFile, path: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(file.data)
        except OSError as err:
            raise UploadError(f"Could not store {path}: {err}") from err
        url = f"{self.base_url}/{path}"
        logger.debug("Stored {} ({} bytes) -> {}", path, file.size, url)
        return url

    async def delete(self, url: str) -> None:
        prefix = self.base_url + "/"
        if not url.startswith(prefix):
            logger.debug("Not ours, skipping delete: {}", url)
            return
        target = self._resolve(url[len(prefix):])
        if target.exists():
            target.unlink()


@dataclass(frozen=True)
class HttpUploadClient:
    """
    Remote upload endpoint: POST multipart `file` + `path`, JSON answer
    carries the public `url`. One attempt per call.
    """

    upload_url: str
    timeout_s: float = 30.0

    def _post(self, file: LocalFile, path: str) -> str:
        try:
            resp = requests.post(
                self.upload_url,
                files={"file": (file.filename, file.data, file.content_type)},
                data={"path": path},
                timeout=self.timeout_s,
            )
        except requests.RequestException as err:
            raise UploadError(f"Upload of {path} failed: {err}") from err

        if resp.status_code >= 400:
            raise UploadError(f"Upload HTTP {resp.status_code}: {resp.text}")

        try:
            url = resp.json()["url"]
        except (ValueError, KeyError, TypeError) as err:
            raise UploadError(f"Upload of {path} returned no url") from err
        return url

    def _delete(self, url: str) -> None:
        resp = requests.delete(self.upload_url, params={"url": url}, timeout=self.timeout_s)
        if resp.status_code >= 400 and resp.status_code != 404:
            raise UploadError(f"Delete HTTP {resp.status_code}: {resp.text}")

    async def upload(self, file: LocalFile, path: str) -> str:
        return await asyncio.to_thread(self._post, file, path)

    async def delete(self, url: str) -> None:
        await asyncio.to_thread(self._delete, url)


def make_storage():
    if config.UPLOAD_URL:
        return HttpUploadClient(upload_url=config.UPLOAD_URL)
    return LocalFileStorage()
