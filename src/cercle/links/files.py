"""Public file buckets stored through Django's storage API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.files.storage import default_storage

from cercle.pacts import FileStorageProtocol

if TYPE_CHECKING:
    from collections.abc import Iterable

    from django.core.files import File
    from django.core.files.storage import Storage

logger = logging.getLogger(__name__)

EVENT_IMAGES = "event-images"
EVENT_VIDEOS = "event-videos"
EVENT_DOCUMENTS = "event-documents"
AVATARS = "avatars"


class Bucket(FileStorageProtocol):
    """A named bucket is a top-level directory of the underlying storage."""

    def __init__(self, name: str, storage: Storage | None = None) -> None:
        self.name = name
        self._storage = storage or default_storage

    def _key(self, path: str) -> str:
        return f"{self.name}/{path.lstrip('/')}"

    def upload(self, path: str, content: File, *, upsert: bool = False) -> str:
        key = self._key(path)
        if upsert and self._storage.exists(key):
            self._storage.delete(key)

        saved = self._storage.save(key, content)
        logger.info("Stored %s", saved)
        return saved.removeprefix(f"{self.name}/")

    def public_url(self, path: str) -> str:
        return self._storage.url(self._key(path))

    def path_from_url(self, url: str) -> str:
        """Recover the bucket-relative path from a public URL."""
        marker = f"/{self.name}/"
        return url.split(marker, 1)[1] if marker in url else url

    def remove(self, paths: Iterable[str]) -> None:
        for path in paths:
            self._storage.delete(self._key(path))
