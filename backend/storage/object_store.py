from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable
from uuid import uuid4

from ..errors import ExternalServiceError, NotFoundError

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """Binary blob storage addressed by opaque ids."""

    @abstractmethod
    def put(self, data: bytes, content_type: str | None = None) -> str:
        ...

    @abstractmethod
    def delete(self, object_id: str) -> None:
        ...


class LocalObjectStore(ObjectStore):
    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, object_id: str) -> Path:
        # ids are generated here; reject anything that could escape root
        if not object_id or "/" in object_id or "\\" in object_id or object_id.startswith("."):
            raise NotFoundError(f"Object {object_id!r} not found")
        return self.root / object_id

    def put(self, data: bytes, content_type: str | None = None) -> str:
        object_id = uuid4().hex
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self._path(object_id).write_bytes(data)
        except OSError as exc:
            raise ExternalServiceError(f"Could not store object: {exc}") from exc
        return object_id

    def delete(self, object_id: str) -> None:
        path = self._path(object_id)
        if not path.exists():
            raise NotFoundError(f"Object {object_id!r} not found")
        try:
            path.unlink()
        except OSError as exc:
            raise ExternalServiceError(f"Could not delete object {object_id}: {exc}") from exc


def delete_objects_best_effort(store: ObjectStore, object_ids: Iterable[str | None]) -> int:
    """Delete every id, logging individual failures. Returns the number deleted."""
    deleted = 0
    for object_id in object_ids:
        if not object_id:
            continue
        try:
            store.delete(object_id)
            deleted += 1
        except Exception:
            logger.warning("Failed to delete object %s, continuing cleanup", object_id, exc_info=True)
    return deleted
