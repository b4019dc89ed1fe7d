from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional, Set

from services.errors import ReadError
from settings import get_settings

logger = logging.getLogger(__name__)


class UploadStore:
    """Raw uploaded files keyed by ``<file_id>/<filename>``.

    Objects live in memory and, when ``root_path`` is set, are mirrored to
    disk so a restarted service can still read them.
    """

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self._objects: Dict[str, bytes] = {}
        self._known_keys: Set[str] = set()
        self.root_path = root_path
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)
            self._load_existing_keys()

    def put_object(self, key: str, data: bytes) -> None:
        with self._lock:
            self._objects[key] = data
            self._known_keys.add(key)
            if self.root_path:
                path = self.root_path / key
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)

    def get_object(self, key: str) -> bytes:
        with self._lock:
            data = self._objects.get(key)
            if data is not None:
                return data

        if self.root_path:
            path = self.root_path / key
            if path.exists():
                data = path.read_bytes()
                with self._lock:
                    self._objects[key] = data
                    self._known_keys.add(key)
                return data

        raise KeyError(f"Object with key {key!r} not found.")

    def read_text(self, key: str, encoding: str = "utf-8") -> str:
        """Return the whole object as text or raise :class:`ReadError`."""
        try:
            data = self.get_object(key)
        except KeyError as exc:
            raise ReadError("NotFoundError", key) from exc
        except OSError as exc:
            logger.error(
                "File could not be read",
                extra={"object_key": key, "error_code": exc.errno},
            )
            raise ReadError("NotReadableError", key, str(exc)) from exc

        try:
            return data.decode(encoding)
        except UnicodeDecodeError as exc:
            raise ReadError("EncodingError", key, f"File {key!r} is not valid {encoding}.") from exc

    def list_objects(self) -> Iterable[str]:
        with self._lock:
            keys = set(self._known_keys)
            keys.update(self._objects.keys())
        return sorted(keys)

    def _load_existing_keys(self) -> None:
        assert self.root_path is not None
        for path in self.root_path.rglob("*"):
            if path.is_file():
                key = path.relative_to(self.root_path).as_posix()
                self._known_keys.add(key)


@lru_cache
def build_default_store(root_path: Optional[str] = None) -> UploadStore:
    settings = get_settings()
    store_root = settings.upload_root_path if root_path is None else root_path
    path = Path(store_root) if store_root else None
    return UploadStore(root_path=path)
