"""Registry of mounted storages and resolution of paths to them."""

from __future__ import annotations

import logging
import posixpath
import threading
from dataclasses import dataclass, field
from datetime import datetime

log = logging.getLogger(__name__)

_BALANCE_MARK = ".balance"


class StorageNotFoundError(LookupError):
    """Raised when no storage serves a path."""


def fix_and_clean_path(path: str) -> str:
    """Normalise a path: forward slashes, leading slash, no dot segments."""
    path = path.replace("\\", "/")
    if not path.startswith("/"):
        path = "/" + path
    cleaned = posixpath.normpath(path)
    return "/" + cleaned.lstrip("/")


def actual_mount_path(mount_path: str) -> str:
    """Strip a load-balancing suffix such as ".balance1" from a mount path."""
    index = mount_path.rfind(_BALANCE_MARK)
    return mount_path[:index] if index != -1 else mount_path


def _with_trailing_slash(path: str) -> str:
    return path if path.endswith("/") else path + "/"


def is_sub_path(parent: str, sub: str) -> bool:
    """True if sub equals parent or lies below it."""
    parent = fix_and_clean_path(parent)
    sub = fix_and_clean_path(sub)
    return parent == sub or sub.startswith(_with_trailing_slash(parent))


@dataclass
class Storage:
    """A storage mounted at a virtual path."""

    mount_path: str
    driver: str = ""
    order: int = 0
    modified: datetime = field(default_factory=datetime.now)
    status: str = ""


@dataclass(frozen=True)
class VirtualFolder:
    """A folder that exists only because storages are mounted below it."""

    name: str
    modified: datetime
    size: int = 0
    is_folder: bool = True


class StorageRegistry:
    """Thread-safe map of mount paths to storages."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._storages: dict[str, Storage] = {}
        self._balance: dict[str, int] = {}

    def has_storage(self, mount_path: str) -> bool:
        with self._lock:
            return fix_and_clean_path(mount_path) in self._storages

    def add(self, storage: Storage) -> Storage:
        """Register a storage under its cleaned mount path.

        Raises ValueError if that mount path is already taken.
        """
        storage.mount_path = fix_and_clean_path(storage.mount_path)
        with self._lock:
            if storage.mount_path in self._storages:
                raise ValueError("mount path already exists")
            self._storages[storage.mount_path] = storage
        return storage

    def remove(self, mount_path: str) -> Storage | None:
        """Unregister the storage at a mount path; returns it, or None."""
        with self._lock:
            return self._storages.pop(fix_and_clean_path(mount_path), None)

    def get_by_mount_path(self, mount_path: str) -> Storage:
        mount_path = fix_and_clean_path(mount_path)
        with self._lock:
            storage = self._storages.get(mount_path)
        if storage is None:
            raise StorageNotFoundError(f"no mount path for an storage is: {mount_path}")
        return storage

    def all_storages(self) -> list[Storage]:
        with self._lock:
            return list(self._storages.values())

    def storages_by_path(self, path: str) -> list[Storage]:
        """Storages with the longest mount path matching path, balanced ones included.

        The result is sorted by mount path so equal input gives equal order.
        """
        best: list[Storage] = []
        best_depth = 0
        for storage in self.all_storages():
            mount = actual_mount_path(storage.mount_path)
            if not is_sub_path(mount, path):
                continue
            depth = _with_trailing_slash(mount).count("/")
            if depth > best_depth:
                best = []
                best_depth = depth
            if depth == best_depth:
                best.append(storage)
        return sorted(best, key=lambda s: s.mount_path)

    def virtual_files(self, prefix: str) -> list[VirtualFolder]:
        """Folders implied directly below prefix by the mounted storages."""
        storages = sorted(self.all_storages(), key=lambda s: (s.order, s.mount_path))
        prefix = fix_and_clean_path(prefix)
        seen: set[str] = set()
        folders = []
        for storage in storages:
            mount = actual_mount_path(storage.mount_path)
            if len(prefix) >= len(mount) or not is_sub_path(prefix, mount):
                continue
            name = mount[len(prefix):].removeprefix("/").split("/", 1)[0]
            if name not in seen:
                seen.add(name)
                folders.append(VirtualFolder(name=name, modified=storage.modified))
        return folders

    def balanced_storage(self, path: str) -> Storage | None:
        """The storage serving path, rotating among balanced ones; None if none."""
        storages = self.storages_by_path(fix_and_clean_path(path))
        if not storages:
            return None
        if len(storages) == 1:
            return storages[0]
        virtual = actual_mount_path(storages[0].mount_path)
        with self._lock:
            index = (self._balance.get(virtual, 0) + 1) % len(storages)
            self._balance[virtual] = index
        return storages[index]

    def storage_and_actual_path(self, raw_path: str) -> tuple[Storage, str]:
        """The storage for a virtual path and the path inside that storage.

        Raises StorageNotFoundError when no storage serves the path.
        """
        raw_path = fix_and_clean_path(raw_path)
        storage = self.balanced_storage(raw_path)
        if storage is None:
            raise StorageNotFoundError(f"can't find storage with rawPath: {raw_path}")
        log.info("use storage mounted at %s", storage.mount_path)
        mount = actual_mount_path(storage.mount_path)
        return storage, fix_and_clean_path(raw_path.removeprefix(mount))