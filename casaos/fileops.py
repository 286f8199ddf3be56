"""Queued move and copy operations on files, with progress tracking."""

from __future__ import annotations

import copy
import logging
import os
import shutil
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import BinaryIO

log = logging.getLogger(__name__)


class OperationCancelled(Exception):
    """Raised when a stream is used after its operation was cancelled."""


class CancellableReader:
    """Wrap a readable stream so reads fail once the operation is cancelled.

    The cancellation flag is checked before every read.
    """

    def __init__(self, stream: BinaryIO, cancelled: threading.Event) -> None:
        self.stream = stream
        self.cancelled = cancelled

    def read(self, size: int = -1) -> bytes:
        if self.cancelled.is_set():
            raise OperationCancelled("read cancelled")
        return self.stream.read(size)


class CancellableWriter:
    """Wrap a writable stream so writes fail once the operation is cancelled."""

    def __init__(self, stream: BinaryIO, cancelled: threading.Event) -> None:
        self.stream = stream
        self.cancelled = cancelled

    def write(self, data: bytes) -> int:
        if self.cancelled.is_set():
            raise OperationCancelled("write cancelled")
        return self.stream.write(data)


@dataclass
class FileItem:
    """One source path taking part in an operation."""

    source: str
    size: int = 0
    processed_size: int = 0
    finished: bool = False


@dataclass
class FileOperation:
    """A move or copy of several paths into one target directory."""

    op_type: str
    to: str
    items: list[FileItem] = field(default_factory=list)
    style: str = ""
    total_size: int = 0
    processed_size: int = 0
    finished: bool = False


class FileQueue:
    """Thread-safe, ordered queue of pending file operations."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._operations: OrderedDict[str, FileOperation] = OrderedDict()

    def add(self, key: str, operation: FileOperation) -> None:
        """Append an operation at the end of the queue."""
        with self._lock:
            self._operations.pop(key, None)
            self._operations[key] = copy.deepcopy(operation)

    def get(self, key: str) -> FileOperation | None:
        """Return a copy of the operation under this key, or None."""
        with self._lock:
            operation = self._operations.get(key)
            return copy.deepcopy(operation) if operation is not None else None

    def store(self, key: str, operation: FileOperation) -> None:
        """Replace an operation, keeping its place in the queue."""
        with self._lock:
            self._operations[key] = copy.deepcopy(operation)

    def remove(self, key: str) -> None:
        with self._lock:
            self._operations.pop(key, None)

    def keys(self) -> list[str]:
        """Keys in queue order."""
        with self._lock:
            return list(self._operations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._operations)


def _base(path: str) -> str:
    stripped = path.rstrip("/")
    if not stripped:
        return "/" if path else "."
    return stripped.rsplit("/", 1)[-1]


def get_size(path: str) -> int:
    """Size in bytes of a file, or of all files below a directory."""
    info = os.stat(path)
    if not os.path.isdir(path):
        return info.st_size
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            try:
                total += os.lstat(os.path.join(root, name)).st_size
            except OSError:
                continue
    return total


def _remove(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path, ignore_errors=True)
    else:
        try:
            os.remove(path)
        except OSError:
            pass


def _copy_into(source: str, target_dir: str, style: str) -> None:
    target = f"{target_dir}/{_base(source)}"
    if os.path.lexists(target) and style == "skip":
        return
    if os.path.isdir(source):
        shutil.copytree(source, target, dirs_exist_ok=True)
    else:
        os.makedirs(target_dir, exist_ok=True)
        shutil.copy2(source, target)


def run_operation(queue: FileQueue, key: str) -> None:
    """Carry out the queued operation under key, unless it has already begun."""
    operation = queue.get(key)
    if operation is None or operation.processed_size > 0:
        return
    for item in operation.items:
        if operation.op_type == "move":
            target = f"{operation.to}/{item.source[item.source.rfind('/') + 1:]}"
            if os.path.lexists(target):
                if operation.style == "skip":
                    item.finished = True
                    continue
                _remove(target)
            try:
                os.rename(item.source, target)
            except OSError as err:
                log.error("file move error: %s", err)
                try:
                    shutil.move(item.source, target)
                except OSError as move_err:
                    log.error("move file error: %s", move_err)
                    continue
        elif operation.op_type == "copy":
            try:
                _copy_into(item.source, operation.to, operation.style)
            except OSError as err:
                log.error("copy error: %s", err)
                continue
    operation.finished = True
    queue.store(key, operation)


def start_next(queue: FileQueue) -> threading.Thread | None:
    """Run the operation at the head of the queue in a background thread."""
    keys = queue.keys()
    if not keys:
        return None
    worker = threading.Thread(target=run_operation, args=(queue, keys[0]), daemon=True)
    worker.start()
    return worker


def refresh_progress(queue: FileQueue) -> None:
    """Measure what has arrived at each target and update the progress."""
    for key in queue.keys():
        operation = queue.get(key)
        if operation is None:
            continue
        total = 0
        for item in operation.items:
            if item.finished:
                total += item.processed_size
                continue
            try:
                size = get_size(f"{operation.to}/{_base(item.source)}")
            except OSError:
                continue
            item.processed_size = size
            if size == item.size:
                item.finished = True
            total += size
        operation.processed_size = total
        queue.store(key, operation)