"""Notification records, file-operation progress reports and shared system data."""

from __future__ import annotations

import dataclasses
import json
import sqlite3
import threading
from typing import Any, Mapping

from casaos.fileops import FileQueue, start_next
from casaos.models import AppNotify, _insert, _query, _quote
from casaos.types import NotifyState

_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", "\u2028": "\\u2028", "\u2029": "\\u2029"}


def _default(value: Any) -> Any:
    if hasattr(value, "to_json"):
        return value.to_json()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"cannot encode {type(value).__name__}")


def _encode(value: Any) -> str:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_default)
    for char, escaped in _ESCAPES.items():
        text = text.replace(char, escaped)
    return text


def encode_notify_message(message: Mapping[str, Any]) -> dict[str, str]:
    """Encode every value of a message as compact JSON text."""
    return {key: _encode(value) for key, value in message.items()}


def file_operate_report(queue: FileQueue) -> dict[str, Any]:
    """Build the progress report for queued file operations.

    Finished operations are reported once, removed from the queue, and the
    next queued operation is started.
    """
    keys = queue.keys()
    if not keys:
        return {"state": "", "data": []}
    tasks = []
    for key in keys:
        operation = queue.get(key)
        if operation is None:
            continue
        task = {
            "id": key,
            "processed_size": operation.processed_size,
            "total_size": operation.total_size,
            "to": operation.to,
            "type": operation.op_type,
            "status": "STARTING" if operation.processed_size == 0 else "PROCESSING",
            "finished": False,
            "processing_path": "",
        }
        if operation.finished or operation.processed_size >= operation.total_size:
            task["finished"] = True
            task["status"] = "FINISHED"
            queue.remove(key)
            start_next(queue)
            tasks.append(task)
            continue
        for item in operation.items:
            if item.size != item.processed_size:
                task["processing_path"] = item.source
                break
        tasks.append(task)
    return {"state": "NORMAL", "data": tasks}


class NotifyService:
    """Store notifications and keep a shared map of system data."""

    def __init__(self, db: sqlite3.Connection) -> None:
        self.db = db
        self._lock = threading.Lock()
        self._system_temp: dict[str, Any] = {}

    def get_log(self, custom_id: str) -> AppNotify | None:
        rows = _query(
            self.db,
            f"SELECT * FROM {AppNotify.TABLE} WHERE custom_id = ? LIMIT 1",
            (custom_id,),
        )
        return AppNotify.from_row(rows[0]) if rows else None

    def add_log(self, log: AppNotify) -> None:
        _insert(self.db, AppNotify.TABLE, log._columns())

    def update_log(self, log: AppNotify) -> None:
        """Save every field, inserting the record if it is new."""
        values = log._columns()
        columns = ", ".join(_quote(c) for c in values)
        marks = ", ".join("?" for _ in values)
        with self.db:
            self.db.execute(
                f"INSERT OR REPLACE INTO {AppNotify.TABLE} ({columns}) VALUES ({marks})",
                tuple(values.values()),
            )

    def update_log_by_custom_id(self, log: AppNotify) -> None:
        """Overwrite every field of the record with the same custom id."""
        if not log.custom_id:
            return
        values = log._columns()
        assignments = ", ".join(f"{_quote(c)} = ?" for c in values)
        with self.db:
            self.db.execute(
                f"UPDATE {AppNotify.TABLE} SET {assignments} WHERE custom_id = ?",
                (*values.values(), log.custom_id),
            )

    def delete_log(self, custom_id: str) -> None:
        with self.db:
            self.db.execute(f"DELETE FROM {AppNotify.TABLE} WHERE custom_id = ?", (custom_id,))

    def get_list(self, notify_class: int) -> list[AppNotify]:
        """Notifications of a class that are dynamic or unread."""
        rows = _query(
            self.db,
            f'SELECT * FROM {AppNotify.TABLE} WHERE "class" = ? AND (state = ? OR state = ?) '
            "ORDER BY rowid",
            (int(notify_class), int(NotifyState.DYNAMIC), int(NotifyState.UNREAD)),
        )
        return [AppNotify.from_row(row) for row in rows]

    def mark_read(self, notify_id: str, state: int) -> None:
        """Set the state of one notification by id, or of all when id is "0"."""
        with self.db:
            if notify_id == "0":
                self.db.execute(f"UPDATE {AppNotify.TABLE} SET state = ?", (int(state),))
            else:
                self.db.execute(
                    f"UPDATE {AppNotify.TABLE} SET state = ? WHERE id = ?", (int(state), notify_id)
                )

    def set_system_temp_data(self, message: Mapping[str, Any]) -> None:
        with self._lock:
            self._system_temp.update(message)

    def system_temp_map(self) -> dict[str, Any]:
        """A snapshot of the shared system data."""
        with self._lock:
            return dict(self._system_temp)