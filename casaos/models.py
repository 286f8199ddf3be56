"""Database records kept by the services, and the SQLite schema behind them."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar, Mapping

_GO_ZERO_TIME = "0001-01-01T00:00:00Z"

_SCHEMA = (
    """CREATE TABLE IF NOT EXISTS o_connections (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        updated INTEGER NOT NULL DEFAULT 0,
        created INTEGER NOT NULL DEFAULT 0,
        username TEXT NOT NULL DEFAULT '',
        password TEXT NOT NULL DEFAULT '',
        host TEXT NOT NULL DEFAULT '',
        port TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL DEFAULT '',
        directories TEXT NOT NULL DEFAULT '',
        mount_point TEXT NOT NULL DEFAULT ''
    )""",
    """CREATE TABLE IF NOT EXISTS o_notify (
        custom_id TEXT PRIMARY KEY,
        state INTEGER NOT NULL DEFAULT 0,
        message TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL DEFAULT '',
        updated_at TEXT NOT NULL DEFAULT '',
        id TEXT NOT NULL DEFAULT '',
        type INTEGER NOT NULL DEFAULT 0,
        icon TEXT NOT NULL DEFAULT '',
        name TEXT NOT NULL DEFAULT '',
        "class" INTEGER NOT NULL DEFAULT 0
    )""",
    """CREATE TABLE IF NOT EXISTS o_rely (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        custom_id TEXT NOT NULL DEFAULT '',
        container_custom_id TEXT NOT NULL DEFAULT '',
        container_id TEXT NOT NULL DEFAULT '',
        type INTEGER NOT NULL DEFAULT 0,
        created_at TEXT,
        updated_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS o_shares (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        anonymous INTEGER NOT NULL DEFAULT 0,
        path TEXT NOT NULL DEFAULT '',
        name TEXT NOT NULL DEFAULT '',
        updated INTEGER NOT NULL DEFAULT 0,
        created INTEGER NOT NULL DEFAULT 0
    )""",
)


def create_tables(conn: sqlite3.Connection) -> None:
    """Create every table the services use, if missing."""
    with conn:
        for statement in _SCHEMA:
            conn.execute(statement)


def _query(conn: sqlite3.Connection, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
    cur = conn.execute(sql, params)
    names = [d[0] for d in cur.description]
    return [dict(zip(names, row)) for row in cur.fetchall()]


def _quote(column: str) -> str:
    return f'"{column}"'


def _insert(conn: sqlite3.Connection, table: str, values: Mapping[str, Any], auto_key: str | None = None) -> int:
    values = {k: v for k, v in values.items() if not (k == auto_key and not v)}
    columns = ", ".join(_quote(c) for c in values)
    marks = ", ".join("?" for _ in values)
    with conn:
        cur = conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({marks})", tuple(values.values()))
    return cur.lastrowid


def _save(conn: sqlite3.Connection, table: str, values: Mapping[str, Any], key: str) -> int:
    if not values.get(key):
        return _insert(conn, table, values, auto_key=key)
    columns = ", ".join(_quote(c) for c in values)
    marks = ", ".join("?" for _ in values)
    with conn:
        conn.execute(f"INSERT OR REPLACE INTO {table} ({columns}) VALUES ({marks})", tuple(values.values()))
    return values[key]


def _pick(row: Mapping[str, Any], columns: Mapping[str, str]) -> dict[str, Any]:
    data = dict(row)
    return {attr: data[col] for attr, col in columns.items() if data.get(col) is not None}


def _parse_time(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _format_time(value: datetime | None) -> str:
    return _GO_ZERO_TIME if value is None else value.isoformat()


@dataclass
class Connection:
    """A remote SMB connection."""

    TABLE: ClassVar[str] = "o_connections"

    id: int = 0
    updated: int = 0
    created: int = 0
    username: str = ""
    password: str = ""
    host: str = ""
    port: str = ""
    status: str = ""
    directories: str = ""
    mount_point: str = ""

    _COLUMNS: ClassVar[dict[str, str]] = {
        name: name
        for name in (
            "id", "updated", "created", "username", "password",
            "host", "port", "status", "directories", "mount_point",
        )
    }

    def _columns(self) -> dict[str, Any]:
        return {col: getattr(self, attr) for attr, col in self._COLUMNS.items()}

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "Updated": self.updated,
            "Created": self.created,
            "username": self.username,
            "password": self.password,
            "host": self.host,
            "port": self.port,
            "status": self.status,
            "directories": self.directories,
            "mount_point": self.mount_point,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Connection":
        return cls(**_pick(row, cls._COLUMNS))


@dataclass
class AppNotify:
    """A notification addressed to the user."""

    TABLE: ClassVar[str] = "o_notify"

    custom_id: str = ""
    state: int = 0
    message: str = ""
    created_at: str = ""
    updated_at: str = ""
    id: str = ""
    notify_type: int = 0
    icon: str = ""
    name: str = ""
    notify_class: int = 0

    _COLUMNS: ClassVar[dict[str, str]] = {
        "custom_id": "custom_id",
        "state": "state",
        "message": "message",
        "created_at": "created_at",
        "updated_at": "updated_at",
        "id": "id",
        "notify_type": "type",
        "icon": "icon",
        "name": "name",
        "notify_class": "class",
    }

    def _columns(self) -> dict[str, Any]:
        return {col: getattr(self, attr) for attr, col in self._COLUMNS.items()}

    def to_json(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "message": self.message,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "id": self.id,
            "type": self.notify_type,
            "icon": self.icon,
            "name": self.name,
            "class": self.notify_class,
            "custom_id": self.custom_id,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AppNotify":
        return cls(**_pick(row, cls._COLUMNS))


@dataclass
class Rely:
    """A dependency record linking an application to a container."""

    TABLE: ClassVar[str] = "o_rely"

    id: int = 0
    custom_id: str = ""
    container_custom_id: str = ""
    container_id: str = ""
    rely_type: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    _COLUMNS: ClassVar[dict[str, str]] = {
        "id": "id",
        "custom_id": "custom_id",
        "container_custom_id": "container_custom_id",
        "container_id": "container_id",
        "rely_type": "type",
        "created_at": "created_at",
        "updated_at": "updated_at",
    }

    def _columns(self) -> dict[str, Any]:
        values = {col: getattr(self, attr) for attr, col in self._COLUMNS.items()}
        for col in ("created_at", "updated_at"):
            if values[col] is not None:
                values[col] = values[col].isoformat()
        return values

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "custom_id": self.custom_id,
            "container_custom_id": self.container_custom_id,
        }
        if self.container_id:
            data["container_id"] = self.container_id
        data["type"] = self.rely_type
        data["created_at"] = _format_time(self.created_at)
        data["updated_at"] = _format_time(self.updated_at)
        return data

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Rely":
        values = _pick(row, cls._COLUMNS)
        for attr in ("created_at", "updated_at"):
            if attr in values:
                values[attr] = _parse_time(values[attr])
        return cls(**values)


@dataclass
class Share:
    """A directory shared over Samba."""

    TABLE: ClassVar[str] = "o_shares"

    id: int = 0
    anonymous: bool = False
    path: str = ""
    name: str = ""
    updated: int = 0
    created: int = 0

    _COLUMNS: ClassVar[dict[str, str]] = {
        name: name for name in ("id", "anonymous", "path", "name", "updated", "created")
    }

    def _columns(self) -> dict[str, Any]:
        values = {col: getattr(self, attr) for attr, col in self._COLUMNS.items()}
        values["anonymous"] = int(bool(values["anonymous"]))
        return values

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "anonymous": self.anonymous,
            "path": self.path,
            "name": self.name,
            "Updated": self.updated,
            "Created": self.created,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Share":
        values = _pick(row, cls._COLUMNS)
        if "anonymous" in values:
            values["anonymous"] = bool(values["anonymous"])
        return cls(**values)