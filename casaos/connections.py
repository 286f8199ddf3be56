"""Remote SMB connections: their records and mounting them."""

from __future__ import annotations

import shlex
import sqlite3
import subprocess
import time
from dataclasses import replace
from pathlib import Path

from casaos.models import Connection, _insert, _query, _save


def _run_helper(shell_path: str, function: str, *args: str) -> str:
    helper = Path(shell_path) / "helper.sh"
    script = f"source {shlex.quote(str(helper))} ;{function}"
    if args:
        script += " " + " ".join(shlex.quote(arg) for arg in args)
    result = subprocess.run(["/bin/bash", "-c", script], capture_output=True, text=True, check=False)
    return result.stdout


class ConnectionsService:
    """Keep SMB connection records and mount or unmount them."""

    def __init__(self, db: sqlite3.Connection, shell_path: str) -> None:
        self.db = db
        self.shell_path = shell_path

    def _select(self, columns: str, where: str = "", params: tuple = ()) -> list[Connection]:
        sql = f"SELECT {columns} FROM {Connection.TABLE}"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY id"
        return [Connection.from_row(row) for row in _query(self.db, sql, params)]

    def list_connections(self) -> list[Connection]:
        return self._select("username, host, port, status, id, mount_point")

    def get_by_host(self, host: str) -> list[Connection]:
        return self._select("username, host, status, id", "host = ?", (host,))

    def get_by_id(self, connection_id: int) -> Connection | None:
        found = self._select(
            "username, password, host, status, id, directories, mount_point, port",
            "id = ?",
            (connection_id,),
        )
        return found[0] if found else None

    def create(self, connection: Connection) -> Connection:
        """Insert a connection; returns it with its id and timestamps set."""
        now = int(time.time())
        stored = replace(connection, created=now, updated=now)
        new_id = _insert(self.db, Connection.TABLE, stored._columns(), auto_key="id")
        return replace(stored, id=new_id)

    def update(self, connection: Connection) -> Connection:
        """Save every field of the connection, inserting it if it has no id."""
        now = int(time.time())
        stored = replace(connection, updated=now, created=connection.created or now)
        saved_id = _save(self.db, Connection.TABLE, stored._columns(), key="id")
        return replace(stored, id=saved_id)

    def delete(self, connection_id: int) -> None:
        with self.db:
            self.db.execute(f"DELETE FROM {Connection.TABLE} WHERE id = ?", (connection_id,))

    def mount_smb(self, username, host, directory, port, mount_point, password) -> str:
        """Mount a CIFS share through the helper script; returns its output."""
        return _run_helper(
            self.shell_path, "MountCIFS", username, host, directory, port, mount_point, password
        )

    def unmount_smb(self, mount_point: str) -> None:
        """Unmount a mount point; a point that is not mounted is ignored."""
        result = subprocess.run(["umount", mount_point], capture_output=True, text=True, check=False)
        if result.returncode != 0 and "not mounted" not in result.stderr:
            raise OSError(f"failed to unmount {mount_point}: {result.stderr.strip()}")