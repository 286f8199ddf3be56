"""Samba shares: their records and the generated Samba configuration."""

from __future__ import annotations

import shlex
import shutil
import sqlite3
import subprocess
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from casaos.models import Share, _insert, _query

_MARKER = "# Managed by CasaOS. Manual changes to this file are not supported."

_GLOBAL_SETTINGS = """
[global]
## fruit settings
   min protocol = SMB2
   ea support = yes
## vfs objects = fruit streams_xattr
   fruit:metadata = stream
   fruit:model = Macmini
   fruit:veto_appledouble = no
   fruit:posix_rename = yes
   fruit:zero_file_id = yes
   fruit:wipe_intentionally_left_blank_rfork = yes
   fruit:delete_empty_adfiles = yes
   map to guest = bad user
   include={include}"""


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def render_share_config(shares: Iterable[Share]) -> str:
    """Render the Samba section for every share."""
    blocks = []
    for share in shares:
        dir_name = _base_name(share.path)
        blocks.append(
            f"\n[{dir_name}]\n"
            f"comment = CasaOS share {dir_name}\n"
            "public = Yes\n"
            f"path = {share.path}\n"
            "browseable = Yes\n"
            "read only = No\n"
            "guest ok = Yes\n"
            "create mask = 0777\n"
            "directory mask = 0777\n"
            "force user = root\n"
            "\n"
        )
    return "".join(blocks)


class SharesService:
    """Keep share records and the Samba configuration in step with them."""

    def __init__(self, db: sqlite3.Connection, shell_path: str, samba_dir: str = "/etc/samba") -> None:
        self.db = db
        self.shell_path = shell_path
        self.samba_dir = Path(samba_dir)

    def _select(self, where: str = "", params: tuple = ()) -> list[Share]:
        sql = f"SELECT anonymous, path, id FROM {Share.TABLE}"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY id"
        return [Share.from_row(row) for row in _query(self.db, sql, params)]

    def list_shares(self) -> list[Share]:
        return self._select()

    def get_by_path(self, path: str) -> list[Share]:
        return self._select("path = ?", (path,))

    def get_by_name(self, name: str) -> list[Share]:
        return self._select("name = ?", (name,))

    def create(self, share: Share) -> Share:
        """Insert a share and regenerate the Samba configuration."""
        now = int(time.time())
        stored = replace(share, created=now, updated=now)
        new_id = _insert(self.db, Share.TABLE, stored._columns(), auto_key="id")
        self.init_samba_config()
        self.update_config_file()
        return replace(stored, id=new_id)

    def delete(self, share_id: int) -> None:
        with self.db:
            self.db.execute(f"DELETE FROM {Share.TABLE} WHERE id = ?", (share_id,))
        self.update_config_file()

    def delete_by_path(self, path: str) -> None:
        """Delete every share whose path starts with the given path."""
        with self.db:
            self.db.execute(f"DELETE FROM {Share.TABLE} WHERE path LIKE ?", (path + "%",))
        self.update_config_file()

    def update_config_file(self) -> None:
        """Write the share sections and restart Samba."""
        self.samba_dir.mkdir(parents=True, exist_ok=True)
        (self.samba_dir / "smb.casa.conf").write_text(render_share_config(self.list_shares()))
        helper = Path(self.shell_path) / "helper.sh"
        subprocess.run(
            ["/bin/bash", "-c", f"source {shlex.quote(str(helper))} ;RestartSMBD"],
            capture_output=True,
            text=True,
            check=False,
        )

    def init_samba_config(self) -> None:
        """Replace an existing smb.conf with one that includes the share file.

        The original is kept as smb.conf.bak; a file already generated here is
        left alone, and nothing happens when there is no smb.conf.
        """
        conf = self.samba_dir / "smb.conf"
        if not conf.exists():
            return
        with conf.open(encoding="utf-8", errors="replace") as fh:
            first_line = fh.readline()
        if _MARKER in first_line:
            return
        shutil.move(str(conf), str(self.samba_dir / "smb.conf.bak"))
        include = self.samba_dir / "smb.casa.conf"
        header = (
            f"{_MARKER}\n"
            "#\n"
            "# Shares are written to the included file below by CasaOS.\n"
            "# Unauthorised changes to this configuration are not supported.\n"
        )
        conf.write_text(header + _GLOBAL_SETTINGS.format(include=include), encoding="utf-8")