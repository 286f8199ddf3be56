"""Host information, file helpers, helper-script queries and power control."""

from __future__ import annotations

import ipaddress
import logging
import os
import socket
import subprocess
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import psutil

from casaos.connections import _run_helper

log = logging.getLogger(__name__)

_CPU_ZONE_TYPES = ("x86_pkg_temp", "cpu", "CPU", "soc")
_MAX_THERMAL_ZONES = 100
_RAPL_ENERGY = "/sys/class/powercap/intel-rapl/intel-rapl:0/energy_uj"


def _one_decimal(value: float) -> float:
    return float(f"{value:.1f}")


def _read_bytes(path: str | os.PathLike) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError:
        return b""


@dataclass
class PathEntry:
    """One entry of a directory listing."""

    name: str
    path: str
    is_dir: bool
    date: datetime
    size: int = 0


def get_device_all_ip() -> list[str]:
    """Every non-loopback IP address of this host."""
    addresses = []
    for addrs in psutil.net_if_addrs().values():
        for addr in addrs:
            if addr.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            try:
                ip = ipaddress.ip_address(addr.address.split("%", 1)[0])
            except ValueError:
                continue
            if not ip.is_loopback:
                addresses.append(str(ip))
    return addresses


class SystemService:
    """Query the host and perform simple file and power actions."""

    def __init__(
        self,
        shell_path: str = "/usr/share/casaos/shell",
        log_path: str = "/var/log/casaos",
        log_name: str = "casaos.log",
        user_data_path: str = "/var/lib/casaos",
        thermal_root: str = "/sys/devices/virtual/thermal",
    ) -> None:
        self.shell_path = shell_path
        self.log_path = log_path
        self.log_name = log_name
        self.user_data_path = user_data_path
        self.thermal_root = thermal_root
        self._thermal_zone: str | None = None

    # Files and directories

    def mkdir_all(self, path: str) -> bool:
        """Create a directory and its parents; False if it already exists.

        A path running through a regular file raises NotADirectoryError.
        """
        try:
            os.stat(path)
        except FileNotFoundError:
            os.makedirs(path, exist_ok=True)
            return True
        return False

    def rename_file(self, old: str, new: str) -> bool:
        """Rename old to new; False if new already exists."""
        try:
            os.stat(new)
        except FileNotFoundError:
            os.rename(old, new)
            return True
        return False

    def create_file(self, path: str) -> bool:
        """Create an empty file; False if the path already exists."""
        try:
            os.stat(path)
        except FileNotFoundError:
            Path(path).touch(exist_ok=False)
            return True
        return False

    def get_dir_path(self, path: str) -> list[PathEntry]:
        """List a directory sorted by name; symlinks report their target's kind."""
        if path == "/DATA":
            if sys.platform == "win32":
                path = "C:\\CasaOS\\DATA"
            elif sys.platform == "darwin":
                path = "./CasaOS/DATA"
        try:
            with os.scandir(path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as err:
            log.error("when read dir: %s", err)
            raise
        listing = []
        for entry in entries:
            file_path = os.path.normpath(os.path.join(path, entry.name))
            info = entry.stat(follow_symlinks=False)
            is_dir = entry.is_dir(follow_symlinks=False)
            try:
                link = os.path.realpath(file_path, strict=True)
            except OSError:
                link = file_path
            if link != file_path:
                is_dir = os.path.isdir(link)
            listing.append(
                PathEntry(
                    name=entry.name,
                    path=file_path,
                    is_dir=is_dir,
                    date=datetime.fromtimestamp(info.st_mtime),
                    size=info.st_size,
                )
            )
        return listing

    def get_dir_path_one(self, path: str) -> PathEntry | None:
        """Describe a single path, or None if it cannot be examined."""
        try:
            info = os.stat(path)
        except OSError:
            return None
        return PathEntry(
            name=Path(path).name or path,
            path=path,
            is_dir=os.path.isdir(path),
            date=datetime.fromtimestamp(info.st_mtime),
            size=info.st_size,
        )

    def up_app_order_file(self, content: str, user_id: str) -> None:
        target = Path(self.user_data_path) / user_id
        target.mkdir(parents=True, exist_ok=True)
        (target / "app_order.json").write_text(content, encoding="utf-8")

    def get_app_order_file(self, user_id: str) -> bytes:
        """The stored application order, or empty bytes when there is none."""
        return _read_bytes(Path(self.user_data_path) / user_id / "app_order.json")

    def get_casaos_logs(self, line_number: int) -> str:
        """Full text of the service log; line_number does not limit it."""
        return (Path(self.log_path) / self.log_name).read_text(encoding="utf-8", errors="replace")

    # Resource usage

    @staticmethod
    def _fstype(mount_point: str) -> str:
        for part in psutil.disk_partitions(all=True):
            if part.mountpoint == mount_point:
                return part.fstype
        return ""

    def get_disk_info(self) -> dict[str, Any]:
        """Usage of the root file system, percentages to one decimal."""
        path = "C:" if sys.platform == "win32" else "/"
        usage = psutil.disk_usage(path)
        info: dict[str, Any] = {
            "path": path,
            "fstype": self._fstype(path),
            "total": usage.total,
            "free": usage.free,
            "used": usage.used,
            "usedPercent": _one_decimal(usage.percent),
            "inodesTotal": 0,
            "inodesUsed": 0,
            "inodesFree": 0,
            "inodesUsedPercent": 0.0,
        }
        if hasattr(os, "statvfs"):
            st = os.statvfs(path)
            used = st.f_files - st.f_ffree
            info["inodesTotal"] = st.f_files
            info["inodesFree"] = st.f_ffree
            info["inodesUsed"] = used
            info["inodesUsedPercent"] = _one_decimal(used / st.f_files * 100) if st.f_files else 0.0
        return info

    def get_mem_info(self) -> dict[str, Any]:
        mem = psutil.virtual_memory()
        return {
            "total": mem.total,
            "available": mem.available,
            "used": mem.used,
            "free": mem.free,
            "usedPercent": _one_decimal(mem.percent),
        }

    def get_cpu_percent(self) -> float:
        """CPU use since the previous call, to one decimal."""
        return _one_decimal(psutil.cpu_percent(interval=None))

    def get_cpu_core_num(self) -> int:
        """Number of physical cores, 0 if unknown."""
        return psutil.cpu_count(logical=False) or 0

    def get_net_info(self) -> list[dict[str, Any]]:
        """Traffic counters of every network interface."""
        return [
            {
                "name": name,
                "bytesSent": c.bytes_sent,
                "bytesRecv": c.bytes_recv,
                "packetsSent": c.packets_sent,
                "packetsRecv": c.packets_recv,
                "errin": c.errin,
                "errout": c.errout,
                "dropin": c.dropin,
                "dropout": c.dropout,
            }
            for name, c in psutil.net_io_counters(pernic=True).items()
        ]

    # Helper script queries

    def get_net(self, physics: bool) -> list[str]:
        """Names of network cards; physical ones only when physics is true."""
        output = _run_helper(self.shell_path, "GetNetCard", "2" if physics else "1")
        return [line for line in output.splitlines() if line]

    def get_net_state(self, name: str) -> str:
        return _run_helper(self.shell_path, "CatNetCardState", name)

    def get_time_zone(self) -> str:
        return _run_helper(self.shell_path, "GetTimeZone")

    def get_device_tree(self) -> str:
        return _run_helper(self.shell_path, "GetDeviceTree")

    def get_mac_address(self) -> str:
        """Hardware address of the first physical network card.

        Raises LookupError when no physical card is found.
        """
        nets = set(self.get_net(True))
        for name, addrs in psutil.net_if_addrs().items():
            if name in nets:
                return next((a.address for a in addrs if a.family == psutil.AF_LINK), "")
        raise LookupError("not found")

    # Temperature and power

    def get_cpu_thermal_zone(self) -> str:
        """Directory of the CPU thermal zone, or "" if none exists.

        The result is remembered after the first lookup.
        """
        if self._thermal_zone is not None:
            return self._thermal_zone
        stub = os.path.join(self.thermal_root, "thermal_zone")
        name = ""
        path = ""
        for index in range(_MAX_THERMAL_ZONES):
            path = f"{stub}{index}"
            if not os.path.exists(path):
                path = f"{stub}0" if name else ""
                break
            name = _read_bytes(os.path.join(path, "type")).decode(errors="replace").removesuffix("\n")
            if name.startswith(_CPU_ZONE_TYPES):
                log.info("CPU thermal zone found: %s, path: %s.", name, path)
                self._thermal_zone = path
                return path
        self._thermal_zone = path
        return path

    def get_cpu_temperature(self) -> int:
        """CPU temperature in degrees Celsius, 0 when unknown."""
        zone = self.get_cpu_thermal_zone()
        output = _read_bytes(os.path.join(zone, "temp")).decode(errors="replace") if zone else "0"
        try:
            celsius = int(output.strip())
        except ValueError:
            celsius = 0
        if celsius > 1000:
            celsius //= 1000
        return celsius

    def get_cpu_power(self) -> dict[str, str]:
        """Current time and the RAPL energy counter, "0" without RAPL."""
        data = {"timestamp": str(int(time.time()))}
        if os.path.exists(_RAPL_ENERGY):
            data["value"] = _read_bytes(_RAPL_ENERGY).decode(errors="replace").strip()
        else:
            data["value"] = "0"
        return data

    # Power

    def system_reboot(self) -> None:
        """Reboot the host; raises if init fails."""
        subprocess.run(["init", "6"], capture_output=True, check=True)

    def system_shutdown(self) -> None:
        """Power off the host; raises if init fails."""
        subprocess.run(["init", "0"], capture_output=True, check=True)