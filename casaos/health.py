"""Health of the system services belonging to the platform."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass


@dataclass(frozen=True)
class UnitStatus:
    """A systemd service unit and whether it is running."""

    name: str
    running: bool


def parse_unit_list(output: str) -> list[UnitStatus]:
    """Parse plain `systemctl list-units` output into unit statuses."""
    units = []
    for line in output.splitlines():
        parts = line.split()
        if parts and parts[0] in {"●", "*"}:
            parts = parts[1:]
        if len(parts) < 4:
            continue
        units.append(UnitStatus(name=parts[0], running=parts[3] == "running"))
    return units


class HealthService:
    """Report which matching services are running."""

    def __init__(self, pattern: str = "casaos*") -> None:
        self.pattern = pattern

    def services(self) -> dict[bool, list[str]]:
        """Map True to running unit names and False to the others.

        Raises subprocess.CalledProcessError if systemctl fails.
        """
        result = subprocess.run(
            [
                "systemctl", "list-units", "--type=service", "--all",
                "--no-legend", "--plain", "--no-pager", self.pattern,
            ],
            capture_output=True,
            text=True,
            check=True,
        )
        grouped: dict[bool, list[str]] = {True: [], False: []}
        for unit in parse_unit_list(result.stdout):
            grouped[unit.running].append(unit.name)
        return grouped