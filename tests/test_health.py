import subprocess
from unittest import mock

import pytest

from casaos.health import HealthService, UnitStatus, parse_unit_list

OUTPUT = (
    "casaos.service loaded active running CasaOS main service\n"
    "casaos-gateway.service loaded inactive dead CasaOS gateway\n"
    "\n"
    "● casaos-broken.service loaded failed failed Broken unit\n"
)


def test_parse_unit_list():
    assert parse_unit_list(OUTPUT) == [
        UnitStatus("casaos.service", True),
        UnitStatus("casaos-gateway.service", False),
        UnitStatus("casaos-broken.service", False),
    ]


def test_parse_unit_list_empty():
    assert parse_unit_list("") == []


def test_services_groups_by_running():
    completed = subprocess.CompletedProcess([], 0, stdout=OUTPUT, stderr="")
    with mock.patch("casaos.health.subprocess.run", return_value=completed) as run:
        grouped = HealthService().services()
    assert grouped[True] == ["casaos.service"]
    assert grouped[False] == ["casaos-gateway.service", "casaos-broken.service"]
    assert run.call_args.args[0][-1] == "casaos*"


def test_services_propagates_failure():
    error = subprocess.CalledProcessError(1, ["systemctl"])
    with mock.patch("casaos.health.subprocess.run", side_effect=error):
        with pytest.raises(subprocess.CalledProcessError):
            HealthService("other*").services()