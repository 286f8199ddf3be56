import sqlite3
import subprocess
from unittest import mock

import pytest

from casaos.models import Share, create_tables
from casaos.shares import SharesService, render_share_config


@pytest.fixture
def setup(tmp_path):
    db = sqlite3.connect(":memory:")
    create_tables(db)
    completed = subprocess.CompletedProcess([], 0, stdout="", stderr="")
    with mock.patch("casaos.shares.subprocess.run", return_value=completed) as run:
        yield SharesService(db, "/opt/shell", str(tmp_path / "samba")), run, tmp_path / "samba"


def test_render_share_config_block():
    text = render_share_config([Share(path="/DATA/Media/")])
    assert text.startswith("\n[Media]\ncomment = CasaOS share Media\n")
    assert "path = /DATA/Media/\n" in text
    assert text.endswith("force user = root\n\n")


def test_render_share_config_empty():
    assert render_share_config([]) == ""


def test_create_writes_config_and_restarts(setup):
    service, run, samba = setup
    created = service.create(Share(path="/DATA/Media", name="Media"))
    assert created.id > 0
    content = (samba / "smb.casa.conf").read_text()
    assert content == render_share_config([Share(path="/DATA/Media")])
    assert "RestartSMBD" in run.call_args.args[0][2]


def test_queries(setup):
    service, _, _ = setup
    service.create(Share(path="/DATA/A", name="a", anonymous=True))
    service.create(Share(path="/DATA/B", name="b"))
    assert [s.path for s in service.list_shares()] == ["/DATA/A", "/DATA/B"]
    assert service.get_by_name("b")[0].path == "/DATA/B"
    by_path = service.get_by_path("/DATA/A")
    assert by_path[0].anonymous is True
    assert by_path[0].name == ""


def test_delete_and_delete_by_path(setup):
    service, _, samba = setup
    first = service.create(Share(path="/DATA/A"))
    service.create(Share(path="/DATA/Media/x"))
    service.create(Share(path="/DATA/Media/y"))
    service.delete_by_path("/DATA/Media")
    assert [s.path for s in service.list_shares()] == ["/DATA/A"]
    service.delete(first.id)
    assert service.list_shares() == []
    assert (samba / "smb.casa.conf").read_text() == ""


def test_init_samba_config_backs_up_and_is_idempotent(setup):
    service, _, samba = setup
    samba.mkdir(parents=True)
    original = "[global]\n   workgroup = WORKGROUP\n"
    (samba / "smb.conf").write_text(original)
    service.init_samba_config()
    assert (samba / "smb.conf.bak").read_text() == original
    generated = (samba / "smb.conf").read_text()
    assert f"include={samba / 'smb.casa.conf'}" in generated
    service.init_samba_config()
    assert (samba / "smb.conf").read_text() == generated
    assert (samba / "smb.conf.bak").read_text() == original


def test_init_samba_config_without_conf_does_nothing(setup):
    service, _, samba = setup
    service.init_samba_config()
    assert not (samba / "smb.conf").exists()