import json
import sqlite3

import pytest

from casaos.fileops import FileItem, FileOperation, FileQueue
from casaos.models import AppNotify, create_tables
from casaos.notify import NotifyService, encode_notify_message, file_operate_report
from casaos.types import NotifyClass, NotifyState


@pytest.fixture
def service():
    conn = sqlite3.connect(":memory:")
    create_tables(conn)
    yield NotifyService(conn)
    conn.close()


def test_encode_compact_json():
    encoded = encode_notify_message({"a": {"x": 1, "y": [1, 2]}, "b": "text"})
    assert encoded["a"] == '{"x":1,"y":[1,2]}'
    assert json.loads(encoded["b"]) == "text"


def test_encode_escapes_html():
    encoded = encode_notify_message({"m": "<b>&"})
    assert encoded["m"] == '"\\u003cb\\u003e\\u0026"'
    assert json.loads(encoded["m"]) == "<b>&"


def test_encode_objects_with_to_json():
    note = AppNotify(custom_id="c1", name="app")
    encoded = encode_notify_message({"n": note})
    assert json.loads(encoded["n"]) == note.to_json()


def test_add_and_get_log(service):
    note = AppNotify(custom_id="c1", id="1", message="hello", notify_class=0)
    service.add_log(note)
    assert service.get_log("c1") == note
    assert service.get_log("missing") is None


def test_update_log(service):
    service.update_log(AppNotify(custom_id="c1", message="first"))
    service.update_log(AppNotify(custom_id="c1", message="second"))
    assert service.get_log("c1").message == "second"


def test_update_log_by_custom_id(service):
    service.add_log(AppNotify(custom_id="c1", message="first"))
    service.update_log_by_custom_id(AppNotify(custom_id="c1", message="changed", state=2))
    got = service.get_log("c1")
    assert got.message == "changed"
    assert got.state == 2
    service.update_log_by_custom_id(AppNotify(custom_id="", message="ignored"))
    assert service.get_log("c1").message == "changed"


def test_delete_log(service):
    service.add_log(AppNotify(custom_id="c1"))
    service.delete_log("c1")
    assert service.get_log("c1") is None


def test_get_list_filters(service):
    service.add_log(AppNotify(custom_id="a", id="1", state=NotifyState.DYNAMIC, notify_class=NotifyClass.APP))
    service.add_log(AppNotify(custom_id="b", id="2", state=NotifyState.UNREAD, notify_class=NotifyClass.APP))
    service.add_log(AppNotify(custom_id="c", id="3", state=NotifyState.READ, notify_class=NotifyClass.APP))
    service.add_log(AppNotify(custom_id="d", id="4", state=NotifyState.UNREAD, notify_class=5))
    assert [n.custom_id for n in service.get_list(NotifyClass.APP)] == ["a", "b"]


def test_mark_read(service):
    service.add_log(AppNotify(custom_id="a", id="1", state=NotifyState.UNREAD))
    service.add_log(AppNotify(custom_id="b", id="2", state=NotifyState.UNREAD))
    service.mark_read("1", NotifyState.READ)
    assert service.get_log("a").state == NotifyState.READ
    assert service.get_log("b").state == NotifyState.UNREAD
    service.mark_read("0", NotifyState.READ)
    assert service.get_list(NotifyClass.APP) == []


def test_system_temp_map(service):
    service.set_system_temp_data({"cpu": 10})
    service.set_system_temp_data({"mem": 20, "cpu": 30})
    snapshot = service.system_temp_map()
    assert snapshot == {"cpu": 30, "mem": 20}
    snapshot["cpu"] = 0
    assert service.system_temp_map()["cpu"] == 30


def test_report_empty_queue():
    assert file_operate_report(FileQueue()) == {"state": "", "data": []}


def test_report_in_progress():
    queue = FileQueue()
    queue.add("k", FileOperation(
        op_type="copy", to="/dst", total_size=10,
        items=[FileItem("/src/a", size=2, processed_size=2), FileItem("/src/b", size=8)],
    ))
    report = file_operate_report(queue)
    assert report["state"] == "NORMAL"
    task = report["data"][0]
    assert task["id"] == "k"
    assert task["status"] == "STARTING"
    assert task["processing_path"] == "/src/b"
    assert task["finished"] is False
    assert queue.keys() == ["k"]


def test_report_processing_status():
    queue = FileQueue()
    queue.add("k", FileOperation(op_type="move", to="/dst", total_size=10, processed_size=4,
                                 items=[FileItem("/src/a", size=10, processed_size=4)]))
    assert file_operate_report(queue)["data"][0]["status"] == "PROCESSING"


def test_report_finished_removes_operation():
    queue = FileQueue()
    queue.add("k", FileOperation(op_type="copy", to="/dst", total_size=10, finished=True))
    report = file_operate_report(queue)
    task = report["data"][0]
    assert task["status"] == "FINISHED"
    assert task["finished"] is True
    assert len(queue) == 0