from datetime import datetime

import pytest

from casaos.storages import (
    Storage,
    StorageNotFoundError,
    StorageRegistry,
    actual_mount_path,
    fix_and_clean_path,
    is_sub_path,
)


def make_registry(*mount_paths):
    registry = StorageRegistry()
    for path in mount_paths:
        registry.add(Storage(mount_path=path))
    return registry


def test_fix_and_clean_path_adds_leading_slash_and_converts_backslashes():
    assert fix_and_clean_path("a\\b") == "/a/b"


def test_fix_and_clean_path_empty_is_root():
    assert fix_and_clean_path("") == "/"


def test_fix_and_clean_path_is_idempotent():
    for raw in ["/x/../y/", "//a//b", "c/./d", "/"]:
        once = fix_and_clean_path(raw)
        assert fix_and_clean_path(once) == once
        assert once.startswith("/")
        assert "//" not in once


def test_actual_mount_path_strips_balance_suffix():
    assert actual_mount_path("/a/d/e.balance") == "/a/d/e"
    assert actual_mount_path("/a/b.balance1") == "/a/b"
    assert actual_mount_path("/a/b") == "/a/b"


def test_is_sub_path():
    assert is_sub_path("/a", "/a")
    assert is_sub_path("/a", "/a/b")
    assert not is_sub_path("/a", "/av")
    assert is_sub_path("/", "/anything")


def test_add_and_lookup():
    registry = make_registry("x/y/")
    assert registry.has_storage("/x/y")
    assert registry.get_by_mount_path("/x/y").mount_path == "/x/y"


def test_add_duplicate_raises():
    registry = make_registry("/a")
    with pytest.raises(ValueError):
        registry.add(Storage(mount_path="/a/"))


def test_get_missing_raises():
    with pytest.raises(StorageNotFoundError):
        StorageRegistry().get_by_mount_path("/nope")


def test_remove():
    registry = make_registry("/a", "/b")
    removed = registry.remove("/a")
    assert removed.mount_path == "/a"
    assert not registry.has_storage("/a")
    assert [s.mount_path for s in registry.all_storages()] == ["/b"]
    assert registry.remove("/a") is None


def test_storages_by_path_longest_match_with_balance():
    registry = make_registry("/a/b", "/a/c", "/a/d/e", "/a/d/e.balance")
    found = registry.storages_by_path("/a/d/e/f")
    assert [s.mount_path for s in found] == ["/a/d/e", "/a/d/e.balance"]


def test_storages_by_path_no_match():
    registry = make_registry("/a/b")
    assert registry.storages_by_path("/z") == []


def test_virtual_files_example():
    registry = make_registry("/a/b", "/a/c", "/a/d/e", "/a/b.balance1", "/av")
    names = [f.name for f in registry.virtual_files("/a")]
    assert names == ["b", "c", "d"]
    assert all(f.is_folder and f.size == 0 for f in registry.virtual_files("/a"))


def test_virtual_files_ordered_by_order_then_path():
    registry = StorageRegistry()
    when = datetime(2022, 1, 1)
    registry.add(Storage(mount_path="/m/z", order=0, modified=when))
    registry.add(Storage(mount_path="/m/a", order=5, modified=when))
    files = registry.virtual_files("/m")
    assert [f.name for f in files] == ["z", "a"]
    assert files[0].modified == when


def test_virtual_files_excludes_prefix_itself():
    registry = make_registry("/a")
    assert registry.virtual_files("/a") == []


def test_balanced_storage_single_and_none():
    registry = make_registry("/a")
    assert registry.balanced_storage("/a/x").mount_path == "/a"
    assert registry.balanced_storage("/b") is None


def test_balanced_storage_rotates():
    registry = make_registry("/a", "/a.balance")
    picks = [registry.balanced_storage("/a/f").mount_path for _ in range(4)]
    assert picks == ["/a.balance", "/a", "/a.balance", "/a"]


def test_storage_and_actual_path():
    registry = make_registry("/a")
    storage, actual = registry.storage_and_actual_path("/a/b/c")
    assert storage.mount_path == "/a"
    assert actual == "/b/c"


def test_storage_and_actual_path_at_mount_root():
    registry = make_registry("/a")
    _storage, actual = registry.storage_and_actual_path("/a")
    assert actual == "/"


def test_storage_and_actual_path_with_balance():
    registry = make_registry("/a", "/a.balance")
    storage, actual = registry.storage_and_actual_path("/a/b")
    assert storage.mount_path in {"/a", "/a.balance"}
    assert actual == "/b"


def test_storage_and_actual_path_missing_raises():
    registry = make_registry("/a")
    with pytest.raises(StorageNotFoundError):
        registry.storage_and_actual_path("/b/c")