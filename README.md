# casaos

This is a service layer for a home server. It keeps the records behind Samba
shares, remote SMB connections, app notifications and dependencies in SQLite.
It also provides:

- a queue that moves and copies files,
- host information and power control,
- search suggestions from several web search engines,
- mount-path routing for storages.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `casaos.types`

Integer enumerations: `FriendState`, `NotifyState`, `NotifyType`,
`NotifyClass`, `PersonFileDirection`, `DownloadState`, `RelyType`,
`SearchType`, `TaskType`, `TaskDataType` and `TaskState`. The module also
holds the peer message names (`PERSON_HELLO`, `PERSON_PING` and so on).

### `casaos.models`

The dataclasses `Connection`, `AppNotify`, `Rely` and `Share`.

- Each one has `to_json()` and a `from_row(row)` class method.
- `create_tables(conn)` creates their tables on a `sqlite3` connection.

### `casaos.rely`

`RelyService(db)` creates dependency records with `create`, which fills in the
id and timestamps. It fetches them by custom id with `get_info`, which returns
`None` when there is no match, and removes them by custom id with `delete`.

### `casaos.connections`

`ConnectionsService(db, shell_path)` lists, fetches, creates, updates and
deletes SMB connection records.

- `mount_smb(...)` runs the `MountCIFS` function of `helper.sh` in
  `shell_path` and returns its output.
- `unmount_smb(mount_point)` runs `umount`. It ignores a point that is not
  mounted and raises `OSError` on any other failure.

### `casaos.health`

`HealthService(pattern="casaos*").services()` lists the matching systemd
service units. It returns `{True: [running names], False: [others]}`.
`parse_unit_list(output)` parses plain `systemctl list-units` output into
`UnitStatus` values.

### `casaos.shares`

`SharesService(db, shell_path, samba_dir="/etc/samba")` keeps the share
records.

- `create` and the deletions rewrite `smb.casa.conf` and restart Samba
  through `helper.sh`.
- `init_samba_config()` replaces an existing `smb.conf`, which it keeps as
  `smb.conf.bak`, with one that includes the share file. It does this only
  if the file was not already generated here.
- `render_share_config(shares)` returns the configuration text for a list of
  shares.

### `casaos.fileops`

`FileQueue` is a thread-safe, ordered queue of `FileOperation` jobs. Each job
is a `"move"` or `"copy"` of `FileItem` paths into one directory. With the
`"skip"` style, existing targets are left alone.

- `run_operation(queue, key)` carries out one job.
- `start_next(queue)` runs the job at the head of the queue in a background
  thread.
- `refresh_progress(queue)` measures what has arrived at each target.
- `get_size(path)` returns the size of a file or directory.

`CancellableReader` and `CancellableWriter` wrap streams so that reads and
writes raise `OperationCancelled` once a `threading.Event` is set.

### `casaos.notify`

`NotifyService(db)` stores, updates, lists and marks notifications.
`mark_read("0", state)` marks all of them. The service also keeps a shared
map of system data (`set_system_temp_data`, `system_temp_map`).

- `file_operate_report(queue)` builds the progress report for the file queue.
  It removes finished jobs and starts the next one.
- `encode_notify_message(message)` encodes each value as compact JSON text.

### `casaos.system`

`SystemService` covers:

- disk, memory, CPU and network statistics (through `psutil`),
- CPU temperature and RAPL energy readings,
- directory listings (`get_dir_path`, `get_dir_path_one`),
- simple file actions (`mkdir_all`, `rename_file` and `create_file` return
  `False` when the target already exists),
- the service log and per-user app order files,
- queries run through `helper.sh`,
- `system_reboot` and `system_shutdown` through `init`.

`get_device_all_ip()` lists every non-loopback address of the host.

### `casaos.search`

`SearchService(timeout=3.0, session=None).search(key)` asks bing, google,
baidu, duckduckgo and startpage for suggestions in parallel. It returns
`SearchEngine` entries, and an engine that cannot be reached comes back with
no suggestions. `agent_search(url)` returns the body of a URL.
`parse_suggestions(name, body)` extracts suggestions from one engine's
response.

### `casaos.storages`

`StorageRegistry` maps mount paths to `Storage` records.

- `storage_and_actual_path(raw_path)` resolves a request path to a storage
  and the path inside it. It raises `StorageNotFoundError` if no storage
  serves the path.
- `balanced_storage` rotates between storages whose mount paths differ only
  by a `.balance` suffix.
- `virtual_files(prefix)` lists the `VirtualFolder`s that are implied by
  deeper mounts.

## Example

```python
import sqlite3

from casaos.models import Share, create_tables
from casaos.shares import render_share_config
from casaos.storages import Storage, StorageRegistry

conn = sqlite3.connect(":memory:")
create_tables(conn)

print(render_share_config([Share(path="/DATA/Media")]))

registry = StorageRegistry()
registry.add(Storage(mount_path="/cloud/drive"))
storage, actual = registry.storage_and_actual_path("/cloud/drive/docs")
print(storage.mount_path, actual)  # /cloud/drive /docs
```

## What this package does not do

This is a library of services only. It has:

- no command-line program and no HTTP or WebSocket server,
- no message bus client, so `file_operate_report` builds the report but
  nothing publishes it,
- no storage drivers, so `StorageRegistry` routes paths to `Storage` records
  but does not list or read their contents,
- no remote version check and no system update.