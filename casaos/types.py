"""Enumerations and message names shared across the services."""

from __future__ import annotations

from enum import IntEnum


class FriendState(IntEnum):
    """Relationship state between two peers."""

    DEFAULT = 0
    WAIT = 1
    REQUEST = 2


class NotifyState(IntEnum):
    """Read state of a notification."""

    DYNAMIC = 0
    UNREAD = 1
    READ = 2


class NotifyType(IntEnum):
    """Kind of notification shown to the user."""

    UNIMPORTANT = 1
    NEED_CONFIRM = 2
    ERROR = 3
    INSTALL_LOG = 4
    PERSON_FRIEND_LEAVE = 5
    PERSON_FRIEND_LIVE = 6
    HEALTH_CHECK = 7


class NotifyClass(IntEnum):
    """Channel a notification belongs to."""

    APP = 0


class PersonFileDirection(IntEnum):
    """Direction of a peer file transfer."""

    DOWNLOAD = 0
    UPLOAD = 1
    RECEIVE_UPLOAD = 2


class DownloadState(IntEnum):
    """State of a peer download."""

    AWAIT = 0
    DOWNLOADING = 1
    PAUSE = 2
    FINISH = 3
    ERROR = 4
    FINISHED = 5


class RelyType(IntEnum):
    """Kind of dependency an application relies on."""

    MYSQL = 0


class SearchType(IntEnum):
    """Category of a search result."""

    APPLICATION = 0
    MEDIA = 1
    PICTURE = 2
    MUSIC = 3
    SEARCH = 4
    UNKNOWN = 5


class TaskType(IntEnum):
    """Origin of a task."""

    USER = 0
    APP = 1


class TaskDataType(IntEnum):
    """Payload kind of a task."""

    LINK = 0
    TEXT = 1


class TaskState(IntEnum):
    """Completion state of a task."""

    UNCOMPLETE = 0
    COMPLETED = 1


PERSON_ADD_FRIEND = "add_user"
PERSON_AGREE_FRIEND = "agree_user"
PERSON_DOWNLOAD = "file_data"
PERSON_SUMMARY = "summary"
PERSON_GET_IP = "get_ip"
PERSON_CONNECTION = "connection"
PERSON_DIRECTORY = "directory"
PERSON_HELLO = "hello"
PERSON_SHARE_ID = "share_id"
PERSON_UPLOAD = "upload"
PERSON_UPLOAD_DATA = "upload_data"
PERSON_INTERNAL_INSPECTION = "internal_inspection"
PERSON_PING = "ping"
PERSON_IMAGE_THUMBNAIL = "image_thumbnail"
PERSON_CANCEL = "cancel"