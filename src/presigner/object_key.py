import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

# Object keys carry a China Standard Time (GMT+8) timestamp
KEY_TIMEZONE = timezone(timedelta(hours=8))
KEY_TIMESTAMP_FORMAT = '%Y-%m-%d_%H%M%S'


def file_extension(filename: str) -> str:
    """
    Return the extension (with its dot) of filename, or '' if it has none.

    A leading dot marks a hidden file rather than an extension, and an
    "extension" spanning a path separator is not one.
    """
    dot = filename.rfind('.')
    if dot <= 0:
        return ''
    extension = filename[dot:]
    if '/' in extension or '\\' in extension:
        return ''
    return extension


def build_object_key(filename: str, now: Optional[datetime] = None) -> str:
    """
    Rename an upload to {timestamp}_{uuid4}{extension}.

    Only the extension survives from the caller's filename; uuid4 makes
    collisions negligible, so storage is never checked for an existing key.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    timestamp = now.astimezone(KEY_TIMEZONE).strftime(KEY_TIMESTAMP_FORMAT)
    return f"{timestamp}_{uuid.uuid4()}{file_extension(filename)}"
