import fnmatch
import logging
import os
import re
from pathlib import Path

LOG_PATTERN = "*.log"

DATE_LOG_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}\.log")


def bucket_for(filename):
    """Return the bucket name for a rotated log filename, or None to ignore it."""
    if filename.startswith("access-"):
        return "access"
    if filename.startswith("error-"):
        return "error"
    if DATE_LOG_RE.fullmatch(filename):
        return "date"
    return None


def classify(directory, pattern=LOG_PATTERN):
    """Group the log files directly inside directory into buckets.

    Only one directory level is scanned. Files whose names fit no bucket are
    left out of the result entirely. A directory that cannot be listed is
    logged and treated as empty.
    """
    dir_path = Path(directory)
    try:
        with os.scandir(dir_path) as entries:
            candidates = [
                dir_path / entry.name
                for entry in entries
                if fnmatch.fnmatch(entry.name, pattern) and entry.is_file()
            ]
    except OSError as e:
        logging.error(f"Failed to scan log directory {directory}: {str(e)}")
        return {}

    buckets = {}
    for file_path in candidates:
        name = bucket_for(file_path.name)
        if name is not None:
            buckets.setdefault(name, []).append(file_path)
    return buckets
