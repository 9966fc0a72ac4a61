"""Small shared helpers: files, log paths, hashing and system usage."""

from __future__ import annotations

import hashlib
import os
import posixpath
import sys
from pathlib import Path

import psutil

_DEFAULT_LOG_FOLDER = "/home/admin/logs/mosn"


def get_file_size(path: str | os.PathLike[str]) -> int:
    """Return the size of ``path`` in bytes, or -1 if it cannot be read."""
    try:
        return os.stat(path).st_size
    except OSError:
        return -1


def get_log_path(file_name: str) -> str:
    """Return the full path of a log file in the platform's log folder."""
    try:
        home = str(Path.home())
    except (RuntimeError, KeyError):
        log_folder = _DEFAULT_LOG_FOLDER
    else:
        if sys.platform in ("darwin", "win32"):
            log_folder = posixpath.join(home, "logs/mosn")
        else:
            log_folder = _DEFAULT_LOG_FOLDER
    return log_folder + os.sep + file_name


def calculate_md5(text: str) -> str:
    """Hex MD5 digest of a string's UTF-8 encoding."""
    return calculate_md5_for_bytes(text.encode("utf-8"))


def calculate_md5_for_bytes(data: bytes) -> str:
    """Hex MD5 digest of raw bytes."""
    return hashlib.md5(data).hexdigest()


def get_system_usage_rate() -> tuple[float, float]:
    """Return ``(cpu_percent, memory_percent)``, sampling CPU over one second."""
    memory = psutil.virtual_memory()
    if memory is None:
        raise RuntimeError("virtual memory info return nil")
    cpu = psutil.cpu_percent(interval=1.0, percpu=False)
    if not isinstance(cpu, (int, float)):
        raise RuntimeError("cpu used info return invalid")
    return float(cpu), float(memory.percent)


def pointer_to_string(value: str | None) -> str:
    """Return ``value``, or "" when it is None."""
    return "" if value is None else value