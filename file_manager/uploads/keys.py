"""Object key generation for uploaded files."""

import os
import random
import time
from typing import Optional

RANDOM_SUFFIX_MAX = 10**9


def file_extension(filename: Optional[str]) -> str:
    """
    Extension of the client filename, including the dot.

    Dotfiles without a further extension ('.env') yield ''.
    """
    if not filename:
        return ""
    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    return os.path.splitext(basename)[1]


def build_object_key(
    prefix: str,
    field_name: str,
    filename: Optional[str],
    timestamp_ms: Optional[int] = None,
    suffix: Optional[int] = None,
) -> str:
    """
    Build a fresh key: <prefix><field>-<epoch millis>-<random><ext>.

    >>> build_object_key("uploads/", "file", "report.pdf", 1700000000000, 42)
    'uploads/file-1700000000000-42.pdf'
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    if suffix is None:
        suffix = random.randint(0, RANDOM_SUFFIX_MAX)
    return f"{prefix}{field_name}-{timestamp_ms}-{suffix}{file_extension(filename)}"
