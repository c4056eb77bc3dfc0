"""Validation of caller-supplied identifiers and staging/destination path naming."""

import os
import re
from typing import Union

from app.core.errors import (
    InvalidChunkCount,
    InvalidChunkIndex,
    InvalidDestinationName,
    InvalidSessionId,
)

SESSION_ID_RE = re.compile(r"[A-Za-z0-9_-]+")
CHUNK_INDEX_RE = re.compile(r"[0-9]+")
CHUNK_FILE_PREFIX = "chunk_"


def validate_session_id(session_id) -> str:
    """Return ``session_id`` unchanged if it is made only of ``[A-Za-z0-9_-]``.

    Anything else is rejected, never stripped.
    """
    if not isinstance(session_id, str) or not SESSION_ID_RE.fullmatch(session_id):
        raise InvalidSessionId()
    return session_id


def parse_chunk_index(value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise InvalidChunkIndex()
    if isinstance(value, int):
        if value < 0:
            raise InvalidChunkIndex()
        return value
    if isinstance(value, str) and CHUNK_INDEX_RE.fullmatch(value):
        return int(value)
    raise InvalidChunkIndex()


def validate_total_chunks(value, max_chunks: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidChunkCount()
    if value < 1 or value > max_chunks:
        raise InvalidChunkCount()
    return value


def sanitize_destination_name(name) -> str:
    """Keep only the final path segment of ``name``.

    Both ``/`` and ``\\`` are treated as separators so a crafted name can never
    address anything outside the destination root.
    """
    if not isinstance(name, str):
        raise InvalidDestinationName()
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    if base in ("", ".", "..") or "\x00" in base:
        raise InvalidDestinationName()
    return base


def path_inside(root: str, name: str) -> str:
    """Join a sanitized ``name`` onto ``root``, refusing anything that escapes it."""
    root = os.path.abspath(root)
    path = os.path.join(root, name)
    if os.path.dirname(path) != root:
        raise InvalidDestinationName()
    return path


class PathNamer:
    """Deterministic mapping from session ids and chunk indices to staging
    paths, and from destination names to public reference paths."""

    def __init__(self, staging_root: str, public_prefix: str = "/uploads"):
        self.staging_root = os.path.abspath(staging_root)
        if "://" in public_prefix:
            self.public_prefix = public_prefix.rstrip("/")
        else:
            prefix = public_prefix.strip("/")
            self.public_prefix = f"/{prefix}" if prefix else ""

    def session_dir(self, session_id: str) -> str:
        return os.path.join(self.staging_root, session_id)

    def chunk_path(self, session_id: str, chunk_index: int) -> str:
        return os.path.join(self.session_dir(session_id), f"{CHUNK_FILE_PREFIX}{chunk_index}")

    def public_path(self, name: str) -> str:
        return f"{self.public_prefix}/{name}"
