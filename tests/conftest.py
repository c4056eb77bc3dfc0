"""Shared pytest fixtures for all tests."""

import os
import tempfile

# Point the app at throwaway roots before app.core.config is imported
_SETTINGS_ROOT = tempfile.mkdtemp(prefix="chunked-upload-tests-")
os.environ.setdefault("STAGING_ROOT", os.path.join(_SETTINGS_ROOT, "staging"))
os.environ.setdefault("DESTINATION_ROOT", os.path.join(_SETTINGS_ROOT, "public", "uploads"))
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("JWT_PUBLIC_KEY", "")

import pytest

from app.services.assembler import Assembler
from app.services.naming import PathNamer
from app.services.receiver import ChunkReceiver
from app.services.storage.internal import LocalDestinationStore, LocalStagingStore


@pytest.fixture
def staging_root(tmp_path):
    """
    Staging root for per-session chunk directories.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to staging root (not created)
    """
    return tmp_path / 'staging'


@pytest.fixture
def destination_root(tmp_path):
    """
    Destination root for assembled files.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to destination root (not created)
    """
    return tmp_path / 'public' / 'uploads'


@pytest.fixture
def namer(staging_root):
    return PathNamer(str(staging_root), '/uploads')


@pytest.fixture
def staging_store():
    return LocalStagingStore()


@pytest.fixture
def destination_store(destination_root):
    return LocalDestinationStore(str(destination_root))


@pytest.fixture
def receiver(staging_store, namer):
    return ChunkReceiver(staging_store, namer)


@pytest.fixture
def assembler(staging_store, destination_store, namer):
    return Assembler(staging_store, destination_store, namer, max_chunks=1000)
