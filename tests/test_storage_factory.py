"""Tests for store selection from settings."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from app.core.config import settings
from app.services.naming import PathNamer
from app.services.storage import factory
from app.services.storage.internal import LocalDestinationStore, LocalStagingStore
from app.services.storage.s3 import S3DestinationStore


@pytest.fixture(autouse=True)
def fresh_stores():
    factory.reset_stores()
    yield
    factory.reset_stores()


def test_local_backend(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, 'STORAGE_BACKEND', 'local')
    monkeypatch.setattr(settings, 'DESTINATION_ROOT', str(tmp_path))
    monkeypatch.setattr(settings, 'ATOMIC_FINALIZE', True)

    store = factory.get_destination_store()

    assert isinstance(store, LocalDestinationStore)
    assert store.root == str(tmp_path)
    assert store.atomic is True
    assert factory.get_destination_store() is store


def test_s3_backend(monkeypatch):
    monkeypatch.setattr(settings, 'STORAGE_BACKEND', 's3')
    monkeypatch.setattr(settings, 'S3_BUCKET_NAME', 'assembled')
    monkeypatch.setattr(settings, 'S3_REGION_NAME', 'us-east-1')
    monkeypatch.setattr(settings, 'S3_KEY_PREFIX', 'final/')

    store = factory.get_destination_store()

    assert isinstance(store, S3DestinationStore)
    assert store.bucket == 'assembled'
    assert store.key_prefix == 'final/'


def test_unknown_backend(monkeypatch):
    monkeypatch.setattr(settings, 'STORAGE_BACKEND', 'ftp')

    with pytest.raises(ValueError):
        factory.get_destination_store()


def test_staging_is_always_local():
    assert isinstance(factory.get_staging_store(), LocalStagingStore)
    assert factory.get_staging_store() is factory.get_staging_store()


def test_stores_share_configured_executor(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, 'STORAGE_BACKEND', 'local')
    monkeypatch.setattr(settings, 'DESTINATION_ROOT', str(tmp_path))

    staging = factory.get_staging_store()
    destination = factory.get_destination_store()

    assert staging.executor is factory.get_io_executor()
    assert destination.executor is staging.executor


def test_local_public_prefix(monkeypatch):
    monkeypatch.setattr(settings, 'STORAGE_BACKEND', 'local')
    monkeypatch.setattr(settings, 'PUBLIC_URL_PREFIX', '/uploads')

    assert factory.get_public_prefix() == '/uploads'


class CountingExecutor(ThreadPoolExecutor):
    def __init__(self):
        super().__init__(max_workers=1)
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        return super().submit(fn, *args, **kwargs)


async def test_store_runs_on_injected_executor(tmp_path):
    executor = CountingExecutor()
    store = LocalStagingStore(executor=executor)

    await store.ensure_dir(str(tmp_path / 'session'))

    assert (tmp_path / 'session').is_dir()
    assert executor.submitted == 1
    executor.shutdown()


@pytest.mark.parametrize('endpoint,key_prefix,expected_url,expected_key', [
    ('http://minio:9000', 'uploads/', 'http://minio:9000/assembled/uploads/out.bin', 'uploads/out.bin'),
    ('http://minio:9000/', '/final', 'http://minio:9000/assembled/final/out.bin', 'final/out.bin'),
    (None, '', 'https://assembled.s3.amazonaws.com/out.bin', 'out.bin'),
])
async def test_s3_public_path_matches_object_key(monkeypatch, endpoint, key_prefix, expected_url, expected_key):
    monkeypatch.setattr(settings, 'STORAGE_BACKEND', 's3')
    monkeypatch.setattr(settings, 'S3_BUCKET_NAME', 'assembled')
    monkeypatch.setattr(settings, 'S3_ENDPOINT_URL', endpoint)
    monkeypatch.setattr(settings, 'S3_REGION_NAME', 'us-east-1')
    monkeypatch.setattr(settings, 'S3_KEY_PREFIX', key_prefix)

    store = factory.get_destination_store()
    handle = await store.open_append_stream('out.bin')
    namer = PathNamer('/tmp/staging', factory.get_public_prefix())

    assert handle.key == expected_key
    assert namer.public_path('out.bin') == expected_url
