import concurrent.futures
from app.core.config import settings
from .s3 import S3DestinationStore, create_s3_client
from .internal import LocalStagingStore, LocalDestinationStore
from .base import StagingStore, DestinationStore

_io_executor = None
_staging_instance = None
_destination_instance = None

def get_io_executor() -> concurrent.futures.Executor:
    global _io_executor
    if _io_executor is None:
        _io_executor = concurrent.futures.ThreadPoolExecutor(max_workers=settings.IO_WORKERS)
    return _io_executor

def get_staging_store() -> StagingStore:
    # Chunks are always staged on local disk, whatever the destination backend
    global _staging_instance
    if _staging_instance is None:
        _staging_instance = LocalStagingStore(executor=get_io_executor())
    return _staging_instance

def get_destination_store() -> DestinationStore:
    global _destination_instance
    if _destination_instance is not None:
        return _destination_instance
    if settings.STORAGE_BACKEND == "s3":
        client = create_s3_client(
            settings.S3_ACCESS_KEY,
            settings.S3_SECRET_KEY,
            settings.S3_ENDPOINT_URL,
            settings.S3_REGION_NAME,
        )
        _destination_instance = S3DestinationStore(client, settings.S3_BUCKET_NAME, _s3_key_prefix())
    elif settings.STORAGE_BACKEND == "local":
        _destination_instance = LocalDestinationStore(
            settings.DESTINATION_ROOT,
            atomic=settings.ATOMIC_FINALIZE,
            executor=get_io_executor(),
        )
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")
    return _destination_instance

def _s3_key_prefix() -> str:
    # S3_KEY_PREFIX names a folder; "uploads", "/uploads/" and "uploads/" are equivalent
    prefix = settings.S3_KEY_PREFIX.strip("/")
    return f"{prefix}/" if prefix else ""

def get_public_prefix() -> str:
    """Prefix under which assembled files are reachable by callers.

    The local backend serves ``DESTINATION_ROOT`` at ``PUBLIC_URL_PREFIX``;
    the S3 backend points at the object URL for ``S3_KEY_PREFIX``.
    """
    if settings.STORAGE_BACKEND == "s3":
        if settings.S3_ENDPOINT_URL:
            base = f"{settings.S3_ENDPOINT_URL.rstrip('/')}/{settings.S3_BUCKET_NAME}"
        else:
            base = f"https://{settings.S3_BUCKET_NAME}.s3.amazonaws.com"
        key_prefix = _s3_key_prefix().rstrip("/")
        return f"{base}/{key_prefix}" if key_prefix else base
    return settings.PUBLIC_URL_PREFIX

def reset_stores() -> None:
    global _staging_instance, _destination_instance
    _staging_instance = None
    _destination_instance = None
