import os
import shutil
import asyncio
import logging
import concurrent.futures
from dataclasses import dataclass
from typing import BinaryIO, Optional
from uuid import uuid4
from .base import StagingStore, DestinationStore
from app.services.naming import path_inside

logger = logging.getLogger(__name__)

DEFAULT_IO_WORKERS = 4

# Shared pool for blocking filesystem I/O when no executor is injected
thread_pool = concurrent.futures.ThreadPoolExecutor(max_workers=DEFAULT_IO_WORKERS)


class BlockingIOMixin:
    executor: Optional[concurrent.futures.Executor] = None

    async def _run_blocking(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor or thread_pool, func, *args)


class LocalStagingStore(BlockingIOMixin, StagingStore):
    def __init__(self, executor: Optional[concurrent.futures.Executor] = None):
        self.executor = executor

    def _write_file_sync(self, path: str, data: bytes) -> None:
        """Write to a sibling temp file and rename it over ``path``."""
        tmp_path = f"{path}.{uuid4().hex}.tmp"
        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.debug(f"Chunk saved successfully: {path} ({len(data)} bytes)")

    def _read_file_sync(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def _remove_dir_sync(self, path: str) -> None:
        try:
            entries = list(os.scandir(path))
        except FileNotFoundError:
            return
        files, total_size = 0, 0
        for entry in entries:
            try:
                if entry.is_file():
                    total_size += entry.stat().st_size
                    files += 1
            except FileNotFoundError:
                # renamed or removed since the scan
                continue
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            # removed concurrently
            return
        logger.info(
            f"Cleaned up staging directory {path}: "
            f"{files} files, {total_size/1024/1024:.2f}MB"
        )

    async def ensure_dir(self, path: str) -> None:
        await self._run_blocking(lambda: os.makedirs(path, exist_ok=True))

    async def write_file(self, path: str, data: bytes) -> None:
        await self._run_blocking(self._write_file_sync, path, data)

    async def read_file(self, path: str) -> bytes:
        return await self._run_blocking(self._read_file_sync, path)

    async def exists(self, path: str) -> bool:
        return await self._run_blocking(os.path.exists, path)

    async def remove_dir_recursive(self, path: str) -> None:
        await self._run_blocking(self._remove_dir_sync, path)


@dataclass
class LocalStreamHandle:
    name: str
    final_path: str
    write_path: str
    file: Optional[BinaryIO] = None
    bytes_written: int = 0


class LocalDestinationStore(BlockingIOMixin, DestinationStore):
    """Writes assembled files under ``root``.

    With ``atomic=False`` bytes go straight to the public file, so a failed
    assembly leaves it truncated. With ``atomic=True`` they go to a hidden
    ``.part`` file that is renamed into place only after the final fsync.
    """

    def __init__(self, root: str, atomic: bool = False, executor: Optional[concurrent.futures.Executor] = None):
        self.root = os.path.abspath(root)
        self.atomic = atomic
        self.executor = executor

    def _open_sync(self, name: str) -> LocalStreamHandle:
        os.makedirs(self.root, exist_ok=True)
        final_path = path_inside(self.root, name)
        if self.atomic:
            write_path = path_inside(self.root, f".{name}.{uuid4().hex}.part")
        else:
            write_path = final_path
        handle = LocalStreamHandle(name=name, final_path=final_path, write_path=write_path)
        handle.file = open(write_path, "wb")
        return handle

    def _append_sync(self, handle: LocalStreamHandle, data: bytes) -> None:
        handle.file.write(data)
        handle.bytes_written += len(data)

    def _close_sync(self, handle: LocalStreamHandle) -> str:
        handle.file.flush()
        os.fsync(handle.file.fileno())
        handle.file.close()
        if handle.write_path != handle.final_path:
            os.replace(handle.write_path, handle.final_path)
        logger.info(
            f"Destination file written: {handle.final_path} "
            f"({handle.bytes_written/1024/1024:.2f}MB)"
        )
        return handle.final_path

    def _discard_sync(self, handle: LocalStreamHandle) -> None:
        if handle.file is not None and not handle.file.closed:
            handle.file.close()
        if handle.write_path != handle.final_path:
            if os.path.exists(handle.write_path):
                os.remove(handle.write_path)
                logger.info(f"Removed incomplete output file: {handle.write_path}")
        else:
            logger.warning(
                f"Destination left truncated at {handle.bytes_written} bytes: {handle.final_path}"
            )

    async def open_append_stream(self, name: str) -> LocalStreamHandle:
        return await self._run_blocking(self._open_sync, name)

    async def append(self, handle: LocalStreamHandle, data: bytes) -> None:
        await self._run_blocking(self._append_sync, handle, data)

    async def close_and_flush(self, handle: LocalStreamHandle) -> str:
        return await self._run_blocking(self._close_sync, handle)

    async def discard(self, handle: LocalStreamHandle) -> None:
        await self._run_blocking(self._discard_sync, handle)
