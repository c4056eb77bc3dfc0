import logging

from app.core.errors import AssemblyFailed, MissingChunk, SessionNotFound, UploadError
from app.services.naming import (
    PathNamer,
    sanitize_destination_name,
    validate_session_id,
    validate_total_chunks,
)
from app.services.storage.base import DestinationStore, StagingStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHUNKS = 1000


class Assembler:
    """Concatenates a session's staged chunks into the destination store.

    The staging directory is deleted at the end of every finalize attempt that
    got past the existence check, whether assembly succeeded or not. Callers
    must not finalize the same session concurrently; see ``SessionLocks``.
    """

    def __init__(
        self,
        staging: StagingStore,
        destination: DestinationStore,
        namer: PathNamer,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
    ):
        self.staging = staging
        self.destination = destination
        self.namer = namer
        self.max_chunks = max_chunks

    async def finalize(self, session_id: str, destination_name: str, total_chunks: int) -> str:
        """Assemble chunks ``0..total_chunks-1`` into ``destination_name``.

        Returns the public path of the assembled file. ``MissingChunk`` and any
        other failure while streaming are logged and re-raised as ``AssemblyFailed``.
        """
        total_chunks = validate_total_chunks(total_chunks, self.max_chunks)
        session_id = validate_session_id(session_id)
        name = sanitize_destination_name(destination_name)

        session_dir = self.namer.session_dir(session_id)
        if not await self.staging.exists(session_dir):
            logger.warning(f"Finalize for unknown session {session_id}")
            raise SessionNotFound()

        logger.info(f"Starting assembly of {total_chunks} chunks for session {session_id} into {name}")
        try:
            location = await self._assemble(session_id, name, total_chunks)
        except UploadError as e:
            if not isinstance(e, MissingChunk):
                raise
            self._log_failure(session_id, name, e)
            raise AssemblyFailed() from e
        except Exception as e:
            self._log_failure(session_id, name, e)
            raise AssemblyFailed() from e
        finally:
            await self._cleanup(session_id, session_dir)

        logger.info(f"Assembly completed for session {session_id}: {name} stored at {location}")
        return self.namer.public_path(name)

    def _log_failure(self, session_id: str, name: str, error: Exception) -> None:
        logger.error(
            f"Assembly failed for session {session_id} into {name}: {error!r}; "
            f"bytes already written are not rolled back unless atomic finalize is enabled",
            exc_info=error,
        )

    async def _assemble(self, session_id: str, name: str, total_chunks: int) -> str:
        handle = await self.destination.open_append_stream(name)
        try:
            for i in range(total_chunks):
                chunk_path = self.namer.chunk_path(session_id, i)
                if not await self.staging.exists(chunk_path):
                    raise MissingChunk(i)
                data = await self.staging.read_file(chunk_path)
                await self.destination.append(handle, data)
                logger.debug(f"Chunk {i+1}/{total_chunks} appended ({len(data)} bytes)")
            return await self.destination.close_and_flush(handle)
        except Exception:
            try:
                await self.destination.discard(handle)
            except Exception:
                logger.exception(f"Failed to release destination stream for {name}")
            raise

    async def _cleanup(self, session_id: str, session_dir: str) -> None:
        try:
            await self.staging.remove_dir_recursive(session_dir)
        except Exception:
            logger.critical(
                f"Failed to remove staging directory for session {session_id}; "
                f"orphaned staging data needs operator attention",
                exc_info=True,
            )
