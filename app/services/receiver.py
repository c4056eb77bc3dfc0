import logging
from typing import Optional, Union

from app.core.errors import MissingPayload, StorageWriteFailed
from app.services.naming import PathNamer, parse_chunk_index, validate_session_id
from app.services.storage.base import StagingStore

logger = logging.getLogger(__name__)


class ChunkReceiver:
    """Validates and stages one chunk of one upload session."""

    def __init__(self, staging: StagingStore, namer: PathNamer):
        self.staging = staging
        self.namer = namer

    async def receive(self, session_id: str, chunk_index: Union[int, str], payload: Optional[bytes]) -> None:
        """Store ``payload`` as chunk ``chunk_index`` of ``session_id``.

        The session's staging directory is created on first use. Re-sending an
        index replaces the earlier bytes.
        """
        session_id = validate_session_id(session_id)
        index = parse_chunk_index(chunk_index)
        if not payload:
            raise MissingPayload()

        try:
            await self.staging.ensure_dir(self.namer.session_dir(session_id))
            await self.staging.write_file(self.namer.chunk_path(session_id, index), payload)
        except OSError as e:
            logger.error(f"Error saving chunk {index} for session {session_id}: {e}")
            raise StorageWriteFailed() from e

        logger.debug(f"Received chunk {index} for session {session_id} ({len(payload)} bytes)")
