from typing import Optional, Union
from app.core.config import settings
from app.core.locks import SessionLocks
from app.services.assembler import Assembler
from app.services.naming import PathNamer
from app.services.receiver import ChunkReceiver
from app.services.storage.base import DestinationStore, StagingStore
from app.services.storage.factory import get_destination_store, get_public_prefix, get_staging_store

class UploadService:
    """Receiver and Assembler wired to one pair of stores, with finalize
    serialized per session."""

    def __init__(
        self,
        staging: StagingStore,
        destination: DestinationStore,
        namer: PathNamer,
        max_chunks: int,
    ):
        self.receiver = ChunkReceiver(staging, namer)
        self.assembler = Assembler(staging, destination, namer, max_chunks=max_chunks)
        self.locks = SessionLocks()

    async def receive_chunk(self, session_id: str, chunk_index: Union[int, str], payload: Optional[bytes]) -> None:
        await self.receiver.receive(session_id, chunk_index, payload)

    async def finalize(self, session_id: str, destination_name: str, total_chunks: int) -> str:
        async with self.locks.hold(str(session_id)):
            return await self.assembler.finalize(session_id, destination_name, total_chunks)

_service_instance = None

def get_upload_service() -> UploadService:
    global _service_instance
    if _service_instance is None:
        _service_instance = UploadService(
            get_staging_store(),
            get_destination_store(),
            PathNamer(settings.STAGING_ROOT, get_public_prefix()),
            settings.MAX_CHUNKS,
        )
    return _service_instance
