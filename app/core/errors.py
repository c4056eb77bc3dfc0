"""Error taxonomy for chunk receiving and assembly.

Every public error carries a short machine-readable ``kind`` and the HTTP
status the transport layer answers with. Messages never contain filesystem
paths; internal causes are logged and chained instead.
"""

from typing import Optional


class UploadError(Exception):
    """Base class for all upload errors."""

    kind = "upload_error"
    status_code = 500
    message = "Upload failed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)

    @property
    def public_message(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.public_message}


class CallerInputError(UploadError):
    """Invalid caller input, detected before any mutation."""

    status_code = 400


class InvalidSessionId(CallerInputError):
    kind = "invalid_session_id"
    message = "Invalid uploadId."


class InvalidChunkIndex(CallerInputError):
    kind = "invalid_chunk_index"
    message = "Invalid chunkIndex."


class MissingPayload(CallerInputError):
    kind = "missing_payload"
    message = "Chunk payload is missing or empty."


class InvalidChunkCount(CallerInputError):
    kind = "invalid_chunk_count"
    message = "Invalid totalChunks."


class InvalidDestinationName(CallerInputError):
    kind = "invalid_destination_name"
    message = "Invalid fileName."


class NotFoundError(UploadError):
    status_code = 404


class SessionNotFound(NotFoundError):
    kind = "session_not_found"
    message = "Upload session not found."


class MissingChunk(NotFoundError):
    """A claimed chunk index has no staged file.

    Raised mid-stream: bytes appended before the gap stay in the destination
    unless atomic finalize is enabled.
    """

    kind = "missing_chunk"
    message = "A chunk is missing."

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Missing chunk {index}")


class InfrastructureError(UploadError):
    status_code = 500


class StorageWriteFailed(InfrastructureError):
    kind = "storage_write_failed"
    message = "Upload failed."


class AssemblyFailed(InfrastructureError):
    kind = "assembly_failed"
    message = "Assembly failed."


class MissingFields(CallerInputError):
    """The request lacks a required field or is not shaped as expected."""

    kind = "missing_fields"
    message = "Missing fields."
