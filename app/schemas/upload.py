from pydantic import BaseModel, ConfigDict, Field
from typing import Any

class FinalizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    upload_id: str = Field(alias="uploadId")
    file_name: str = Field(alias="fileName")
    # Range checked by the assembler so out-of-range counts report invalid_chunk_count
    total_chunks: Any = Field(alias="totalChunks")

class ChunkUploadResponse(BaseModel):
    success: bool = True

class FinalizeResponse(BaseModel):
    success: bool = True
    path: str

class ErrorResponse(BaseModel):
    error: str
    message: str
