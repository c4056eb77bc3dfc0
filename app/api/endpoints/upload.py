from fastapi import APIRouter, Depends, UploadFile, File, Form
from app.core.errors import MissingFields
from app.core.security import get_current_caller
from app.schemas.upload import ChunkUploadResponse, ErrorResponse, FinalizeRequest, FinalizeResponse
from app.services.file_service import UploadService, get_upload_service
from typing import Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

error_responses = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

@router.post("/upload-chunk", response_model=ChunkUploadResponse, responses=error_responses)
async def upload_chunk(
    file: Optional[UploadFile] = File(None),
    chunk_index: Optional[str] = Form(None, alias="chunkIndex"),
    upload_id: Optional[str] = Form(None, alias="uploadId"),
    caller: str = Depends(get_current_caller),
    service: UploadService = Depends(get_upload_service),
):
    """
    POST /api/upload-chunk - Stage one chunk of an upload session
    """
    if file is None or not chunk_index or not upload_id:
        raise MissingFields()
    chunk_data = await file.read()
    await service.receive_chunk(upload_id, chunk_index, chunk_data)
    return ChunkUploadResponse()

@router.post("/finalize-upload", response_model=FinalizeResponse, responses=error_responses)
async def finalize_upload(
    req: FinalizeRequest,
    caller: str = Depends(get_current_caller),
    service: UploadService = Depends(get_upload_service),
):
    """
    POST /api/finalize-upload - Assemble the staged chunks into the final file
    """
    logger.info(f"Finalize requested by {caller} for session {req.upload_id}")
    path = await service.finalize(req.upload_id, req.file_name, req.total_chunks)
    return FinalizeResponse(path=path)
