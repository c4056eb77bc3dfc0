import asyncio
import logging
import boto3
from dataclasses import dataclass, field
from typing import List, Optional
from .base import DestinationStore
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

# S3 rejects multipart parts smaller than 5 MiB, except the last one
MIN_PART_SIZE = 5 * 1024 * 1024


def create_s3_client(access_key: str, secret_key: str, endpoint_url: Optional[str], region_name: Optional[str]):
    return boto3.client(
        's3',
        aws_access_key_id=access_key or None,
        aws_secret_access_key=secret_key or None,
        endpoint_url=endpoint_url or None,
        region_name=region_name,
    )


@dataclass
class S3StreamHandle:
    key: str
    upload_id: Optional[str] = None
    buffer: bytearray = field(default_factory=bytearray)
    parts: List[dict] = field(default_factory=list)


class S3DestinationStore(DestinationStore):
    """Streams assembled files into S3 through a multipart upload.

    Nothing is visible under the key until the upload completes, so a failed
    assembly never publishes a partial object.
    """

    def __init__(self, client, bucket: str, key_prefix: str = "", part_size: int = MIN_PART_SIZE):
        self.s3_client = client
        self.bucket = bucket
        self.key_prefix = key_prefix
        self.part_size = max(part_size, MIN_PART_SIZE)

    def _upload_part(self, handle: S3StreamHandle, data: bytes) -> None:
        if handle.upload_id is None:
            response = self.s3_client.create_multipart_upload(Bucket=self.bucket, Key=handle.key)
            handle.upload_id = response["UploadId"]
        part_number = len(handle.parts) + 1
        response = self.s3_client.upload_part(
            Bucket=self.bucket,
            Key=handle.key,
            PartNumber=part_number,
            UploadId=handle.upload_id,
            Body=data,
        )
        handle.parts.append({"ETag": response["ETag"], "PartNumber": part_number})

    def _append_sync(self, handle: S3StreamHandle, data: bytes) -> None:
        handle.buffer.extend(data)
        try:
            while len(handle.buffer) >= self.part_size:
                part = bytes(handle.buffer[:self.part_size])
                del handle.buffer[:self.part_size]
                self._upload_part(handle, part)
        except (BotoCoreError, ClientError) as e:
            raise OSError(f"S3 part upload failed: {e}") from e

    def _complete_sync(self, handle: S3StreamHandle) -> str:
        try:
            if handle.upload_id is None:
                self.s3_client.put_object(Bucket=self.bucket, Key=handle.key, Body=bytes(handle.buffer))
            else:
                if handle.buffer:
                    self._upload_part(handle, bytes(handle.buffer))
                self.s3_client.complete_multipart_upload(
                    Bucket=self.bucket,
                    Key=handle.key,
                    UploadId=handle.upload_id,
                    MultipartUpload={"Parts": handle.parts},
                )
        except (BotoCoreError, ClientError) as e:
            raise OSError(f"S3 upload failed: {e}") from e
        handle.buffer.clear()
        logger.info(f"Uploaded s3://{self.bucket}/{handle.key} in {max(len(handle.parts), 1)} part(s)")
        return handle.key

    def _abort_sync(self, handle: S3StreamHandle) -> None:
        handle.buffer.clear()
        if handle.upload_id is None:
            return
        try:
            self.s3_client.abort_multipart_upload(
                Bucket=self.bucket, Key=handle.key, UploadId=handle.upload_id
            )
            logger.info(f"Aborted multipart upload for s3://{self.bucket}/{handle.key}")
        except (BotoCoreError, ClientError) as e:
            raise OSError(f"S3 abort failed: {e}") from e

    async def open_append_stream(self, name: str) -> S3StreamHandle:
        return S3StreamHandle(key=f"{self.key_prefix}{name}")

    async def append(self, handle: S3StreamHandle, data: bytes) -> None:
        await asyncio.to_thread(self._append_sync, handle, data)

    async def close_and_flush(self, handle: S3StreamHandle) -> str:
        return await asyncio.to_thread(self._complete_sync, handle)

    async def discard(self, handle: S3StreamHandle) -> None:
        await asyncio.to_thread(self._abort_sync, handle)
