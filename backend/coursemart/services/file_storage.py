from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import UploadFile
from gridfs.errors import NoFile

from coursemart.core.errors import FileNotFoundInStoreError, FileTooLargeError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Metadata keys stored alongside each blob and replayed on download.
META_FILE_NAME = "FileName"
META_TYPE = "Type"


@dataclass(frozen=True)
class StoredFile:
    source_id: str
    file_name: str
    content_type: str
    length: int


class DownloadStream:
    """An open GridFS download with the metadata needed for response headers."""

    def __init__(self, grid_out: Any) -> None:
        self._grid_out = grid_out
        metadata = grid_out.metadata or {}
        self.file_name: str = metadata.get(META_FILE_NAME) or grid_out.filename or "file"
        self.content_type: str = metadata.get(META_TYPE) or DEFAULT_CONTENT_TYPE
        self.length: int = int(grid_out.length or 0)

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._grid_out.readchunk()
            if not chunk:
                break
            yield chunk


def _parse_object_id(source_id: str) -> ObjectId:
    try:
        return ObjectId(source_id)
    except (InvalidId, TypeError) as e:
        raise FileNotFoundInStoreError() from e


class FileStorage:
    """
    Thin proxy over a Motor GridFS bucket.

    Chunking, checksums and storage layout are the bucket's job; this class only
    streams request uploads into it with filename/content-type metadata and
    streams them back out by id.
    """

    def __init__(self, bucket: Any, *, max_size_bytes: int, read_chunk_size: int) -> None:
        self._bucket = bucket
        self._max_size_bytes = int(max_size_bytes)
        self._read_chunk_size = int(read_chunk_size)

    async def upload(self, file: UploadFile) -> StoredFile | None:
        """Store an uploaded file. Returns None for an empty upload (nothing is stored)."""
        first = await file.read(self._read_chunk_size)
        if not first:
            return None

        file_name = (file.filename or "").strip() or "file"
        content_type = (file.content_type or "").strip() or DEFAULT_CONTENT_TYPE

        grid_in = self._bucket.open_upload_stream(
            file_name,
            metadata={META_FILE_NAME: file_name, META_TYPE: content_type},
        )
        length = 0
        try:
            chunk = first
            while chunk:
                length += len(chunk)
                if length > self._max_size_bytes:
                    raise FileTooLargeError(self._max_size_bytes)
                await grid_in.write(chunk)
                chunk = await file.read(self._read_chunk_size)
        except BaseException:
            await grid_in.abort()
            raise
        await grid_in.close()

        source_id = str(grid_in._id)
        logger.debug("Stored %s (%d bytes) as %s", file_name, length, source_id)
        return StoredFile(
            source_id=source_id,
            file_name=file_name,
            content_type=content_type,
            length=length,
        )

    async def open_download(self, source_id: str) -> DownloadStream:
        oid = _parse_object_id(source_id)
        try:
            grid_out = await self._bucket.open_download_stream(oid)
        except NoFile as e:
            raise FileNotFoundInStoreError() from e
        return DownloadStream(grid_out)

    async def delete(self, source_id: str) -> None:
        try:
            oid = ObjectId(source_id)
        except (InvalidId, TypeError):
            return
        try:
            await self._bucket.delete(oid)
        except NoFile:
            logger.info("Blob %s already absent", source_id)


def download_path(source_id: str | None) -> str | None:
    """Public URL path of the download-by-id route for a stored blob."""
    if not source_id:
        return None
    return f"/api/v1/files/{source_id}"
