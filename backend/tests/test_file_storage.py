from __future__ import annotations

import io

import pytest
from bson import ObjectId
from fastapi import UploadFile

from coursemart.core.errors import FileNotFoundInStoreError, FileTooLargeError
from coursemart.services.file_storage import FileStorage, download_path
from support import FakeBucket, make_upload


@pytest.mark.asyncio
async def test_upload_streams_chunks_and_records_metadata(bucket: FakeBucket, storage: FileStorage) -> None:
    stored = await storage.upload(make_upload(b"hello world", "notes.txt", "text/plain"))

    assert stored is not None
    assert stored.file_name == "notes.txt"
    assert stored.content_type == "text/plain"
    assert stored.length == 11

    blob = bucket.files[ObjectId(stored.source_id)]
    assert blob.data == b"hello world"
    assert blob.metadata == {"FileName": "notes.txt", "Type": "text/plain"}
    # read_chunk_size=4 in the fixture
    assert len(blob.chunks) == 3


@pytest.mark.asyncio
async def test_empty_upload_stores_nothing(bucket: FakeBucket, storage: FileStorage) -> None:
    assert await storage.upload(make_upload(b"", "empty.pdf")) is None
    assert bucket.files == {}
    assert bucket.uploads_started == 0


@pytest.mark.asyncio
async def test_missing_filename_and_type_get_defaults(storage: FileStorage) -> None:
    stored = await storage.upload(UploadFile(file=io.BytesIO(b"abc")))

    assert stored is not None
    assert stored.file_name == "file"
    assert stored.content_type == "application/octet-stream"


@pytest.mark.asyncio
async def test_oversized_upload_is_aborted(bucket: FakeBucket) -> None:
    storage = FileStorage(bucket, max_size_bytes=8, read_chunk_size=4)

    with pytest.raises(FileTooLargeError) as exc_info:
        await storage.upload(make_upload(b"0123456789", "big.bin"))

    assert exc_info.value.max_bytes == 8
    assert bucket.files == {}
    assert len(bucket.aborted) == 1


@pytest.mark.asyncio
async def test_download_replays_content_and_metadata(storage: FileStorage) -> None:
    stored = await storage.upload(make_upload(b"%PDF-1.7 body", "slides.pdf", "application/pdf"))
    assert stored is not None

    stream = await storage.open_download(stored.source_id)

    assert stream.file_name == "slides.pdf"
    assert stream.content_type == "application/pdf"
    assert stream.length == 13
    assert b"".join([chunk async for chunk in stream.iter_chunks()]) == b"%PDF-1.7 body"


@pytest.mark.asyncio
@pytest.mark.parametrize("source_id", ["not-an-object-id", str(ObjectId())])
async def test_download_of_unknown_id_is_not_found(storage: FileStorage, source_id: str) -> None:
    with pytest.raises(FileNotFoundInStoreError):
        await storage.open_download(source_id)


@pytest.mark.asyncio
async def test_delete_is_idempotent(bucket: FakeBucket, storage: FileStorage) -> None:
    stored = await storage.upload(make_upload(b"data", "a.txt"))
    assert stored is not None

    await storage.delete(stored.source_id)
    await storage.delete(stored.source_id)
    await storage.delete("garbage")

    assert bucket.files == {}
    assert bucket.deleted == [ObjectId(stored.source_id)]


def test_download_path() -> None:
    assert download_path("abc") == "/api/v1/files/abc"
    assert download_path(None) is None
