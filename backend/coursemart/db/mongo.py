from __future__ import annotations

import asyncio

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorGridFSBucket

from coursemart.core.settings import get_settings


_clients_by_loop: dict[int, AsyncIOMotorClient] = {}


def _loop_cache_key() -> int:
    # Motor clients bind to the loop they were created on, same as asyncpg engines.
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = asyncio.get_event_loop()
    return id(loop)


def get_mongo_client() -> AsyncIOMotorClient:
    key = _loop_cache_key()
    client = _clients_by_loop.get(key)
    if client is None:
        settings = get_settings()
        client = AsyncIOMotorClient(settings.mongo_url)
        _clients_by_loop[key] = client
    return client


def get_gridfs_bucket() -> AsyncIOMotorGridFSBucket:
    settings = get_settings()
    database = get_mongo_client()[settings.mongo_database]
    return AsyncIOMotorGridFSBucket(
        database,
        bucket_name=settings.gridfs_bucket_name,
        chunk_size_bytes=settings.upload_chunk_size_bytes,
    )


def close_mongo_client() -> None:
    client = _clients_by_loop.pop(_loop_cache_key(), None)
    if client is not None:
        client.close()
