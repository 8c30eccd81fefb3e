from __future__ import annotations

from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from coursemart.api.deps import get_current_user, get_file_storage
from coursemart.db.models.user import User
from coursemart.services.file_storage import FileStorage

router = APIRouter(prefix="/files", tags=["files"])


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


@router.get("/{file_id}")
async def download_file(
    file_id: str,
    storage: FileStorage = Depends(get_file_storage),
    current_user: User = Depends(get_current_user),
) -> StreamingResponse:
    stream = await storage.open_download(file_id)
    return StreamingResponse(
        stream.iter_chunks(),
        media_type=stream.content_type,
        headers={
            "Content-Disposition": _content_disposition(stream.file_name),
            "Content-Length": str(stream.length),
        },
    )
