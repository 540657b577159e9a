from pathlib import Path

from fastapi import HTTPException, UploadFile, status

from chatimport.core.config import get_settings

ALLOWED_EXTENSIONS = {".txt", ".html", ".htm"}
CONTENT_TYPES = {"text/plain", "text/html", "application/octet-stream"}


async def read_upload_file(file: UploadFile) -> bytes:
    settings = get_settings()
    ext = Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid file extension: {ext or 'none'}")
    content_type = (file.content_type or "application/octet-stream").split(";")[0].strip()
    if content_type not in CONTENT_TYPES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid content type: {file.content_type}")

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            await file.close()
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File exceeds max size")
        chunks.append(chunk)
    await file.close()
    return b"".join(chunks)
