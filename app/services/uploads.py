"""Upload validation for multipart files."""

from typing import Optional

from fastapi import HTTPException, UploadFile

from app.config import settings


async def read_upload(file: Optional[UploadFile], missing_detail: str) -> bytes:
    """
    Read an uploaded file after checking its extension and size.

    Raises HTTP 400 with ``missing_detail`` when no file was sent.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail=missing_detail)

    if "." not in file.filename:
        raise HTTPException(status_code=400, detail=f"{file.filename}: missing file extension.")
    extension = file.filename.rsplit(".", 1)[1].lower()
    allowed = {ext.lower() for ext in settings.ALLOWED_UPLOAD_EXTENSIONS}
    if extension not in allowed:
        raise HTTPException(status_code=400, detail=f"{file.filename}: file type .{extension} is not allowed.")

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    data = await file.read(max_bytes + 1)
    if not data:
        raise HTTPException(status_code=400, detail=f"{file.filename}: file is empty.")
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"{file.filename}: file is larger than {settings.MAX_UPLOAD_MB} MB.",
        )
    return data
