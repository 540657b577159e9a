import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from chatimport.core.config import get_settings
from chatimport.schemas.chat import ImportResponse
from chatimport.services.parsing import ChatImportPipeline
from chatimport.services.storage import read_upload_file

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])


def get_pipeline() -> ChatImportPipeline:
    return ChatImportPipeline.from_settings(get_settings())


@router.post("", response_model=ImportResponse, status_code=status.HTTP_201_CREATED)
async def create_import(
    file: UploadFile = File(...),
    timezone_name: str | None = Form(default=None),
    pipeline: ChatImportPipeline = Depends(get_pipeline),
) -> ImportResponse:
    filename = file.filename or ""
    data = await read_upload_file(file)
    try:
        result = pipeline.run(data, filename, timezone_name)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info(
        "import_request_completed",
        extra={"bytes": len(data), "messages": len(result.chat.messages), "fallback": result.diagnostics.used_empty_fallback},
    )
    return ImportResponse.from_result(result)
