"""
Fragments endpoints: upload a model for conversion, fetch and list stored fragments.
"""
import base64
from typing import Optional

from fastapi import APIRouter, Depends, Path as FastAPIPath, Query, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from fragments_api.dependencies import get_fragments_app_service
from fragments_api.schemas.api_schemas import (
    FragmentsDetail,
    FragmentsListResponse,
    FragmentsUploadResponse,
)
from fragments_api.services.fragments_app_service import FragmentsAppService

router = APIRouter()


def _encode(data: bytes) -> str:
    return base64.b64encode(data).decode('utf-8')


async def _read_upload(request: Request, filename: Optional[str]) -> tuple[bytes, Optional[str]]:
    """Return uploaded bytes from a multipart ``file`` field or a raw body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            return b"", filename
        try:
            return await upload.read(), upload.filename or filename
        finally:
            await upload.close()
    return await request.body(), filename


@router.post("/fragments", response_model=FragmentsUploadResponse)
async def upload_fragments(
    request: Request,
    filename: Optional[str] = Query(None, description="Original filename for raw binary uploads"),
    service: FragmentsAppService = Depends(get_fragments_app_service)
):
    """
    Convert an uploaded model into fragments and store them.

    Accepts a multipart form with a ``file`` field or a raw binary body.
    """
    data, original_filename = await _read_upload(request, filename)
    # Conversion and storage block; keep them off the event loop
    result = await run_in_threadpool(service.process, data, original_filename)
    return FragmentsUploadResponse(
        id=result["id"],
        data=_encode(result["data"]),
        metadata=result["metadata"],
    )


@router.get("/fragments", response_model=FragmentsListResponse)
def list_fragments(
    service: FragmentsAppService = Depends(get_fragments_app_service)
):
    """
    List stored fragments with their metadata and the conversion cache state.
    """
    return service.list_fragments()


@router.get("/fragments/{fragments_id}", response_model=FragmentsDetail)
def get_fragments(
    fragments_id: str = FastAPIPath(..., title="The ID of the fragments to retrieve"),
    service: FragmentsAppService = Depends(get_fragments_app_service)
):
    """
    Load stored fragments by ID. Metadata is null when none was recorded.
    """
    record = service.get_fragments(fragments_id)
    return FragmentsDetail(
        id=record["id"],
        data=_encode(record["data"]),
        metadata=record["metadata"],
    )
