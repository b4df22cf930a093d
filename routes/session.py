"""
Session API routes.

One in-memory rename session per process. Images are uploaded, the mapping
table and credential are set, then processing is started and progress is
polled through GET /api/session.
"""

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from exceptions import AppError
from models.item import CredentialUpdate, MappingTextUpdate, SessionResponse
from models.mapping import MappingPreviewResponse
from services.archive_service import get_archive_service
from services.pipeline_scheduler import get_pipeline_scheduler
from services.session_service import get_session

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/session", tags=["Session"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=SessionResponse)
async def get_session_state():
    """
    Get the session snapshot.

    Returns items with their status, counts, flags and feedback messages.
    """
    try:
        return get_session().snapshot()

    except Exception as e:
        return handle_error(e)


@router.put("/credential", response_model=SessionResponse)
async def set_credential(data: CredentialUpdate):
    """
    Set the OCR API key.

    A blank key clears it.
    """
    try:
        session = get_session()
        session.set_credential(data.api_key)
        return session.snapshot()

    except Exception as e:
        return handle_error(e)


@router.put("/mappings", response_model=MappingPreviewResponse)
async def set_mappings(data: MappingTextUpdate):
    """
    Store the pasted mapping table and preview the parse.

    Entries become active when processing starts.
    """
    try:
        result = get_session().set_mapping_text(data.text)
        return MappingPreviewResponse(
            entries=result.entries,
            total=len(result.entries),
            message=result.message,
            is_error=result.is_error
        )

    except Exception as e:
        return handle_error(e)


@router.post("/images", response_model=SessionResponse, status_code=201)
async def upload_images(files: list[UploadFile] = File(...)):
    """
    Upload one or more images.

    Each image is queued (or parked as api_key_missing without a key).
    Images whose dimensions cannot be read are added in error state.
    """
    try:
        uploads = []
        for upload in files:
            content = await upload.read()
            # Non-image content types fall back to a guess from the file name
            mime_type = upload.content_type
            if not mime_type or not mime_type.startswith("image/"):
                mime_type = None
            uploads.append((upload.filename or "image", content, mime_type))

        session = get_session()
        session.add_images(uploads)
        logger.info("images_uploaded", count=len(uploads))
        return session.snapshot()

    except Exception as e:
        return handle_error(e)


@router.post("/start", response_model=SessionResponse, status_code=202)
async def start_processing():
    """
    Start processing every queued or failed item.

    Refused with a single error when the key or mappings are missing or
    nothing is eligible; items are left untouched in that case.
    """
    try:
        scheduler = get_pipeline_scheduler()
        scheduler.start_all()
        return scheduler.session.snapshot()

    except Exception as e:
        return handle_error(e)


@router.post("/items/{item_id}/retry", response_model=SessionResponse, status_code=202)
async def retry_item(item_id: str):
    """
    Re-queue one item and resume processing if idle.
    """
    try:
        scheduler = get_pipeline_scheduler()
        scheduler.retry(item_id)
        return scheduler.session.snapshot()

    except Exception as e:
        return handle_error(e)


@router.get("/items/{item_id}/download")
async def download_item(item_id: str):
    """
    Download one renamed image.
    """
    try:
        filename, content, mime_type = get_archive_service().get_renamed_file(item_id)
        return Response(
            content=content,
            media_type=mime_type,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    except Exception as e:
        return handle_error(e)


@router.get("/archive")
async def download_archive():
    """
    Download all renamed images as a zip organized by provider.
    """
    try:
        archive = get_archive_service().build_archive()
        return Response(
            content=archive.content,
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{archive.filename}"'}
        )

    except Exception as e:
        return handle_error(e)


@router.delete("", response_model=SessionResponse)
async def clear_session():
    """
    Discard all items.

    Only allowed while nothing is processing or packaging.
    """
    try:
        scheduler = get_pipeline_scheduler()
        scheduler.clear()
        return scheduler.session.snapshot()

    except Exception as e:
        return handle_error(e)
