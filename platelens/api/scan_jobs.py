"""REST endpoints for scan submission and meal cancellation.

Handlers only write documents: the pipeline picks the scan job up from the
store's write events. Clients poll the scan job (or the meal) for results.
"""

import io
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

from platelens.application.scan.commands import (
    CancelMealCommand,
    CancelMealCommandHandler,
    SubmitScanCommand,
    SubmitScanCommandHandler,
)
from platelens.domain.jobs.entities import SCAN_JOBS_COLLECTION, ScanJob, ScanSource
from platelens.domain.shared.errors import JobInputError
from platelens.pipeline import EnrichmentPipeline

logger = logging.getLogger(__name__)

MAX_PHOTO_SIZE = 5 * 1024 * 1024

router = APIRouter(prefix="/v1", tags=["scan"])


class SubmitScanRequest(BaseModel):
    """Request body for text scans or photos already in the blob store."""

    source: ScanSource
    textDescription: Optional[str] = None
    storagePath: Optional[str] = None
    userId: Optional[str] = None
    mealId: Optional[str] = None


class ScanJobResponse(BaseModel):
    id: str
    status: str
    source: ScanSource
    mealId: Optional[str] = None
    attempts: int = 0
    error: str = ""
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @classmethod
    def from_entity(cls, scan: ScanJob) -> "ScanJobResponse":
        return cls(
            id=scan.id,
            status=scan.status,
            source=scan.source,
            mealId=scan.meal_id,
            attempts=scan.attempts,
            error=scan.error,
            createdAt=scan.created_at,
            updatedAt=scan.updated_at,
        )


class CancelMealResponse(BaseModel):
    mealId: str
    cancelled: bool = Field(..., description="False when the meal does not exist")


def _pipeline(request: Request) -> EnrichmentPipeline:
    return request.app.state.pipeline


def _to_jpeg(data: bytes) -> bytes:
    """Normalize an uploaded photo to RGB JPEG."""
    try:
        img: Image.Image = Image.open(io.BytesIO(data))
        if img.mode != "RGB":
            img = img.convert("RGB")
        output = io.BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True)
        return output.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Invalid photo upload", extra={"error": str(e)})
        raise HTTPException(status_code=400, detail="Invalid image format or corrupted file") from e


async def _submit(pipeline: EnrichmentPipeline, command: SubmitScanCommand) -> ScanJobResponse:
    try:
        scan = await SubmitScanCommandHandler(pipeline.store).handle(command)
    except JobInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return ScanJobResponse.from_entity(scan)


@router.post("/scan-jobs", response_model=ScanJobResponse, status_code=202)
async def submit_scan(body: SubmitScanRequest, request: Request) -> ScanJobResponse:
    """
    Queue a text scan, or a photo scan for an already uploaded photo.

    Example:
        ```bash
        curl -X POST http://localhost:8080/v1/scan-jobs \\
          -H 'Content-Type: application/json' \\
          -d '{"source": "text", "textDescription": "2 scrambled eggs with toast"}'
        ```
    """
    command = SubmitScanCommand(
        source=body.source,
        storage_path=body.storagePath,
        text_description=body.textDescription,
        user_id=body.userId,
        meal_id=body.mealId,
    )
    return await _submit(_pipeline(request), command)


@router.post("/scan-jobs/photo", response_model=ScanJobResponse, status_code=202)
async def submit_photo_scan(
    request: Request,
    file: UploadFile = File(..., description="Meal photo"),
    user_id: Optional[str] = Form(None),
) -> ScanJobResponse:
    """Upload a meal photo (max 5MB, stored as JPEG) and queue its scan."""
    content = await file.read()
    if len(content) > MAX_PHOTO_SIZE:
        raise HTTPException(status_code=413, detail="File too large. Maximum size: 5MB")

    pipeline = _pipeline(request)
    folder = user_id or "anonymous"
    storage_path = f"scans/{folder}/{uuid.uuid4().hex}.jpg"
    blob = await pipeline.blob_store.upload(storage_path, _to_jpeg(content), "image/jpeg")
    logger.info(
        "Scan photo uploaded",
        extra={"user_id": user_id, "storage_path": blob.path, "original_size": len(content)},
    )

    command = SubmitScanCommand(source=ScanSource.PHOTO, storage_path=blob.path, user_id=user_id)
    return await _submit(pipeline, command)


@router.get("/scan-jobs/{scan_id}", response_model=ScanJobResponse)
async def get_scan(scan_id: str, request: Request) -> ScanJobResponse:
    doc = await _pipeline(request).store.get(SCAN_JOBS_COLLECTION, scan_id)
    if doc is None:
        raise HTTPException(status_code=404, detail=f"Scan job {scan_id} not found")
    return ScanJobResponse.from_entity(ScanJob.from_document(scan_id, doc))


@router.post("/meals/{meal_id}/cancel", response_model=CancelMealResponse)
async def cancel_meal(meal_id: str, request: Request) -> CancelMealResponse:
    """Cancel a meal; honoured by scans that have not started processing."""
    cancelled = await CancelMealCommandHandler(_pipeline(request).store).handle(
        CancelMealCommand(meal_id=meal_id)
    )
    if not cancelled:
        raise HTTPException(status_code=404, detail=f"Meal {meal_id} not found")
    return CancelMealResponse(mealId=meal_id, cancelled=True)
