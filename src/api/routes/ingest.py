"""
Medical file ingestion endpoint.

Accepts a multipart upload of one or more files under the "files" field,
converts them into a single PDF summary, stores it, and records a timeline
entry for the caller.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from api.dependencies import IngestionServiceDep
from api.logic.models import RawRequest

router = APIRouter()


class ProcessFilesResponse(BaseModel):
    """Successful ingestion response."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = Field(default=True, description="Always true on success")
    timeline_event_id: str = Field(
        ...,
        alias="timelineEventId",
        description="ID of the created timeline record",
    )
    pdf_url: str = Field(..., alias="pdfUrl", description="Retrieval URL of the generated PDF")


class ErrorResponse(BaseModel):
    """Failure response."""

    error: str = Field(..., description="Human-readable error message")
    status: int | None = Field(default=None, description="Upstream status, when relevant")


@router.post(
    "/api/v1/medical-files/process",
    response_model=ProcessFilesResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed or empty upload"},
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
        413: {"model": ErrorResponse, "description": "File too large or too many files"},
        500: {"model": ErrorResponse, "description": "Server error"},
        502: {"model": ErrorResponse, "description": "Conversion service failed"},
    },
    summary="Convert uploaded medical files into a PDF summary",
)
@router.post("/processMedicalFiles", response_model=ProcessFilesResponse, include_in_schema=False)
async def process_medical_files(
    request: Request,
    service: IngestionServiceDep,
) -> ProcessFilesResponse:
    """
    Process an authenticated multipart upload.

    The body is buffered whole, then authenticated and decoded by the
    pipeline, which enforces the per-file and per-request limits while
    decoding the buffered body.

    Args:
        request: Incoming request (multipart/form-data, field "files").
        service: Request-scoped ingestion orchestrator.

    Returns:
        ProcessFilesResponse with the timeline event ID and PDF URL.
    """
    raw = RawRequest(
        method=request.method,
        headers=dict(request.headers),
        body=await request.body(),
    )
    result = await service.process(raw)
    return ProcessFilesResponse(
        timeline_event_id=result.timeline_event_id,
        pdf_url=result.pdf_url,
    )
