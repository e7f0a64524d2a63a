"""
FastAPI dependency injection.

Assembles the ingestion orchestrator from the process-wide collaborator
clients initialized in the application lifespan. Storage and database
clients are resolved when first used, so a request is authenticated even
while either backend is still reconnecting.
"""

from typing import Annotated

from fastapi import Depends

from api.config import Settings, get_settings
from api.logic.artifact_persister import ArtifactPersister
from api.logic.authenticator import BearerAuthenticator
from api.logic.forwarder import get_forwarder
from api.logic.ingestion_service import IngestionService
from api.logic.models import DecodeLimits
from api.logic.timeline_store import TimelineRecordStore
from medintake_lib.helpers.auth import get_jwt_validator


def get_ingestion_service(
    settings: Annotated[Settings, Depends(get_settings)],
) -> IngestionService:
    """
    Build a request-scoped ingestion orchestrator.

    Usage:
        @router.post("/process")
        async def process(service: IngestionServiceDep):
            ...
    """
    return IngestionService(
        authenticator=BearerAuthenticator(get_jwt_validator()),
        forwarder=get_forwarder(),
        persister=ArtifactPersister(
            bucket=settings.minio_bucket,
            download_base_url=settings.download_base_url,
        ),
        record_store=TimelineRecordStore(),
        limits=DecodeLimits(
            max_file_bytes=settings.max_file_bytes,
            max_files=settings.max_files,
        ),
    )


IngestionServiceDep = Annotated[IngestionService, Depends(get_ingestion_service)]
