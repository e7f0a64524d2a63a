"""
Ingestion orchestrator.

Drives one upload request through a linear state machine:

    UNAUTHENTICATED -> AUTHENTICATED -> DECODED -> CONVERTED
        -> PERSISTED -> RECORD_WRITTEN -> DONE

Any failure moves the run to ERROR and surfaces exactly one APIError. Each
collaborator is called at most once per request and nothing is retried.
"""

import logging
from enum import Enum
from typing import Protocol

from api.logic.exceptions import (
    APIError,
    InternalError,
    MalformedRequestError,
    NoFilesProvidedError,
    RecordWriteError,
)
from api.logic.models import (
    ArtifactReference,
    ConversionResult,
    DecodeLimits,
    IngestionResult,
    RawRequest,
    TimelineRecord,
    UploadSet,
)
from api.logic.multipart_decoder import decode_upload

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    """States of one ingestion run."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    DECODED = "decoded"
    CONVERTED = "converted"
    PERSISTED = "persisted"
    RECORD_WRITTEN = "record_written"
    DONE = "done"
    ERROR = "error"


class Authenticator(Protocol):
    async def authenticate(self, authorization: str | None) -> str: ...


class Forwarder(Protocol):
    async def forward(self, files: UploadSet) -> ConversionResult: ...


class Persister(Protocol):
    async def persist(self, result: ConversionResult, owner_id: str) -> ArtifactReference: ...


class RecordStore(Protocol):
    async def add(self, record: TimelineRecord) -> str: ...


class IngestionService:
    """
    Orchestrates authenticate, decode, convert, persist and record.

    Collaborators are injected so tests can substitute in-memory fakes.

    Attributes:
        state: State reached by the most recent call to process().
    """

    def __init__(
        self,
        authenticator: Authenticator,
        forwarder: Forwarder,
        persister: Persister,
        record_store: RecordStore,
        limits: DecodeLimits | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            authenticator: Resolves the bearer credential to an owner ID.
            forwarder: Sends files to the conversion service.
            persister: Stores the converted artifact.
            record_store: Writes the timeline record.
            limits: Decode limits (per-file bytes, files per request).
        """
        self._authenticator = authenticator
        self._forwarder = forwarder
        self._persister = persister
        self._record_store = record_store
        self._limits = limits or DecodeLimits()
        self.state = IngestionState.UNAUTHENTICATED

    def _advance(self, state: IngestionState, detail: str = "") -> None:
        logger.info(f"➡️ Ingestion {self.state.value} -> {state.value} {detail}".rstrip())
        self.state = state

    async def process(self, request: RawRequest) -> IngestionResult:
        """
        Run one request through the pipeline.

        Args:
            request: Raw inbound request.

        Returns:
            IngestionResult with the timeline event ID and artifact URL.

        Raises:
            APIError: The classified failure; unexpected faults are raised
                as InternalError.
        """
        self.state = IngestionState.UNAUTHENTICATED
        try:
            return await self._run(request)
        except APIError as e:
            logger.error(
                f"❌ Ingestion failed in state {self.state.value}: "
                f"{e.code} status={e.status_code} message={e.message!r}"
            )
            self.state = IngestionState.ERROR
            raise
        except Exception as e:
            logger.exception(f"❌ Unexpected ingestion error in state {self.state.value}")
            self.state = IngestionState.ERROR
            raise InternalError() from e

    async def _run(self, request: RawRequest) -> IngestionResult:
        owner_id = await self._authenticator.authenticate(request.authorization)
        self._advance(IngestionState.AUTHENTICATED, f"owner={owner_id}")

        declared = request.content_length
        if declared is not None and declared != len(request.body):
            raise MalformedRequestError(
                f"Content-Length {declared} does not match body size {len(request.body)}"
            )

        files = await decode_upload(request.content_type, request.body, self._limits)
        if not files:
            raise NoFilesProvidedError()
        self._advance(
            IngestionState.DECODED,
            f"files={len(files)} bytes={sum(f.size for f in files)}",
        )

        result = await self._forwarder.forward(files)
        self._advance(IngestionState.CONVERTED, f"bytes={result.size}")

        artifact = await self._persister.persist(result, owner_id)
        self._advance(IngestionState.PERSISTED, f"path={artifact.storage_path}")

        record = TimelineRecord(
            owner_id=owner_id,
            artifact=artifact,
            original_files=tuple(f.summary() for f in files),
        )
        try:
            event_id = await self._record_store.add(record)
        except Exception as e:
            # The object stays in storage without a timeline entry
            logger.error(
                f"❌ Timeline write failed; orphaned artifact at "
                f"{artifact.bucket}/{artifact.storage_path}: {e!r}"
            )
            raise RecordWriteError(artifact.storage_path) from e
        self._advance(IngestionState.RECORD_WRITTEN, f"event={event_id}")

        self._advance(IngestionState.DONE)
        return IngestionResult(timeline_event_id=event_id, pdf_url=artifact.download_url)
