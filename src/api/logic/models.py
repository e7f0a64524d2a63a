"""
Request-scoped data model of the ingestion pipeline.

Every value here is immutable and lives only for the duration of one request,
except ArtifactReference and TimelineRecord, which describe state persisted in
object storage and the metadata store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

UPLOAD_FIELD_NAME = "files"
DEFAULT_FILENAME = "upload.pdf"
DEFAULT_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class RawRequest:
    """Inbound request as received by the transport layer."""

    method: str
    headers: Mapping[str, str]
    body: bytes

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def content_type(self) -> str:
        return self.header("content-type") or ""

    @property
    def authorization(self) -> str | None:
        return self.header("authorization")

    @property
    def content_length(self) -> int | None:
        """Declared Content-Length, or None when absent or unparseable."""
        value = self.header("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class DecodeLimits:
    """Per-file and per-request limits enforced while decoding."""

    max_file_bytes: int = 20 * 1024 * 1024
    max_files: int = 10


@dataclass(frozen=True)
class FilePart:
    """One decoded file from the upload."""

    field_name: str
    filename: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    def summary(self) -> dict[str, Any]:
        """Metadata describing this part, without its bytes."""
        return {
            "filename": self.filename,
            "mime": self.content_type,
            "bytes": self.size,
        }


UploadSet = tuple[FilePart, ...]


@dataclass(frozen=True)
class ConversionResult:
    """Binary document produced by the conversion service."""

    data: bytes = field(repr=False)
    content_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.data)

    def is_valid(self, min_size: int) -> bool:
        return bool(self.data) and len(self.data) >= min_size


@dataclass(frozen=True)
class ArtifactReference:
    """Location of a persisted artifact and the capability URL to read it."""

    bucket: str
    storage_path: str
    filename: str
    access_token: str
    download_url: str


@dataclass(frozen=True)
class TimelineRecord:
    """Metadata entry indexing an artifact under its owner."""

    owner_id: str
    artifact: ArtifactReference
    original_files: tuple[dict[str, Any], ...]
    title: str = "AI Medical Summary"
    event_type: str = "document"
    ai_processed: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def source_document(self) -> dict[str, Any]:
        """JSON description of the artifact stored with the record."""
        return {
            "fileUrl": self.artifact.download_url,
            "storagePath": self.artifact.storage_path,
            "fileName": self.artifact.filename,
            "token": self.artifact.access_token,
            "originalFiles": list(self.original_files),
        }


@dataclass(frozen=True)
class IngestionResult:
    """Terminal success outcome of one ingestion request."""

    timeline_event_id: str
    pdf_url: str
