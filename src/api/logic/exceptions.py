"""
Business logic exceptions.

These exceptions are raised by the ingestion pipeline and converted to HTTP
responses by the error handlers in middleware/error_handler.py. The set is
closed: every failure the pipeline can report maps to exactly one class here.
"""

from typing import Any

from fastapi import status


class APIError(Exception):
    """Base API exception."""
    
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        extra: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(message)

    def to_content(self) -> dict[str, Any]:
        """Render the JSON body returned to the caller."""
        return {"error": self.message, **self.extra}


class UnauthorizedError(APIError):
    """Missing or invalid bearer credential."""
    
    def __init__(self, message: str = "Missing Authorization header"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class MalformedRequestError(APIError):
    """Wrong content type, missing boundary or missing body."""
    
    def __init__(self, message: str):
        super().__init__(
            code="MALFORMED_REQUEST",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NoFilesProvidedError(APIError):
    """No part of the upload used the reserved file field."""
    
    def __init__(self, field_name: str = "files"):
        super().__init__(
            code="NO_FILES_PROVIDED",
            message=f"No files uploaded (field must be '{field_name}')",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class FileTooLargeError(APIError):
    """A single file exceeded the per-file byte cap."""
    
    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(
            code="FILE_TOO_LARGE",
            message=f"File too large: {filename}",
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
        )


class TooManyFilesError(APIError):
    """The upload carried more files than allowed per request."""
    
    def __init__(self, max_files: int):
        self.max_files = max_files
        super().__init__(
            code="TOO_MANY_FILES",
            message=f"Too many files (maximum {max_files})",
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
        )


class MultipartDecodeError(APIError):
    """Corrupted or truncated multipart stream."""
    
    def __init__(self, message: str):
        super().__init__(
            code="DECODE_ERROR",
            message=f"File stream error: {message}",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class ServerMisconfigurationError(APIError):
    """A required secret is absent from the environment."""
    
    def __init__(self, message: str = "Server misconfiguration"):
        super().__init__(
            code="SERVER_MISCONFIGURATION",
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class DownstreamFailureError(APIError):
    """The conversion service failed or returned an unusable payload."""
    
    def __init__(self, message: str, upstream_status: int | None = None):
        self.upstream_status = upstream_status
        super().__init__(
            code="DOWNSTREAM_FAILURE",
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            extra={"status": upstream_status} if upstream_status is not None else None,
        )


class PersistenceFailureError(APIError):
    """The artifact could not be written to object storage."""
    
    def __init__(self, storage_path: str | None = None):
        self.storage_path = storage_path
        super().__init__(
            code="PERSISTENCE_FAILURE",
            message="Internal error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class RecordWriteError(APIError):
    """
    The timeline record could not be written.

    The artifact referenced by storage_path already exists in storage and is
    left unindexed.
    """
    
    def __init__(self, storage_path: str):
        self.storage_path = storage_path
        super().__init__(
            code="RECORD_WRITE_FAILURE",
            message="Internal error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class InternalError(APIError):
    """Any fault not covered by a more specific error."""
    
    def __init__(self, message: str = "Internal error"):
        super().__init__(
            code="INTERNAL_ERROR",
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
