"""
Client for the downstream document-conversion ("wrapper") service.

Re-encodes the decoded upload as a multipart POST with a repeated "files"
field, authenticates with a static shared secret, and validates that the
response carries a plausible binary document.
"""

import logging

import httpx

from api.logic.exceptions import DownstreamFailureError, ServerMisconfigurationError
from api.logic.models import UPLOAD_FIELD_NAME, ConversionResult, UploadSet

logger = logging.getLogger(__name__)

SECRET_HEADER = "x-wrapper-secret"


class ConversionForwarder:
    """
    Async HTTP client for the conversion service.

    Attributes:
        url: Endpoint receiving the multipart upload.
        timeout: Wall-clock request timeout in seconds.
        min_artifact_bytes: Smallest response body accepted as a document.
    """

    def __init__(
        self,
        url: str,
        secret: str | None,
        timeout: float = 300.0,
        min_artifact_bytes: int = 100,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize forwarder.

        Args:
            url: Conversion endpoint URL.
            secret: Shared secret sent in the x-wrapper-secret header.
            timeout: Request timeout in seconds.
            min_artifact_bytes: Minimum plausible response size.
            client: Optional pre-built HTTP client (tests inject a mock transport).
        """
        self.url = url
        self.timeout = timeout
        self.min_artifact_bytes = min_artifact_bytes
        self._secret = secret
        self._client = client

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def forward(self, files: UploadSet) -> ConversionResult:
        """
        Send the files for conversion and return the produced document.

        Args:
            files: Decoded upload, in stream order.

        Returns:
            ConversionResult holding the response body.

        Raises:
            ServerMisconfigurationError: If no shared secret is configured.
            DownstreamFailureError: On transport failure, a non-2xx status,
                or an empty/undersized body.
        """
        if not self._secret:
            logger.error("❌ Wrapper secret missing (MEDXERN_WRAPPER_SECRET not in env)")
            raise ServerMisconfigurationError()

        multipart = [
            (UPLOAD_FIELD_NAME, (f.filename, f.data, f.content_type))
            for f in files
        ]
        sent_bytes = sum(f.size for f in files)
        client = await self._ensure_client()

        try:
            response = await client.post(
                self.url,
                files=multipart,
                headers={SECRET_HEADER: self._secret},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Wrapper request failed after sending {sent_bytes} bytes: {e!r}")
            raise DownstreamFailureError("Wrapper unreachable") from e

        body = response.content
        if not 200 <= response.status_code < 300:
            logger.error(
                f"❌ Wrapper failed: status={response.status_code} bytes={len(body)}"
            )
            raise DownstreamFailureError(
                "Wrapper failed", upstream_status=response.status_code
            )

        result = ConversionResult(
            data=body,
            content_type=response.headers.get("content-type", "application/pdf"),
        )
        if not result.is_valid(self.min_artifact_bytes):
            logger.error(
                f"❌ Wrapper returned {len(body)} bytes "
                f"(minimum {self.min_artifact_bytes})"
            )
            raise DownstreamFailureError("Wrapper returned empty/invalid PDF")

        logger.info(
            f"📄 Wrapper converted {len(files)} file(s) ({sent_bytes} bytes) "
            f"into {result.size} bytes"
        )
        return result


_forwarder: ConversionForwarder | None = None


def get_forwarder() -> ConversionForwarder:
    """Get the global forwarder instance."""
    if _forwarder is None:
        raise RuntimeError("Forwarder not initialized. Call init_forwarder() first.")
    return _forwarder


def init_forwarder(
    url: str,
    secret: str | None,
    timeout: float = 300.0,
    min_artifact_bytes: int = 100,
) -> ConversionForwarder:
    """Initialize the global forwarder."""
    global _forwarder
    _forwarder = ConversionForwarder(
        url=url,
        secret=secret,
        timeout=timeout,
        min_artifact_bytes=min_artifact_bytes,
    )
    return _forwarder


async def close_forwarder() -> None:
    """Close the global forwarder's HTTP client."""
    global _forwarder
    if _forwarder is not None:
        await _forwarder.close()
        _forwarder = None
