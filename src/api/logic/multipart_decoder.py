"""
Multipart decoder for file uploads.

Turns a raw request body and its declared boundary into an ordered UploadSet.
The body is fed to python-multipart's streaming parser in fixed-size chunks;
parts sent under the reserved upload field are buffered by a PartAccumulator
each, every other part is scanned and dropped without buffering.
"""

import asyncio
import logging

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from api.logic.exceptions import (
    MalformedRequestError,
    MultipartDecodeError,
    TooManyFilesError,
)
from api.logic.models import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_FILENAME,
    UPLOAD_FIELD_NAME,
    DecodeLimits,
    UploadSet,
)
from api.logic.upload_accumulator import (
    PartAccumulator,
    cancel_parts,
    gather_parts,
    release_parts,
)

logger = logging.getLogger(__name__)

# Bytes handed to the parser per write; the event loop runs between writes
CHUNK_SIZE = 64 * 1024


def parse_multipart_boundary(content_type: str) -> bytes:
    """
    Extract the boundary from a multipart/form-data Content-Type value.

    Args:
        content_type: Raw Content-Type header value.

    Returns:
        The boundary as bytes.

    Raises:
        MalformedRequestError: If the type is not multipart/form-data or
            carries no boundary.
    """
    if not content_type.strip().lower().startswith("multipart/form-data"):
        raise MalformedRequestError("Content-Type must be multipart/form-data")

    _, params = parse_options_header(content_type)
    params = {key.lower(): value for key, value in params.items()}
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedRequestError("Missing multipart boundary")
    return boundary


def _basename(filename: str) -> str:
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


class _DecodeSession:
    """Parser callbacks and per-request part bookkeeping for one decode call."""

    def __init__(self, boundary: bytes, limits: DecodeLimits) -> None:
        self._limits = limits
        self.accumulators: list[PartAccumulator] = []
        self.skipped_bytes = 0
        self._current: PartAccumulator | None = None
        self._headers: dict[str, bytes] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._ended = False
        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_end": self._on_end,
            },
        )

    def write(self, chunk: bytes) -> None:
        try:
            self._parser.write(chunk)
        except MultipartParseError as e:
            raise MultipartDecodeError(str(e)) from e

    def finish(self) -> None:
        """Check that the closing boundary was seen."""
        if not self._ended:
            raise MultipartDecodeError("Unexpected end of form")

    def _on_part_begin(self) -> None:
        self._current = None
        self._headers = {}

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        name = bytes(self._header_field).decode("latin-1").strip().lower()
        self._headers[name] = bytes(self._header_value).strip()
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        disposition = self._headers.get("content-disposition")
        if disposition is None:
            raise MultipartDecodeError("Part is missing Content-Disposition header")

        _, options = parse_options_header(disposition)
        field_name = options.get(b"name", b"").decode("utf-8", "replace")
        if field_name != UPLOAD_FIELD_NAME:
            return

        if len(self.accumulators) >= self._limits.max_files:
            raise TooManyFilesError(self._limits.max_files)

        filename = _basename(options.get(b"filename", b"").decode("utf-8", "replace"))
        content_type = self._headers.get("content-type", b"").decode("latin-1").strip()
        self._current = PartAccumulator(
            index=len(self.accumulators),
            field_name=field_name,
            filename=filename or DEFAULT_FILENAME,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            max_bytes=self._limits.max_file_bytes,
        )
        self.accumulators.append(self._current)

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._current is None:
            self.skipped_bytes += end - start
            return
        self._current.on_bytes(data[start:end])

    def _on_part_end(self) -> None:
        if self._current is not None:
            self._current.on_complete()
        self._current = None

    def _on_end(self) -> None:
        self._ended = True


async def decode_upload(
    content_type: str,
    body: bytes,
    limits: DecodeLimits | None = None,
) -> UploadSet:
    """
    Decode a multipart/form-data body into the files sent under "files".

    Args:
        content_type: Content-Type header declaring the boundary.
        body: Complete raw request body.
        limits: Per-file and per-request limits.

    Returns:
        The retained parts in stream order; empty if no part used the field.

    Raises:
        MalformedRequestError: Bad content type, no boundary, or empty body.
        FileTooLargeError: A part exceeded the per-file cap.
        TooManyFilesError: More parts than the per-request cap.
        MultipartDecodeError: Corrupted or truncated stream.
    """
    limits = limits or DecodeLimits()
    boundary = parse_multipart_boundary(content_type)
    if not body:
        raise MalformedRequestError("Missing request body")

    session = _DecodeSession(boundary, limits)
    try:
        for offset in range(0, len(body), CHUNK_SIZE):
            session.write(body[offset:offset + CHUNK_SIZE])
            await asyncio.sleep(0)
        session.finish()
    except asyncio.CancelledError:
        cancel_parts(session.accumulators)
        raise
    except Exception as exc:
        await release_parts(session.accumulators, exc)
        logger.error(
            f"❌ Multipart decode failed after {len(session.accumulators)} part(s) "
            f"of {len(body)} bytes: {exc}"
        )
        raise

    files = await gather_parts(session.accumulators)
    logger.info(
        f"📥 Decoded {len(files)} file(s), {sum(f.size for f in files)} bytes "
        f"(skipped {session.skipped_bytes} bytes of other fields)"
    )
    return files
