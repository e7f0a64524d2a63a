"""
Per-part byte accumulation for multipart uploads.

Each retained file part gets its own PartAccumulator: the decoder pushes the
part's bytes in as the parser produces them, and an asyncio task drains them
into a single in-memory blob. The decode call fans out one task per part and
fans back in with gather_parts() once the stream is fully parsed.
"""

import asyncio
import logging
from typing import Any, Sequence

from api.logic.exceptions import FileTooLargeError
from api.logic.models import FilePart, UploadSet

logger = logging.getLogger(__name__)

_COMPLETE = object()


class PartAccumulator:
    """
    Buffers one file part and resolves to a FilePart.

    The producer side (on_bytes / on_size_limit_exceeded / on_stream_error /
    on_complete) is synchronous so it can be driven from parser callbacks.
    Exactly one terminal signal is delivered to the draining task; later
    signals are ignored.

    Attributes:
        task: Task resolving to the FilePart, or failing with the terminal error.
    """

    def __init__(
        self,
        index: int,
        field_name: str,
        filename: str,
        content_type: str,
        max_bytes: int,
    ) -> None:
        """
        Initialize the accumulator and start its draining task.

        Must be called with a running event loop.

        Args:
            index: Position of the part among retained parts.
            field_name: Form field the part was sent under.
            filename: Original filename.
            content_type: Declared MIME type.
            max_bytes: Per-file byte cap.
        """
        self.index = index
        self.field_name = field_name
        self.filename = filename
        self.content_type = content_type
        self.max_bytes = max_bytes
        self.received = 0
        self._closed = False
        self._chunks: list[bytes] = []
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.task: asyncio.Task[FilePart] = asyncio.create_task(
            self._drain(), name=f"upload-part-{index}"
        )

    @property
    def closed(self) -> bool:
        """Whether a terminal signal has been delivered."""
        return self._closed

    def on_bytes(self, data: bytes) -> None:
        """
        Accept the next slice of the part's payload.

        Raises:
            FileTooLargeError: As soon as the running total exceeds max_bytes.
        """
        if self._closed:
            return
        self.received += len(data)
        if self.received > self.max_bytes:
            self.on_size_limit_exceeded()
            raise FileTooLargeError(self.filename)
        self._queue.put_nowait(bytes(data))

    def on_size_limit_exceeded(self) -> None:
        logger.warning(
            f"⚠️ Part {self.index} ({self.filename}) exceeded {self.max_bytes} bytes"
        )
        self._signal(FileTooLargeError(self.filename))

    def on_stream_error(self, exc: BaseException) -> None:
        self._signal(exc)

    def on_complete(self) -> None:
        self._signal(_COMPLETE)

    def _signal(self, item: Any) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(item)

    async def _drain(self) -> FilePart:
        try:
            while True:
                item = await self._queue.get()
                if item is _COMPLETE:
                    return FilePart(
                        field_name=self.field_name,
                        filename=self.filename,
                        content_type=self.content_type,
                        data=b"".join(self._chunks),
                    )
                if isinstance(item, BaseException):
                    raise item
                self._chunks.append(item)
        finally:
            self._chunks.clear()


async def gather_parts(accumulators: Sequence[PartAccumulator]) -> UploadSet:
    """
    Wait for every accumulator and assemble the upload set in stream order.

    All tasks are awaited before any error is raised, so no part buffer
    outlives the call.

    Raises:
        The first error in stream order, if any part failed.
    """
    outcomes = await asyncio.gather(
        *(acc.task for acc in accumulators), return_exceptions=True
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return tuple(outcomes)


async def release_parts(
    accumulators: Sequence[PartAccumulator],
    exc: BaseException,
) -> None:
    """Fail every open accumulator with exc and wait for all of them to settle."""
    for acc in accumulators:
        acc.on_stream_error(exc)
    await asyncio.gather(*(acc.task for acc in accumulators), return_exceptions=True)


def cancel_parts(accumulators: Sequence[PartAccumulator]) -> None:
    """Cancel every draining task (used when the request itself is cancelled)."""
    for acc in accumulators:
        acc.task.cancel()
