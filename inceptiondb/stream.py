"""
JSON Lines response streams.

Insert, find, patch and remove answer with one JSON object per line and no
upper bound on the number of lines. JsonStream decodes them one at a time as
the caller pulls, so a large result never has to fit in memory.

Ownership: a JsonStream owns its HTTP response. It is released exactly once,
either explicitly (close(), the `with` block, iterate() stopping early) or
automatically at end of stream or on the first decode error.

Example:
    with client.find('users', FindRequest(limit=10)) as stream:
        for user in stream.items(User):
            print(user.name)

    # Or with a callback that can stop early
    def collect(doc: dict[str, Any]) -> IterationControl | None:
        found.append(doc)
        if len(found) == 3:
            return STOP_ITERATION
        return None

    iterate(client.find('users'), collect)
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Self

import httpx
import pydantic

from inceptiondb.exceptions import EndOfStream, StreamDecodeError
from inceptiondb.schemas.types import type_adapter

# ==============================================================================
# Iteration Control
# ==============================================================================


class IterationControl(enum.Enum):
    """Value returned by an iterate() callback to steer the iteration."""

    CONTINUE = 'continue'
    STOP = 'stop'


STOP_ITERATION = IterationControl.STOP
"""Return this from an iterate() callback to stop successfully. Compared by identity."""


# ==============================================================================
# JSON Stream
# ==============================================================================


class JsonStream:
    """
    Pull-based reader over a streaming JSON Lines response.

    States: open -> closed (terminal). Once closed, next() raises EndOfStream.
    Not safe for concurrent use.
    """

    def __init__(self, response: httpx.Response | None) -> None:
        """
        Wrap a streamed response.

        Args:
            response: Response opened with stream=True, or None for an empty, closed stream
        """
        self._response = response
        self._close_error: Exception | None = None
        self._lines: Iterator[bytes] | None = _split_lines(self._body(response)) if response is not None else None
        self._closed = response is None
        self._line_number = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def status_code(self) -> int:
        """HTTP status code that produced this stream (0 without a response)."""
        if self._response is None:
            return 0
        return self._response.status_code

    def next[T](self, item_type: type[T] | Any = Any) -> T:
        """
        Decode the next record into item_type.

        Blank lines are skipped. A missing newline after the last record is fine.

        Args:
            item_type: Any type pydantic can validate JSON into (model, dict, list[int], ...)

        Returns:
            The decoded record

        Raises:
            EndOfStream: If no records remain or the stream is closed
            StreamDecodeError: If the record is malformed or does not match item_type
                (the stream is closed and cannot be resumed)
            httpx.HTTPError: If reading from the connection fails (the stream is closed)
        """
        if self._closed or self._lines is None:
            raise EndOfStream

        try:
            line = self._read_line(self._lines)
        except Exception as e:
            _close_noting(self, e)
            raise

        if line is None:
            end = EndOfStream()
            if self._close_error is not None:
                end.add_note(f'Closing the stream also failed: {self._close_error!r}')
            _close_noting(self, end)
            raise end

        try:
            return type_adapter(item_type).validate_json(line)
        except pydantic.ValidationError as e:
            error = StreamDecodeError(self._line_number, str(e))
            _close_noting(self, error)
            raise error from e

    def _body(self, response: httpx.Response) -> Iterator[bytes]:
        """
        Yield the response chunks.

        httpx closes the response itself once the body is exhausted. A failure
        in that close is kept for EndOfStream instead of being raised.
        """
        chunks = response.iter_bytes()
        while True:
            try:
                chunk = next(chunks)
            except StopIteration:
                return
            except Exception as e:
                if not response.is_closed:
                    raise
                self._close_error = e
                return
            yield chunk

    def _read_line(self, lines: Iterator[bytes]) -> bytes | None:
        for line in lines:
            self._line_number += 1
            if line.strip():
                return line
        return None

    def items[T](self, item_type: type[T] | Any = Any) -> Iterator[T]:
        """Yield decoded records until the stream ends."""
        while True:
            try:
                item = self.next(item_type)
            except EndOfStream:
                return
            yield item

    def __iter__(self) -> Iterator[Any]:
        return self.items()

    def close(self) -> None:
        """Release the underlying response. Safe to call any number of times."""
        if self._closed:
            return
        self._closed = True
        if self._response is not None:
            self._response.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ==============================================================================
# Typed Iteration
# ==============================================================================


def iterate[T](
    stream: JsonStream | None,
    callback: Callable[[T], IterationControl | None] | None,
    item_type: type[T] | Any = Any,
) -> None:
    """
    Decode every record into item_type and pass it to callback, in wire order.

    The callback steers the loop:
    - returns None or IterationControl.CONTINUE: keep going
    - returns STOP_ITERATION: close the stream and return normally
    - raises: close the stream and re-raise

    Args:
        stream: Stream to consume
        callback: Called once per record
        item_type: Type each record is decoded into (default: plain JSON data)

    Raises:
        ValueError: If stream or callback is None (nothing is read)
        StreamDecodeError: If a record cannot be decoded (the stream is already closed)
        Exception: Whatever the callback raises
    """
    if stream is None:
        raise ValueError('stream is required')
    if callback is None:
        raise ValueError('iterate callback is required')

    while True:
        try:
            item = stream.next(item_type)
        except EndOfStream:
            return

        try:
            result = callback(item)
        except BaseException as e:
            _close_noting(stream, e)
            raise

        if result is IterationControl.STOP:
            stream.close()
            return


def _close_noting(stream: JsonStream, outcome: BaseException) -> None:
    """Close stream; a close failure is attached to outcome as a note instead of replacing it."""
    try:
        stream.close()
    except Exception as close_error:
        outcome.add_note(f'Closing the stream also failed: {close_error!r}')


def _split_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """
    Split a byte stream on b'\\n' only.

    Unlike str.splitlines(), U+0085 and U+2028 are left alone: they are legal
    unescaped inside JSON strings.
    """
    pending = bytearray()
    for chunk in chunks:
        start = 0
        while (end := chunk.find(b'\n', start)) != -1:
            pending += chunk[start:end]
            yield bytes(pending)
            pending.clear()
            start = end + 1
        pending += chunk[start:]
    if pending:
        yield bytes(pending)
