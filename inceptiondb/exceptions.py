"""
Shared exceptions for the InceptionDB client.

Exception Hierarchy:
    InceptionDBError (base)
    ├── APIError (HTTP level error returned by the server)
    ├── PayloadEncodingError (request body could not be serialized)
    └── ResponseDecodeError (response body does not match the expected type)
        └── StreamDecodeError (a JSON Lines record could not be decoded)

    EndOfStream (EOFError) is not an error: it marks the natural end of a stream.
"""

from __future__ import annotations

import httpx
import pydantic

from inceptiondb.schemas.types import PermissiveModel

MAX_ERROR_BODY = 1 << 20  # 1MiB is more than enough for error messages


class InceptionDBError(Exception):
    """Base exception for all InceptionDB client errors."""


class APIError(InceptionDBError):
    """Raised when the server answers with a status code >= 400."""

    def __init__(self, status_code: int, message: str = '', description: str = '', body: bytes = b'') -> None:
        self.status_code = status_code
        self.message = message
        self.description = description
        self.body = body
        super().__init__(self._format())

    def _format(self) -> str:
        status = httpx.codes.get_reason_phrase(self.status_code) or f'status {self.status_code}'
        if not self.message:
            text = self.body.decode('utf-8', errors='replace').strip()
            if text:
                return f'inceptiondb: {status}: {text}'
            return f'inceptiondb: {status}'
        if self.description:
            return f'inceptiondb: {status}: {self.message} ({self.description})'
        return f'inceptiondb: {status}: {self.message}'


class PayloadEncodingError(InceptionDBError):
    """Raised when a request payload cannot be serialized to JSON."""


class ResponseDecodeError(InceptionDBError):
    """Raised when a response body cannot be decoded into the requested type."""


class StreamDecodeError(ResponseDecodeError):
    """Raised when a JSON Lines record cannot be decoded. The stream is closed afterwards."""

    def __init__(self, line_number: int, message: str) -> None:
        self.line_number = line_number
        super().__init__(f'Invalid record on line {line_number}: {message}')


class EndOfStream(EOFError):
    """Raised by JsonStream.next() when no more records are available."""


# ==============================================================================
# Error Body Parsing
# ==============================================================================


class _ErrorDetail(PermissiveModel):
    message: str = ''
    description: str = ''


class _ErrorEnvelope(PermissiveModel):
    error: _ErrorDetail | None = None


def parse_error_response(status_code: int, body: bytes) -> APIError:
    """
    Build an APIError from an error response body.

    The server reports errors as {"error": {"message": ..., "description": ...}}.
    Anything else (or an envelope with both fields empty) falls back to the raw
    body text as the message.

    Args:
        status_code: HTTP status code of the response
        body: Response body, already capped at MAX_ERROR_BODY bytes

    Returns:
        APIError describing the failure
    """
    if body:
        try:
            envelope = _ErrorEnvelope.model_validate_json(body)
        except pydantic.ValidationError:
            envelope = None
        if envelope is not None and envelope.error is not None:
            if envelope.error.message or envelope.error.description:
                return APIError(
                    status_code,
                    message=envelope.error.message,
                    description=envelope.error.description,
                    body=body,
                )

    message = body.decode('utf-8', errors='replace').strip()
    return APIError(status_code, message=message, body=body)
