"""
Request body encoding.

Turns whatever the caller passes as a payload into a ready-to-send body. The
encoding path is picked from the value's runtime shape, always in this order:

    None -> file-like object -> raw bytes -> raw string -> structured value

Two flavors exist and must not be conflated, because they produce different
request bodies for the same input:

- encode_json_payload(): None means "send no body at all" (create requests)
- encode_json_object(): None or blank input means "send {}" (endpoints that
  require a JSON object, e.g. setDefaults, getIndex, find, patch, remove)
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from typing import Any, BinaryIO

import pydantic
import pydantic_core

from inceptiondb.exceptions import PayloadEncodingError

type RequestContent = bytes | BinaryIO

EMPTY_OBJECT = b'{}'


def encode_json_payload(payload: Any) -> RequestContent | None:
    """
    Encode an optional request payload.

    Args:
        payload: None, file-like object, bytes, already-serialized JSON string,
            pydantic model, or any JSON-compatible value

    Returns:
        Request content, or None when there is nothing to send

    Raises:
        PayloadEncodingError: If the value cannot be serialized
    """
    if payload is None:
        return None
    if _is_readable(payload):
        return payload
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    if isinstance(payload, str):
        return payload.encode('utf-8')
    return _dump_json(payload)


def encode_json_object(payload: Any) -> RequestContent:
    """
    Encode a payload for an endpoint that requires a JSON object.

    Same rules as encode_json_payload(), except that None, empty and
    whitespace-only bytes or strings become {}.

    Raises:
        PayloadEncodingError: If the value cannot be serialized
    """
    if payload is None:
        return EMPTY_OBJECT
    if _is_readable(payload):
        return payload
    if isinstance(payload, (bytes, bytearray, memoryview)):
        data = bytes(payload)
        return data if data.strip() else EMPTY_OBJECT
    if isinstance(payload, str):
        return payload.encode('utf-8') if payload.strip() else EMPTY_OBJECT
    return _dump_json(payload)


def encode_query_request(payload: Any) -> RequestContent:
    """Encode a find/patch/remove request. A missing request is sent as {}."""
    if payload is None:
        return EMPTY_OBJECT
    return encode_json_object(payload)


def encode_json_lines(documents: Iterable[Any]) -> bytes:
    """
    Encode documents as JSON Lines (one compact JSON value per line).

    Raises:
        PayloadEncodingError: If any document cannot be serialized
    """
    return b''.join(_dump_json(document) + b'\n' for document in documents)


# ==============================================================================
# Helpers
# ==============================================================================


def _is_readable(payload: Any) -> bool:
    return callable(getattr(payload, 'read', None))


def _dump_json(value: Any) -> bytes:
    """Serialize a structured value to compact UTF-8 JSON."""
    try:
        return json.dumps(
            _to_jsonable(value),
            separators=(',', ':'),
            ensure_ascii=False,
            allow_nan=False,
            default=_to_jsonable,
        ).encode('utf-8')
    except (TypeError, ValueError, pydantic_core.PydanticSerializationError) as e:
        raise PayloadEncodingError(f'Cannot encode {type(value).__name__} as JSON: {e}') from e


def _to_jsonable(value: Any) -> Any:
    """
    Convert pydantic models (at any depth) and other rich types to plain JSON data.

    Models drop fields left at their default, so unset query options never reach the wire.
    """
    if isinstance(value, pydantic.BaseModel):
        return value.model_dump(mode='json', by_alias=True, exclude_defaults=True)
    if isinstance(value, (dict, list, str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return dict(value)
    return pydantic_core.to_jsonable_python(value)
