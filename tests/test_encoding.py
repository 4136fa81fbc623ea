"""
Tests for request body encoding.

The two flavors differ only for absent or blank input, and that difference is
visible on the wire, so both are exercised side by side.
"""

from __future__ import annotations

import dataclasses
import io
import json
from datetime import UTC, datetime
from types import MappingProxyType

import pytest

from inceptiondb.encoding import (
    encode_json_lines,
    encode_json_object,
    encode_json_payload,
    encode_query_request,
)
from inceptiondb.exceptions import PayloadEncodingError
from inceptiondb.schemas.collections import CreateCollectionRequest
from inceptiondb.schemas.indexes import CreateIndexRequest
from inceptiondb.schemas.queries import FindRequest, PatchRequest, RemoveRequest


@dataclasses.dataclass
class Point:
    x: int
    y: int


# ==============================================================================
# Absent and blank payloads
# ==============================================================================


def test_payload_none_sends_no_body() -> None:
    assert encode_json_payload(None) is None


@pytest.mark.parametrize('payload', [None, b'', b'  \n\t', '', '   ', bytearray(b' ')])
def test_object_absent_or_blank_is_empty_object(payload: object) -> None:
    assert encode_json_object(payload) == b'{}'


@pytest.mark.parametrize('payload', [None, '', b' \n'])
def test_query_absent_is_empty_object(payload: object) -> None:
    assert encode_query_request(payload) == b'{}'


def test_payload_blank_strings_pass_through() -> None:
    # Optional bodies send blank input verbatim
    assert encode_json_payload('') == b''
    assert encode_json_payload(b'  ') == b'  '


# ==============================================================================
# Raw payloads
# ==============================================================================


def test_raw_bytes_pass_through_as_copy() -> None:
    data = bytearray(b'{"a":1}')

    encoded = encode_json_object(data)
    data[0:1] = b'X'

    assert encoded == b'{"a":1}'
    assert encode_json_payload(memoryview(b'[1]')) == b'[1]'


def test_raw_string_passes_through_unchanged() -> None:
    assert encode_json_payload('{"name": "café"}') == '{"name": "café"}'.encode()
    assert encode_json_object(' {"a":1} ') == b' {"a":1} '


def test_file_objects_pass_through() -> None:
    body = io.BytesIO(b'{"id":1}\n')

    assert encode_json_payload(body) is body
    assert encode_json_object(body) is body


def test_raw_json_string_is_not_re_encoded() -> None:
    # A str is treated as already-serialized JSON, not as a JSON string value
    assert encode_json_object('"x"') == b'"x"'


# ==============================================================================
# Structured payloads
# ==============================================================================


def test_mapping_round_trip() -> None:
    payload = {'name': 'Fulanez', 'tags': ['a', 'b'], 'nested': {'n': 1.5, 'ok': True, 'none': None}}

    assert json.loads(encode_json_object(payload)) == payload
    assert json.loads(encode_json_payload(payload)) == payload


def test_empty_mapping_is_empty_object() -> None:
    assert encode_json_object({}) == b'{}'
    assert encode_json_payload({}) == b'{}'


def test_compact_output_keeps_unicode() -> None:
    assert encode_json_object({'name': 'café'}) == '{"name":"café"}'.encode()


def test_non_dict_mappings_and_dataclasses() -> None:
    assert json.loads(encode_json_object(MappingProxyType({'a': 1}))) == {'a': 1}
    assert json.loads(encode_json_payload({'p': Point(1, 2)})) == {'p': {'x': 1, 'y': 2}}


def test_datetimes_are_iso_strings() -> None:
    encoded = encode_json_payload({'at': datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)})

    assert json.loads(encoded) == {'at': '2024-01-02T03:04:05Z'}


def test_unserializable_value_raises() -> None:
    with pytest.raises(PayloadEncodingError) as exc_info:
        encode_json_payload({'x': object()})

    assert exc_info.value.__cause__ is not None


def test_nan_is_rejected() -> None:
    with pytest.raises(PayloadEncodingError):
        encode_json_object({'x': float('nan')})


# ==============================================================================
# Request models
# ==============================================================================


def test_find_request_omits_defaults() -> None:
    request = FindRequest(index='my-index', limit=5, filter={'name': 'Fulanez'})

    payload = json.loads(encode_query_request(request))

    assert payload == {'index': 'my-index', 'limit': 5, 'filter': {'name': 'Fulanez'}}


def test_empty_find_request_is_empty_object() -> None:
    assert encode_query_request(FindRequest()) == b'{}'
    assert encode_query_request(RemoveRequest()) == b'{}'


def test_range_bounds_use_wire_names() -> None:
    request = FindRequest(index='by-age', from_={'age': 18}, to={'age': 65}, reverse=True)

    payload = json.loads(encode_query_request(request))

    assert payload == {'index': 'by-age', 'from': {'age': 18}, 'to': {'age': 65}, 'reverse': True}


def test_patch_is_always_sent() -> None:
    assert json.loads(encode_query_request(PatchRequest(patch=None))) == {'patch': None}
    assert json.loads(encode_query_request(PatchRequest(filter={'id': 1}, patch={'done': True}))) == {
        'filter': {'id': 1},
        'patch': {'done': True},
    }


def test_create_collection_request() -> None:
    assert json.loads(encode_json_payload(CreateCollectionRequest(name='users'))) == {'name': 'users'}
    assert json.loads(encode_json_payload(CreateCollectionRequest(name='users', defaults={'role': 'guest'}))) == {
        'name': 'users',
        'defaults': {'role': 'guest'},
    }


def test_create_index_request_is_flattened() -> None:
    request = CreateIndexRequest(name='by-id', type='map', options={'field': 'id', 'sparse': True})

    assert json.loads(encode_json_payload(request)) == {'name': 'by-id', 'type': 'map', 'field': 'id', 'sparse': True}


def test_models_nested_in_plain_data() -> None:
    payload = {'requests': [FindRequest(limit=1)]}

    assert json.loads(encode_json_payload(payload)) == {'requests': [{'limit': 1}]}


# ==============================================================================
# JSON Lines
# ==============================================================================


def test_json_lines_one_document_per_line() -> None:
    encoded = encode_json_lines([{'id': 1}, {'id': 2, 'name': 'ñ'}, FindRequest(limit=3)])

    assert encoded == '{"id":1}\n{"id":2,"name":"ñ"}\n{"limit":3}\n'.encode()


def test_json_lines_empty() -> None:
    assert encode_json_lines([]) == b''


def test_json_lines_error() -> None:
    with pytest.raises(PayloadEncodingError):
        encode_json_lines([{'id': 1}, {'bad': object()}])
