"""
InceptionDB client.

Python client for the InceptionDB REST API: collections, indexes and JSON Lines
document streams.
"""

from inceptiondb.client import APICredentials, InceptionDBClient
from inceptiondb.encoding import encode_json_lines, encode_json_object, encode_json_payload, encode_query_request
from inceptiondb.exceptions import (
    APIError,
    EndOfStream,
    InceptionDBError,
    PayloadEncodingError,
    ResponseDecodeError,
    StreamDecodeError,
)
from inceptiondb.schemas import (
    Collection,
    CreateCollectionRequest,
    CreateIndexRequest,
    FindRequest,
    Index,
    PatchRequest,
    QueryOptions,
    RemoveRequest,
)
from inceptiondb.stream import STOP_ITERATION, IterationControl, JsonStream, iterate

__all__ = [
    'APICredentials',
    'APIError',
    'Collection',
    'CreateCollectionRequest',
    'CreateIndexRequest',
    'EndOfStream',
    'FindRequest',
    'InceptionDBClient',
    'InceptionDBError',
    'Index',
    'IterationControl',
    'JsonStream',
    'PatchRequest',
    'PayloadEncodingError',
    'QueryOptions',
    'RemoveRequest',
    'ResponseDecodeError',
    'STOP_ITERATION',
    'StreamDecodeError',
    'encode_json_lines',
    'encode_json_object',
    'encode_json_payload',
    'encode_query_request',
    'iterate',
]
