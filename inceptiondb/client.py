"""
High level HTTP client for the InceptionDB REST API.

JSON endpoints (collections, indexes, defaults, size) return decoded models.
Streaming endpoints (insert, find, patch, remove) return a JsonStream that the
caller owns and must close (or consume with iterate() / a `with` block).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Self
from urllib.parse import quote

import attrs
import httpx
import pydantic

from inceptiondb.config.base import BaseClientSettings
from inceptiondb.encoding import (
    RequestContent,
    encode_json_lines,
    encode_json_object,
    encode_json_payload,
    encode_query_request,
)
from inceptiondb.exceptions import (
    MAX_ERROR_BODY,
    APIError,
    PayloadEncodingError,
    ResponseDecodeError,
    parse_error_response,
)
from inceptiondb.protocols import LoggerProtocol, NullLogger
from inceptiondb.schemas.collections import Collection, CreateCollectionRequest
from inceptiondb.schemas.indexes import CreateIndexRequest, Index
from inceptiondb.schemas.queries import FindRequest, PatchRequest, RemoveRequest
from inceptiondb.schemas.types import type_adapter
from inceptiondb.stream import JsonStream

DEFAULT_TIMEOUT = 30.0
JSON_CONTENT_TYPE = 'application/json'
COLLECTIONS_PATH = '/v1/collections'
PATH_SEGMENT_SAFE = ':@&=+$'  # sub-delimiters a path segment may carry unescaped


@attrs.define(frozen=True)
class APICredentials:
    """API key pair sent with every request. Empty values are not sent."""

    api_key: str = ''
    api_secret: str = ''

    def headers(self) -> dict[str, str]:
        headers = {}
        if self.api_key:
            headers['Api-Key'] = self.api_key
        if self.api_secret:
            headers['Api-Secret'] = self.api_secret
        return headers


class InceptionDBClient:
    """
    InceptionDB REST API client.

    Example:
        with InceptionDBClient('https://inceptiondb.io', api_key=key, api_secret=secret) as client:
            client.create_collection(CreateCollectionRequest(name='users'))
            client.insert_documents('users', {'id': 1}, {'id': 2}).close()
            iterate(client.find('users', FindRequest(limit=10)), print)
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        api_secret: str | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        logger: LoggerProtocol | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Server URL including scheme and host (e.g. https://inceptiondb.io)
            api_key: Optional API key (sent as Api-Key header)
            api_secret: Optional API secret (sent as Api-Secret header)
            http_client: Optional httpx.Client to send requests with (caller keeps ownership)
            timeout: Timeout in seconds for the client created when http_client is None
            logger: Optional logger (default: NullLogger)

        Raises:
            ValueError: If base_url is blank, unparsable, or lacks scheme or host
        """
        if not base_url.strip():
            raise ValueError('base URL is required')
        try:
            parsed = httpx.URL(base_url)
        except httpx.InvalidURL as e:
            raise ValueError(f'Invalid base URL {base_url!r}: {e}') from e
        if not parsed.scheme:
            raise ValueError('base URL must include the scheme (http or https)')
        if not parsed.host:
            raise ValueError('base URL must include the host')

        self.base_url = parsed
        self.credentials = APICredentials(api_key=api_key or '', api_secret=api_secret or '')
        self.logger: LoggerProtocol = logger or NullLogger()
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: BaseClientSettings,
        *,
        http_client: httpx.Client | None = None,
        logger: LoggerProtocol | None = None,
    ) -> Self:
        """Create a client from configuration (see inceptiondb.config)."""
        return cls(
            settings.BASE_URL,
            api_key=settings.API_KEY,
            api_secret=settings.API_SECRET,
            http_client=http_client,
            timeout=settings.TIMEOUT,
            logger=logger,
        )

    def close(self) -> None:
        """Close the underlying httpx.Client if this client created it."""
        if self._owns_http_client:
            self._http_client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ==========================================================================
    # Collections
    # ==========================================================================

    def list_collections(self) -> list[Collection]:
        """Retrieve the metadata of every collection on the server."""
        return self._do_json('GET', COLLECTIONS_PATH, None, list[Collection]) or []

    def create_collection(self, request: CreateCollectionRequest | Any) -> Collection:
        """
        Create a new collection and return its metadata.

        Raises:
            ValueError: If request is None
            PayloadEncodingError: If the request cannot be serialized
            APIError: If the server rejects the request
        """
        if request is None:
            raise ValueError('create collection request is required')
        body = self._encode('create collection', encode_json_payload, request)
        return self._do_json('POST', COLLECTIONS_PATH, body, Collection) or Collection()

    def get_collection(self, collection: str) -> Collection:
        """Retrieve the metadata of a single collection."""
        return self._do_json('GET', collection_path(collection), None, Collection) or Collection()

    def drop_collection(self, collection: str) -> None:
        """Delete the collection and its indexes."""
        self._do_json('POST', collection_action_path(collection, 'dropCollection'), None, None)

    def set_defaults(self, collection: str, defaults: Mapping[str, Any] | None) -> dict[str, Any]:
        """
        Configure the default document merged into newly inserted rows.

        Returns:
            The defaults as stored by the server
        """
        body = self._encode('defaults', encode_json_object, defaults)
        path = collection_action_path(collection, 'setDefaults')
        return self._do_json('POST', path, body, dict[str, Any]) or {}

    def size(self, collection: str) -> dict[str, Any]:
        """Return usage statistics of the collection. This endpoint is experimental."""
        return self._do_json('POST', collection_action_path(collection, 'size'), None, dict[str, Any]) or {}

    # ==========================================================================
    # Indexes
    # ==========================================================================

    def list_indexes(self, collection: str) -> list[Index]:
        """Return the indexes registered in a collection."""
        return self._do_json('POST', collection_action_path(collection, 'listIndexes'), None, list[Index]) or []

    def create_index(self, collection: str, request: CreateIndexRequest | Any) -> Index:
        """
        Register a new index and return its metadata.

        Raises:
            ValueError: If request is None
            PayloadEncodingError: If the request cannot be serialized
            APIError: If the server rejects the request
        """
        if request is None:
            raise ValueError('create index request is required')
        body = self._encode('create index', encode_json_payload, request)
        return self._do_json('POST', collection_action_path(collection, 'createIndex'), body, Index) or Index()

    def get_index(self, collection: str, name: str) -> Index:
        """Retrieve a single index by name."""
        body = self._encode('get index', encode_json_object, {'name': name})
        return self._do_json('POST', collection_action_path(collection, 'getIndex'), body, Index) or Index()

    def drop_index(self, collection: str, name: str) -> None:
        """Remove an index from a collection."""
        body = self._encode('drop index', encode_json_object, {'name': name})
        self._do_json('POST', collection_action_path(collection, 'dropIndex'), body, None)

    # ==========================================================================
    # Documents (streaming)
    # ==========================================================================

    def insert_stream(self, collection: str, content: RequestContent | None) -> JsonStream:
        """
        Send a JSON Lines payload to the insert endpoint.

        Args:
            collection: Collection name
            content: JSON Lines bytes or binary file object (None sends an empty body)

        Returns:
            Stream with the inserted documents
        """
        return self._stream('POST', collection_action_path(collection, 'insert'), content)

    def insert_documents(self, collection: str, *documents: Any) -> JsonStream:
        """Encode documents as JSON Lines and insert them. Returns the inserted documents."""
        content = None
        if documents:
            content = self._encode('insert', encode_json_lines, documents)
        return self.insert_stream(collection, content)

    def find(self, collection: str, request: FindRequest | Any = None) -> JsonStream:
        """Stream the documents matching the query (all documents when request is None)."""
        body = self._encode('find', encode_query_request, request)
        return self._stream('POST', collection_action_path(collection, 'find'), body)

    def patch(self, collection: str, request: PatchRequest | Any) -> JsonStream:
        """
        Apply a partial update to the documents matched by the query.

        Returns:
            Stream with every patched document

        Raises:
            ValueError: If request is None
        """
        if request is None:
            raise ValueError('patch request is required')
        body = self._encode('patch', encode_query_request, request)
        return self._stream('POST', collection_action_path(collection, 'patch'), body)

    def remove(self, collection: str, request: RemoveRequest | Any = None) -> JsonStream:
        """Delete the documents matched by the query and stream them back."""
        body = self._encode('remove', encode_query_request, request)
        return self._stream('POST', collection_action_path(collection, 'remove'), body)

    # ==========================================================================
    # Transport
    # ==========================================================================

    @staticmethod
    def _encode[T](operation: str, encoder: Callable[[Any], T], payload: Any) -> T:
        try:
            return encoder(payload)
        except PayloadEncodingError as e:
            raise PayloadEncodingError(f'encode {operation} request: {e}') from e

    def _stream(self, method: str, path: str, body: RequestContent | None) -> JsonStream:
        response = self._send(method, path, body, JSON_CONTENT_TYPE)
        return JsonStream(response)

    def _do_json[T](self, method: str, path: str, body: RequestContent | None, result_type: type[T] | Any) -> T | None:
        """
        Send a request and decode the single JSON value of the response.

        Returns:
            Decoded value, or None for 204 responses, blank bodies, or result_type None
        """
        response = self._send(method, path, body)
        try:
            if result_type is None or response.status_code == httpx.codes.NO_CONTENT:
                for _ in response.iter_bytes():
                    pass
                return None

            data = response.read()
            if not data.strip():
                return None
            try:
                return type_adapter(result_type).validate_json(data)
            except pydantic.ValidationError as e:
                raise ResponseDecodeError(f'{method} {path}: unexpected response body: {e}') from e
        finally:
            response.close()

    def _send(
        self,
        method: str,
        path: str,
        body: RequestContent | None,
        content_type: str = '',
    ) -> httpx.Response:
        """
        Send a request and return the (still open) streamed response.

        Raises:
            APIError: If the server answers with status >= 400 (the response is closed)
            httpx.HTTPError: If the request cannot be sent
        """
        headers = self.credentials.headers()
        if not content_type and body is not None:
            content_type = JSON_CONTENT_TYPE
        if content_type:
            headers['Content-Type'] = content_type

        request = self._http_client.build_request(
            method,
            self.base_url.join(path),
            content=body,
            headers=headers,
        )
        self.logger.info(f'{method} {path}')
        response = self._http_client.send(request, stream=True)

        if response.status_code >= 400:
            try:
                error = parse_error_response(response.status_code, _read_capped(response))
            except httpx.HTTPError as e:
                error = APIError(response.status_code, message=str(e))
            finally:
                response.close()
            self.logger.warning(f'{method} {path} failed: {error}')
            raise error

        return response


# ==============================================================================
# Helpers
# ==============================================================================


def collection_path(collection: str) -> str:
    return f'{COLLECTIONS_PATH}/{quote(collection, safe=PATH_SEGMENT_SAFE)}'


def collection_action_path(collection: str, action: str) -> str:
    return f'{collection_path(collection)}:{action}'


def _read_capped(response: httpx.Response) -> bytes:
    """Read at most MAX_ERROR_BODY bytes of the response body."""
    data = bytearray()
    for chunk in response.iter_bytes():
        data.extend(chunk)
        if len(data) >= MAX_ERROR_BODY:
            break
    return bytes(data[:MAX_ERROR_BODY])
