"""
Query request schemas shared by the find, patch and remove endpoints.

Every field left at its default is omitted from the request body, so an empty
FindRequest() is sent as {} and the server applies its own defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pydantic

from inceptiondb.schemas.types import BaseStrictModel


class QueryOptions(BaseStrictModel):
    """Query parameters shared by find, patch and remove operations."""

    mode: str = ''  # Traversal mode (e.g. 'fullscan')
    index: str = ''  # Index used to traverse the collection
    filter: Mapping[str, Any] | None = None
    skip: int = 0
    limit: int = 0
    reverse: bool = False
    from_: Mapping[str, Any] | None = pydantic.Field(
        default=None,
        validation_alias=pydantic.AliasChoices('from_', 'from'),
        serialization_alias='from',
    )  # Lower bound for range traversal ('from' is a Python keyword)
    to: Mapping[str, Any] | None = None  # Upper bound for range traversal
    value: str = ''  # Exact value lookup on a map index


class FindRequest(QueryOptions):
    """Options available when querying documents."""


class PatchRequest(QueryOptions):
    """
    Payload required to patch documents.

    `patch` is always sent, even when None (serialized as null).
    """

    patch: Any


class RemoveRequest(QueryOptions):
    """Parameters accepted by the remove endpoint."""
