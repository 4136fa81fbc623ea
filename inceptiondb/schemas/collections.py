"""Collection schemas."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from inceptiondb.schemas.types import BaseStrictModel, PermissiveModel


class Collection(PermissiveModel):
    """Collection metadata entry returned by the API."""

    name: str = ''
    total: int = 0  # Number of documents
    indexes: int = 0  # Number of indexes
    defaults: Mapping[str, Any] | None = None  # Default document merged into inserted rows


class CreateCollectionRequest(BaseStrictModel):
    """Payload required to create a collection."""

    name: str
    defaults: Mapping[str, Any] | None = None
