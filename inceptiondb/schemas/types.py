"""
Shared type definitions for schemas.

Centralizes the base models and type helpers used by request and response schemas.

Layering:
- This module provides FOUNDATION types (BaseStrictModel, PermissiveModel, type_adapter)
- Request schemas inherit from BaseStrictModel (we control every field we send)
- Response schemas inherit from PermissiveModel (the server may add fields at any time)
"""

from __future__ import annotations

from functools import cache
from typing import Any

import pydantic

# ==============================================================================
# Base Strict Model (Foundation)
# ==============================================================================


class BaseStrictModel(pydantic.BaseModel):
    """
    Foundation strict model for request payloads.

    Uses extra='forbid' so a misspelled option fails at construction time
    instead of being silently sent to the server.
    """

    model_config = pydantic.ConfigDict(
        extra='forbid',  # Reject unknown fields (fail-fast)
        strict=True,  # Strict type coercion
        frozen=True,  # Immutable after creation
    )


# ==============================================================================
# Permissive Model (Foundation)
# ==============================================================================


class PermissiveModel(pydantic.BaseModel):
    """
    Foundation permissive model for server responses.

    Symmetry with BaseStrictModel:
    - BaseStrictModel: extra='forbid' (rejects unknown fields)
    - PermissiveModel: extra='allow' (keeps unknown fields)
    """

    model_config = pydantic.ConfigDict(
        extra='allow',  # Accept unknown fields (graceful fallback)
        strict=True,  # Strict type coercion for known fields
        frozen=True,  # Immutable after creation
    )

    def get_extra_fields(self) -> dict[str, object]:
        """Get extra fields captured by this permissive model.

        Returns only the unknown fields, not defined model fields.
        """
        return dict(self.__pydantic_extra__) if self.__pydantic_extra__ else {}


# ==============================================================================
# Type Adapters
# ==============================================================================


@cache
def type_adapter(item_type: Any) -> pydantic.TypeAdapter[Any]:
    """
    Get a (cached) TypeAdapter for decoding JSON into item_type.

    Building a TypeAdapter compiles a validator, so streams decoding thousands of
    records into the same type must not rebuild it per record.
    """
    return pydantic.TypeAdapter(item_type)
