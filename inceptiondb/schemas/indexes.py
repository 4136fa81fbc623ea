"""
Index schemas and the flattened-options codec.

The HTTP API describes an index as one flat JSON object: two reserved keys
("name" and "type") plus any number of type-specific options next to them:

    {"name": "by-id", "type": "map", "field": "id", "sparse": false}

In Python the options live in their own mapping so the fixed fields stay typed:

    Index(name='by-id', type='map', options={'field': 'id', 'sparse': False})

flatten_fields() and unflatten_fields() convert between both shapes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

import pydantic

from inceptiondb.schemas.types import BaseStrictModel

FIXED_FIELDS = ('name', 'type')


# ==============================================================================
# Flatten / Unflatten Codec
# ==============================================================================


def flatten_fields(
    fixed: Mapping[str, str],
    options: Mapping[str, Any] | None,
    *,
    omit_empty: bool = True,
) -> dict[str, Any]:
    """
    Merge fixed fields and dynamic options into one JSON object.

    Fixed fields are written first, then every option. An option named like a
    fixed field overwrites it (last write wins); callers must not rely on that.

    Args:
        fixed: Fixed field name -> value (e.g. {'name': ..., 'type': ...})
        options: Dynamic options, or None
        omit_empty: Skip fixed fields whose value is empty

    Returns:
        Flat dict ready for JSON serialization
    """
    flat: dict[str, Any] = {}
    for key, value in fixed.items():
        if omit_empty and not value:
            continue
        flat[key] = value
    if options:
        flat.update(options)
    return flat


def unflatten_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    """
    Split a flat JSON object into fixed fields and dynamic options.

    "name" and "type" are only taken when they are strings; otherwise they are
    dropped silently. Both keys are removed before the remainder becomes the
    options mapping, which is None when nothing remains. raw is not modified.

    Returns:
        Dict with 'options' plus whichever of 'name' and 'type' were strings
    """
    remaining = dict(raw)
    fields: dict[str, Any] = {}
    for key in FIXED_FIELDS:
        value = remaining.pop(key, None)
        if isinstance(value, str):
            fields[key] = value
    fields['options'] = remaining or None
    return fields


def _is_partitioned(data: Mapping[str, Any]) -> bool:
    """Whether Python-side input already has the name/type/options shape (keyword construction)."""
    if 'options' not in data or set(data) - {*FIXED_FIELDS, 'options'}:
        return False
    return data['options'] is None or isinstance(data['options'], Mapping)


# ==============================================================================
# Models
# ==============================================================================


class _FlattenedOptionsModel(BaseStrictModel):
    """Base for models whose options are flattened next to name/type on the wire."""

    omit_empty_fixed_fields: ClassVar[bool] = True

    name: str = ''
    type: str = ''
    options: Mapping[str, Any] | None = None

    @pydantic.model_validator(mode='before')
    @classmethod
    def _unflatten(cls, data: Any, info: pydantic.ValidationInfo) -> Any:
        # JSON input is always the flat wire shape, even when an option is called "options".
        if not isinstance(data, Mapping):
            return data
        if info.mode != 'python' or not _is_partitioned(data):
            return unflatten_fields(data)
        return data

    @pydantic.field_validator('options', mode='after')
    @classmethod
    def _empty_options_are_absent(cls, v: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        return v or None

    @pydantic.model_serializer(mode='plain')
    def _flatten(self) -> dict[str, Any]:
        return flatten_fields(
            {'name': self.name, 'type': self.type},
            self.options,
            omit_empty=self.omit_empty_fixed_fields,
        )


class Index(_FlattenedOptionsModel):
    """Index configuration as returned by the API. Type-specific options live in `options`."""

    omit_empty_fixed_fields: ClassVar[bool] = False


class CreateIndexRequest(_FlattenedOptionsModel):
    """
    Parameters used to create an index.

    Only non-empty fixed fields are sent; options are flattened to top-level keys:

        CreateIndexRequest(name='by-id', type='map', options={'field': 'id'})
        -> {"name": "by-id", "type": "map", "field": "id"}
    """
