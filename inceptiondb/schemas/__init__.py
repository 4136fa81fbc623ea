"""Request and response schemas for the InceptionDB HTTP API."""

from inceptiondb.schemas.collections import Collection, CreateCollectionRequest
from inceptiondb.schemas.indexes import CreateIndexRequest, Index, flatten_fields, unflatten_fields
from inceptiondb.schemas.queries import FindRequest, PatchRequest, QueryOptions, RemoveRequest

__all__ = [
    'Collection',
    'CreateCollectionRequest',
    'CreateIndexRequest',
    'FindRequest',
    'Index',
    'PatchRequest',
    'QueryOptions',
    'RemoveRequest',
    'flatten_fields',
    'unflatten_fields',
]
