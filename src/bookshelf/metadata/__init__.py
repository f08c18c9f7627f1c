# ABOUTME: Metadata package: provider adapters, the aggregating registry, and quick lookups.
# ABOUTME: Exports BookMetadataResult, the interchange type every provider returns.

from bookshelf.metadata.http import MetadataFetchError
from bookshelf.metadata.provider import MetadataProvider
from bookshelf.metadata.registry import MetadataProviderRegistry, ProviderConfig
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest

__all__ = [
    "BookMetadataResult",
    "MetadataFetchError",
    "MetadataProvider",
    "MetadataProviderRegistry",
    "MetadataSearchRequest",
    "ProviderConfig",
]
