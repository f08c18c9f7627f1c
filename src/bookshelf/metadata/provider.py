# ABOUTME: MetadataProvider protocol defining the contract for metadata sources.
# ABOUTME: Google Books, Open Library, Goodreads, Amazon, ComicVine, and Hardcover implement this.

from typing import Protocol, runtime_checkable

from bookshelf.metadata.http import MetadataFetchError
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest


@runtime_checkable
class MetadataProvider(Protocol):
    """Protocol for metadata lookup services.

    ``search`` never raises: network and parse failures are logged and come
    back as an empty list. ``fetch_details`` returns None for identifiers
    that are unknown or whose payload cannot be parsed.
    """

    @property
    def name(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    @property
    def requires_auth(self) -> bool: ...

    async def search(
        self, request: MetadataSearchRequest, limit: int = 10
    ) -> list[BookMetadataResult]: ...

    async def fetch_details(self, provider_id: str) -> BookMetadataResult | None: ...

    async def is_available(self) -> bool: ...


# Failures an adapter absorbs at its boundary: network errors from the client
# and shape errors from payloads that no longer look the way they used to.
ADAPTER_ERRORS: tuple[type[Exception], ...] = (
    MetadataFetchError,
    KeyError,
    TypeError,
    ValueError,
    AttributeError,
    IndexError,
)
