# ABOUTME: Registry of metadata providers with enable/priority/credential configuration.
# ABOUTME: Fans searches out to enabled providers concurrently and picks a single best match.

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

from bookshelf.metadata.amazon import AmazonProvider
from bookshelf.metadata.comicvine import ComicVineProvider
from bookshelf.metadata.goodreads import GoodreadsProvider
from bookshelf.metadata.googlebooks import GoogleBooksProvider
from bookshelf.metadata.hardcover import HardcoverProvider
from bookshelf.metadata.openlibrary import OpenLibraryProvider
from bookshelf.metadata.provider import MetadataProvider
from bookshelf.metadata.scoring import score_result
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 10
FIND_BEST_LIMIT = 5


@dataclass(frozen=True)
class ProviderConfig:
    """Per-provider settings: on/off, ordering, and optional credentials."""

    enabled: bool
    priority: int
    api_key: str | None = None
    domain: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProviderConfig":
        """Build from the settings wire shape (``apiKey`` camelCase)."""
        return cls(
            enabled=bool(data.get("enabled", False)),
            priority=int(data.get("priority", 0)),
            api_key=data.get("apiKey") or data.get("api_key"),
            domain=data.get("domain"),
        )

    def merged(self, update: "ProviderConfig | Mapping[str, Any]") -> "ProviderConfig":
        """Overlay an update; with a mapping only the keys it names change."""
        if isinstance(update, ProviderConfig):
            return update
        changes: dict[str, Any] = {}
        if "enabled" in update:
            changes["enabled"] = bool(update["enabled"])
        if "priority" in update:
            changes["priority"] = int(update["priority"])
        if "apiKey" in update or "api_key" in update:
            changes["api_key"] = update.get("apiKey", update.get("api_key")) or None
        if "domain" in update:
            changes["domain"] = update["domain"]
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"enabled": self.enabled, "priority": self.priority}
        if self.api_key:
            out["apiKey"] = self.api_key
        if self.domain:
            out["domain"] = self.domain
        return out


DEFAULT_SETTINGS: dict[str, ProviderConfig] = {
    "googlebooks": ProviderConfig(enabled=True, priority=1),
    "openlibrary": ProviderConfig(enabled=True, priority=2),
    "goodreads": ProviderConfig(enabled=True, priority=3),
    "hardcover": ProviderConfig(enabled=False, priority=4),
    "amazon": ProviderConfig(enabled=False, priority=5, domain="com"),
    "comicvine": ProviderConfig(enabled=False, priority=6),
}


@dataclass(frozen=True)
class ProviderInfo:
    """A provider's identity and configuration, for listings."""

    name: str
    display_name: str
    enabled: bool
    priority: int
    requires_auth: bool
    has_api_key: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "enabled": self.enabled,
            "priority": self.priority,
            "requiresAuth": self.requires_auth,
            "hasApiKey": self.has_api_key,
        }


def default_providers() -> dict[str, MetadataProvider]:
    """One live instance of every built-in provider, keyed by name."""
    providers: list[MetadataProvider] = [
        GoogleBooksProvider(),
        OpenLibraryProvider(),
        GoodreadsProvider(),
        HardcoverProvider(),
        AmazonProvider(),
        ComicVineProvider(),
    ]
    return {provider.name: provider for provider in providers}


class MetadataProviderRegistry:
    """Holds one configured instance per provider and aggregates their results.

    Searches never raise: a provider that fails, even with an unexpected
    exception, contributes an empty list for its slot.
    """

    def __init__(
        self,
        providers: Mapping[str, MetadataProvider] | None = None,
        settings: Mapping[str, ProviderConfig | Mapping[str, Any]] | None = None,
    ) -> None:
        self._providers: dict[str, MetadataProvider] = dict(
            providers if providers is not None else default_providers()
        )
        self._settings: dict[str, ProviderConfig] = {
            name: DEFAULT_SETTINGS.get(name, ProviderConfig(enabled=False, priority=99))
            for name in self._providers
        }
        if settings:
            self.configure(settings)

    @property
    def settings(self) -> dict[str, ProviderConfig]:
        return dict(self._settings)

    def configure(self, settings: Mapping[str, ProviderConfig | Mapping[str, Any]]) -> None:
        """Merge partial settings and push credentials/domain into live adapters."""
        for name, update in settings.items():
            if name not in self._providers:
                logger.warning("Ignoring settings for unknown provider %r", name)
                continue
            config = self._settings[name].merged(update)
            self._settings[name] = config
            provider = self._providers[name]

            set_api_key = getattr(provider, "set_api_key", None)
            if set_api_key is not None and config.api_key:
                set_api_key(config.api_key)
            set_domain = getattr(provider, "set_domain", None)
            if set_domain is not None and config.domain:
                set_domain(config.domain)

    def get_provider(self, name: str) -> MetadataProvider | None:
        return self._providers.get(name)

    def get_enabled_providers(self) -> list[MetadataProvider]:
        """Enabled providers, ascending by priority (stable for ties)."""
        enabled = [(name, config) for name, config in self._settings.items() if config.enabled]
        enabled.sort(key=lambda item: item[1].priority)
        return [self._providers[name] for name, _ in enabled]

    def get_provider_info(self) -> list[ProviderInfo]:
        info: list[ProviderInfo] = []
        for name, provider in self._providers.items():
            config = self._settings[name]
            has_key = bool(config.api_key) or bool(getattr(provider, "has_api_key", False))
            info.append(
                ProviderInfo(
                    name=name,
                    display_name=provider.display_name,
                    enabled=config.enabled,
                    priority=config.priority,
                    requires_auth=provider.requires_auth,
                    has_api_key=has_key,
                )
            )
        return info

    async def _guarded_search(
        self, provider: MetadataProvider, request: MetadataSearchRequest, limit: int
    ) -> list[BookMetadataResult]:
        try:
            return await provider.search(request, limit)
        except Exception:
            logger.exception("Error searching %s", provider.name)
            return []

    async def search_all(
        self,
        request: MetadataSearchRequest,
        limit: int = DEFAULT_SEARCH_LIMIT,
        providers: Iterable[str] | None = None,
    ) -> dict[str, list[BookMetadataResult]]:
        """Search every enabled provider (or the named subset) concurrently.

        Returns provider name -> results, in priority order.
        """
        selected = self.get_enabled_providers()
        if providers is not None:
            wanted = set(providers)
            selected = [p for p in selected if p.name in wanted]

        batches = await asyncio.gather(
            *(self._guarded_search(provider, request, limit) for provider in selected)
        )
        return {provider.name: results for provider, results in zip(selected, batches)}

    async def search(
        self, name: str, request: MetadataSearchRequest, limit: int = DEFAULT_SEARCH_LIMIT
    ) -> list[BookMetadataResult]:
        """Search a single provider, enabled or not."""
        provider = self._providers.get(name)
        if provider is None:
            logger.error("Unknown provider: %s", name)
            return []
        return await self._guarded_search(provider, request, limit)

    async def fetch_details(self, name: str, provider_id: str) -> BookMetadataResult | None:
        provider = self._providers.get(name)
        if provider is None:
            logger.error("Unknown provider: %s", name)
            return None
        try:
            return await provider.fetch_details(provider_id)
        except Exception:
            logger.exception("Error fetching details from %s", name)
            return None

    async def find_best(self, request: MetadataSearchRequest) -> BookMetadataResult | None:
        """Score every result from every enabled provider; the highest wins.

        Ties go to the first-seen result: providers in priority order, then
        each provider's own result order.
        """
        all_results = await self.search_all(request, limit=FIND_BEST_LIMIT)

        best: BookMetadataResult | None = None
        best_score = -1
        for results in all_results.values():
            for result in results:
                score = score_result(request, result)
                if score > best_score:
                    best, best_score = result, score
        return best
