"""Provider registry keyed by provider type."""

from __future__ import annotations

import logging
import threading

import httpx

from simpleidentity.adapters.auth.apple import AppleProvider
from simpleidentity.adapters.auth.base import AuthProvider
from simpleidentity.adapters.auth.google import GoogleProvider
from simpleidentity.adapters.auth.guest import GuestProvider
from simpleidentity.core.config import Settings
from simpleidentity.domain.errors import ProviderNotFoundError
from simpleidentity.schemas.auth import ProviderType

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Maps provider types to provider instances.

    Registration normally happens once at startup; the lock only keeps the
    map consistent if it is mutated while requests are in flight.
    """

    def __init__(self) -> None:
        self._providers: dict[ProviderType, AuthProvider] = {}
        self._lock = threading.Lock()

    def get(self, provider_type: ProviderType) -> AuthProvider:
        with self._lock:
            provider = self._providers.get(provider_type)
        if provider is None:
            raise ProviderNotFoundError(str(getattr(provider_type, "value", provider_type)))
        return provider

    def add(self, provider_type: ProviderType, provider: AuthProvider) -> None:
        with self._lock:
            self._providers[provider_type] = provider

    def remove(self, provider_type: ProviderType) -> None:
        with self._lock:
            self._providers.pop(provider_type, None)

    def registered(self) -> list[ProviderType]:
        with self._lock:
            return sorted(self._providers, key=lambda provider_type: provider_type.value)


def build_registry(settings: Settings, http_client: httpx.Client) -> ProviderRegistry:
    """Register every provider the settings enable, sharing the caller-owned HTTP client."""
    registry = ProviderRegistry()

    if settings.guest_enabled:
        registry.add(ProviderType.GUEST, GuestProvider())
    if settings.google is not None:
        registry.add(ProviderType.GOOGLE, GoogleProvider(settings.google, http_client=http_client))
    if settings.apple is not None:
        registry.add(ProviderType.APPLE, AppleProvider(settings.apple, http_client=http_client))

    logger.info(
        "registry.built providers=%s",
        ",".join(provider_type.value for provider_type in registry.registered()),
    )
    return registry


__all__ = ["ProviderRegistry", "build_registry"]
