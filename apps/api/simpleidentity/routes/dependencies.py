"""Dependency wiring for routes."""

from __future__ import annotations

from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request

from simpleidentity.adapters.auth.registry import ProviderRegistry
from simpleidentity.repositories.accounts import AccountsRepository, KeyValueAccountsRepository
from simpleidentity.repositories.store import KeyValueStore
from simpleidentity.services.auth import AuthService


def _request_correlation_id(request: Request) -> str:
    existing = getattr(request.state, "correlation_id", None)
    if isinstance(existing, str) and existing:
        return existing

    correlation_id = request.headers.get("X-Correlation-Id")
    if correlation_id:
        request.state.correlation_id = correlation_id
        return correlation_id

    generated = f"req-{uuid4()}"
    request.state.correlation_id = generated
    return generated


def get_request_correlation_id(request: Request) -> str:
    return _request_correlation_id(request)


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def get_registry(request: Request) -> ProviderRegistry:
    return request.app.state.registry


def get_accounts_repository(store: Annotated[KeyValueStore, Depends(get_store)]) -> AccountsRepository:
    return KeyValueAccountsRepository(store)


def get_auth_service(
    registry: Annotated[ProviderRegistry, Depends(get_registry)],
    repository: Annotated[AccountsRepository, Depends(get_accounts_repository)],
) -> AuthService:
    return AuthService(registry, repository)
