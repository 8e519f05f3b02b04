"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from nearby.auth import (
    AuthResolver,
    IdentityProvider,
    InMemoryIdentityProvider,
    SupabaseIdentityProvider,
    parse_bearer_token,
)
from nearby.config import get_settings
from nearby.errors import Unauthorized
from nearby.kv_store import InMemoryStore, RedisStore, SqlStore, Store
from nearby.records import SocialRecords

logger = logging.getLogger(__name__)

_store: Store | None = None
_identity_provider: IdentityProvider | None = None


def get_store() -> Store:
    """
    Return a singleton store so state persists across requests.
    """
    global _store
    if _store:
        return _store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _store = InMemoryStore()
    elif settings.database_url:
        _store = SqlStore(settings.database_url, table_name=settings.kv_table_name)
    elif settings.redis_url:
        _store = RedisStore(url=settings.redis_url, namespace=settings.redis_namespace)
    else:
        _store = InMemoryStore()
    return _store


def get_identity_provider() -> IdentityProvider:
    global _identity_provider
    if _identity_provider:
        return _identity_provider

    settings = get_settings()
    if (
        settings.use_in_memory_backends
        or not settings.supabase_url
        or not settings.supabase_anon_key
        or not settings.supabase_service_role_key
    ):
        _identity_provider = InMemoryIdentityProvider()
    else:
        _identity_provider = SupabaseIdentityProvider(
            url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            service_role_key=settings.supabase_service_role_key,
        )
    return _identity_provider


def get_auth_resolver(
    identity: IdentityProvider = Depends(get_identity_provider),
) -> AuthResolver:
    return identity


def get_records(store: Store = Depends(get_store)) -> SocialRecords:
    return SocialRecords(store)


def get_current_user_id(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    resolver: AuthResolver = Depends(get_auth_resolver),
) -> str:
    """Resolve the caller from the bearer token, or raise ``Unauthorized``."""
    try:
        token = parse_bearer_token(authorization)
        return resolver.resolve(token)
    except Unauthorized as exc:
        logger.info("%s unauthorized: %s", request.url.path, exc.message)
        raise
