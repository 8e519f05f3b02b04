"""
Identity provider abstraction.

Handlers only need ``AuthResolver.resolve``; signup and signin also use the
account-management side of ``IdentityProvider``. Supabase Auth (GoTrue) is
the production provider, with an in-memory double for tests/dev.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

import requests

from nearby.errors import InternalError, Unauthorized, ValidationError

REQUEST_TIMEOUT = 10  # seconds


class AuthResolver(Protocol):
    """Resolves a bearer token to a user id, raising ``Unauthorized``."""

    def resolve(self, token: str) -> str:
        ...


class IdentityProvider(AuthResolver, Protocol):
    """Account management on top of token resolution."""

    def create_user(self, email: str, password: str, metadata: dict) -> dict:
        ...

    def sign_in(self, email: str, password: str) -> dict:
        ...


def parse_bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise Unauthorized("Missing Authorization header")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise Unauthorized("Malformed Authorization header")
    return parts[1]


@dataclass
class _Account:
    id: str
    email: str
    password: str
    user_metadata: dict
    created_at: str

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "user_metadata": dict(self.user_metadata),
            "created_at": self.created_at,
        }


@dataclass
class InMemoryIdentityProvider:
    """Issues opaque tokens for in-process accounts."""

    accounts: dict[str, _Account] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)

    def create_user(self, email: str, password: str, metadata: dict) -> dict:
        email = email.strip().lower()
        if not email or "@" not in email:
            raise ValidationError("Unable to validate email address: invalid format")
        if len(password) < 6:
            raise ValidationError("Password should be at least 6 characters.")
        if email in self.accounts:
            raise ValidationError(
                "A user with this email address has already been registered"
            )
        account = _Account(
            id=str(uuid.uuid4()),
            email=email,
            password=password,
            user_metadata=dict(metadata),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self.accounts[email] = account
        return account.as_dict()

    def sign_in(self, email: str, password: str) -> dict:
        account = self.accounts.get(email.strip().lower())
        if not account or not secrets.compare_digest(account.password, password):
            raise ValidationError("Invalid login credentials")
        token = self.issue_token(account.id)
        return {"access_token": token, "user": account.as_dict()}

    def issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        self.tokens[token] = user_id
        return token

    def resolve(self, token: str) -> str:
        user_id = self.tokens.get(token)
        if user_id is None:
            raise Unauthorized("Invalid token")
        return user_id

    def reset(self) -> None:
        self.accounts.clear()
        self.tokens.clear()


def _error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    for key in ("msg", "message", "error_description", "error"):
        if payload.get(key):
            return str(payload[key])
    return f"HTTP {response.status_code}"


class SupabaseIdentityProvider:
    """
    Supabase Auth (GoTrue) over its REST API.

    Account creation uses the service-role key; token resolution and password
    sign-in use the anon key, the same split the browser client relies on.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        service_role_key: str,
        session: Optional[requests.Session] = None,
    ):
        if not url:
            raise ValueError("SUPABASE_URL is required for SupabaseIdentityProvider")
        self.base_url = url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.session = session or requests.Session()

    def _headers(self, api_key: str, bearer: Optional[str] = None) -> dict:
        return {
            "apikey": api_key,
            "Authorization": f"Bearer {bearer or api_key}",
            "Content-Type": "application/json",
        }

    def create_user(self, email: str, password: str, metadata: dict) -> dict:
        response = self.session.post(
            f"{self.base_url}/admin/users",
            headers=self._headers(self.service_role_key),
            json={
                "email": email,
                "password": password,
                "user_metadata": metadata,
                # No email server is configured, so confirm immediately.
                "email_confirm": True,
            },
            timeout=REQUEST_TIMEOUT,
        )
        if 400 <= response.status_code < 500:
            raise ValidationError(_error_message(response))
        if not response.ok:
            raise InternalError(_error_message(response))
        payload = response.json()
        # Older GoTrue versions wrap the user object.
        return payload.get("user", payload)

    def sign_in(self, email: str, password: str) -> dict:
        response = self.session.post(
            f"{self.base_url}/token",
            params={"grant_type": "password"},
            headers=self._headers(self.anon_key),
            json={"email": email, "password": password},
            timeout=REQUEST_TIMEOUT,
        )
        if 400 <= response.status_code < 500:
            raise ValidationError(_error_message(response))
        if not response.ok:
            raise InternalError(_error_message(response))
        return response.json()

    def resolve(self, token: str) -> str:
        response = self.session.get(
            f"{self.base_url}/user",
            headers=self._headers(self.anon_key, bearer=token),
            timeout=REQUEST_TIMEOUT,
        )
        if 400 <= response.status_code < 500:
            raise Unauthorized(_error_message(response))
        if not response.ok:
            raise InternalError(_error_message(response))
        user_id = response.json().get("id")
        if not user_id:
            raise Unauthorized("Token did not resolve to a user")
        return user_id
