"""
HTTP client for the nearby chat API.
"""

from __future__ import annotations

from typing import Optional

import requests

REQUEST_TIMEOUT = 15  # seconds


class ApiClientError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class NearbyApiClient:
    """Thin wrapper over the API endpoints. Returns decoded JSON payloads."""

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, *, json: dict | None = None) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        response = self.session.request(
            method,
            f"{self.base_url}{path}",
            headers=headers,
            json=json,
            timeout=REQUEST_TIMEOUT,
        )
        try:
            payload = response.json()
        except ValueError:
            payload = {"error": response.text}
        if not response.ok:
            raise ApiClientError(response.status_code, payload.get("error", response.reason))
        return payload

    def health(self) -> dict:
        return self._request("GET", "/health")

    def signup(self, email: str, password: str, name: str, avatar: str) -> dict:
        return self._request(
            "POST",
            "/signup",
            json={"email": email, "password": password, "name": name, "avatar": avatar},
        )["user"]

    def signin(self, email: str, password: str) -> dict:
        """Sign in and keep the returned token for later calls."""
        payload = self._request(
            "POST", "/signin", json={"email": email, "password": password}
        )
        self.access_token = payload["accessToken"]
        return payload["user"]

    def update_location(self, latitude: float, longitude: float) -> bool:
        payload = self._request(
            "POST",
            "/update-location",
            json={"latitude": latitude, "longitude": longitude},
        )
        return payload["success"]

    def nearby_users(self) -> list[dict]:
        return self._request("GET", "/nearby-users")["users"]

    def send_message(self, recipient_id: str, message: str) -> dict:
        payload = self._request(
            "POST",
            "/send-message",
            json={"recipientId": recipient_id, "message": message},
        )
        return payload["message"]

    def get_messages(self, recipient_id: str) -> list[dict]:
        return self._request("GET", f"/get-messages/{recipient_id}")["messages"]
