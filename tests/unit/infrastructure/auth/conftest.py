"""Fixtures for provider adapter tests."""

from collections.abc import Callable

import httpx
import jwt
import pytest

from fedauth.infrastructure.auth.base import OAuth2Provider
from fedauth.infrastructure.auth.nextcloud import new_nextcloud_provider

JWT_KEY = "test-secret-key-256-bits-long-xx"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable) -> None:
        self.requests: list[httpx.Request] = []

        async def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = handler(request)
            if hasattr(response, "__await__"):
                response = await response
            return response

        super().__init__(record)


@pytest.fixture
def transport_factory() -> Callable[[Callable], RecordingTransport]:
    """Build a RecordingTransport around a request handler."""
    return RecordingTransport


@pytest.fixture
def id_token_factory() -> Callable[[dict], str]:
    """Encode claims as a signed id_token."""

    def make(claims: dict) -> str:
        return jwt.encode(claims, JWT_KEY, algorithm="HS256")

    return make


@pytest.fixture
def nextcloud_factory() -> Callable[..., OAuth2Provider]:
    """Build a Nextcloud provider with credentials, optionally bound to a transport."""

    def make(transport: httpx.MockTransport | None = None) -> OAuth2Provider:
        provider = new_nextcloud_provider().configure(
            client_id="client-1",
            client_secret="secret-1",
            redirect_url="https://app.example.test/callback",
            auth_url="https://cloud.example.test/apps/oauth2/authorize",
            token_url="https://cloud.example.test/apps/oauth2/api/v1/token",
            user_info_url="https://cloud.example.test/ocs/v2.php/cloud/user?format=json",
        )
        if transport is not None:
            provider.use_http_client(httpx.AsyncClient(transport=transport))
        return provider

    return make
