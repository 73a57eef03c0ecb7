"""Unit tests for the shared OAuth2 provider engine."""

import asyncio
import json
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from fedauth.domain.auth.model.token import OAuth2Token
from fedauth.domain.auth.model.value import FlowStage
from fedauth.domain.shared.error import (
    ConfigurationError,
    FlowCancelledError,
    NormalizationError,
    TokenExchangeError,
    UserInfoFetchError,
)
from fedauth.infrastructure.auth.nextcloud import new_nextcloud_provider
from fedauth.infrastructure.auth.oidc import new_oidc_provider
from fedauth.infrastructure.auth.pkce import code_challenge


def _query(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestBuildAuthUrl:
    def test_embeds_standard_parameters(self, nextcloud_factory):
        provider = nextcloud_factory()

        request = provider.build_auth_url("state-123")

        assert request.url.startswith("https://cloud.example.test/apps/oauth2/authorize?")
        params = _query(request.url)
        assert params["client_id"] == "client-1"
        assert params["redirect_uri"] == "https://app.example.test/callback"
        assert params["response_type"] == "code"
        assert params["scope"] == "read:user user:email"
        assert params["state"] == "state-123"
        assert request.state == "state-123"

    def test_pkce_challenge_matches_returned_verifier(self, nextcloud_factory):
        provider = nextcloud_factory()

        request = provider.build_auth_url("s")

        params = _query(request.url)
        assert request.code_verifier is not None
        assert params["code_challenge"] == code_challenge(request.code_verifier)
        assert params["code_challenge_method"] == "S256"

    def test_each_call_generates_a_new_verifier(self, nextcloud_factory):
        provider = nextcloud_factory()

        first = provider.build_auth_url("s")
        second = provider.build_auth_url("s")

        assert first.code_verifier != second.code_verifier

    def test_no_challenge_without_pkce(self, nextcloud_factory):
        provider = nextcloud_factory().configure(pkce=False)

        request = provider.build_auth_url("s")

        assert request.code_verifier is None
        assert "code_challenge" not in _query(request.url)

    def test_extra_params_and_redirect_override(self, nextcloud_factory):
        provider = nextcloud_factory()

        request = provider.build_auth_url(
            "s",
            {"prompt": "consent"},
            redirect_url="https://other.example.test/cb",
        )

        params = _query(request.url)
        assert params["prompt"] == "consent"
        assert params["redirect_uri"] == "https://other.example.test/cb"
        assert request.redirect_url == "https://other.example.test/cb"
        # Override applies to this attempt only
        assert provider.redirect_url == "https://app.example.test/callback"

    def test_missing_client_id_raises_configuration_error(self):
        provider = new_nextcloud_provider()

        with pytest.raises(ConfigurationError) as exc_info:
            provider.build_auth_url("s")

        assert "client_id" in exc_info.value.message


class TestExchange:
    @pytest.mark.asyncio
    async def test_posts_authorization_code_grant(self, nextcloud_factory, transport_factory):
        transport = transport_factory(
            lambda request: httpx.Response(
                200,
                json={"access_token": "tok123", "refresh_token": "ref456", "expires_in": 3600},
            )
        )
        provider = nextcloud_factory(transport)

        before = datetime.now(UTC)
        token = await provider.exchange("the-code", "the-verifier")

        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://cloud.example.test/apps/oauth2/api/v1/token"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert _form(request) == {
            "grant_type": "authorization_code",
            "code": "the-code",
            "redirect_uri": "https://app.example.test/callback",
            "client_id": "client-1",
            "client_secret": "secret-1",
            "code_verifier": "the-verifier",
        }
        assert token.access_token == "tok123"
        assert token.refresh_token == "ref456"
        assert token.expiry is not None
        assert before + timedelta(seconds=3600) <= token.expiry

    @pytest.mark.asyncio
    async def test_omits_verifier_without_pkce(self, nextcloud_factory, transport_factory):
        transport = transport_factory(
            lambda request: httpx.Response(200, json={"access_token": "tok"})
        )
        provider = nextcloud_factory(transport).configure(pkce=False)

        token = await provider.exchange("code")

        assert "code_verifier" not in _form(transport.requests[0])
        assert token.expiry is None

    @pytest.mark.asyncio
    async def test_pkce_without_verifier_is_configuration_error(self, nextcloud_factory):
        provider = nextcloud_factory()

        with pytest.raises(ConfigurationError):
            await provider.exchange("code")

    @pytest.mark.asyncio
    async def test_missing_secret_is_configuration_error(self):
        provider = new_nextcloud_provider().configure(
            client_id="c", redirect_url="https://app.example.test/cb"
        )

        with pytest.raises(ConfigurationError) as exc_info:
            await provider.exchange("code", "verifier")

        assert "client_secret" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status_and_body(self, nextcloud_factory, transport_factory):
        transport = transport_factory(
            lambda request: httpx.Response(400, json={"error": "invalid_grant"})
        )
        provider = nextcloud_factory(transport)

        with pytest.raises(TokenExchangeError) as exc_info:
            await provider.exchange("stale-code", "verifier")

        error = exc_info.value
        assert error.status_code == 400
        assert "invalid_grant" in error.body
        assert error.provider == "nextcloud"
        assert error.stage == FlowStage.CODE_RECEIVED

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, nextcloud_factory, transport_factory):
        transport = transport_factory(lambda request: httpx.Response(200, text="not json"))
        provider = nextcloud_factory(transport)

        with pytest.raises(TokenExchangeError) as exc_info:
            await provider.exchange("code", "verifier")

        assert exc_info.value.body == "not json"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expires_in", ["1e15", "Infinity"])
    async def test_out_of_range_expires_in_raises(
        self, nextcloud_factory, transport_factory, expires_in
    ):
        body = f'{{"access_token": "tok", "expires_in": {expires_in}}}'
        transport = transport_factory(
            lambda request: httpx.Response(
                200, content=body.encode(), headers={"content-type": "application/json"}
            )
        )
        provider = nextcloud_factory(transport)

        with pytest.raises(TokenExchangeError) as exc_info:
            await provider.exchange("code", "verifier")

        assert exc_info.value.code == "oauth_error"
        assert exc_info.value.stage == FlowStage.CODE_RECEIVED

    @pytest.mark.asyncio
    async def test_missing_access_token_raises(self, nextcloud_factory, transport_factory):
        transport = transport_factory(
            lambda request: httpx.Response(200, json={"token_type": "bearer"})
        )
        provider = nextcloud_factory(transport)

        with pytest.raises(TokenExchangeError):
            await provider.exchange("code", "verifier")

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self, nextcloud_factory, transport_factory):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = nextcloud_factory(transport_factory(refuse))

        with pytest.raises(TokenExchangeError) as exc_info:
            await provider.exchange("code", "verifier")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_deadline_cancels_request(self, nextcloud_factory, transport_factory):
        async def hang(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json={"access_token": "late"})

        provider = nextcloud_factory(transport_factory(hang))

        with pytest.raises(FlowCancelledError) as exc_info:
            await provider.exchange("code", "verifier", timeout=0.05)

        assert exc_info.value.stage == FlowStage.CODE_RECEIVED


class TestFetchRawUserInfo:
    @pytest.mark.asyncio
    async def test_sends_bearer_and_provider_headers(self, nextcloud_factory, transport_factory):
        transport = transport_factory(lambda request: httpx.Response(200, content=b'{"a": 1}'))
        provider = nextcloud_factory(transport)

        data = await provider.fetch_raw_user_info(OAuth2Token(access_token="tok123"))

        assert data == b'{"a": 1}'
        request = transport.requests[0]
        assert request.method == "GET"
        assert request.headers["authorization"] == "Bearer tok123"
        assert request.headers["ocs-apirequest"] == "true"

    @pytest.mark.asyncio
    async def test_non_2xx_raises_user_info_error(self, nextcloud_factory, transport_factory):
        transport = transport_factory(lambda request: httpx.Response(401, text="Unauthorized"))
        provider = nextcloud_factory(transport)

        with pytest.raises(UserInfoFetchError) as exc_info:
            await provider.fetch_raw_user_info(OAuth2Token(access_token="tok"))

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "Unauthorized"
        assert exc_info.value.stage == FlowStage.TOKEN_EXCHANGED

    @pytest.mark.asyncio
    async def test_empty_url_uses_id_token_claims_without_http(
        self, transport_factory, id_token_factory
    ):
        transport = transport_factory(lambda request: httpx.Response(500))
        provider = new_oidc_provider().use_http_client(httpx.AsyncClient(transport=transport))
        token = OAuth2Token(
            access_token="tok",
            raw={"access_token": "tok", "id_token": id_token_factory({"sub": "abc"})},
        )

        data = await provider.fetch_raw_user_info(token)

        assert json.loads(data) == {"sub": "abc"}
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_empty_url_without_id_token_raises(self):
        provider = new_oidc_provider()

        with pytest.raises(NormalizationError) as exc_info:
            await provider.fetch_raw_user_info(OAuth2Token(access_token="tok"))

        assert exc_info.value.code == "missing_id_token"

    @pytest.mark.asyncio
    async def test_undecodable_id_token_raises(self):
        provider = new_oidc_provider()
        token = OAuth2Token(access_token="tok", raw={"id_token": "not-a-jwt"})

        with pytest.raises(NormalizationError) as exc_info:
            await provider.fetch_raw_user_info(token)

        assert exc_info.value.code == "invalid_id_token"


class TestNormalize:
    def test_rejects_non_object_payload(self, nextcloud_factory):
        provider = nextcloud_factory()

        with pytest.raises(NormalizationError):
            provider.normalize(b"[1, 2, 3]", OAuth2Token(access_token="tok"))

    def test_rejects_invalid_json(self, nextcloud_factory):
        provider = nextcloud_factory()

        with pytest.raises(NormalizationError) as exc_info:
            provider.normalize(b"{oops", OAuth2Token(access_token="tok"))

        assert exc_info.value.stage == FlowStage.RAW_PROFILE_FETCHED

    def test_error_carries_configured_provider_name(self, nextcloud_factory):
        provider = nextcloud_factory().configure(name="team-cloud")

        with pytest.raises(NormalizationError) as exc_info:
            provider.normalize(b'{"ocs": {"data": {}}}', OAuth2Token(access_token="tok"))

        assert exc_info.value.provider == "team-cloud"


class TestInstanceIsolation:
    def test_configure_does_not_leak_between_instances(self):
        first = new_nextcloud_provider()
        second = new_nextcloud_provider()

        first.configure(client_id="only-first", scopes=["openid"])

        assert second.client_id == ""
        assert second.scopes == ("read:user", "user:email")
        assert first.scopes == ("openid",)
