"""OAuth2 authorization-code engine shared by every provider."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlencode

import httpx
import jwt

from fedauth.domain.auth.model.provider import ProviderConfig
from fedauth.domain.auth.model.token import OAuth2Token
from fedauth.domain.auth.model.user import AuthUser
from fedauth.domain.auth.model.value import AuthorizationRequest, FlowStage
from fedauth.domain.auth.port.identity_provider import IdentityProvider, Normalizer
from fedauth.domain.shared.error import (
    ConfigurationError,
    FlowCancelledError,
    NormalizationError,
    TokenExchangeError,
    UserInfoFetchError,
)
from fedauth.infrastructure.auth.claims import decode_id_token_claims
from fedauth.infrastructure.auth.pkce import (
    CHALLENGE_METHOD,
    code_challenge,
    generate_code_verifier,
)

logger = logging.getLogger(__name__)

# Used only when the host has not bound its own client
_DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


class OAuth2Provider(IdentityProvider):
    """IdentityProvider implementation driven entirely by a ProviderConfig.

    Providers differ only in their configuration and their normalizer, so
    there is one engine class and one factory function per provider.

    Instances hold no per-flow state: the PKCE verifier and the OAuth state
    travel with the caller between `build_auth_url` and `exchange`.
    """

    def __init__(
        self,
        config: ProviderConfig,
        normalizer: Normalizer,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._normalizer = normalizer
        self._http = http_client

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def display_name(self) -> str:
        return self._config.display_name

    @property
    def pkce(self) -> bool:
        return self._config.pkce

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._config.scopes

    @property
    def auth_url(self) -> str:
        return self._config.auth_url

    @property
    def token_url(self) -> str:
        return self._config.token_url

    @property
    def user_info_url(self) -> str:
        return self._config.user_info_url

    @property
    def client_id(self) -> str:
        return self._config.client_id

    @property
    def redirect_url(self) -> str:
        return self._config.redirect_url

    def configure(self, **changes: Any) -> "OAuth2Provider":
        """Replace configuration fields on this instance only.

        For bootstrap and registry factories, before the instance is handed
        out. Per-attempt callback URLs go through the `redirect_url=` keyword
        of build_auth_url and exchange instead.
        """
        self._config = self._config.with_overrides(**changes)
        return self

    def use_http_client(self, http_client: httpx.AsyncClient | None) -> "OAuth2Provider":
        """Bind the host's HTTP client (connection pooling, timeouts)."""
        self._http = http_client
        return self

    # -------------------------------------------------------------------------
    # Authorization
    # -------------------------------------------------------------------------

    def build_auth_url(
        self,
        state: str,
        extra_params: dict[str, str] | None = None,
        *,
        redirect_url: str | None = None,
    ) -> AuthorizationRequest:
        """Build the consent URL, generating a PKCE verifier when enabled."""
        config = self._effective_config(redirect_url)
        config.require_credentials(("client_id", "redirect_url"))

        params: dict[str, str] = {
            "client_id": config.client_id,
            "redirect_uri": config.redirect_url,
            "response_type": "code",
            "state": state,
        }
        if config.scopes:
            params["scope"] = " ".join(config.scopes)
        params.update(config.extra)
        if extra_params:
            params.update(extra_params)

        verifier: str | None = None
        if config.pkce:
            verifier = generate_code_verifier()
            params["code_challenge"] = code_challenge(verifier)
            params["code_challenge_method"] = CHALLENGE_METHOD

        separator = "&" if "?" in config.auth_url else "?"
        return AuthorizationRequest(
            url=f"{config.auth_url}{separator}{urlencode(params)}",
            state=state,
            code_verifier=verifier,
            redirect_url=config.redirect_url,
        )

    async def exchange(
        self,
        code: str,
        code_verifier: str | None = None,
        *,
        redirect_url: str | None = None,
        timeout: float | None = None,
    ) -> OAuth2Token:
        """Exchange an authorization code at the token endpoint."""
        config = self._effective_config(redirect_url)
        config.require_credentials()

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": config.redirect_url,
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        }
        if config.pkce:
            if not code_verifier:
                raise ConfigurationError(
                    f"Provider '{self.name}' uses PKCE but no code_verifier was supplied",
                    code="missing_code_verifier",
                )
            data["code_verifier"] = code_verifier

        stage = FlowStage.CODE_RECEIVED
        async with self._deadline(timeout, stage):
            try:
                async with self._client() as client:
                    response = await client.post(
                        config.token_url,
                        data=data,
                        headers={"Accept": "application/json"},
                    )
            except httpx.HTTPError as e:
                logger.warning("%s token request failed: %s", self.display_name, e)
                raise TokenExchangeError(
                    f"Failed to connect to {self.display_name} token endpoint",
                    provider=self.name,
                    stage=stage,
                    code="idp_unavailable",
                ) from e

        if not response.is_success:
            logger.error(
                "%s token exchange failed: status=%d, body=%s",
                self.display_name,
                response.status_code,
                response.text,
            )
            raise TokenExchangeError(
                f"{self.display_name} token exchange failed: {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
                body=response.text,
                stage=stage,
                code="token_exchange_failed",
            )

        try:
            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError("token response is not a JSON object")
            token = OAuth2Token.from_response(payload)
        except (ValueError, OverflowError) as e:
            raise TokenExchangeError(
                f"{self.display_name} returned a malformed token response: {e}",
                provider=self.name,
                status_code=response.status_code,
                body=response.text,
                stage=stage,
                code="oauth_error",
            ) from e

        logger.debug(
            "%s token obtained: expiry=%s, refresh=%s",
            self.display_name,
            token.expiry,
            bool(token.refresh_token),
        )
        return token

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    async def fetch_raw_user_info(
        self, token: OAuth2Token, *, timeout: float | None = None
    ) -> bytes:
        """Fetch the profile payload, or the id_token claims when no endpoint is set."""
        if not self._config.user_info_url:
            return self._claims_payload(token)

        headers = {
            "Authorization": f"Bearer {token.access_token}",
            "Accept": "application/json",
        }
        headers.update(self._config.user_info_headers)
        request = httpx.Request(
            self._config.user_info_method,
            self._config.user_info_url,
            headers=headers,
        )
        return await self._send_user_info_request(request, timeout)

    async def fetch_auth_user(
        self, token: OAuth2Token, *, timeout: float | None = None
    ) -> AuthUser:
        """Fetch the raw profile and normalize it into an AuthUser."""
        data = await self.fetch_raw_user_info(token, timeout=timeout)
        return self.normalize(data, token)

    def normalize(self, data: bytes, token: OAuth2Token) -> AuthUser:
        """Decode a raw payload and run this provider's normalizer."""
        try:
            raw_user = json.loads(data)
        except ValueError as e:
            raise NormalizationError(
                f"{self.display_name} returned invalid JSON: {e}",
                provider=self.name,
                stage=FlowStage.RAW_PROFILE_FETCHED,
            ) from e

        if not isinstance(raw_user, dict):
            raise NormalizationError(
                f"{self.display_name} user payload is not a JSON object",
                provider=self.name,
                stage=FlowStage.RAW_PROFILE_FETCHED,
            )

        try:
            user = self._normalizer(data, raw_user, token)
        except NormalizationError as e:
            e.provider = self.name
            e.stage = FlowStage.RAW_PROFILE_FETCHED
            raise

        if not user.id:
            raise NormalizationError(
                f"{self.display_name} user payload has no identifier",
                provider=self.name,
                stage=FlowStage.RAW_PROFILE_FETCHED,
            )
        return user

    async def _send_user_info_request(
        self, request: httpx.Request, timeout: float | None
    ) -> bytes:
        stage = FlowStage.TOKEN_EXCHANGED
        async with self._deadline(timeout, stage):
            try:
                async with self._client() as client:
                    response = await client.send(request)
            except httpx.HTTPError as e:
                logger.warning("%s user info request failed: %s", self.display_name, e)
                raise UserInfoFetchError(
                    f"Failed to connect to {self.display_name} user info endpoint",
                    provider=self.name,
                    stage=stage,
                    code="idp_unavailable",
                ) from e

        if not response.is_success:
            logger.error(
                "%s user info fetch failed: status=%d, body=%s",
                self.display_name,
                response.status_code,
                response.text,
            )
            raise UserInfoFetchError(
                f"{self.display_name} user info fetch failed: {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
                body=response.text,
                stage=stage,
                code="user_info_failed",
            )

        return response.content

    def _claims_payload(self, token: OAuth2Token) -> bytes:
        if not token.id_token:
            raise NormalizationError(
                f"{self.display_name} has no user info URL and the token carries no id_token",
                provider=self.name,
                stage=FlowStage.TOKEN_EXCHANGED,
                code="missing_id_token",
            )
        try:
            claims = decode_id_token_claims(token.id_token)
        except jwt.InvalidTokenError as e:
            raise NormalizationError(
                f"{self.display_name} id_token could not be decoded: {e}",
                provider=self.name,
                stage=FlowStage.TOKEN_EXCHANGED,
                code="invalid_id_token",
            ) from e
        return json.dumps(claims).encode()

    # -------------------------------------------------------------------------
    # Transport helpers
    # -------------------------------------------------------------------------

    def _effective_config(self, redirect_url: str | None) -> ProviderConfig:
        if redirect_url:
            return self._config.with_overrides(redirect_url=redirect_url)
        return self._config

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http is not None:
            yield self._http
            return
        async with httpx.AsyncClient(timeout=_DEFAULT_TIMEOUT) as client:
            yield client

    @asynccontextmanager
    async def _deadline(self, timeout: float | None, stage: FlowStage) -> AsyncIterator[None]:
        try:
            async with asyncio.timeout(timeout):
                yield
        except TimeoutError as e:
            logger.warning("%s request cancelled after %ss", self.display_name, timeout)
            raise FlowCancelledError(
                f"{self.display_name} request exceeded {timeout}s deadline",
                provider=self.name,
                stage=stage,
                code="cancelled",
            ) from e
