"""Auth service driving one authentication attempt end to end."""

import asyncio
import logging
import secrets

from fedauth.domain.auth.model.user import AuthUser
from fedauth.domain.auth.model.value import AuthorizationRequest, FlowStage
from fedauth.domain.auth.port.provider_registry import ProviderRegistry
from fedauth.domain.shared.error import FlowCancelledError, ProviderError
from fedauth.domain.shared.service import Service

logger = logging.getLogger(__name__)


class AuthService(Service):
    """Orchestrates the authorization-code flow against a named provider.

    - begin_login: Issue the authorization URL (and PKCE verifier)
    - complete_login: Exchange the code and normalize the user

    Nothing is retried: a failed attempt restarts from begin_login with a
    new state and verifier.
    """

    _registry: ProviderRegistry

    def begin_login(
        self,
        provider_name: str,
        *,
        state: str | None = None,
        extra_params: dict[str, str] | None = None,
        redirect_url: str | None = None,
    ) -> AuthorizationRequest:
        """Generate the authorization URL for a login attempt.

        Args:
            provider_name: Registered provider to authenticate with
            state: CSRF token; a random one is generated when omitted
            extra_params: Additional authorization URL parameters
            redirect_url: Callback URL for this attempt only

        Returns:
            AuthorizationRequest; the caller stores its state and code_verifier

        Raises:
            NotFoundError: If the provider is not registered
            ConfigurationError: If the provider lacks client_id or redirect URL
        """
        provider = self._registry.get(provider_name)
        request = provider.build_auth_url(
            state or secrets.token_urlsafe(32),
            extra_params,
            redirect_url=redirect_url,
        )
        logger.info(
            "Login started: provider=%s, stage=%s, pkce=%s",
            provider_name,
            FlowStage.AUTHORIZATION_URL_ISSUED,
            request.code_verifier is not None,
        )
        return request

    async def complete_login(
        self,
        provider_name: str,
        code: str,
        code_verifier: str | None = None,
        *,
        redirect_url: str | None = None,
        timeout: float | None = None,
    ) -> AuthUser:
        """Exchange an authorization code and return the normalized user.

        Args:
            provider_name: Provider the code was issued by
            code: Authorization code from the callback
            code_verifier: Verifier returned by begin_login (PKCE providers)
            redirect_url: Must match the one used in begin_login, if overridden
            timeout: Deadline in seconds for the whole attempt

        Raises:
            NotFoundError: If the provider is not registered
            ConfigurationError: If credentials or the verifier are missing
            TokenExchangeError, UserInfoFetchError, NormalizationError,
            FlowCancelledError: Tagged with the stage the attempt reached
        """
        provider = self._registry.get(provider_name)
        stage = FlowStage.CODE_RECEIVED

        try:
            async with asyncio.timeout(timeout):
                token = await provider.exchange(code, code_verifier, redirect_url=redirect_url)
                stage = FlowStage.TOKEN_EXCHANGED
                user = await provider.fetch_auth_user(token)
        except TimeoutError as e:
            logger.warning("Login cancelled: provider=%s, stage=%s", provider_name, stage)
            raise FlowCancelledError(
                f"Login with {provider_name} exceeded {timeout}s deadline",
                provider=provider_name,
                stage=stage,
                code="cancelled",
            ) from e
        except ProviderError as e:
            if e.stage is None:
                e.stage = stage
            logger.warning(
                "Login failed: provider=%s, stage=%s, code=%s",
                provider_name,
                e.stage,
                e.code,
            )
            raise
        except asyncio.CancelledError:
            logger.info("Login aborted by caller: provider=%s, stage=%s", provider_name, stage)
            raise

        logger.info(
            "User authenticated: provider=%s, stage=%s, external_id=%s",
            provider_name,
            FlowStage.NORMALIZED,
            user.id,
        )
        return user
