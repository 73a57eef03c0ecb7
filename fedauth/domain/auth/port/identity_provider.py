"""Identity provider port for the auth domain."""

from abc import abstractmethod
from collections.abc import Callable
from typing import Any, Protocol

from fedauth.domain.auth.model.provider import ProviderConfig
from fedauth.domain.auth.model.token import OAuth2Token
from fedauth.domain.auth.model.user import AuthUser
from fedauth.domain.auth.model.value import AuthorizationRequest

Normalizer = Callable[[bytes, dict[str, Any], OAuth2Token], AuthUser]
"""Maps (raw payload, generic decode, token) to a canonical AuthUser.

Must be pure and raise NormalizationError on malformed payloads.
"""


class IdentityProvider(Protocol):
    """Port for external OAuth2 identity provider integrations.

    Implementations live in infrastructure/ (e.g. the Nextcloud provider).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider (e.g., 'nextcloud')."""
        ...

    @property
    @abstractmethod
    def config(self) -> ProviderConfig:
        """Current configuration of this instance."""
        ...

    @abstractmethod
    def build_auth_url(
        self,
        state: str,
        extra_params: dict[str, str] | None = None,
        *,
        redirect_url: str | None = None,
    ) -> AuthorizationRequest:
        """Build the URL to redirect the user to for consent.

        Args:
            state: CSRF protection token (caller stores this)
            extra_params: Additional query parameters for this attempt
            redirect_url: Callback URL overriding the configured one

        Returns:
            AuthorizationRequest holding the URL and, with PKCE, the verifier
            the caller must pass back to `exchange`
        """
        ...

    @abstractmethod
    async def exchange(
        self,
        code: str,
        code_verifier: str | None = None,
        *,
        redirect_url: str | None = None,
        timeout: float | None = None,
    ) -> OAuth2Token:
        """Exchange an authorization code for a token.

        Raises:
            ConfigurationError: If credentials are missing
            TokenExchangeError: If the token endpoint fails
            FlowCancelledError: If the timeout elapses
        """
        ...

    @abstractmethod
    async def fetch_raw_user_info(
        self, token: OAuth2Token, *, timeout: float | None = None
    ) -> bytes:
        """Fetch the provider's raw profile payload.

        Raises:
            UserInfoFetchError: If the profile endpoint fails
            NormalizationError: If the claims fallback has no usable id_token
        """
        ...

    @abstractmethod
    async def fetch_auth_user(
        self, token: OAuth2Token, *, timeout: float | None = None
    ) -> AuthUser:
        """Fetch and normalize the user behind a token.

        Raises:
            UserInfoFetchError: If the profile endpoint fails
            NormalizationError: If the payload is malformed or lacks an id
        """
        ...
