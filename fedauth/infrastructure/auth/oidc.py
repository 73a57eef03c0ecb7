"""Generic OpenID Connect identity provider."""

from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from fedauth.domain.auth.model.provider import ProviderConfig
from fedauth.domain.auth.model.token import OAuth2Token
from fedauth.domain.auth.model.user import AuthUser
from fedauth.domain.shared.error import NormalizationError
from fedauth.infrastructure.auth.base import OAuth2Provider

NAME = "oidc"


class _OidcClaims(BaseModel):
    """Standard claims (OpenID Connect Core 1.0, section 5.1)."""

    sub: str = ""
    name: str | None = None
    preferred_username: str | None = None
    email: str | None = None
    picture: str | None = None


def new_oidc_provider() -> OAuth2Provider:
    """Create an OpenID Connect provider with defaults.

    With no user info URL configured the identity comes from the id_token
    claims; set one to query the userinfo endpoint instead.
    """
    return OAuth2Provider(
        ProviderConfig(
            name=NAME,
            display_name="OpenID Connect",
            pkce=True,
            scopes=("openid", "profile", "email"),
            auth_url="https://example.com/oauth2/authorize",
            token_url="https://example.com/oauth2/token",
        ),
        normalize_oidc_user,
    )


def normalize_oidc_user(data: bytes, raw_user: dict[str, Any], token: OAuth2Token) -> AuthUser:
    """Map OIDC claims (id_token or userinfo response) to an AuthUser."""
    try:
        claims = _OidcClaims.model_validate_json(data)
    except PydanticValidationError as e:
        raise NormalizationError(
            f"Unexpected OpenID Connect claims: {e.error_count()} error(s)",
            provider=NAME,
            code="invalid_user_payload",
        ) from e

    if not claims.sub:
        raise NormalizationError(
            "OpenID Connect claims missing sub",
            provider=NAME,
            code="missing_user_id",
        )

    return AuthUser(
        id=claims.sub,
        name=claims.name or "",
        username=claims.preferred_username or "",
        email=claims.email or "",
        avatar_url=claims.picture or "",
        access_token=token.access_token,
        refresh_token=token.refresh_token,
        expiry=token.expiry,
        raw_user=raw_user,
    )
