"""Nextcloud identity provider."""

import logging
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from fedauth.domain.auth.model.provider import ProviderConfig
from fedauth.domain.auth.model.token import OAuth2Token
from fedauth.domain.auth.model.user import AuthUser
from fedauth.domain.shared.error import NormalizationError
from fedauth.infrastructure.auth.base import OAuth2Provider

logger = logging.getLogger(__name__)

NAME = "nextcloud"


class _NextcloudUser(BaseModel):
    id: str = ""
    displayname: str | None = None
    email: str | None = None


class _OcsBody(BaseModel):
    data: _NextcloudUser


class _OcsEnvelope(BaseModel):
    """OCS wrapper: {"ocs": {"meta": {...}, "data": {...}}}."""

    ocs: _OcsBody


def new_nextcloud_provider() -> OAuth2Provider:
    """Create a Nextcloud provider with defaults.

    The endpoints point at a placeholder host; deployments override them
    together with the client credentials.
    """
    return OAuth2Provider(
        ProviderConfig(
            name=NAME,
            display_name="Nextcloud",
            pkce=True,
            scopes=("read:user", "user:email"),
            auth_url="https://nextcloud.your.domain/apps/oauth2/authorize",
            token_url="https://nextcloud.your.domain/apps/oauth2/api/v1/token",
            user_info_url="https://nextcloud.your.domain/ocs/v2.php/cloud/user?format=json",
            user_info_headers=(("OCS-APIRequest", "true"),),
        ),
        normalize_nextcloud_user,
    )


def normalize_nextcloud_user(
    data: bytes, raw_user: dict[str, Any], token: OAuth2Token
) -> AuthUser:
    """Map a Nextcloud OCS user response to an AuthUser.

    API reference: https://docs.nextcloud.com/server/latest/developer_manual/client_apis/OCS/
    """
    try:
        envelope = _OcsEnvelope.model_validate_json(data)
    except PydanticValidationError as e:
        raise NormalizationError(
            f"Unexpected Nextcloud user payload: {e.error_count()} error(s)",
            provider=NAME,
            code="invalid_user_payload",
        ) from e

    user = envelope.ocs.data
    if not user.id:
        raise NormalizationError(
            "Nextcloud user payload missing ocs.data.id",
            provider=NAME,
            code="missing_user_id",
        )

    logger.debug("Nextcloud user data decoded: id=%s", user.id)

    return AuthUser(
        id=user.id,
        name=user.displayname or "",
        username=user.id,
        email=user.email or "",
        avatar_url="",  # Not part of the OCS user response
        access_token=token.access_token,
        refresh_token=token.refresh_token,
        expiry=token.expiry,
        raw_user=raw_user,
    )
