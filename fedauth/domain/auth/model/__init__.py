"""Auth domain models."""

from .provider import ProviderConfig
from .token import OAuth2Token
from .user import AuthUser
from .value import AuthorizationRequest, FlowStage

__all__ = [
    "AuthUser",
    "AuthorizationRequest",
    "FlowStage",
    "OAuth2Token",
    "ProviderConfig",
]
