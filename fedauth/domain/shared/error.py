"""Error hierarchy for fedauth.

Error layers:
- FedAuthError: Base class for all fedauth errors
- DomainError: Lookup failures raised by the core itself
- InfrastructureError: Misconfiguration of the host deployment
- ProviderError: Failures while talking to (or interpreting) an identity provider

Every ProviderError records the provider name and the flow stage it was raised
in, so hosts can tell "provider unreachable" from "provider returned nonsense".
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fedauth.domain.auth.model.value import FlowStage


class FedAuthError(Exception):
    """Base class for all fedauth errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(FedAuthError):
    """Base class for domain errors."""


class NotFoundError(DomainError):
    """Resource not found (e.g. unknown provider name)."""


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(FedAuthError):
    """Base class for infrastructure/system errors."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected (missing credentials, redirect URL, ...)."""


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(FedAuthError):
    """Failure attributable to a single identity provider interaction."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        stage: "FlowStage | None" = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.provider = provider
        self.stage = stage


class _HttpProviderError(ProviderError):
    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        body: str | None = None,
        stage: "FlowStage | None" = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, provider=provider, stage=stage, code=code)
        self.status_code = status_code
        self.body = body


class TokenExchangeError(_HttpProviderError):
    """Token endpoint unreachable, rejected the code, or returned a malformed body."""


class UserInfoFetchError(_HttpProviderError):
    """Profile endpoint unreachable or returned a non-2xx status."""


class NormalizationError(ProviderError):
    """Provider payload is malformed or lacks the mandatory identifier."""


class FlowCancelledError(ProviderError):
    """Attempt aborted because its deadline elapsed."""
