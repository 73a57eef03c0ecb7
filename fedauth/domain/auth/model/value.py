"""Value objects for the auth domain."""

from dataclasses import dataclass
from enum import StrEnum


class FlowStage(StrEnum):
    """Stages of a single authentication attempt.

    Unstarted -> AuthorizationUrlIssued -> CodeReceived -> TokenExchanged
    -> RawProfileFetched -> Normalized | Failed
    """

    UNSTARTED = "unstarted"
    AUTHORIZATION_URL_ISSUED = "authorization_url_issued"
    CODE_RECEIVED = "code_received"
    TOKEN_EXCHANGED = "token_exchanged"
    RAW_PROFILE_FETCHED = "raw_profile_fetched"
    NORMALIZED = "normalized"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthorizationRequest:
    """Result of building an authorization URL.

    The caller keeps `state` and `code_verifier` for the callback; the
    provider does not remember them.
    """

    url: str
    state: str
    code_verifier: str | None = None  # None when PKCE is disabled
    redirect_url: str = ""
