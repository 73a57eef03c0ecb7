"""OAuth2 token value returned by the token endpoint."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any


@dataclass(frozen=True)
class OAuth2Token:
    """Credentials obtained from an authorization-code exchange.

    Invariants:
    - `access_token` is never empty
    - `expiry` is timezone-aware UTC, or None when the provider sent no lifetime
    """

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str = ""
    expiry: datetime | None = None
    raw: dict[str, Any] = field(default_factory=dict)  # Full token response

    @property
    def id_token(self) -> str:
        """OpenID Connect id_token from the token response, if any."""
        value = self.raw.get("id_token")
        return value if isinstance(value, str) else ""

    def is_expired(self, now: datetime | None = None) -> bool:
        """Tokens without an expiry never expire."""
        if self.expiry is None:
            return False
        return self.expiry <= (now or datetime.now(UTC))

    @classmethod
    def from_response(cls, payload: dict[str, Any], now: datetime | None = None) -> "OAuth2Token":
        """Build a token from a decoded token-endpoint response.

        Raises:
            ValueError: If the payload has no access_token, or expires_in is
                too large to represent as a datetime
        """
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("token response missing access_token")

        refresh_token = payload.get("refresh_token")
        token_type = payload.get("token_type")

        return cls(
            access_token=access_token,
            token_type=token_type if isinstance(token_type, str) and token_type else "Bearer",
            refresh_token=refresh_token if isinstance(refresh_token, str) else "",
            expiry=_expiry_from(payload.get("expires_in"), now or datetime.now(UTC)),
            raw=dict(payload),
        )


def _expiry_from(expires_in: Any, now: datetime) -> datetime | None:
    # Some providers send expires_in as a string
    if isinstance(expires_in, bool):
        return None
    try:
        seconds = int(expires_in)
    except (TypeError, ValueError):
        return None
    except OverflowError as e:
        raise ValueError(f"expires_in out of range: {expires_in!r}") from e
    if seconds <= 0:
        return None
    try:
        return now + timedelta(seconds=seconds)
    except OverflowError as e:
        raise ValueError(f"expires_in out of range: {expires_in!r}") from e
