"""Per-provider configuration."""

from dataclasses import dataclass, replace
from typing import Any

from fedauth.domain.shared.error import ConfigurationError


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable settings for one identity provider.

    Endpoints, scopes and the PKCE flag come from the provider's factory.
    Client credentials and the redirect URL are empty until the host
    injects them with `with_overrides`.
    """

    name: str
    display_name: str
    auth_url: str
    token_url: str
    user_info_url: str = ""  # Empty = derive the profile from id_token claims
    user_info_method: str = "GET"
    scopes: tuple[str, ...] = ()
    pkce: bool = False
    client_id: str = ""
    client_secret: str = ""
    redirect_url: str = ""
    user_info_headers: tuple[tuple[str, str], ...] = ()  # Sent with the profile request
    extra: tuple[tuple[str, str], ...] = ()  # Static authorization URL params

    def with_overrides(self, **changes: Any) -> "ProviderConfig":
        """Return a copy with the given fields replaced."""
        if "scopes" in changes:
            changes["scopes"] = tuple(changes["scopes"])
        for key in ("user_info_headers", "extra"):
            if isinstance(changes.get(key), dict):
                changes[key] = tuple(changes[key].items())
        return replace(self, **changes)

    def require_credentials(
        self, fields: tuple[str, ...] = ("client_id", "client_secret", "redirect_url")
    ) -> None:
        """Raise if the host has not injected client credentials yet.

        Raises:
            ConfigurationError: If any of the given fields is empty
        """
        missing = [field_name for field_name in fields if not getattr(self, field_name)]
        if missing:
            raise ConfigurationError(
                f"Provider '{self.name}' is missing {', '.join(missing)}",
                code="provider_not_configured",
            )
