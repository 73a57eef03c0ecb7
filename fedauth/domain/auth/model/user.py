"""Canonical identity produced by every provider."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class AuthUser:
    """Provider-agnostic user record.

    `id` is the provider-assigned subject and is never empty; every other
    field is best-effort and may be an empty string. `raw_user` is a
    read-only view of the provider payload; nested values are not copied.
    """

    id: str
    name: str = ""
    username: str = ""
    email: str = ""
    avatar_url: str = ""
    access_token: str = ""
    refresh_token: str = ""
    expiry: datetime | None = None  # None = unknown / non-expiring
    raw_user: Mapping[str, Any] = field(default_factory=dict)  # Full provider payload

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw_user", MappingProxyType(dict(self.raw_user)))
