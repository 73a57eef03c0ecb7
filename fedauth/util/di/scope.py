"""Custom Dishka scopes for fedauth."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """fedauth dependency injection scopes.

    Hierarchy: APP -> REQUEST

    - APP: Application lifetime (HTTP client, provider registry)
    - REQUEST: One authentication attempt
    """

    APP = new_scope("APP")
    REQUEST = new_scope("REQUEST")
