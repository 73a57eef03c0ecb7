"""Provider commands - inspect configured providers and walk a login by hand."""

import asyncio
import sys
from dataclasses import fields

import cyclopts
import httpx

from fedauth.cli.console import get_console
from fedauth.config import Config, configure_logging
from fedauth.domain.auth.model.user import AuthUser
from fedauth.domain.auth.service.auth import AuthService
from fedauth.domain.shared.error import FedAuthError
from fedauth.infrastructure.auth.provider_registry import build_provider_registry

app = cyclopts.App(name="providers", help="Inspect and exercise identity providers")


def _load_config() -> Config:
    config = Config()
    configure_logging(config.logging)
    return config


def _fail(error: FedAuthError) -> None:
    console = get_console()
    hint = f"code={error.code}"
    stage = getattr(error, "stage", None)
    if stage is not None:
        hint += f", stage={stage}"
    console.error(error.message, hint=hint)
    sys.exit(1)


@app.command(name="list")
def list_providers() -> None:
    """List providers enabled in configuration."""
    console = get_console()
    config = _load_config()
    registry = build_provider_registry(config.auth)

    rows = []
    for name in registry.available_providers():
        provider = registry.get(name)
        settings = config.auth.providers[name]
        rows.append(
            {
                "name": name,
                "display_name": provider.config.display_name,
                "pkce": "yes" if provider.config.pkce else "no",
                "profile": "endpoint" if provider.config.user_info_url else "id_token",
                "configured": "yes" if settings.is_configured else "no",
            }
        )

    if not rows:
        console.info("No providers configured (see: fedauth config init)")
        return

    console.table(
        rows,
        [
            ("name", "Name"),
            ("display_name", "Display name"),
            ("pkce", "PKCE"),
            ("profile", "Profile source"),
            ("configured", "Credentials"),
        ],
        title="Identity providers",
    )


@app.command
def authorize(name: str, *, state: str | None = None) -> None:
    """Print an authorization URL to open in a browser.

    Args:
        name: Provider name.
        state: CSRF state to embed; random when omitted.
    """
    console = get_console()
    config = _load_config()
    service = AuthService(_registry=build_provider_registry(config.auth))

    try:
        request = service.begin_login(name, state=state)
    except FedAuthError as e:
        _fail(e)
        return

    console.print(f"[bold]URL:[/bold] {request.url}")
    console.print(f"[bold]State:[/bold] {request.state}")
    if request.code_verifier:
        console.print(f"[bold]Verifier:[/bold] {request.code_verifier}")
        console.info(f"Pass it back with: fedauth providers login {name} --code ... --verifier ...")


@app.command
def login(
    name: str,
    *,
    code: str,
    verifier: str | None = None,
    timeout: float = 30.0,
) -> None:
    """Exchange an authorization code and print the resulting identity.

    Args:
        name: Provider name.
        code: Authorization code from the callback URL.
        verifier: PKCE verifier printed by `authorize`.
        timeout: Deadline in seconds for the whole attempt.
    """
    console = get_console()
    config = _load_config()

    try:
        user = asyncio.run(_complete_login(config, name, code, verifier, timeout))
    except FedAuthError as e:
        _fail(e)
        return

    console.success(f"Authenticated {user.id} via {name}")
    console.json(_redacted(user))


async def _complete_login(
    config: Config, name: str, code: str, verifier: str | None, timeout: float
) -> AuthUser:
    async with httpx.AsyncClient(timeout=config.http.timeout()) as client:
        service = AuthService(_registry=build_provider_registry(config.auth, client))
        return await service.complete_login(name, code, verifier, timeout=timeout)


def _redacted(user: AuthUser) -> dict:
    data = {f.name: getattr(user, f.name) for f in fields(user)}
    data["raw_user"] = dict(user.raw_user)
    for key in ("access_token", "refresh_token"):
        if data[key]:
            data[key] = data[key][:4] + "…"
    return data
