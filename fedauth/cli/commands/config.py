"""Config management commands."""

import json
import sys
from pathlib import Path

import cyclopts

app = cyclopts.App(name="config", help="Manage fedauth configuration")

TEMPLATE = """\
# fedauth configuration
# Point FEDAUTH_CONFIG_FILE at this file. Environment variables
# (e.g. FEDAUTH_AUTH__PROVIDERS__NEXTCLOUD__CLIENT_SECRET) take precedence.

# logging:
#   level: "DEBUG"

# http:
#   connect: 5.0
#   read: 10.0

auth:
  providers:
    nextcloud:
      client_id: ""
      client_secret: ""
      redirect_url: "https://myapp.example/auth/nextcloud/callback"
      auth_url: "https://cloud.example/apps/oauth2/authorize"
      token_url: "https://cloud.example/apps/oauth2/api/v1/token"
      user_info_url: "https://cloud.example/ocs/v2.php/cloud/user?format=json"
    # oidc:
    #   client_id: ""
    #   client_secret: ""
    #   redirect_url: "https://myapp.example/auth/oidc/callback"
    #   auth_url: "https://issuer.example/authorize"
    #   token_url: "https://issuer.example/token"
    # oidc2:
    #   type: oidc  # A second OpenID Connect issuer
"""

DEFAULT_CONFIG_NAME = "fedauth.yaml"

_SECRET_KEYS = {"client_secret"}


@app.command
def init(path: Path = Path(DEFAULT_CONFIG_NAME)) -> None:
    """Create a new config file from template.

    Args:
        path: Path for the config file. Defaults to ./fedauth.yaml
    """
    if path.is_dir():
        print(f"Error: {path} is a directory, not a file path", file=sys.stderr)
        sys.exit(1)

    if path.exists():
        print(f"Error: {path} already exists (refusing to overwrite)", file=sys.stderr)
        sys.exit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(TEMPLATE)
    print(f"Created config at {path}")
    print("Fill in the provider credentials, then run:")
    print(f"  FEDAUTH_CONFIG_FILE={path} fedauth providers list")


@app.command
def validate(path: Path = Path(DEFAULT_CONFIG_NAME)) -> None:
    """Validate a config file.

    Args:
        path: Path to the config file. Defaults to ./fedauth.yaml
    """
    import yaml
    from pydantic import ValidationError

    from fedauth.config import Config

    if not path.exists():
        print(f"Error: {path} not found", file=sys.stderr)
        sys.exit(1)

    try:
        data = yaml.safe_load(path.read_text()) or {}
        Config.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        print(f"✗ {path} is invalid: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"✓ {path} is valid")


@app.command
def show() -> None:
    """Show current effective config (secrets redacted)."""
    from fedauth.config import Config

    config = Config()
    data = config.model_dump(mode="json")
    for settings in data["auth"]["providers"].values():
        for key in _SECRET_KEYS:
            if settings.get(key):
                settings[key] = "********"
    print(json.dumps(data, indent=2, default=str))
