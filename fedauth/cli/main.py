"""Main CLI application using Cyclopts.

Helps operators check provider configuration and walk a login by hand.
"""

import cyclopts

from fedauth.cli.commands import config, providers

app = cyclopts.App(
    name="fedauth",
    help="fedauth - external identity providers",
)

app.command(config.app, name="config")
app.command(providers.app, name="providers")


def main() -> None:
    app()
