from dishka import AsyncContainer, make_async_container

from fedauth.config import Config
from fedauth.infrastructure.auth.di import AuthInfraProvider
from fedauth.util.di.scope import Scope


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        AuthInfraProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
