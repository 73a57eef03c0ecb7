from dishka import Provider as DishkaProvider

from fedauth.util.di.scope import Scope


class Provider(DishkaProvider):
    """Base for fedauth DI providers (application scope unless overridden)."""

    scope = Scope.APP
