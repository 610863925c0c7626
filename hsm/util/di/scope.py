"""Container scopes."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]
    """Two lifetimes, nested APP -> UOW.

    APP objects live as long as the process: settings, the shared httpx
    client, the database engine, the provider registry and an in-memory state
    store. A UOW container is opened per HTTP request and owns one database
    session, the repositories bound to it and the request's Principal.
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
