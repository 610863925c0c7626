"""Per-request unit-of-work containers for the FastAPI app."""

from dishka import AsyncContainer
from fastapi import FastAPI
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

from hsm.util.di.scope import Scope as HSMScope


class ContainerMiddleware:
    """Opens a ``Scope.UOW`` child container around every HTTP request.

    DishkaRoute looks the child up on ``request.state.dishka_container``. The
    request itself is put in the container context so providers can read
    headers (the Bearer token). Lifespan and other ASGI events pass through.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive, send=send)
        root: AsyncContainer = request.app.state.dishka_container
        async with root({Request: request}, scope=HSMScope.UOW) as uow_container:
            request.state.dishka_container = uow_container
            await self.app(scope, receive, send)


def setup_dishka(container: AsyncContainer, app: FastAPI) -> None:
    app.state.dishka_container = container
    app.add_middleware(ContainerMiddleware)
