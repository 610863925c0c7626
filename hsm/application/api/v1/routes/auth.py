"""Authentication routes for social login and account linking."""

import json
import logging
from datetime import datetime
from typing import Annotated, Any
from urllib.parse import urlencode

import logfire
from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Form, Query, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from hsm.config import Config
from hsm.domain.auth.command.link import (
    LinkAccount,
    LinkAccountHandler,
    UnlinkAccount,
    UnlinkAccountHandler,
)
from hsm.domain.auth.command.login import (
    CompleteOAuth,
    CompleteOAuthHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from hsm.domain.auth.error import InvalidProviderError, MissingParamsError, UpstreamProviderError
from hsm.domain.auth.query.linked_accounts import ListLinkedAccounts, ListLinkedAccountsHandler
from hsm.domain.auth.query.providers import ListProviders, ListProvidersHandler
from hsm.domain.shared.error import HSMError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"], route_class=DishkaRoute)

# Codes the front end knows how to render; anything else becomes auth_failed
CALLBACK_ERROR_CODES = frozenset(
    {
        "invalid_provider",
        "missing_params",
        "invalid_state",
        "token_exchange_failed",
        "profile_fetch_failed",
        "invalid_id_token",
        "missing_email",
        "already_linked",
        "idp_unavailable",
    }
)


class ProviderResponse(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    enabled: bool


class ProvidersResponse(BaseModel):
    success: bool = True
    data: list[ProviderResponse]


class AuthUrlResponse(BaseModel):
    """Response containing the provider authorization URL."""

    success: bool = True
    auth_url: str

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkedAccountResponse(BaseModel):
    provider: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    profile_url: str | None
    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkedAccountsResponse(BaseModel):
    success: bool = True
    data: list[LinkedAccountResponse]


class LinkRequest(BaseModel):
    """Request body for linking a provider identity."""

    code: str
    state: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


def _error_redirect(frontend_url: str, code: str, description: str | None = None) -> Response:
    params = {"error": code}
    if description:
        params["description"] = description
    return RedirectResponse(url=f"{frontend_url}/auth/error?{urlencode(params)}", status_code=302)


def _callback_error_code(error: HSMError) -> str:
    if isinstance(error, InvalidProviderError):
        return "invalid_provider"
    return error.code if error.code in CALLBACK_ERROR_CODES else "auth_failed"


def _parse_user_payload(raw: str | None) -> dict[str, Any] | None:
    """Apple posts the user's name as a JSON string on first login only."""
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed user payload on OAuth callback")
        return None
    return payload if isinstance(payload, dict) else None


async def _complete_callback(
    config: Config,
    handler: CompleteOAuthHandler,
    provider: str,
    code: str | None,
    state: str | None,
    error: str | None,
    error_description: str | None,
    user: str | None = None,
) -> Response:
    """Shared GET/POST callback flow. Always answers with a redirect."""
    frontend_url = config.frontend.url.rstrip("/")

    try:
        if error:
            raise UpstreamProviderError(error, error_description)
        if not code or not state:
            raise MissingParamsError("Missing code or state")

        with logfire.span("oauth callback {provider}", provider=provider):
            result = await handler.run(
                CompleteOAuth(
                    provider=provider,
                    code=code,
                    state=state,
                    user_payload=_parse_user_payload(user),
                )
            )
    except UpstreamProviderError as e:
        logger.warning("Provider returned error: provider=%s, error=%s", provider, e.code)
        return _error_redirect(frontend_url, e.code, e.description)
    except HSMError as e:
        logger.warning(
            "OAuth callback failed: provider=%s, code=%s, message=%s", provider, e.code, e.message
        )
        return _error_redirect(frontend_url, _callback_error_code(e))
    except Exception:
        logger.exception("OAuth callback failed: provider=%s", provider)
        return _error_redirect(frontend_url, "auth_failed")

    params = {
        "access_token": result.access_token,
        "refresh_token": result.refresh_token,
        "is_new_user": "true" if result.is_new_account else "false",
    }
    if result.return_url:
        params["return_url"] = result.return_url

    return RedirectResponse(
        url=f"{frontend_url}/auth/callback?{urlencode(params)}", status_code=302
    )


# Fixed paths first so they are not captured by /{provider}


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(handler: FromDishka[ListProvidersHandler]) -> ProvidersResponse:
    """List supported login providers and whether each is enabled."""
    result = await handler.run(ListProviders())
    return ProvidersResponse(
        data=[ProviderResponse(**p.model_dump()) for p in result.providers],
    )


@router.get("/linked-accounts", response_model=LinkedAccountsResponse)
async def list_linked_accounts(
    handler: FromDishka[ListLinkedAccountsHandler],
) -> LinkedAccountsResponse:
    """List the provider identities linked to the current account."""
    result = await handler.run(ListLinkedAccounts())
    return LinkedAccountsResponse(
        data=[LinkedAccountResponse(**a.model_dump()) for a in result.accounts],
    )


@router.post("/link/{provider}", response_model=MessageResponse)
async def link_account(
    provider: str,
    body: LinkRequest,
    handler: FromDishka[LinkAccountHandler],
) -> MessageResponse:
    """Link a provider identity to the current account."""
    result = await handler.run(LinkAccount(provider=provider, code=body.code, state=body.state))
    return MessageResponse(message=result.message)


@router.delete("/link/{provider}", response_model=MessageResponse)
async def unlink_account(
    provider: str,
    handler: FromDishka[UnlinkAccountHandler],
) -> MessageResponse:
    """Remove the current account's link to a provider."""
    result = await handler.run(UnlinkAccount(provider=provider))
    return MessageResponse(message=result.message)


@router.get("/{provider}", response_model=AuthUrlResponse)
async def initiate_login(
    provider: str,
    handler: FromDishka[InitiateLoginHandler],
    return_url: Annotated[str | None, Query(alias="returnUrl")] = None,
) -> AuthUrlResponse:
    """Start a social login.

    Returns the provider authorization URL; the client navigates to it.
    """
    result = await handler.run(InitiateLogin(provider=provider, return_url=return_url))
    logger.info("OAuth login initiated: provider=%s", provider)
    return AuthUrlResponse(auth_url=result.authorization_url)


@router.get("/{provider}/callback")
async def handle_oauth_callback(
    provider: str,
    config: FromDishka[Config],
    handler: FromDishka[CompleteOAuthHandler],
    code: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    error: Annotated[str | None, Query()] = None,
    error_description: Annotated[str | None, Query()] = None,
) -> Response:
    """Handle the provider redirect back after user consent."""
    return await _complete_callback(
        config, handler, provider, code, state, error, error_description
    )


@router.post("/{provider}/callback")
async def handle_oauth_form_post_callback(
    provider: str,
    config: FromDishka[Config],
    handler: FromDishka[CompleteOAuthHandler],
    code: Annotated[str | None, Form()] = None,
    state: Annotated[str | None, Form()] = None,
    error: Annotated[str | None, Form()] = None,
    error_description: Annotated[str | None, Form()] = None,
    user: Annotated[str | None, Form()] = None,
) -> Response:
    """Handle form_post callbacks (Apple)."""
    return await _complete_callback(
        config, handler, provider, code, state, error, error_description, user
    )
