"""
FastAPI application serving the Codespace auth screen.

Every page request is one mount of the AuthScreen: the watcher subscribes and
queries the session, the controller handles the request, and the screen is
unmounted before the response is sent. If the watcher navigated, the response
is a redirect to the editor.
"""

import logging
from typing import Mapping, Optional

from fastapi import FastAPI, Form, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse

from .pages import (
    render_auth_page,
    render_consent_page,
    render_editor_page,
    render_error_page,
)
from .registry import ClientRegistry, ClientState, ProviderFactory, default_provider_factory
from ..auth.memory_provider import InMemoryIdentityProvider
from ..auth.session import has_active_user
from ..core.config import AuthConfig, get_auth_config
from ..ui.screen import AuthScreen
from ..utils.constants import CLIENT_COOKIE_NAME, OAUTH_PROVIDERS

logger = logging.getLogger(__name__)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def create_app(
    config: Optional[AuthConfig] = None,
    provider_factory: Optional[ProviderFactory] = None,
) -> FastAPI:
    """
    Build the web app.

    Args:
        config: Auth configuration; the global one if omitted.
        provider_factory: Creates one identity client per browser; defaults to
            the configured backend.
    """
    config = config or get_auth_config()
    registry = ClientRegistry(provider_factory or default_provider_factory(config))

    app = FastAPI(title="CodeSpace")
    app.state.config = config
    app.state.registry = registry

    auth_route = config.auth_route
    editor_route = config.editor_route
    signout_route = f"{auth_route}/signout"
    authorize_route = f"{auth_route}/v1/authorize"

    def client_for(request: Request):
        return registry.resolve(request.cookies.get(CLIENT_COOKIE_NAME))

    def screen_for(client: ClientState, params: Mapping[str, str]) -> AuthScreen:
        return AuthScreen(
            client.provider,
            query_params=params,
            notifications=client.notifications,
            config=config,
        )

    def render_form(screen: AuthScreen, client: ClientState) -> HTMLResponse:
        return HTMLResponse(
            render_auth_page(
                screen.view(),
                screen.state,
                client.notifications.drain(),
                auth_route=auth_route,
                oauth_providers=OAUTH_PROVIDERS,
            )
        )

    @app.get("/")
    async def index() -> Response:
        return _redirect(auth_route)

    @app.get(auth_route)
    async def auth_page(request: Request) -> Response:
        client_id, client = client_for(request)
        async with screen_for(client, request.query_params) as screen:
            await screen.settle()
            if screen.navigated:
                response: Response = _redirect(screen.navigator.current)
            else:
                response = render_form(screen, client)
        return registry.bind(response, client_id)

    @app.post(auth_route)
    async def submit_credentials(
        request: Request,
        mode: str = Form("login"),
        name: str = Form(""),
        email: str = Form(""),
        password: str = Form(""),
        action: str = Form("submit"),
    ) -> Response:
        client_id, client = client_for(request)
        async with screen_for(client, {"mode": mode}) as screen:
            screen.controller.set_name(name)
            screen.controller.set_email(email)
            screen.controller.set_password(password)
            await screen.settle()
            if not screen.navigated:
                if action == "toggle":
                    screen.controller.toggle_mode()
                else:
                    await screen.controller.submit_credentials()
                    await screen.settle()
            if screen.navigated:
                response: Response = _redirect(screen.navigator.current)
            else:
                response = render_form(screen, client)
        return registry.bind(response, client_id)

    @app.get(auth_route + "/oauth/{provider_name}")
    async def oauth_sign_in(request: Request, provider_name: str) -> Response:
        client_id, client = client_for(request)
        async with screen_for(client, request.query_params) as screen:
            await screen.settle()
            if screen.navigated:
                return registry.bind(_redirect(screen.navigator.current), client_id)
            url = await screen.controller.sign_in_with_provider(provider_name)
        if url:
            response: Response = _redirect(url)
        else:
            response = _redirect(auth_route)
        return registry.bind(response, client_id)

    @app.get(authorize_route)
    async def authorize(
        request: Request,
        provider: str = "",
        state: str = "",
        redirect_to: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Response:
        client_id, client = client_for(request)
        if not isinstance(client.provider, InMemoryIdentityProvider):
            return HTMLResponse(render_error_page("Not found"), status_code=404)
        if not state:
            return HTMLResponse(
                render_error_page("Missing OAuth state parameter"), status_code=400
            )
        if not email:
            return registry.bind(
                HTMLResponse(
                    render_consent_page(provider, state, redirect_to, authorize_route)
                ),
                client_id,
            )

        result = await client.provider.complete_oauth(state, email)
        if result.error is not None:
            logger.error("OAuth completion failed: %s", result.error.message)
            client.notifications.error(result.error.message)
            return registry.bind(_redirect(auth_route), client_id)
        return registry.bind(_redirect(result.url or editor_route), client_id)

    @app.get(auth_route + "/confirm")
    async def confirm_email(request: Request, token: str = "") -> Response:
        client_id, client = client_for(request)
        if not isinstance(client.provider, InMemoryIdentityProvider):
            return HTMLResponse(render_error_page("Not found"), status_code=404)

        result = await client.provider.verify_email(token)
        if result.error is not None:
            client.notifications.error(result.error.message)
            return registry.bind(_redirect(auth_route), client_id)
        return registry.bind(_redirect(result.url or editor_route), client_id)

    @app.get(editor_route)
    async def editor(request: Request) -> Response:
        client_id, client = client_for(request)
        try:
            session = await client.provider.get_current_session()
        except Exception as e:
            logger.warning("Session lookup failed on editor page: %s", e, exc_info=True)
            session = None
        if not has_active_user(session):
            return registry.bind(_redirect(auth_route), client_id)
        page = render_editor_page(
            session.user, signout_route, client.notifications.drain()
        )
        return registry.bind(HTMLResponse(page), client_id)

    @app.post(signout_route)
    async def sign_out(request: Request) -> Response:
        client_id, client = client_for(request)
        # Toasts from the signed-in session do not carry over
        client.notifications.dismiss()
        result = await client.provider.sign_out()
        if result.error is not None:
            client.notifications.error(result.error.message)
        return registry.bind(_redirect(auth_route), client_id)

    logger.info("CodeSpace auth app created: %s", config.get_environment_summary())
    return app
