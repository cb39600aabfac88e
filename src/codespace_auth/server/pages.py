"""HTML pages served by the Codespace web surface."""

from html import escape
from typing import Iterable, Optional

from ..auth.form import AuthFormState, AuthMode
from ..auth.session import User
from ..ui.notifications import Notification, NotificationVariant
from ..ui.screen import AuthView
from ..utils.constants import OAUTH_PROVIDER_LABELS, OAUTH_PROVIDERS

_STYLE = """
        <style>
            body {
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                display: flex;
                justify-content: center;
                align-items: center;
                min-height: 100vh;
                margin: 0;
                background: #0d1117;
                color: #e6edf3;
            }
            .container {
                background: #161b22;
                padding: 32px;
                border-radius: 16px;
                box-shadow: 0 10px 40px rgba(0,0,0,0.4);
                width: 100%;
                max-width: 400px;
            }
            h1 { font-size: 22px; margin: 0 0 8px; text-align: center; }
            p.subtitle { color: #8b949e; text-align: center; margin-bottom: 24px; }
            label { display: block; font-size: 14px; margin: 12px 0 4px; }
            input {
                width: 100%;
                box-sizing: border-box;
                padding: 10px;
                border-radius: 8px;
                border: 1px solid #30363d;
                background: #0d1117;
                color: inherit;
            }
            button, .oauth a {
                display: inline-block;
                width: 100%;
                box-sizing: border-box;
                padding: 10px;
                margin-top: 16px;
                border-radius: 8px;
                border: none;
                background: #7c3aed;
                color: white;
                font-weight: 600;
                text-align: center;
                text-decoration: none;
                cursor: pointer;
            }
            .oauth { display: flex; gap: 12px; }
            .oauth a { background: transparent; border: 1px solid #30363d; }
            .toast { padding: 12px; border-radius: 8px; margin-bottom: 12px; background: #1f6feb33; }
            .toast.destructive { background: #f8514933; }
            .toast strong { display: block; }
            .toggle { text-align: center; color: #8b949e; font-size: 14px; margin-top: 24px; }
            .toggle button {
                width: auto;
                padding: 0;
                margin: 0;
                background: none;
                color: #a78bfa;
                font-size: 14px;
            }
            a { color: #a78bfa; }
        </style>
"""


def _page(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>{escape(title)}</title>
{_STYLE}
    </head>
    <body>
        <div class="container">
{body}
        </div>
    </body>
    </html>
    """


def render_notifications(notifications: Iterable[Notification]) -> str:
    parts = []
    for n in notifications:
        css = "toast destructive" if n.variant is NotificationVariant.DESTRUCTIVE else "toast"
        parts.append(
            f'<div class="{css}" role="status"><strong>{escape(n.title)}</strong>'
            f"{escape(n.description)}</div>"
        )
    return "\n".join(parts)


def render_auth_page(
    view: AuthView,
    state: AuthFormState,
    notifications: Iterable[Notification] = (),
    auth_route: str = "/auth",
    oauth_providers: Iterable[str] = OAUTH_PROVIDERS,
) -> str:
    """Render the sign-in / sign-up form for the current view."""
    oauth_links = "\n".join(
        f'<a href="{escape(auth_route)}/oauth/{escape(name)}">'
        f"{escape(OAUTH_PROVIDER_LABELS.get(name, name.title()))}</a>"
        for name in oauth_providers
    )

    name_field = ""
    if view.show_name_field:
        name_field = f"""
            <label for="name">Full name</label>
            <input id="name" name="name" type="text" placeholder="John Doe"
                   value="{escape(state.name)}" required>"""

    forgot = ""
    if view.show_forgot_password:
        forgot = '<p style="text-align:right"><a href="#">Forgot password?</a></p>'

    disabled = " disabled" if view.submit_disabled else ""

    body = f"""
            {render_notifications(notifications)}
            <h1>{escape(view.headline)}</h1>
            <p class="subtitle">{escape(view.subtitle)}</p>
            <div class="oauth">
                {oauth_links}
            </div>
            <p class="subtitle">or continue with email</p>
            <form id="auth-form" method="post" action="{escape(auth_route)}">
                <input type="hidden" name="mode" value="{escape(view.mode.value)}">
                {name_field}
                <label for="email">Email address</label>
                <input id="email" name="email" type="email" placeholder="you@example.com"
                       value="{escape(state.email)}" required>
                <label for="password">Password</label>
                <input id="password" name="password" type="{view.password_input_type}"
                       minlength="6" required>
                {forgot}
                <button type="submit"{disabled}>{escape(view.submit_label)}</button>
            </form>
            <p class="toggle">{escape(view.toggle_prompt)}
                <button type="submit" form="auth-form" name="action" value="toggle"
                        formnovalidate>{escape(view.toggle_label)}</button></p>"""
    title = "Sign in" if view.mode is AuthMode.SIGN_IN else "Create account"
    return _page(f"{title} - CodeSpace", body)


def render_editor_page(
    user: User,
    signout_route: str = "/auth/signout",
    notifications: Iterable[Notification] = (),
) -> str:
    """Render the authenticated landing page."""
    body = f"""
            {render_notifications(notifications)}
            <h1>Welcome, {escape(user.display_name)}</h1>
            <p class="subtitle">Signed in as {escape(user.email or user.id)}</p>
            <form method="post" action="{escape(signout_route)}">
                <button type="submit">Sign out</button>
            </form>"""
    return _page("Editor - CodeSpace", body)


def render_consent_page(
    provider: str, state: str, redirect_to: Optional[str], action: str
) -> str:
    """Render the in-memory backend's stand-in for a provider consent screen."""
    label = OAUTH_PROVIDER_LABELS.get(provider, provider.title())
    redirect_field = ""
    if redirect_to:
        redirect_field = (
            f'<input type="hidden" name="redirect_to" value="{escape(redirect_to)}">'
        )
    body = f"""
            <h1>Continue with {escape(label)}</h1>
            <p class="subtitle">Choose the account to sign in with.</p>
            <form method="get" action="{escape(action)}">
                <input type="hidden" name="provider" value="{escape(provider)}">
                <input type="hidden" name="state" value="{escape(state)}">
                {redirect_field}
                <label for="email">Email address</label>
                <input id="email" name="email" type="email" required>
                <button type="submit">Authorize</button>
            </form>"""
    return _page(f"Authorize {label}", body)


def render_error_page(message: str) -> str:
    body = f"""
            <h1>Authentication Failed</h1>
            <div class="toast destructive">{escape(message)}</div>
            <p class="subtitle">Please try again or contact support if the issue persists.</p>"""
    return _page("Authentication Failed", body)
