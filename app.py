import asyncio
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import streamlit as st

from infrastructure.observability import setup_observability
setup_observability()

import auth
import config
from infrastructure.identity.http_identity_client import HttpIdentityClient
from use_cases import auth_flow, bootstrap, reconciler
from utils.session_manager import SessionContext
from views import login_view
from views.page import HtmlPage


@st.cache_resource
def get_identity_client(store_path: str, timeout: float) -> HttpIdentityClient:
    # Shared by every browser; pending logins and refresh material are keyed inside it.
    return HttpIdentityClient(store_path=store_path, timeout=timeout)


def current_visitor_id() -> str:
    """Browser-scoped id that keys this visitor's refresh material in the shared client."""
    if "visitor_id" not in st.session_state:
        st.session_state["visitor_id"] = st.context.cookies.get(login_view.VISITOR_COOKIE) or secrets.token_urlsafe(24)
    return st.session_state["visitor_id"]


def current_location(app_url: str) -> str:
    params = st.query_params.to_dict()
    if not params:
        return app_url
    return f"{app_url}?{urlencode(params)}"


def claims_bindings(settings: config.Settings):
    return (
        reconciler.ClaimsBinding("user-email", settings.label_email, "email"),
        reconciler.ClaimsBinding("user-email-verified", settings.label_email_verified, "email_verified"),
        reconciler.ClaimsBinding("user-points", settings.label_points, "custom", attribute="points_collected"),
    )


@dataclass
class PageSession:
    page: HtmlPage
    context: SessionContext
    sequencer: bootstrap.SessionBootstrapSequencer
    actions: auth_flow.AuthActions


def build_page_session(settings: config.Settings, location: str, capability: auth.IdentityCapability) -> PageSession:
    """Wires one page load: page, adapter, context, reconciler, sequencer and triggers."""
    page = HtmlPage.from_file(settings.page_template, location)
    context = SessionContext()
    adapter = auth.SessionClientAdapter(capability, page)
    ui = reconciler.UIReconciler(
        page, adapter, context, settings.safe_default_url, bindings=claims_bindings(settings)
    )
    sequencer = bootstrap.SessionBootstrapSequencer(
        adapter,
        page,
        ui,
        context,
        bootstrap.ClientSettings(
            endpoint=settings.auth_endpoint,
            client_id=settings.client_id,
            persistence=settings.persistence,
        ),
    )
    actions = auth_flow.AuthActions(
        adapter,
        sequencer,
        auth_flow.AuthFlowSettings(
            login_return_url=settings.login_return_url,
            logout_return_url=settings.logout_return_url,
            prompt_policy=settings.prompt_policy,
        ),
    )
    auth_flow.register_auth_triggers(page, actions)
    return PageSession(page=page, context=context, sequencer=sequencer, actions=actions)


def main() -> None:
    st.set_page_config(page_title="Account", layout="centered")
    settings = config.get_settings()
    location = current_location(settings.app_url)
    visitor_id = current_visitor_id()
    if st.context.cookies.get(login_view.VISITOR_COOKIE) != visitor_id:
        login_view.remember_visitor(visitor_id)

    client = get_identity_client(settings.token_store_path, settings.http_timeout)
    session = build_page_session(settings, location, client.for_visitor(visitor_id))

    asyncio.run(session.sequencer.run())
    if session.page.location != location:
        st.query_params.clear()

    clicked = login_view.render_auth_controls(session.page)
    if clicked:
        asyncio.run(session.page.click(clicked))

    if session.page.navigated_to:
        login_view.emit_navigation(session.page.navigated_to)
    login_view.render_page(session.page)


if __name__ == "__main__":
    main()
