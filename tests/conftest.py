import time
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

import auth
from use_cases import auth_flow, bootstrap, reconciler
from use_cases.session_models import PersistenceMode, TokenSet
from utils.session_manager import SessionContext
from views.page import HtmlPage

APP_URL = "https://app.example.com/"
ENDPOINT = "https://idp.example.com"
SAFE_DEFAULT_URL = "https://app.example.com/"
LOGOUT_URL = "https://idp.example.com/v2/logout?returnTo=https%3A%2F%2Fapp.example.com%2F"

INDEX_HTML = """
<html><body>
  <button id="login-button" class="visible-when-unauthenticated">Log in</button>
  <button id="signup-button" class="visible-when-unauthenticated">Sign up</button>
  <button id="logout-button" class="visible-when-authenticated" hidden>Log out</button>
  <section id="welcome" class="visible-when-unauthenticated">Welcome</section>
  <section id="profile" class="visible-when-authenticated" hidden>
    <p id="user-email"></p>
    <p id="user-email-verified"></p>
    <p id="user-points"></p>
  </section>
</body></html>
"""

PROTECTED_HTML = """
<html><body class="visible-when-authenticated" hidden>
  <button id="logout-button" class="visible-when-authenticated">Log out</button>
  <p id="user-email"></p>
</body></html>
"""

PROFILE = {"email": "a@b.com", "email_verified": True, "custom:points_collected": 50}


def valid_token(ttl: float = 3600) -> TokenSet:
    return TokenSet(access_token="access-token", expires_at=time.time() + ttl, refresh_token="refresh-token")


class FakeIdentityCapability:
    """In-process identity provider double; records every call it receives."""

    def __init__(
        self,
        configure_error: Optional[Exception] = None,
        complete_error: Optional[Exception] = None,
        refresh_result: Optional[TokenSet] = None,
        refresh_error: Optional[Exception] = None,
        end_session_error: Optional[Exception] = None,
        profile: Optional[Dict[str, Any]] = None,
        user_info_error: Optional[Exception] = None,
    ):
        self.configure_error = configure_error
        self.complete_error = complete_error
        self.refresh_result = refresh_result
        self.refresh_error = refresh_error
        self.end_session_error = end_session_error
        self.profile = profile if profile is not None else dict(PROFILE)
        self.user_info_error = user_info_error
        self.calls: List[str] = []

    def called(self, name: str) -> int:
        return self.calls.count(name)

    def configure(self, endpoint, client_id, persistence):
        self.calls.append("configure")
        if self.configure_error:
            raise self.configure_error

    def authorization_url(self, return_url, prompt):
        self.calls.append("authorization_url")
        return f"{ENDPOINT}/authorize?redirect_uri={return_url}&prompt={prompt}"

    def complete_authorization(self, location):
        self.calls.append("complete_authorization")
        if self.complete_error:
            raise self.complete_error
        token = valid_token()
        # the provider now holds refresh material for later page loads
        self.refresh_result = token
        return token

    def refresh(self):
        self.calls.append("refresh")
        if self.refresh_error:
            raise self.refresh_error
        return self.refresh_result

    def end_session(self, return_url):
        self.calls.append("end_session")
        self.refresh_result = None
        if self.end_session_error:
            raise self.end_session_error
        return LOGOUT_URL

    def user_info(self, access_token):
        self.calls.append("user_info")
        if self.user_info_error:
            raise self.user_info_error
        return self.profile


def build_session(capability, markup: str = INDEX_HTML, location: str = APP_URL, endpoint: str = ENDPOINT):
    page = HtmlPage(markup, location)
    context = SessionContext()
    adapter = auth.SessionClientAdapter(capability, page)
    ui = reconciler.UIReconciler(page, adapter, context, SAFE_DEFAULT_URL)
    sequencer = bootstrap.SessionBootstrapSequencer(
        adapter,
        page,
        ui,
        context,
        bootstrap.ClientSettings(endpoint=endpoint, client_id="client-123", persistence=PersistenceMode.MEMORY),
    )
    actions = auth_flow.AuthActions(
        adapter,
        sequencer,
        auth_flow.AuthFlowSettings(login_return_url=APP_URL, logout_return_url=APP_URL),
    )
    return SimpleNamespace(
        page=page, context=context, adapter=adapter, reconciler=ui, sequencer=sequencer, actions=actions
    )


@pytest.fixture
def capability():
    return FakeIdentityCapability()
