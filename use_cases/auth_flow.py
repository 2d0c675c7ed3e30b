"""User-initiated authentication actions and their page controls."""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

import auth
from use_cases.bootstrap import BootstrapResult, SessionBootstrapSequencer
from use_cases.session_models import PromptPolicy
from views.page import Action, Page

log = logging.getLogger(__name__)

LOGIN_CONTROL = "#login-button"
SIGNUP_CONTROL = "#signup-button"
LOGOUT_CONTROL = "#logout-button"


@dataclass(frozen=True)
class AuthFlowSettings:
    login_return_url: str
    logout_return_url: str
    prompt_policy: PromptPolicy = "login"


class AuthActions:
    def __init__(
        self,
        adapter: auth.SessionClientAdapter,
        sequencer: SessionBootstrapSequencer,
        settings: AuthFlowSettings,
    ):
        self._adapter = adapter
        self._sequencer = sequencer
        self._settings = settings

    async def login(self) -> None:
        """Sends the visitor to the provider; the page is left behind."""
        try:
            await self._adapter.start_authentication_redirect(
                self._settings.login_return_url, self._settings.prompt_policy
            )
        except (auth.ConfigurationError, auth.LoginRedirectError) as e:
            log.warning(f"⚠️ Login unavailable: {e}")

    # signing up goes through the same provider screen
    signup = login

    async def logout(self) -> BootstrapResult:
        return await self._sequencer.logout(self._settings.logout_return_url)


def register_auth_triggers(page: Page, actions: AuthActions) -> Tuple[str, ...]:
    """Binds each action to its control; controls missing from the page are skipped."""
    bindings: Dict[str, Action] = {
        LOGIN_CONTROL: actions.login,
        SIGNUP_CONTROL: actions.signup,
        LOGOUT_CONTROL: actions.logout,
    }
    bound = tuple(selector for selector, action in bindings.items() if page.bind(selector, action))
    log.debug(f"Auth triggers bound: {bound}")
    return bound
