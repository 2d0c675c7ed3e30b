import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from use_cases.session_models import PersistenceMode, PromptPolicy, SessionState, TokenSet, UserClaims
from views.page import Page

log = logging.getLogger(__name__)


class AuthSyncError(Exception):
    pass

class ConfigurationError(AuthSyncError):
    pass

class LoginRedirectError(AuthSyncError):
    pass

class RedirectCompletionError(AuthSyncError):
    pass

class RefreshError(AuthSyncError):
    pass

class ClaimsFetchError(AuthSyncError):
    pass

class LogoutError(AuthSyncError):
    pass


class IdentityCapability(Protocol):
    """Remote identity provider client. Calls block and may raise anything."""

    def configure(self, endpoint: str, client_id: str, persistence: PersistenceMode) -> None: ...

    def authorization_url(self, return_url: str, prompt: str) -> str: ...

    def complete_authorization(self, location: str) -> TokenSet: ...

    def refresh(self) -> Optional[TokenSet]: ...

    def end_session(self, return_url: str) -> str: ...

    def user_info(self, access_token: str) -> Mapping[str, Any]: ...


class SessionClientAdapter:
    """
    Wraps the identity capability for a single page load.

    Every capability call runs in a worker thread so each network-bound
    operation is an await point. Capability failures come back out as the
    typed errors above; nothing else escapes.
    """

    def __init__(self, capability: IdentityCapability, page: Page):
        self._capability = capability
        self._page = page
        self._configured = False
        self._configuration_error: Optional[ConfigurationError] = None
        self._token: Optional[TokenSet] = None
        self._state = SessionState.UNKNOWN

    @property
    def session_state(self) -> SessionState:
        return self._state

    def _require_configured(self) -> None:
        if self._configuration_error is not None:
            raise ConfigurationError("Identity client failed to configure") from self._configuration_error
        if not self._configured:
            raise ConfigurationError("Identity client is not configured")

    async def configure(self, endpoint: str, client_id: str, persistence: PersistenceMode) -> None:
        if self._configured:
            return
        if self._configuration_error is not None:
            raise self._configuration_error
        try:
            if not endpoint or not client_id:
                raise ValueError("endpoint and client id are required")
            await asyncio.to_thread(self._capability.configure, endpoint, client_id, persistence)
        except Exception as e:
            self._configuration_error = ConfigurationError(f"Configuration failed: {e}")
            raise self._configuration_error from e
        self._configured = True
        log.info(f"Identity client configured for {endpoint} ({persistence.value})")

    async def start_authentication_redirect(self, return_url: str, prompt: PromptPolicy) -> None:
        self._require_configured()
        try:
            url = await asyncio.to_thread(self._capability.authorization_url, return_url, prompt)
        except Exception as e:
            raise LoginRedirectError(f"Could not start login: {e}") from e
        self._page.navigate(url)

    async def finish_authentication_redirect(self, location: str) -> None:
        self._require_configured()
        try:
            token = await asyncio.to_thread(self._capability.complete_authorization, location)
        except Exception as e:
            raise RedirectCompletionError(f"Redirect completion failed: {e}") from e
        self._token = token
        self._state = SessionState.AUTHENTICATED

    async def refresh_token(self) -> None:
        self._require_configured()
        try:
            token = await asyncio.to_thread(self._capability.refresh)
            if token is None:
                raise RefreshError("No refresh material available")
        except Exception as e:
            if self._token is None or self._token.is_expired():
                self._token = None
                self._state = SessionState.UNAUTHENTICATED
            if isinstance(e, RefreshError):
                raise
            raise RefreshError(f"Token refresh failed: {e}") from e
        self._token = token
        self._state = SessionState.AUTHENTICATED

    async def logout(self, return_url: str) -> None:
        self._require_configured()
        # local material goes first; the remote call may still fail
        self._token = None
        self._state = SessionState.UNAUTHENTICATED
        try:
            url = await asyncio.to_thread(self._capability.end_session, return_url)
        except Exception as e:
            raise LogoutError(f"Remote logout failed: {e}") from e
        self._page.navigate(url)

    async def fetch_user_info(self) -> UserClaims:
        self._require_configured()
        if self._state != SessionState.AUTHENTICATED or self._token is None:
            raise ClaimsFetchError("User info requires an authenticated session")
        try:
            profile: Dict[str, Any] = dict(
                await asyncio.to_thread(self._capability.user_info, self._token.access_token)
            )
        except Exception as e:
            raise ClaimsFetchError(f"User info request failed: {e}") from e
        return UserClaims.from_profile(profile)
