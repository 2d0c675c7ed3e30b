import logging
from typing import List, Optional

from use_cases.session_models import SessionState, UserClaims

"""
SESSION CONTEXT CONTRACT

One SessionContext exists per page load and is passed explicitly to the
sequencer and the reconciler. Nothing here is module-level state.

state: SessionState
    the synchronizer's belief about the visitor's session
    default: UNKNOWN
    owner: use_cases.bootstrap (publish)

claims: ClaimsCache
    most recently fetched user profile
    default: empty
    owner: use_cases.reconciler (store), invalidated by publish

diagnostics: list[Exception]
    non-fatal errors recorded for inspection
    default: []
    owner: any step that contains an error
"""

log = logging.getLogger(__name__)


class ClaimsCache:
    def __init__(self):
        self._claims: Optional[UserClaims] = None

    def get(self) -> Optional[UserClaims]:
        return self._claims

    def store(self, claims: UserClaims) -> None:
        self._claims = claims

    def invalidate(self) -> None:
        if self._claims is not None:
            log.debug("Claims cache invalidated")
        self._claims = None

    @property
    def is_empty(self) -> bool:
        return self._claims is None


class SessionContext:
    def __init__(self):
        self._state = SessionState.UNKNOWN
        self.claims = ClaimsCache()
        self.diagnostics: List[Exception] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def publish(self, state: SessionState) -> None:
        previous = self._state
        if previous != state:
            # claims are only valid for the AUTHENTICATED span they were fetched in
            if SessionState.AUTHENTICATED in (previous, state):
                self.claims.invalidate()
            log.info(f"Session state {previous.value} -> {state.value}")
        self._state = state

    def record_error(self, error: Exception) -> None:
        self.diagnostics.append(error)
