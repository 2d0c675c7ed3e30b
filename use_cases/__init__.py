"""Application layer contracts for orchestrating the session lifecycle.

Orchestration modules (`auth_flow`, `bootstrap`, `reconciler`) depend on the
`auth` adapter and are imported by path; only dependency-free contracts are
re-exported here.
"""

from .redirect_detector import carries_response_params, has_pending_redirect, strip_redirect_marker
from .session_models import (
    PersistenceMode,
    RegionTag,
    SessionState,
    TokenSet,
    UserClaims,
    resolve_known_state,
)

__all__ = [
    "PersistenceMode",
    "RegionTag",
    "SessionState",
    "TokenSet",
    "UserClaims",
    "carries_response_params",
    "has_pending_redirect",
    "resolve_known_state",
    "strip_redirect_marker",
]
