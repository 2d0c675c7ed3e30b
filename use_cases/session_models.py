"""Session DTOs shared across application layers."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional


class SessionState(str, Enum):
    UNKNOWN = "unknown"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class RegionTag(str, Enum):
    VISIBLE_WHEN_AUTHENTICATED = "visible-when-authenticated"
    VISIBLE_WHEN_UNAUTHENTICATED = "visible-when-unauthenticated"


class PersistenceMode(str, Enum):
    MEMORY = "memory"
    LOCAL = "local"


PromptPolicy = Literal["login", "none", "consent", "select_account", "create"]

CUSTOM_ATTRIBUTE_PREFIX = "custom:"


@dataclass(frozen=True)
class TokenSet:
    access_token: str
    expires_at: float
    refresh_token: Optional[str] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (now if now is not None else time.time()) >= self.expires_at


@dataclass(frozen=True)
class UserClaims:
    email: str
    email_verified: bool
    custom_attributes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_profile(cls, profile: Mapping[str, Any]) -> "UserClaims":
        """
        Builds claims from a userinfo payload. Custom attributes come either from a
        nested `custom_attributes` object or from `custom:`-prefixed top-level keys.
        """
        custom: Dict[str, Any] = dict(profile.get("custom_attributes") or {})
        for key, value in profile.items():
            if key.startswith(CUSTOM_ATTRIBUTE_PREFIX):
                custom[key[len(CUSTOM_ATTRIBUTE_PREFIX):]] = value
        return cls(
            email=str(profile.get("email") or ""),
            email_verified=bool(profile.get("email_verified", False)),
            custom_attributes=custom,
        )


def resolve_known_state(state: SessionState) -> SessionState:
    """UNKNOWN after bootstrap means nothing proved a session: fail closed."""
    if state == SessionState.UNKNOWN:
        return SessionState.UNAUTHENTICATED
    return state
