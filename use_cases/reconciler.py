"""Keeps page visibility and claims text in line with the session state."""

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional, Tuple

import auth
from use_cases.session_models import RegionTag, SessionState, UserClaims
from utils.session_manager import SessionContext
from views.page import Page

log = logging.getLogger(__name__)

ClaimSource = Literal["email", "email_verified", "custom"]
ReconcileStatus = Literal["SHOWN_AUTHENTICATED", "SHOWN_UNAUTHENTICATED", "REDIRECTED"]


@dataclass(frozen=True)
class ClaimsBinding:
    """Display element whose text is `<label> <value>` for one claim."""

    element_id: str
    label: str
    source: ClaimSource
    attribute: str = ""
    default: Any = 0

    def value_for(self, claims: UserClaims) -> str:
        if self.source == "email":
            return claims.email
        if self.source == "email_verified":
            return "Verified" if claims.email_verified else "Not verified"
        return str(claims.custom_attributes.get(self.attribute, self.default))

    def render(self, claims: UserClaims) -> str:
        return f"{self.label} {self.value_for(claims)}"


DEFAULT_CLAIMS_BINDINGS: Tuple[ClaimsBinding, ...] = (
    ClaimsBinding("user-email", "Email:", "email"),
    ClaimsBinding("user-email-verified", "Email status:", "email_verified"),
    ClaimsBinding("user-points", "Points collected:", "custom", attribute="points_collected"),
)


@dataclass(frozen=True)
class ReconcileResult:
    status: ReconcileStatus
    claims_rendered: bool = False
    redirected_to: Optional[str] = None


class UIReconciler:
    def __init__(
        self,
        page: Page,
        adapter: auth.SessionClientAdapter,
        context: SessionContext,
        safe_default_url: str,
        bindings: Tuple[ClaimsBinding, ...] = DEFAULT_CLAIMS_BINDINGS,
    ):
        self._page = page
        self._adapter = adapter
        self._context = context
        self._safe_default_url = safe_default_url
        self._bindings = bindings

    async def reconcile(self, state: SessionState) -> ReconcileResult:
        if state == SessionState.AUTHENTICATED:
            return await self._show_authenticated()
        if state == SessionState.UNAUTHENTICATED:
            return self._show_unauthenticated()
        raise ValueError("Cannot reconcile an UNKNOWN session state")

    async def _show_authenticated(self) -> ReconcileResult:
        self._page.set_region_visibility(RegionTag.VISIBLE_WHEN_UNAUTHENTICATED, False)
        self._page.set_region_visibility(RegionTag.VISIBLE_WHEN_AUTHENTICATED, True)

        try:
            claims = await self._adapter.fetch_user_info()
        except auth.ClaimsFetchError as e:
            # claims display is best-effort; whatever was rendered stays
            log.warning(f"⚠️ Claims fetch failed: {e}")
            self._context.record_error(e)
            return ReconcileResult(status="SHOWN_AUTHENTICATED", claims_rendered=False)

        self._context.claims.store(claims)
        self.render_claims(claims)
        return ReconcileResult(status="SHOWN_AUTHENTICATED", claims_rendered=True)

    def _show_unauthenticated(self) -> ReconcileResult:
        self._page.set_region_visibility(RegionTag.VISIBLE_WHEN_AUTHENTICATED, False)
        self.clear_claims()
        if self._page.is_protected:
            self._page.navigate(self._safe_default_url)
            return ReconcileResult(status="REDIRECTED", redirected_to=self._safe_default_url)
        self._page.set_region_visibility(RegionTag.VISIBLE_WHEN_UNAUTHENTICATED, True)
        return ReconcileResult(status="SHOWN_UNAUTHENTICATED")

    def render_claims(self, claims: UserClaims) -> None:
        for binding in self._bindings:
            # set_text replaces the element content, so repeated renders never stack
            if not self._page.set_text(binding.element_id, binding.render(claims)):
                log.debug(f"No element #{binding.element_id} for claims display")

    def clear_claims(self) -> None:
        for binding in self._bindings:
            self._page.set_text(binding.element_id, "")
