"""Page-load orchestration: configure, complete redirect, refresh, reconcile."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Literal, Optional, Tuple

import auth
from use_cases.reconciler import ReconcileResult, UIReconciler
from use_cases.redirect_detector import carries_response_params, has_pending_redirect, strip_redirect_marker
from use_cases.session_models import PersistenceMode, SessionState, resolve_known_state
from utils.session_manager import SessionContext
from views.page import Page

log = logging.getLogger(__name__)

StepName = Literal["configure", "complete_redirect", "refresh", "logout"]
StepStatus = Literal["OK", "FAILED", "SKIPPED"]


@dataclass(frozen=True)
class StepResult:
    """Outcome of one pipeline step; `error` is set only when FAILED."""

    step: StepName
    status: StepStatus
    error: Optional[auth.AuthSyncError] = None

    @property
    def ok(self) -> bool:
        return self.status == "OK"


@dataclass(frozen=True)
class BootstrapResult:
    """Result contract for a bootstrap (or follow-up) run."""

    state: SessionState
    steps: Tuple[StepResult, ...]
    reconciliation: ReconcileResult
    pending_redirect: bool = False

    def step(self, name: StepName) -> Optional[StepResult]:
        for result in self.steps:
            if result.step == name:
                return result
        return None


@dataclass(frozen=True)
class ClientSettings:
    endpoint: str
    client_id: str
    persistence: PersistenceMode


async def _attempt(step: StepName, call: Callable[[], Awaitable[None]]) -> StepResult:
    try:
        await call()
    except auth.AuthSyncError as e:
        return StepResult(step=step, status="FAILED", error=e)
    return StepResult(step=step, status="OK")


class SessionBootstrapSequencer:
    """
    Runs the page-load pipeline once, strictly in order, then publishes the
    resulting state and reconciles the page exactly once.

    Only this class publishes SessionState into the SessionContext.
    """

    def __init__(
        self,
        adapter: auth.SessionClientAdapter,
        page: Page,
        reconciler: UIReconciler,
        context: SessionContext,
        client_settings: ClientSettings,
    ):
        self._adapter = adapter
        self._page = page
        self._reconciler = reconciler
        self._context = context
        self._client_settings = client_settings
        self._has_run = False

    async def run(self) -> BootstrapResult:
        if self._has_run:
            raise RuntimeError("Bootstrap already ran for this page load")
        self._has_run = True

        # evaluated once, before anything can rewrite the address
        location = self._page.location
        pending = has_pending_redirect(location)
        if not pending and carries_response_params(location):
            log.warning("⚠️ Incomplete authorization response in the address, discarding it")
            self._page.replace_location(strip_redirect_marker(location))

        steps: List[StepResult] = []
        try:
            await self._run_steps(pending, steps)
        except Exception as e:
            # the page still settles, signed out unless a step proved a session
            log.exception(f"❌ Bootstrap step crashed: {e}")
            self._context.record_error(e)
        state, reconciliation = await self._publish_and_reconcile()

        log.info(f"Bootstrap settled: {state.value} ({', '.join(f'{s.step}={s.status}' for s in steps)})")
        return BootstrapResult(
            state=state,
            steps=tuple(steps),
            reconciliation=reconciliation,
            pending_redirect=pending,
        )

    async def _run_steps(self, pending: bool, steps: List[StepResult]) -> None:
        settings = self._client_settings
        configured = await _attempt(
            "configure",
            lambda: self._adapter.configure(settings.endpoint, settings.client_id, settings.persistence),
        )
        steps.append(configured)
        if not configured.ok:
            log.error(f"❌ Identity client unavailable, page stays signed out: {configured.error}")
            self._context.record_error(configured.error)
            steps.append(StepResult(step="complete_redirect", status="SKIPPED"))
            steps.append(StepResult(step="refresh", status="SKIPPED"))
            return

        if pending:
            steps.append(await self._complete_redirect())
        else:
            steps.append(StepResult(step="complete_redirect", status="SKIPPED"))

        steps.append(await self._refresh())

    async def _complete_redirect(self) -> StepResult:
        location = self._page.location
        result = await _attempt(
            "complete_redirect",
            lambda: self._adapter.finish_authentication_redirect(location),
        )
        # consumed either way, so a reload cannot replay it
        self._page.replace_location(strip_redirect_marker(location))
        if not result.ok:
            log.warning(f"⚠️ Redirect completion failed, falling back to refresh: {result.error}")
            self._context.record_error(result.error)
        return result

    async def _refresh(self) -> StepResult:
        result = await _attempt("refresh", self._adapter.refresh_token)
        if not result.ok:
            log.info(f"No silent session: {result.error}")
        return result

    async def _publish_and_reconcile(self) -> Tuple[SessionState, ReconcileResult]:
        state = resolve_known_state(self._adapter.session_state)
        self._context.publish(state)
        return state, await self._reconciler.reconcile(state)

    async def logout(self, return_url: str) -> BootstrapResult:
        result = await _attempt("logout", lambda: self._adapter.logout(return_url))
        if not result.ok:
            # local material is gone regardless, so the page still signs out
            log.warning(f"⚠️ Logout incomplete: {result.error}")
            self._context.record_error(result.error)

        state = SessionState.UNAUTHENTICATED
        self._context.publish(state)
        reconciliation = await self._reconciler.reconcile(state)
        return BootstrapResult(state=state, steps=(result,), reconciliation=reconciliation)
