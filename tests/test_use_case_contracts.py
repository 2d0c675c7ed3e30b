import asyncio

from conftest import build_session
from use_cases import auth_flow, bootstrap, reconciler


def test_bootstrap_contract(capability) -> None:
    assert hasattr(bootstrap, "SessionBootstrapSequencer")
    result = asyncio.run(build_session(capability).sequencer.run())
    assert isinstance(result, bootstrap.BootstrapResult)
    assert isinstance(result.steps, tuple)
    assert [step.step for step in result.steps] == ["configure", "complete_redirect", "refresh"]
    assert all(step.status in {"OK", "FAILED", "SKIPPED"} for step in result.steps)
    assert all((step.error is None) == (step.status != "FAILED") for step in result.steps)


def test_reconciler_contract(capability) -> None:
    result = asyncio.run(build_session(capability).reconciler.reconcile(bootstrap.SessionState.UNAUTHENTICATED))
    assert isinstance(result, reconciler.ReconcileResult)
    assert result.status in {"SHOWN_AUTHENTICATED", "SHOWN_UNAUTHENTICATED", "REDIRECTED"}


def test_auth_flow_contract(capability) -> None:
    session = build_session(capability)
    assert callable(session.actions.login)
    assert session.actions.signup.__func__ is session.actions.login.__func__
    assert isinstance(auth_flow.register_auth_triggers(session.page, session.actions), tuple)
