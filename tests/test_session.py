from use_cases.session_models import SessionState, UserClaims
from utils.session_manager import ClaimsCache, SessionContext

CLAIMS = UserClaims(email="a@b.com", email_verified=True, custom_attributes={})


def test_context_starts_unknown():
    context = SessionContext()
    assert context.state == SessionState.UNKNOWN
    assert context.claims.is_empty
    assert context.diagnostics == []


def test_leaving_authenticated_invalidates_claims():
    context = SessionContext()
    context.publish(SessionState.AUTHENTICATED)
    context.claims.store(CLAIMS)

    context.publish(SessionState.UNAUTHENTICATED)

    assert context.claims.get() is None


def test_entering_authenticated_starts_with_no_claims():
    context = SessionContext()
    context.claims.store(CLAIMS)

    context.publish(SessionState.AUTHENTICATED)

    assert context.claims.is_empty


def test_republishing_same_state_keeps_claims():
    context = SessionContext()
    context.publish(SessionState.AUTHENTICATED)
    context.claims.store(CLAIMS)

    context.publish(SessionState.AUTHENTICATED)

    assert context.claims.get() == CLAIMS


def test_claims_cache_invalidate():
    cache = ClaimsCache()
    cache.store(CLAIMS)
    cache.invalidate()
    cache.invalidate()
    assert cache.get() is None


def test_record_error():
    context = SessionContext()
    error = RuntimeError("boom")
    context.record_error(error)
    assert context.diagnostics == [error]
