"""Detects an authorization response waiting in the page address."""

from urllib.parse import parse_qs, urlsplit, urlunsplit

STATE_PARAM = "state"
RESPONSE_PARAMS = ("code", "error")


def has_pending_redirect(url: str) -> bool:
    """True iff the query carries `state` together with `code` or `error`."""
    params = parse_qs(urlsplit(url).query, keep_blank_values=True)
    if STATE_PARAM not in params:
        return False
    return any(name in params for name in RESPONSE_PARAMS)


def carries_response_params(url: str) -> bool:
    """True if any authorization response parameter is present, complete or not."""
    params = parse_qs(urlsplit(url).query, keep_blank_values=True)
    return any(name in params for name in (STATE_PARAM, *RESPONSE_PARAMS))


def strip_redirect_marker(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", "", ""))
