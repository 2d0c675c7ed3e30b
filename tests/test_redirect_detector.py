import pytest

from use_cases.redirect_detector import carries_response_params, has_pending_redirect, strip_redirect_marker


@pytest.mark.parametrize(
    "url",
    [
        "https://app.example.com/?code=abc&state=xyz",
        "https://app.example.com/account?state=xyz&code=abc&extra=1",
        "https://app.example.com/?error=access_denied&state=xyz",
    ],
)
def test_detects_authorization_response(url):
    assert has_pending_redirect(url) is True


@pytest.mark.parametrize(
    "url",
    [
        "https://app.example.com/",
        "https://app.example.com/?code=abc",
        "https://app.example.com/?state=xyz",
        "https://app.example.com/?tab=profile",
        "https://app.example.com/#code=abc&state=xyz",
    ],
)
def test_ignores_other_addresses(url):
    assert has_pending_redirect(url) is False


def test_strip_keeps_path_and_drops_all_parameters():
    assert strip_redirect_marker("https://app.example.com/account?code=abc&state=xyz&tab=1#top") == (
        "https://app.example.com/account"
    )


def test_strip_root_address():
    assert strip_redirect_marker("https://app.example.com?code=abc&state=xyz") == "https://app.example.com/"


def test_partial_response_still_counts_as_response_params():
    assert carries_response_params("https://app.example.com/?code=abc") is True
    assert carries_response_params("https://app.example.com/?error=access_denied") is True
    assert carries_response_params("https://app.example.com/?tab=profile") is False
