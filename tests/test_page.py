import asyncio
from pathlib import Path

import pytest

import config

from conftest import INDEX_HTML, PROTECTED_HTML
from use_cases.session_models import RegionTag
from views.page import HtmlPage

LOCATION = "https://app.example.com/?code=abc&state=xyz"


def test_rejects_element_with_both_tags():
    markup = '<html><body><div class="visible-when-authenticated visible-when-unauthenticated"></div></body></html>'

    with pytest.raises(ValueError):
        HtmlPage(markup, LOCATION)


def test_protected_page_detection():
    assert HtmlPage(PROTECTED_HTML, LOCATION).is_protected is True
    assert HtmlPage(INDEX_HTML, LOCATION).is_protected is False


def test_region_visibility_toggles_hidden_attribute():
    page = HtmlPage(INDEX_HTML, LOCATION)

    assert page.set_region_visibility(RegionTag.VISIBLE_WHEN_AUTHENTICATED, True) == 2
    assert page.is_control_visible("#logout-button")
    assert page.is_control_visible("#user-email")

    page.set_region_visibility(RegionTag.VISIBLE_WHEN_AUTHENTICATED, False)
    page.set_region_visibility(RegionTag.VISIBLE_WHEN_AUTHENTICATED, False)
    assert not page.is_control_visible("#logout-button")
    assert page.render().count("hidden") == 2


def test_set_text_replaces_content():
    page = HtmlPage(INDEX_HTML, LOCATION)

    assert page.set_text("user-email", "Email: a@b.com") is True
    assert page.set_text("user-email", "Email: a@b.com") is True
    assert page.text("user-email") == "Email: a@b.com"
    assert page.set_text("missing", "x") is False
    assert page.text("missing") is None


def test_replace_location_does_not_navigate():
    page = HtmlPage(INDEX_HTML, LOCATION)

    page.replace_location("https://app.example.com/")

    assert page.location == "https://app.example.com/"
    assert page.navigated_to is None


def test_first_navigation_wins():
    page = HtmlPage(INDEX_HTML, LOCATION)

    page.navigate("https://idp.example.com/logout")
    page.navigate("https://app.example.com/")

    assert page.navigated_to == "https://idp.example.com/logout"


def test_bind_and_click():
    page = HtmlPage(INDEX_HTML, LOCATION)
    clicks = []

    async def action():
        clicks.append("login")

    assert page.bind("#login-button", action) is True
    assert page.bind("#nope", action) is False
    assert page.bound_controls == ["#login-button"]
    assert page.control_label("#login-button") == "Log in"

    assert asyncio.run(page.click("#login-button")) is True
    assert asyncio.run(page.click("#nope")) is False
    assert clicks == ["login"]


def test_from_file(tmp_path):
    path = tmp_path / "page.html"
    path.write_text(INDEX_HTML, encoding="utf-8")

    page = HtmlPage.from_file(str(path), LOCATION)

    assert page.location == LOCATION
    assert page.control_label("#signup-button") == "Sign up"


def test_bundled_templates_load():
    root = Path(config.DEFAULT_PAGE_TEMPLATE).parent

    index = HtmlPage.from_file(str(root / "index.html"), LOCATION)
    account = HtmlPage.from_file(str(root / "account.html"), LOCATION)

    assert index.is_protected is False
    assert account.is_protected is True
    assert not index.is_control_visible("#user-email")
    assert not account.is_control_visible("#user-email")
