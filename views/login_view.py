import json
from typing import Optional

import streamlit as st
import streamlit.components.v1 as components

from views.page import HtmlPage

PAGE_HEIGHT = 480
VISITOR_COOKIE = "page_auth_visitor"
VISITOR_COOKIE_MAX_AGE = 2592000  # 30 days


def emit_navigation(url: str) -> None:
    # The document renders inside a component iframe, so the top window has to move.
    components.html(
        f"""
        <script>
          window.top.location.href = {json.dumps(url)};
        </script>
        """,
        height=0,
    )
    st.stop()


def remember_visitor(visitor_id: str) -> None:
    # Set on the parent document too: the component runs in an iframe.
    components.html(
        f"""
        <script>
            var cookieStr = "{VISITOR_COOKIE}=" + encodeURIComponent({json.dumps(visitor_id)}) + "; path=/; max-age={VISITOR_COOKIE_MAX_AGE}; SameSite=Lax";
            document.cookie = cookieStr;
            try {{
                window.parent.document.cookie = cookieStr;
            }} catch (e) {{
                console.log("Cross-origin frame block, visitor cookie not shared");
            }}
        </script>
        """,
        height=0,
    )


def render_auth_controls(page: HtmlPage) -> Optional[str]:
    """Renders one button per bound trigger that is visible; returns the clicked selector."""
    clicked = None
    for selector in page.bound_controls:
        if not page.is_control_visible(selector):
            continue
        label = page.control_label(selector) or selector.lstrip("#.")
        if st.button(label, key=f"auth_trigger_{selector}"):
            clicked = selector
    return clicked


def render_page(page: HtmlPage) -> None:
    components.html(page.render(), height=PAGE_HEIGHT, scrolling=True)
