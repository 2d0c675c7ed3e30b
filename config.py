import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, get_args

import streamlit as st

from use_cases.session_models import PersistenceMode, PromptPolicy

ROOT = Path(__file__).resolve().parent
DEFAULT_APP_URL = "http://localhost:8501/"
DEFAULT_PAGE_TEMPLATE = str(ROOT / "views" / "templates" / "index.html")


def get_secret(key: str, default: Optional[str] = None) -> Optional[str]:
    try:
        if key in st.secrets:
            return str(st.secrets[key])
    except FileNotFoundError:
        pass
    return os.getenv(key, default)


def _float_setting(key: str, default: float) -> float:
    raw = get_secret(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _persistence_setting(key: str) -> PersistenceMode:
    raw = (get_secret(key) or "").strip().lower()
    try:
        return PersistenceMode(raw)
    except ValueError:
        return PersistenceMode.MEMORY


def _prompt_policy_setting(key: str) -> PromptPolicy:
    raw = (get_secret(key) or "login").strip().lower()
    if raw in get_args(PromptPolicy):
        return raw
    return "login"


@dataclass(frozen=True)
class Settings:
    auth_endpoint: str
    client_id: str
    persistence: PersistenceMode
    token_store_path: str
    app_url: str
    login_return_url: str
    logout_return_url: str
    safe_default_url: str
    prompt_policy: PromptPolicy
    page_template: str
    http_timeout: float
    label_email: str
    label_email_verified: str
    label_points: str


def get_settings() -> Settings:
    # Missing endpoint/client id is not an error here: configure fails and the page stays signed out.
    app_url = get_secret("APP_URL", DEFAULT_APP_URL) or DEFAULT_APP_URL
    return Settings(
        auth_endpoint=(get_secret("AUTH_ENDPOINT") or "").strip(),
        client_id=(get_secret("AUTH_CLIENT_ID") or "").strip(),
        persistence=_persistence_setting("AUTH_PERSISTENCE"),
        token_store_path=get_secret("AUTH_TOKEN_STORE_PATH", ".auth_session.json") or ".auth_session.json",
        app_url=app_url,
        login_return_url=get_secret("AUTH_LOGIN_RETURN_URL") or app_url,
        logout_return_url=get_secret("AUTH_LOGOUT_RETURN_URL") or app_url,
        safe_default_url=get_secret("AUTH_SAFE_DEFAULT_URL") or app_url,
        prompt_policy=_prompt_policy_setting("AUTH_PROMPT_POLICY"),
        page_template=get_secret("AUTH_PAGE_TEMPLATE") or DEFAULT_PAGE_TEMPLATE,
        http_timeout=_float_setting("AUTH_HTTP_TIMEOUT", 10.0),
        label_email=get_secret("AUTH_LABEL_EMAIL", "Email:") or "Email:",
        label_email_verified=get_secret("AUTH_LABEL_EMAIL_VERIFIED", "Email status:") or "Email status:",
        label_points=get_secret("AUTH_LABEL_POINTS", "Points collected:") or "Points collected:",
    )
