import base64
import hashlib
import json
import logging
import secrets
import threading
import time
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import parse_qs, urlencode, urlsplit

import requests

from infrastructure.identity.token_store import MemoryTokenStore, build_token_store
from use_cases.session_models import PersistenceMode, TokenSet

log = logging.getLogger(__name__)

SCOPES = ["openid", "profile", "email", "offline_access"]
DEFAULT_EXPIRES_IN = 3600
PENDING_LOGIN_TTL = 600

REFRESH_PREFIX = "refresh:"
PENDING_PREFIX = "pending:"


def refresh_key(visitor_id: str) -> str:
    return f"{REFRESH_PREFIX}{visitor_id}"


def pending_key(state: str) -> str:
    return f"{PENDING_PREFIX}{state}"


def _encode_b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("utf-8").rstrip("=")


def _query_value(params: Dict[str, Any], key: str) -> Optional[str]:
    val = params.get(key)
    if isinstance(val, list):
        return val[0] if val else None
    return val


class HttpIdentityClient:
    """
    OpenID Connect provider client over plain HTTP, shared by every visitor.

    Discovery happens in `configure`; every later call uses the discovered
    endpoints. Refresh material is stored per visitor id and each pending login
    under its own `state` value, so concurrent visitors never see each other's
    session. Tokens are issued and validated by the provider; this client only
    carries them.
    """

    def __init__(self, store_path: str = ".auth_session.json", timeout: float = 10):
        self.store_path = store_path
        self.timeout = timeout
        self.client_id: Optional[str] = None
        self.metadata: Dict[str, Any] = {}
        self.store = MemoryTokenStore()
        self._configured_for: Optional[Tuple[str, str, PersistenceMode]] = None
        self._lock = threading.Lock()

    def configure(self, endpoint: str, client_id: str, persistence: PersistenceMode) -> None:
        """Discovers the provider once; repeating the same settings keeps the store."""
        wanted = (endpoint.rstrip("/"), client_id, PersistenceMode(persistence))
        with self._lock:
            if self._configured_for == wanted:
                return
            resp = requests.get(
                f"{wanted[0]}/.well-known/openid-configuration",
                timeout=self.timeout,
            )
            if resp.status_code != 200:
                raise RuntimeError(f"Discovery failed: HTTP {resp.status_code}")
            metadata = resp.json()
            for key in ("authorization_endpoint", "token_endpoint"):
                if not metadata.get(key):
                    raise ValueError(f"Provider metadata is missing {key}")
            self.metadata = metadata
            self.client_id = client_id
            self.store = build_token_store(wanted[2], self.store_path)
            self._configured_for = wanted
            log.info(f"Identity provider discovered at {wanted[0]}")

    def for_visitor(self, visitor_id: str) -> "VisitorIdentityClient":
        return VisitorIdentityClient(self, visitor_id)

    def _endpoint(self, key: str) -> str:
        if not self.metadata:
            raise RuntimeError("Client is not configured")
        url = self.metadata.get(key)
        if not url:
            raise RuntimeError(f"Provider does not expose {key}")
        return url

    def _prune_pending(self, now: float) -> None:
        for key in self.store.keys():
            if not key.startswith(PENDING_PREFIX):
                continue
            raw = self.store.get(key)
            try:
                issued_at = float(json.loads(raw)["issued_at"]) if raw else 0.0
            except (ValueError, KeyError, TypeError):
                issued_at = 0.0
            if now - issued_at > PENDING_LOGIN_TTL:
                self.store.delete(key)

    def authorization_url(self, visitor_id: str, return_url: str, prompt: str) -> str:
        authorize = self._endpoint("authorization_endpoint")
        now = time.time()
        self._prune_pending(now)

        state = secrets.token_urlsafe(24)
        verifier = secrets.token_urlsafe(48)
        challenge = _encode_b64(hashlib.sha256(verifier.encode("ascii")).digest())
        self.store.set(
            pending_key(state),
            json.dumps({"visitor": visitor_id, "verifier": verifier, "return_url": return_url, "issued_at": now}),
        )

        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": return_url,
            "scope": " ".join(SCOPES),
            "state": state,
            "code_challenge": challenge,
            "code_challenge_method": "S256",
        }
        if prompt:
            params["prompt"] = prompt
        return f"{authorize}?{urlencode(params)}"

    def _take_pending(self, state: str) -> Optional[Dict[str, Any]]:
        if not state:
            return None
        key = pending_key(state)
        raw = self.store.get(key)
        # the pending authorization is single-use whatever happens next
        self.store.delete(key)
        if not raw:
            return None
        try:
            pending = json.loads(raw)
        except ValueError:
            return None
        if time.time() - float(pending.get("issued_at") or 0) > PENDING_LOGIN_TTL:
            return None
        return pending

    def complete_authorization(self, visitor_id: str, location: str) -> TokenSet:
        token_endpoint = self._endpoint("token_endpoint")
        params = parse_qs(urlsplit(location).query)
        pending = self._take_pending(_query_value(params, "state") or "")

        error = _query_value(params, "error")
        if error:
            description = _query_value(params, "error_description") or ""
            raise ValueError(f"Provider returned {error} {description}".strip())

        if pending is None or pending.get("visitor") != visitor_id:
            raise ValueError("Authorization state does not match a pending login")

        code = _query_value(params, "code")
        if not code:
            raise ValueError("Authorization response has no code")

        resp = requests.post(
            token_endpoint,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": pending.get("return_url") or "",
                "client_id": self.client_id,
                "code_verifier": pending.get("verifier") or "",
            },
            timeout=self.timeout,
        )
        return self._token_from_response(visitor_id, resp)

    def refresh(self, visitor_id: str) -> Optional[TokenSet]:
        token_endpoint = self._endpoint("token_endpoint")
        refresh_token = self.store.get(refresh_key(visitor_id))
        if not refresh_token:
            return None

        resp = requests.post(
            token_endpoint,
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
            },
            timeout=self.timeout,
        )
        if resp.status_code in (400, 401):
            # invalid_grant: the stored material is dead, forget it
            self.store.delete(refresh_key(visitor_id))
            raise RuntimeError(f"Refresh rejected: HTTP {resp.status_code}")
        return self._token_from_response(visitor_id, resp, fallback_refresh_token=refresh_token)

    def end_session(self, visitor_id: str, return_url: str) -> str:
        refresh_token = self.store.get(refresh_key(visitor_id))
        self.store.delete(refresh_key(visitor_id))

        revocation = self.metadata.get("revocation_endpoint")
        if refresh_token and revocation:
            resp = requests.post(
                revocation,
                data={
                    "token": refresh_token,
                    "token_type_hint": "refresh_token",
                    "client_id": self.client_id,
                },
                timeout=self.timeout,
            )
            if resp.status_code >= 400:
                raise RuntimeError(f"Revocation failed: HTTP {resp.status_code}")

        end_session = self.metadata.get("end_session_endpoint")
        if not end_session:
            return return_url
        params = {"client_id": self.client_id, "post_logout_redirect_uri": return_url}
        return f"{end_session}?{urlencode(params)}"

    def user_info(self, access_token: str) -> Mapping[str, Any]:
        resp = requests.get(
            self._endpoint("userinfo_endpoint"),
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise RuntimeError(f"Userinfo failed: HTTP {resp.status_code}")
        return resp.json()

    def _token_from_response(
        self, visitor_id: str, resp, fallback_refresh_token: Optional[str] = None
    ) -> TokenSet:
        if resp.status_code != 200:
            log.error(f"❌ Token endpoint answered HTTP {resp.status_code}")
            raise RuntimeError(f"Token request failed: HTTP {resp.status_code}")
        body = resp.json()
        access_token = body.get("access_token")
        if not access_token:
            raise ValueError("Token response has no access_token")
        refresh_token = body.get("refresh_token") or fallback_refresh_token
        if refresh_token:
            self.store.set(refresh_key(visitor_id), refresh_token)
        expires_in = int(body.get("expires_in") or DEFAULT_EXPIRES_IN)
        return TokenSet(
            access_token=access_token,
            expires_at=time.time() + expires_in,
            refresh_token=refresh_token,
        )


class VisitorIdentityClient:
    """One browser's view of the shared client; this is what a page load talks to."""

    def __init__(self, client: HttpIdentityClient, visitor_id: str):
        self.client = client
        self.visitor_id = visitor_id

    def configure(self, endpoint: str, client_id: str, persistence: PersistenceMode) -> None:
        self.client.configure(endpoint, client_id, persistence)

    def authorization_url(self, return_url: str, prompt: str) -> str:
        return self.client.authorization_url(self.visitor_id, return_url, prompt)

    def complete_authorization(self, location: str) -> TokenSet:
        return self.client.complete_authorization(self.visitor_id, location)

    def refresh(self) -> Optional[TokenSet]:
        return self.client.refresh(self.visitor_id)

    def end_session(self, return_url: str) -> str:
        return self.client.end_session(self.visitor_id, return_url)

    def user_info(self, access_token: str) -> Mapping[str, Any]:
        return self.client.user_info(access_token)
