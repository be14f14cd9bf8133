"""
Member sign-in against the platform's member-auth REST API.

MemberAuthClient stands in for the browser SDK: it returns the raw JSON
of each call and leaves token discovery to catalog.tokens, so it can be
handed to the resolver as the `sdk` argument (get_token and
get_current_member follow the SDK's accessor names).

The REST paths below mirror the SDK's email/password methods; the public
key travels in X-API-KEY the way the SDK sends it.
"""

import logging
from typing import Any

import requests

from catalog.config import DEFAULT_CLIENT_URL
from catalog.session import SessionContext
from catalog.tokens import resolve_token

log = logging.getLogger(__name__)

TIMEOUT = 15  # seconds

LOGIN_PATH  = "/auth/login"
SIGNUP_PATH = "/auth/signup"
LOGOUT_PATH = "/auth/logout"
MEMBER_PATH = "/member"


class MemberAuthError(Exception):
    pass


class MemberAuthClient:
    def __init__(
        self,
        public_key: str | None,
        base_url: str = DEFAULT_CLIENT_URL,
        http: requests.Session | None = None,
    ):
        if not public_key:
            raise MemberAuthError("MEMBERSTACK_PUBLIC_KEY is not set")
        self.base_url = base_url.rstrip("/")
        self.http     = http or requests.Session()
        self.http.headers["X-API-KEY"] = public_key
        self.http.headers["Content-Type"] = "application/json"
        self._token: str | None = None

    def _post(self, path: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            resp = self.http.post(f"{self.base_url}{path}", json=payload or {}, timeout=TIMEOUT)
        except requests.RequestException as exc:
            raise MemberAuthError(f"Member auth service unreachable: {exc}") from exc
        try:
            body = resp.json() if resp.content else {}
        except ValueError:
            body = {}
        if not resp.ok:
            message = (body.get("message") or body.get("error")) if isinstance(body, dict) else None
            raise MemberAuthError(message or f"Member auth failed ({resp.status_code})")
        return body

    def _remember(self, result: Any) -> Any:
        # Only the response shape itself is consulted here; the resolver does the rest
        self._token = resolve_token(result)
        return result

    # ------------------------------------------------------------------
    # SDK-shaped methods
    # ------------------------------------------------------------------

    def login_member_email_password(self, email: str, password: str) -> Any:
        return self._remember(self._post(LOGIN_PATH, {"email": email, "password": password}))

    def signup_member_email_password(self, email: str, password: str) -> Any:
        return self._remember(self._post(SIGNUP_PATH, {"email": email, "password": password}))

    def get_token(self) -> str | None:
        return self._token

    def get_current_member(self) -> Any:
        if not self._token:
            return None
        try:
            resp = self.http.get(f"{self.base_url}{MEMBER_PATH}", timeout=TIMEOUT,
                                 headers={"Authorization": f"Bearer {self._token}"})
        except requests.RequestException as exc:
            log.warning("Current member lookup failed: %s", exc)
            return None
        if not resp.ok:
            return None
        body = resp.json()
        return body.get("data", body) if isinstance(body, dict) else None

    def logout_member(self) -> None:
        if self._token:
            self.http.post(f"{self.base_url}{LOGOUT_PATH}", timeout=TIMEOUT,
                           headers={"Authorization": f"Bearer {self._token}"})
        self._token = None


# ---------------------------------------------------------------------------
# Session glue
# ---------------------------------------------------------------------------

def _member_from(result: Any) -> dict[str, Any] | None:
    if not isinstance(result, dict):
        return None
    data = result.get("data") if isinstance(result.get("data"), dict) else {}
    member = data.get("member") or result.get("member")
    return member if isinstance(member, dict) else None


def sign_in(
    auth: MemberAuthClient,
    session: SessionContext,
    email: str,
    password: str,
    signup: bool = False,
) -> dict[str, Any]:
    """Log in (or sign up), cache member + token, and return the member."""
    if signup:
        result = auth.signup_member_email_password(email, password)
    else:
        result = auth.login_member_email_password(email, password)

    member = _member_from(result)
    if member is None:
        action = "Signup" if signup else "Login"
        raise MemberAuthError(f"{action} failed. Please check your credentials.")

    token = resolve_token(result, sdk=auth, session=session)
    if token is None:
        log.warning("Signed in member %s but no access token was found", member.get("id"))
    session.login(member, token)
    log.info("Member %s signed %s", member.get("id"), "up" if signup else "in")
    return member


def sign_out(auth: MemberAuthClient | None, session: SessionContext) -> None:
    try:
        if auth is not None:
            auth.logout_member()
    except requests.RequestException as exc:
        log.warning("Remote logout failed: %s", exc)
    finally:
        session.logout()
