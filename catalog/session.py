"""
Auth bridge: the cached member and access token for the current UI session.

SessionContext wraps whatever mapping the host provides (Streamlit's
st.session_state in the UI, a plain dict in tests) and is the only code
that writes the cached values. Lifecycle:

    hydrate()               at startup, reads any cached member snapshot
    login(member, token)    after a successful sign-in / sign-up
    remember_token(token)   called by the token resolver on success
    logout()                clears both entries

Everything else reads through the properties. The member snapshot is
never refreshed on its own; staleness is accepted until the next login
or logout.
"""

import json
import logging
from collections.abc import MutableMapping
from typing import Any

log = logging.getLogger(__name__)

USER_KEY  = "memberstack_user"
TOKEN_KEY = "memberstack_token"


def safe_json_loads(raw: Any, default: Any = None) -> Any:
    if not raw:
        return default
    if isinstance(raw, dict):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


def display_name(member: dict[str, Any] | None) -> str:
    """First/last name across the field spellings the platform uses, else email."""
    if not member:
        return ""
    name = member.get("name") if isinstance(member.get("name"), dict) else {}
    custom = member.get("customFields") if isinstance(member.get("customFields"), dict) else {}
    first = (member.get("first-name") or member.get("firstName")
             or custom.get("first-name") or name.get("first") or "")
    last = (member.get("last-name") or member.get("lastName")
            or custom.get("last-name") or name.get("last") or "")
    full = f"{first} {last}".strip()
    if full:
        return full
    auth = member.get("auth") if isinstance(member.get("auth"), dict) else {}
    return member.get("email") or auth.get("email") or ""


class SessionContext:
    def __init__(self, storage: MutableMapping[str, Any]):
        self._storage = storage
        self._member: dict[str, Any] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def hydrate(self) -> "SessionContext":
        member = safe_json_loads(self._storage.get(USER_KEY))
        if member is not None and not isinstance(member, dict):
            log.warning("Ignoring cached member of type %s", type(member).__name__)
            member = None
        self._member = member
        return self

    def login(self, member: dict[str, Any] | None, token: str | None) -> None:
        self._member = member
        if member is not None:
            self._storage[USER_KEY] = json.dumps(member)
        if token:
            self._storage[TOKEN_KEY] = token

    def remember_token(self, token: str) -> None:
        self._storage[TOKEN_KEY] = token

    def logout(self) -> None:
        self._member = None
        self._storage.pop(USER_KEY, None)
        self._storage.pop(TOKEN_KEY, None)

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def member(self) -> dict[str, Any] | None:
        return dict(self._member) if self._member else None

    @property
    def token(self) -> str | None:
        return self._storage.get(TOKEN_KEY) or None

    @property
    def member_id(self) -> str | None:
        if not self._member:
            return None
        return self._member.get("id") or self._member.get("memberId")

    @property
    def is_authenticated(self) -> bool:
        return self._member is not None

    @property
    def display_name(self) -> str:
        return display_name(self._member)
