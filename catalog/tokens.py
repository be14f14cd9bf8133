"""
Token resolver.

Login/signup responses from the membership SDK do not have a stable
shape, so the bearer token is located by an explicit, ordered list of
extraction strategies. Each strategy is a plain function returning a
token or None; the first hit wins.

Order:
    1. key paths on the auth result       (RESULT_TOKEN_PATHS)
    2. the SDK's own token accessors      (SDK_TOKEN_METHODS, SDK_TOKEN_ATTRIBUTES)
    3. the member object inside the result (MEMBER_TOKEN_PATHS)

A miss everywhere yields None, which callers treat as "unauthenticated".

Public API:
    resolve_token(result, sdk, session) → str | None
    lookup_cached_token(session, sdk)   → str | None
"""

import logging
from collections.abc import Callable
from typing import Any, Protocol

log = logging.getLogger(__name__)

KeyPath = tuple[str, ...]

RESULT_TOKEN_PATHS: tuple[KeyPath, ...] = (
    ("data", "tokens", "accessToken"),
    ("data", "token"),
    ("token",),
    ("data", "accessToken"),
    ("accessToken",),
)

SDK_TOKEN_METHODS: tuple[str, ...] = ("get_token", "get_access_token", "get_session_token")
SDK_TOKEN_ATTRIBUTES: tuple[str, ...] = ("token", "access_token", "session_token")

MEMBER_TOKEN_PATHS: tuple[KeyPath, ...] = (
    ("data", "member", "token"),
    ("data", "member", "accessToken"),
    ("member", "token"),
    ("member", "accessToken"),
)

CURRENT_MEMBER_TOKEN_KEYS: tuple[str, ...] = ("token", "accessToken", "sessionToken")


class TokenSink(Protocol):
    def remember_token(self, token: str) -> None: ...


class TokenSource(TokenSink, Protocol):
    @property
    def token(self) -> str | None: ...


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _dig(obj: Any, path: KeyPath) -> Any:
    for key in path:
        if isinstance(obj, dict):
            obj = obj.get(key)
        else:
            obj = getattr(obj, key, None)
        if obj is None:
            return None
    return obj


def _as_token(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def from_paths(result: Any, paths: tuple[KeyPath, ...]) -> str | None:
    for path in paths:
        token = _as_token(_dig(result, path))
        if token:
            return token
    return None


def from_sdk(sdk: Any) -> str | None:
    """
    Ask the SDK directly. Only the first accessor the SDK exposes is
    tried; an empty answer from it is final.
    """
    if sdk is None:
        return None
    try:
        for name in SDK_TOKEN_METHODS:
            method = getattr(sdk, name, None)
            if callable(method):
                return _as_token(method())
        for name in SDK_TOKEN_ATTRIBUTES:
            value = getattr(sdk, name, None)
            if value:
                return _as_token(value)
    except Exception as exc:  # SDK failures mean "no token", never an error
        log.warning("SDK token lookup failed: %s", exc)
    return None


def from_current_member(sdk: Any) -> str | None:
    getter = getattr(sdk, "get_current_member", None)
    if not callable(getter):
        return None
    try:
        member = getter()
    except Exception as exc:
        log.warning("SDK current-member lookup failed: %s", exc)
        return None
    return from_paths(member, tuple((k,) for k in CURRENT_MEMBER_TOKEN_KEYS))


def result_strategies(result: Any, sdk: Any) -> list[Callable[[], str | None]]:
    return [
        lambda: from_paths(result, RESULT_TOKEN_PATHS),
        lambda: from_sdk(sdk),
        lambda: from_paths(result, MEMBER_TOKEN_PATHS),
    ]


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def resolve_token(
    result: Any,
    sdk: Any = None,
    session: TokenSink | None = None,
) -> str | None:
    """Locate the access token for a login/signup result and cache it."""
    for strategy in result_strategies(result, sdk):
        token = strategy()
        if token:
            if session is not None:
                session.remember_token(token)
            return token
    log.info("No access token found in auth result")
    return None


def lookup_cached_token(session: TokenSource | None, sdk: Any = None) -> str | None:
    """Token for outgoing requests: the session cache first, then the SDK."""
    if session is not None and session.token:
        return session.token
    token = from_sdk(sdk) or from_current_member(sdk)
    if token and session is not None:
        session.remember_token(token)
    return token
