"""
Request dependencies: server credentials, the Admin client and the caller.

Auth flow for every route that cares about the caller:
    Authorization: Bearer <token> → Admin verify-token → Member | None

optional_member never fails (a bad token just means anonymous).
require_member answers 401 for a missing or unverifiable token.
"""

import logging

from fastapi import Depends, Header, HTTPException, status

from catalog.config import Settings, get_settings
from catalog.errors import AdminAPIError
from catalog.models import Member
from catalog.repository import CourseRepository
from memberstack.client import AdminClient

log = logging.getLogger(__name__)


def get_server_settings() -> Settings:
    settings = get_settings()
    settings.require_server_credentials()
    return settings


def get_admin_client(settings: Settings = Depends(get_server_settings)) -> AdminClient:
    return AdminClient(settings.secret_key, settings.app_id, settings.admin_url)


def get_token_verifier() -> AdminClient:
    """Admin client for token checks; only the secret key is required."""
    settings = get_settings()
    settings.require_server_credentials(need_app_id=False)
    return AdminClient(settings.secret_key, settings.app_id, settings.admin_url)


def get_repository(client: AdminClient = Depends(get_admin_client)) -> CourseRepository:
    return CourseRepository(client)


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def verify_member(client: AdminClient, token: str) -> Member | None:
    try:
        payload = client.verify_token(token)
    except AdminAPIError as exc:
        log.warning("Token verification failed: %s", exc)
        return None
    if payload is None:
        return None
    return Member.from_verification(payload)


def optional_member(
    token: str | None = Depends(bearer_token),
    client: AdminClient = Depends(get_admin_client),
) -> Member | None:
    if not token:
        return None
    return verify_member(client, token)


def require_member(
    token: str | None = Depends(bearer_token),
    client: AdminClient = Depends(get_admin_client),
) -> Member:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    member = verify_member(client, token)
    if member is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return member
