"""
Token verification for the UI.

    POST /api/auth/verify-token
        token: Authorization: Bearer <token>, or body {"token": "..."}
        returns: {"member": {"id", "memberId", "type"}, "appId": ...}

Only the secret key is required here; the app id is echoed when set.
"""

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, status

from api.deps import bearer_token, get_token_verifier
from api.schemas import TokenRequest, VerifiedMember, VerifyTokenResponse
from catalog.config import get_settings
from catalog.errors import AdminAPIError
from catalog.models import Member
from memberstack.client import AdminClient

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/verify-token", response_model=VerifyTokenResponse)
def verify_token(
    body: TokenRequest | None = Body(default=None),
    header_token: str | None = Depends(bearer_token),
    client: AdminClient = Depends(get_token_verifier),
) -> VerifyTokenResponse:
    token = header_token or (body.token if body else None)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token not provided")

    try:
        payload = client.verify_token(token)
    except AdminAPIError as exc:
        log.warning("Token verification errored: %s", exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token verification failed")

    member = Member.from_verification(payload) if payload else None
    if member is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    log.info("Verified member %s", member.id)
    return VerifyTokenResponse(
        member=VerifiedMember(id=member.id, memberId=member.member_id or member.id, type=member.type),
        appId=get_settings().app_id,
    )
