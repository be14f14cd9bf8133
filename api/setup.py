"""
Setup endpoints: courses table check and demo seeding.

    POST /api/migrate          probe the courses table, return setup steps if missing
    GET  /api/migrate          usage
    POST /api/seed-courses     insert sample courses for the caller (auth)
    GET  /api/seed-courses     usage
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from api.deps import get_admin_client, get_server_settings, require_member
from api.schemas import SeedRequest
from catalog.config import Settings
from catalog.errors import AdminAPIError
from catalog.models import Member
from memberstack.client import AdminClient
from memberstack.migrate import check_courses_table
from memberstack.seed import DEFAULT_COUNT, MAX_COUNT, MIN_COUNT, build_seed_courses, clamp_count, seed_courses

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["setup"])


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------

@router.post("/migrate")
def migrate(
    settings: Settings = Depends(get_server_settings),
    client: AdminClient = Depends(get_admin_client),
) -> Any:
    try:
        return check_courses_table(client, settings.app_id)
    except AdminAPIError as exc:
        log.error("Courses table check failed: %s", exc)
        return JSONResponse(status_code=500, content={"success": False, "error": exc.message})


@router.get("/migrate")
def migrate_usage() -> dict[str, Any]:
    return {
        "message": "Courses table check endpoint",
        "usage": "POST /api/migrate to check that the courses data table exists",
        "note": "Tables cannot be created through the Admin API; missing tables come back with setup instructions.",
    }


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------

@router.post("/seed-courses")
def seed(
    count: str | None = None,
    body: SeedRequest | None = Body(default=None),
    member: Member = Depends(require_member),
    client: AdminClient = Depends(get_admin_client),
) -> dict[str, Any]:
    raw = count if count is not None else (body.count if body else None)
    n = clamp_count(raw)
    log.info("Seeding %d courses for member %s", n, member.id)
    result = seed_courses(client, build_seed_courses(n, owner_id=member.id))
    return result.to_response()


@router.get("/seed-courses")
def seed_usage() -> dict[str, Any]:
    return {
        "message": "Course seeding endpoint",
        "usage": "POST /api/seed-courses?count=50 or body {\"count\": 50}",
        "default": DEFAULT_COUNT,
        "min": MIN_COUNT,
        "max": MAX_COUNT,
        "note": "Requires authentication. Courses are owned by the caller; 80% are published.",
    }
