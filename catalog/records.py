"""
Record normalizer.

The Admin API wraps application fields in a record envelope
({id, data: {...}}) but, depending on endpoint and version, also returns
flattened records, single records under data.record, and record lists in
several containers. Everything here is a pure function from raw JSON to
the canonical Course / Lesson shape (or back, for writes).

Status asymmetry: records read without a status are treated as published
(externally seeded data rarely carries one), while courses created through
this app without a status start as private drafts.

Public API:
    unwrap_record(raw)                     → (id, fields)
    normalize_course(raw)                  → Course | None
    normalize_courses(raws)                → list[Course]
    normalize_lesson(raw) / normalize_lessons(raws)
    to_course_fields(payload, owner_id)    → dict for create
    to_update_fields(payload)              → dict for update
    extract_records(payload)               → (records, pagination)
    extract_record(payload)                → dict | None
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from catalog.models import Course, Lesson, cents_to_price, price_to_cents

log = logging.getLogger(__name__)

READ_DEFAULT_STATUS  = "published"
WRITE_DEFAULT_STATUS = "draft"

# Never accepted from a client on update
IMMUTABLE_FIELDS = ("id", "created_at", "owner_id")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------

def unwrap_record(raw: dict[str, Any]) -> tuple[str | None, dict[str, Any]]:
    """Flatten a record envelope; the outer id wins over any inner one."""
    inner = raw.get("data")
    fields = dict(inner) if isinstance(inner, dict) else dict(raw)
    record_id = raw.get("id") or fields.get("id")
    fields.pop("data", None)
    return (str(record_id) if record_id else None), fields


def record_price(fields: dict[str, Any]) -> float:
    cents = fields.get("priceCents")
    if cents is not None:
        try:
            return max(cents_to_price(float(cents)), 0.0)
        except (TypeError, ValueError):
            pass
    price = fields.get("price")
    if price is not None:
        try:
            return max(float(price), 0.0)
        except (TypeError, ValueError):
            pass
    return 0.0


def _tags(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    return [str(t) for t in value]


def _int_or_none(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_course(raw: dict[str, Any]) -> Course | None:
    """Map a raw record to a Course; None when no identifier can be found."""
    if not isinstance(raw, dict):
        return None
    record_id, fields = unwrap_record(raw)
    if not record_id:
        return None

    status = fields.get("status") or READ_DEFAULT_STATUS
    try:
        return Course(
            id=record_id,
            title=fields.get("title") or "",
            description=fields.get("description") or "",
            owner_id=fields.get("owner_id") or "",
            video_link=fields.get("video_link") or "",
            thumbnail_url=fields.get("thumbnail_url") or fields.get("thumbnailUrl") or "",
            price=record_price(fields),
            status=status,
            duration=_int_or_none(fields.get("duration")),
            category=fields.get("category") or None,
            tags=_tags(fields.get("tags")),
            created_at=fields.get("created_at"),
            updated_at=fields.get("updated_at"),
        )
    except ValidationError as exc:
        log.warning("Skipping malformed course record %s: %s", record_id, exc)
        return None


def normalize_courses(raws: list[dict[str, Any]]) -> list[Course]:
    return [c for c in (normalize_course(r) for r in raws) if c is not None]


def normalize_lesson(raw: dict[str, Any]) -> Lesson | None:
    if not isinstance(raw, dict):
        return None
    record_id, fields = unwrap_record(raw)
    if not record_id or not fields.get("course_id"):
        return None
    return Lesson(
        id=record_id,
        course_id=str(fields["course_id"]),
        title=fields.get("title") or "",
        description=fields.get("description") or "",
        video_url=fields.get("video_url") or "",
        duration=_int_or_none(fields.get("duration")),
        order=_int_or_none(fields.get("order")) or 0,
        created_at=fields.get("created_at"),
        updated_at=fields.get("updated_at"),
    )


def normalize_lessons(raws: list[dict[str, Any]]) -> list[Lesson]:
    lessons = [l for l in (normalize_lesson(r) for r in raws) if l is not None]
    return sorted(lessons, key=lambda l: l.order)


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------

def to_course_fields(
    payload: dict[str, Any],
    owner_id: str,
    now: str | None = None,
) -> dict[str, Any]:
    """Build the data-table fields for a new course owned by owner_id."""
    now = now or _now()
    price = payload.get("price")
    return {
        "title": payload["title"],
        "description": payload.get("description") or "",
        "owner_id": owner_id,
        "video_link": payload.get("video_link") or "",
        "thumbnail_url": payload.get("thumbnail_url") or "",
        "priceCents": price_to_cents(price) if price else 0,
        "status": payload.get("status") or WRITE_DEFAULT_STATUS,
        "duration": payload.get("duration") or 0,
        "category": payload.get("category") or "",
        "tags": payload.get("tags") or [],
        "created_at": now,
        "updated_at": now,
    }


def to_update_fields(payload: dict[str, Any], now: str | None = None) -> dict[str, Any]:
    """Strip immutable fields, convert price to cents and refresh updated_at."""
    updates = {k: v for k, v in payload.items() if k not in IMMUTABLE_FIELDS}
    # priceCents is only ever derived from price
    updates.pop("priceCents", None)
    if updates.get("price") is not None:
        updates["priceCents"] = price_to_cents(updates["price"])
    updates.pop("price", None)
    updates["updated_at"] = now or _now()
    return updates


# ---------------------------------------------------------------------------
# Response containers
# ---------------------------------------------------------------------------

def extract_records(payload: Any) -> tuple[list[dict[str, Any]], dict[str, Any] | None]:
    """
    Pull the record list (and pagination block, if any) out of a query response.

    Unknown shapes degrade to an empty list so callers keep working when
    the external schema drifts.
    """
    if isinstance(payload, list):
        return payload, None
    if not isinstance(payload, dict):
        log.warning("Unrecognised records payload of type %s", type(payload).__name__)
        return [], None

    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("records"), list):
        pagination = data.get("pagination")
        return data["records"], pagination if isinstance(pagination, dict) else None
    if isinstance(data, list):
        return data, None
    if isinstance(payload.get("records"), list):
        return payload["records"], None
    if isinstance(data, dict) and data:
        return [data], None

    log.warning("Unrecognised records payload with keys %s", sorted(payload))
    return [], None


def extract_record(payload: Any) -> dict[str, Any] | None:
    """Single-record responses: {data: {record}}, {data: {...}} or a bare record."""
    if not isinstance(payload, dict):
        return None
    if "data" not in payload:
        return payload or None
    data = payload["data"]
    if not isinstance(data, dict):
        return None
    if "record" in data:
        record = data["record"]
        return record if isinstance(record, dict) and record else None
    return data or None
