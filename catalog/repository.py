"""
Course and lesson access on top of the Admin data tables.

CourseRepository turns raw records into Course / Lesson models and applies
the write-path conversions. It performs no authorization; the REST layer
decides who may call what.
"""

import logging
from typing import Any, Protocol

from catalog.errors import AdminAPIError
from catalog.models import Course, Lesson, price_to_cents
from catalog.records import (
    normalize_course,
    normalize_courses,
    normalize_lessons,
    to_course_fields,
    to_update_fields,
    unwrap_record,
)

log = logging.getLogger(__name__)

COURSES_TABLE = "courses"
LESSONS_TABLE = "lessons"


class RecordStore(Protocol):
    """The subset of AdminClient the repository depends on."""

    def list_records(self, table: str, where: dict[str, Any] | None = None,
                     order_by: dict[str, str] | None = None) -> list[dict[str, Any]]: ...
    def find_record(self, table: str, record_id: str) -> dict[str, Any] | None: ...
    def create_record(self, table: str, fields: dict[str, Any]) -> dict[str, Any]: ...
    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> dict[str, Any]: ...
    def delete_record(self, table: str, record_id: str) -> None: ...


class CourseRepository:
    def __init__(self, store: RecordStore):
        self.store = store

    def list_courses(self, owner_id: str | None = None) -> list[Course]:
        where = {"owner_id": {"equals": owner_id}} if owner_id else None
        return normalize_courses(self.store.list_records(COURSES_TABLE, where=where))

    def get_course(self, course_id: str) -> Course | None:
        raw = self.store.find_record(COURSES_TABLE, course_id)
        if raw is None:
            return None
        return normalize_course(raw)

    def create_course(self, payload: dict[str, Any], owner_id: str) -> Course:
        fields = to_course_fields(payload, owner_id)
        raw = self.store.create_record(COURSES_TABLE, fields)
        # The create response may echo only the id; what was sent fills the rest
        record_id, echoed = unwrap_record(raw)
        course = normalize_course({"id": record_id, "data": {**fields, **echoed}})
        if course is None:
            raise AdminAPIError("Create response carried no record id")
        return course

    def update_course(
        self,
        course_id: str,
        payload: dict[str, Any],
        existing: Course | None = None,
    ) -> Course:
        """Apply a partial update; last write wins, there is no version check."""
        updates = to_update_fields(payload)
        raw = self.store.update_record(COURSES_TABLE, course_id, updates)
        _, echoed = unwrap_record(raw)

        base: dict[str, Any] = {}
        if existing is not None:
            base = existing.model_dump(exclude={"id", "price"})
            base["priceCents"] = price_to_cents(existing.price)
        course = normalize_course({"id": course_id, "data": {**base, **updates, **echoed}})
        if course is None:
            raise AdminAPIError(f"Update of course {course_id} returned an unusable record")
        return course

    def delete_course(self, course_id: str) -> None:
        self.store.delete_record(COURSES_TABLE, course_id)

    def list_lessons(self, course_id: str) -> list[Lesson]:
        raws = self.store.list_records(
            LESSONS_TABLE,
            where={"course_id": {"equals": course_id}},
            order_by={"order": "asc"},
        )
        return normalize_lessons(raws)
