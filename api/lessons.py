"""Lesson listing for a course detail page."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.deps import get_repository
from api.schemas import LessonListResponse
from catalog.errors import AdminAPIError
from catalog.repository import CourseRepository

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lessons", tags=["lessons"])


@router.get("", response_model=LessonListResponse, response_model_exclude_none=True)
def list_lessons(
    course_id: str | None = None,
    repo: CourseRepository = Depends(get_repository),
) -> LessonListResponse:
    if not course_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="course_id parameter is required")

    try:
        lessons = repo.list_lessons(course_id)
    except AdminAPIError as exc:
        # The lessons table is optional; a detail page still renders without it
        log.info("Lessons unavailable for course %s: %s", course_id, exc)
        return LessonListResponse(
            lessons=[], message="Unable to fetch lessons. Lessons table may not exist yet."
        )

    log.info("Listed %d lessons for course %s", len(lessons), course_id)
    return LessonListResponse(lessons=lessons)
