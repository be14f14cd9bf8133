"""
Course endpoints.

    GET    /api/courses?owner_id=   list (published + caller's own)
    POST   /api/courses             create (auth)
    GET    /api/courses/{id}        read (published, or owner only)
    PUT    /api/courses/{id}        update (owner only)
    DELETE /api/courses/{id}        delete (owner only)

Hidden courses answer 404 exactly like missing ones so their existence is
never confirmed to non-owners.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.deps import get_repository, optional_member, require_member
from api.schemas import CourseListResponse, CourseResponse, DeleteResponse
from catalog.errors import AdminAPIError, TableNotFoundError
from catalog.filters import visible_courses
from catalog.models import Course, CourseCreate, CourseUpdate, Member
from catalog.repository import CourseRepository

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])

NOT_FOUND = "Course not found"


def _is_owner(course: Course, member: Member | None) -> bool:
    if member is None or not course.owner_id:
        return False
    return course.owner_id in (member.id, member.member_id)


def _load_course(repo: CourseRepository, course_id: str) -> Course | None:
    try:
        return repo.get_course(course_id)
    except TableNotFoundError:
        return None


def _load_owned_course(repo: CourseRepository, course_id: str, member: Member, action: str) -> Course:
    course = _load_course(repo, course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    if not _is_owner(course, member):
        log.info("Member %s denied %s on course %s", member.id, action, course_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"You don't have permission to {action} this course",
        )
    return course


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------

@router.get("", response_model=CourseListResponse, response_model_exclude_none=True)
def list_courses(
    owner_id: str | None = None,
    member: Member | None = Depends(optional_member),
    repo: CourseRepository = Depends(get_repository),
) -> CourseListResponse:
    if owner_id and member is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required to filter by owner_id",
        )

    try:
        courses = repo.list_courses(owner_id)
    except AdminAPIError as exc:
        log.warning("Listing courses failed: %s", exc)
        return CourseListResponse(courses=[], message="Unable to fetch courses via Admin REST API.")

    visible = visible_courses(courses, member.id if member else None)
    log.info("Listed %d/%d courses (owner_id=%r, member=%s)",
             len(visible), len(courses), owner_id, member.id if member else None)
    return CourseListResponse(courses=visible)


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    body: CourseCreate,
    member: Member = Depends(require_member),
    repo: CourseRepository = Depends(get_repository),
) -> CourseResponse:
    if not body.title or not body.title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")

    payload = body.model_dump(exclude_none=True)
    payload["title"] = body.title.strip()
    try:
        course = repo.create_course(payload, owner_id=member.id)
    except TableNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Courses table not found. Please create the table first.",
        )
    except AdminAPIError as exc:
        log.error("Creating course failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)

    log.info("Member %s created course %s (%s)", member.id, course.id, course.status)
    return CourseResponse(course=course)


# ---------------------------------------------------------------------------
# Item
# ---------------------------------------------------------------------------

@router.get("/{course_id}", response_model=CourseResponse)
def get_course(
    course_id: str,
    member: Member | None = Depends(optional_member),
    repo: CourseRepository = Depends(get_repository),
) -> CourseResponse:
    try:
        course = _load_course(repo, course_id)
    except AdminAPIError as exc:
        log.error("Fetching course %s failed: %s", course_id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)

    if course is None or not (course.is_published or _is_owner(course, member)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return CourseResponse(course=course)


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: str,
    body: CourseUpdate,
    member: Member = Depends(require_member),
    repo: CourseRepository = Depends(get_repository),
) -> CourseResponse:
    try:
        existing = _load_owned_course(repo, course_id, member, "update")
        course = repo.update_course(course_id, body.model_dump(exclude_unset=True, exclude_none=True), existing)
    except AdminAPIError as exc:
        log.error("Updating course %s failed: %s", course_id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)

    log.info("Member %s updated course %s", member.id, course_id)
    return CourseResponse(course=course)


@router.delete("/{course_id}", response_model=DeleteResponse)
def delete_course(
    course_id: str,
    member: Member = Depends(require_member),
    repo: CourseRepository = Depends(get_repository),
) -> DeleteResponse:
    try:
        _load_owned_course(repo, course_id, member, "delete")
        repo.delete_course(course_id)
    except AdminAPIError as exc:
        log.error("Deleting course %s failed: %s", course_id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)

    log.info("Member %s deleted course %s", member.id, course_id)
    return DeleteResponse()
