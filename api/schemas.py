"""Response envelopes for the REST API."""

from typing import Any

from pydantic import BaseModel

from catalog.models import Course, Lesson


class CourseListResponse(BaseModel):
    courses: list[Course]
    message: str | None = None


class CourseResponse(BaseModel):
    course: Course


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "Course deleted"


class LessonListResponse(BaseModel):
    lessons: list[Lesson]
    message: str | None = None


class TokenRequest(BaseModel):
    token: str | None = None


class SeedRequest(BaseModel):
    count: Any = None


class VerifiedMember(BaseModel):
    id: str
    memberId: str
    type: str | None = None


class VerifyTokenResponse(BaseModel):
    member: VerifiedMember
    appId: str | None = None
