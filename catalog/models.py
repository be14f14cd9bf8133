"""
Course catalog data model.

Course and Lesson are the canonical shapes handed to the UI; the external
data table stores the same fields inside a {data: {...}} envelope with price
kept as integer cents (priceCents). CourseCreate / CourseUpdate are the
request bodies accepted by the REST layer.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

CourseStatus = Literal["draft", "published", "archived"]

COURSE_STATUSES: tuple[str, ...] = ("draft", "published", "archived")

# Always offered in the filter sidebar, whether or not a course uses them.
COURSE_CATEGORIES: tuple[str, ...] = (
    "Web Development",
    "Data Science",
    "Design",
    "Mobile Development",
    "DevOps",
    "Backend Development",
    "Programming",
    "Business",
    "Marketing",
    "Photography",
)


def price_to_cents(price: float) -> int:
    return round(price * 100)


def cents_to_price(cents: int | float) -> float:
    return cents / 100


class Course(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    title: str = ""
    description: str = ""
    owner_id: str = ""
    video_link: str = ""
    thumbnail_url: str = ""
    price: float = Field(default=0.0, ge=0)
    status: CourseStatus = "published"
    duration: int | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @property
    def is_free(self) -> bool:
        return not self.price


class Lesson(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    course_id: str
    title: str = ""
    description: str = ""
    video_url: str = ""
    duration: int | None = None
    order: int = 0
    created_at: str | None = None
    updated_at: str | None = None


class Member(BaseModel):
    """Snapshot of a verified member as returned by the token check."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    member_id: str | None = Field(default=None, alias="memberId")
    type: str | None = None

    @classmethod
    def from_verification(cls, payload: dict[str, Any]) -> "Member | None":
        member_id = payload.get("id") or payload.get("memberId")
        if not member_id:
            return None
        return cls(id=member_id, memberId=member_id, type=payload.get("type"))


class CourseCreate(BaseModel):
    # title is optional here so a missing title is reported as 400, not 422
    title: str | None = None
    description: str | None = None
    video_link: str | None = None
    thumbnail_url: str | None = None
    price: float | None = Field(default=None, ge=0)
    status: CourseStatus | None = None
    duration: int | None = Field(default=None, ge=0)
    category: str | None = None
    tags: list[str] | None = None


class CourseUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str | None = None
    description: str | None = None
    video_link: str | None = None
    thumbnail_url: str | None = None
    price: float | None = Field(default=None, ge=0)
    status: CourseStatus | None = None
    duration: int | None = Field(default=None, ge=0)
    category: str | None = None
    tags: list[str] | None = None
