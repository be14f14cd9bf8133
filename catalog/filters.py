"""
Client-side listing filters.

The catalog page fetches the visible course list once and then narrows it
locally: free-text search, category, price bucket and sort order. Every
input change recomputes the whole pipeline from the base list.

Pipeline order (matches what the user sees in the sidebar):
    category → search → price → sort

Sort keys:
    newest      created_at descending, undated courses last
    price-low   ascending price
    price-high  descending price
    rating      random order; there is no rating data yet

Public API:
    CourseFilters
    apply_filters(courses, filters, rng) → list[Course]
    visible_courses(courses, member_id)  → list[Course]
    sidebar_categories(courses)          → list[str]
    category_counts(courses, categories) → dict[str, int]
    format_price(price) / format_duration(minutes)
"""

import random
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from catalog.models import COURSE_CATEGORIES, Course

ALL = "all"

PRICE_FILTERS = ("all", "free", "paid")
SORT_OPTIONS  = ("newest", "price-low", "price-high", "rating")

MAX_SIDEBAR_CATEGORIES = 6

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(frozen=True)
class CourseFilters:
    search: str = ""
    category: str = ALL
    price: str = ALL
    sort: str = "newest"

    @property
    def has_active_filters(self) -> bool:
        return bool(self.search) or self.category != ALL or self.sort != "newest" or self.price != ALL

    def cleared(self) -> "CourseFilters":
        return replace(self, search="", category=ALL, price=ALL, sort="newest")


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def matches_search(course: Course, query: str) -> bool:
    q = query.lower()
    fields = [course.title, course.description, course.category or ""]
    return any(q in f.lower() for f in fields if f) or any(q in t.lower() for t in course.tags)


def matches_price(course: Course, price_filter: str) -> bool:
    if price_filter == "free":
        return course.is_free
    if price_filter == "paid":
        return not course.is_free
    return True


def _created(course: Course) -> datetime:
    if not course.created_at:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(course.created_at.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def apply_filters(
    courses: list[Course],
    filters: CourseFilters,
    rng: random.Random | None = None,
) -> list[Course]:
    result = list(courses)

    if filters.category != ALL:
        result = [c for c in result if c.category == filters.category]

    if filters.search:
        result = [c for c in result if matches_search(c, filters.search)]

    result = [c for c in result if matches_price(c, filters.price)]

    if filters.sort == "price-low":
        result.sort(key=lambda c: c.price)
    elif filters.sort == "price-high":
        result.sort(key=lambda c: c.price, reverse=True)
    elif filters.sort == "rating":
        (rng or random).shuffle(result)
    elif filters.sort == "newest":
        result.sort(key=_created, reverse=True)

    return result


def visible_courses(courses: list[Course], member_id: str | None) -> list[Course]:
    """Published courses, plus the member's own drafts and archived ones."""
    return [
        c for c in courses
        if c.is_published or (member_id is not None and c.owner_id == member_id)
    ]


def sidebar_categories(courses: list[Course]) -> list[str]:
    """'all', then preferred categories, then ones only seen in data; 6 at most."""
    seen = [c.category for c in courses if c.category]
    preferred = list(COURSE_CATEGORIES)[:MAX_SIDEBAR_CATEGORIES]
    others: list[str] = []
    for cat in seen:
        if cat not in COURSE_CATEGORIES and cat not in others:
            others.append(cat)
    others = others[:MAX_SIDEBAR_CATEGORIES - len(preferred)]
    return [ALL, *preferred, *others]


def category_counts(courses: list[Course], categories: list[str]) -> dict[str, int]:
    return {
        cat: len(courses) if cat == ALL else sum(1 for c in courses if c.category == cat)
        for cat in categories
    }


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

def format_price(price: float | None) -> str:
    if not price:
        return "Free"
    return f"${price:.2f}"


def format_duration(minutes: int | None) -> str:
    if not minutes:
        return "N/A"
    hours, mins = divmod(minutes, 60)
    if hours:
        return f"{hours}h {mins}m"
    return f"{mins}m"
