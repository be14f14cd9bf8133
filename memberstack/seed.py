"""
Bulk-insert sample courses for demos.

Records are generated from a fixed set of templates. Past the first pass,
titles get a "Part N" suffix and price/duration creep upward. The first
80% are published and the rest stay drafts.

Inserts go out in batches of BATCH_SIZE concurrent requests; each batch is
allowed to settle completely (every request succeeds or fails on its own)
before a short pause and the next batch. Failures are collected, never
fatal.

Public API:
    clamp_count(raw)                            → int in [1, 200]
    build_seed_courses(count, owner_id, now)    → list[dict]
    seed_courses(store, records, ...)           → SeedResult
"""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from catalog.images import seeded_image_url
from catalog.models import price_to_cents
from catalog.repository import COURSES_TABLE, RecordStore

log = logging.getLogger(__name__)

DEFAULT_COUNT     = 50
MIN_COUNT         = 1
MAX_COUNT         = 200
BATCH_SIZE        = 5
BATCH_DELAY       = 0.2    # seconds between batches
PUBLISHED_SHARE   = 0.8
MAX_ERROR_DETAILS = 10

COURSE_TEMPLATES: list[dict[str, Any]] = [
    {
        "title": "Introduction to Web Development",
        "description": "Learn the fundamentals of web development including HTML, CSS, and JavaScript.",
        "category": "Web Development",
        "tags": ["html", "css", "javascript", "beginner"],
        "price": 49.99,
        "duration": 120,
    },
    {
        "title": "Advanced React Patterns",
        "description": "Master advanced React patterns and best practices for building scalable applications.",
        "category": "Web Development",
        "tags": ["react", "javascript", "advanced"],
        "price": 79.99,
        "duration": 180,
    },
    {
        "title": "Full-Stack Next.js Development",
        "description": "Build complete full-stack applications with Next.js, React, and TypeScript.",
        "category": "Web Development",
        "tags": ["nextjs", "react", "typescript", "fullstack"],
        "price": 99.99,
        "duration": 240,
    },
    {
        "title": "Python for Data Science",
        "description": "Learn Python programming and data analysis with pandas, numpy, and matplotlib.",
        "category": "Data Science",
        "tags": ["python", "data-science", "pandas", "numpy"],
        "price": 89.99,
        "duration": 200,
    },
    {
        "title": "Machine Learning Fundamentals",
        "description": "Introduction to machine learning algorithms and their applications.",
        "category": "Data Science",
        "tags": ["machine-learning", "ai", "python", "scikit-learn"],
        "price": 129.99,
        "duration": 300,
    },
    {
        "title": "UI/UX Design Principles",
        "description": "Master the principles of user interface and user experience design.",
        "category": "Design",
        "tags": ["design", "ui", "ux", "figma"],
        "price": 69.99,
        "duration": 150,
    },
    {
        "title": "Mobile App Development with React Native",
        "description": "Build cross-platform mobile apps using React Native.",
        "category": "Mobile Development",
        "tags": ["react-native", "mobile", "javascript"],
        "price": 94.99,
        "duration": 220,
    },
    {
        "title": "Docker and Kubernetes",
        "description": "Learn containerization and orchestration with Docker and Kubernetes.",
        "category": "DevOps",
        "tags": ["docker", "kubernetes", "devops", "containers"],
        "price": 109.99,
        "duration": 250,
    },
    {
        "title": "GraphQL API Development",
        "description": "Build efficient APIs with GraphQL and Apollo Server.",
        "category": "Backend Development",
        "tags": ["graphql", "api", "apollo", "nodejs"],
        "price": 84.99,
        "duration": 190,
    },
    {
        "title": "TypeScript Mastery",
        "description": "Master TypeScript for building type-safe applications.",
        "category": "Programming",
        "tags": ["typescript", "javascript", "programming"],
        "price": 74.99,
        "duration": 160,
    },
]


@dataclass
class SeedResult:
    requested: int
    created: int = 0
    errors: list[str] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": True,
            "message": f"Created {self.created} out of {self.requested} courses successfully",
            "requested": self.requested,
            "created": self.created,
            "errors": len(self.errors),
        }
        if self.errors:
            body["errorDetails"] = self.errors[:MAX_ERROR_DETAILS]
        return body


def clamp_count(raw: Any) -> int:
    """Parse a requested count; unparseable means the default, then clamp."""
    if raw is None or raw == "":
        return DEFAULT_COUNT
    try:
        count = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_COUNT
    return min(max(count, MIN_COUNT), MAX_COUNT)


def build_seed_courses(
    count: int,
    owner_id: str,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Data-table field bags for `count` sample courses owned by owner_id."""
    now = now or datetime.now(timezone.utc)
    published_cutoff = int(count * PUBLISHED_SHARE)
    records = []

    for i in range(count):
        template = COURSE_TEMPLATES[i % len(COURSE_TEMPLATES)]
        variation = i // len(COURSE_TEMPLATES)
        title = template["title"]
        if variation > 0:
            title = f"{title} - Part {variation + 1}"

        records.append({
            "title": title,
            "description": template["description"],
            "owner_id": owner_id,
            "video_link": f"https://example.com/video/course-{i + 1}",
            "thumbnail_url": seeded_image_url(f"course-{i + 1}"),
            "priceCents": price_to_cents(template["price"] + variation * 10),
            "status": "published" if i < published_cutoff else "draft",
            "duration": template["duration"] + variation * 20,
            "category": template["category"],
            "tags": list(template["tags"]),
            "created_at": (now - timedelta(days=i)).isoformat(),
            "updated_at": now.isoformat(),
        })

    return records


def seed_courses(
    store: RecordStore,
    records: list[dict[str, Any]],
    batch_size: int = BATCH_SIZE,
    delay: float = BATCH_DELAY,
    sleep: Callable[[float], None] | None = None,
) -> SeedResult:
    sleep = sleep or time.sleep
    result = SeedResult(requested=len(records))

    with ThreadPoolExecutor(max_workers=batch_size) as pool:
        for start in range(0, len(records), batch_size):
            batch = records[start:start + batch_size]
            futures = [pool.submit(store.create_record, COURSES_TABLE, rec) for rec in batch]

            for offset, future in enumerate(futures):
                try:
                    future.result()
                    result.created += 1
                except Exception as exc:  # one bad record must not sink the batch
                    result.errors.append(f"Course {start + offset + 1}: {exc}")

            if start + batch_size < len(records):
                sleep(delay)

    log.info("Seeded %d/%d courses (%d errors)", result.created, result.requested, len(result.errors))
    return result
