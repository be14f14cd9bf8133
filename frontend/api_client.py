"""
Course directory client: the UI's view of the local REST API.

Every call attaches the cached bearer token when one resolves. Writes
(create, update, delete, seed) refuse to leave the process without a
token, and any 401 from the server surfaces as AuthenticationRequired so
the UI can prompt for sign-in. Error bodies are {"error": "..."}.

Public API:
    CourseDirectoryClient(base_url, session, sdk=None)
        .list(owner_id=None)        → list[Course]
        .get(course_id)             → Course
        .create(fields)             → Course
        .update(course_id, fields)  → Course
        .delete(course_id)          → None
        .list_lessons(course_id)    → list[Lesson]
        .check_or_run_migration()   → dict
        .seed(count=50)             → dict
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from catalog.config import DEFAULT_API_URL
from catalog.models import Course, Lesson
from catalog.tokens import TokenSource, lookup_cached_token
from memberstack.seed import DEFAULT_COUNT, clamp_count

log = logging.getLogger(__name__)

TIMEOUT = 30  # seconds; seeding 200 courses takes a while


class CatalogClientError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationRequired(CatalogClientError):
    def __init__(self, message: str = "Authentication required. Please sign in first."):
        super().__init__(message, 401)


class CourseDirectoryClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        session: TokenSource | None = None,
        sdk: Any = None,
        http: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session  = session
        self.sdk      = sdk
        self.http     = http or requests.Session()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _headers(self, require_auth: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = lookup_cached_token(self.session, self.sdk)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        elif require_auth:
            raise AuthenticationRequired()
        return headers

    def _call(
        self,
        method: str,
        path: str,
        fallback_error: str,
        require_auth: bool = False,
        **kwargs: Any,
    ) -> Any:
        headers = self._headers(require_auth)
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(method, url, headers=headers, timeout=TIMEOUT, **kwargs)
        except requests.ConnectionError as exc:
            log.warning("Catalog API unreachable at %s: %s", url, exc)
            raise CatalogClientError(f"Cannot reach the API at {self.base_url}. Start it with: python app/app.py") from exc
        except requests.RequestException as exc:
            raise CatalogClientError(f"{fallback_error}: {exc}") from exc

        if resp.ok:
            return resp.json() if resp.content else {}

        try:
            body = resp.json()
        except ValueError:
            body = {}
        message = body.get("error") if isinstance(body, dict) else None
        if resp.status_code == 401:
            raise AuthenticationRequired(message or "Authentication failed. Please sign in again.")
        raise CatalogClientError(message or f"{fallback_error}: {resp.status_code} {resp.reason}",
                                 resp.status_code)

    # ------------------------------------------------------------------
    # Courses
    # ------------------------------------------------------------------

    def list(self, owner_id: str | None = None) -> list[Course]:
        params = {"owner_id": owner_id} if owner_id else None
        body = self._call("GET", "/api/courses", "Failed to fetch courses", params=params)
        if body.get("message"):
            log.info("Course listing note: %s", body["message"])
        return [Course.model_validate(c) for c in body.get("courses") or []]

    def get(self, course_id: str) -> Course:
        body = self._call("GET", f"/api/courses/{course_id}", "Course not found")
        return Course.model_validate(body["course"])

    def create(self, fields: dict[str, Any]) -> Course:
        body = self._call("POST", "/api/courses", "Failed to create course",
                          require_auth=True, json=fields)
        return Course.model_validate(body["course"])

    def update(self, course_id: str, fields: dict[str, Any]) -> Course:
        body = self._call("PUT", f"/api/courses/{course_id}", "Failed to update course",
                          require_auth=True, json=fields)
        return Course.model_validate(body["course"])

    def delete(self, course_id: str) -> None:
        self._call("DELETE", f"/api/courses/{course_id}", "Failed to delete course", require_auth=True)

    def list_lessons(self, course_id: str) -> list[Lesson]:
        body = self._call("GET", "/api/lessons", "Failed to fetch lessons",
                          params={"course_id": course_id})
        return [Lesson.model_validate(l) for l in body.get("lessons") or []]

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def check_or_run_migration(self) -> dict[str, Any]:
        return self._call("POST", "/api/migrate", "Migration failed")

    def seed(self, count: int = DEFAULT_COUNT) -> dict[str, Any]:
        count = clamp_count(count)
        params = None if count == DEFAULT_COUNT else {"count": count}
        return self._call("POST", "/api/seed-courses", "Failed to seed courses",
                          require_auth=True, params=params)
