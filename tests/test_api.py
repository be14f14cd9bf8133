import pytest
from fastapi.testclient import TestClient

from app.app import app
from catalog.errors import AdminAPIError
from catalog.repository import COURSES_TABLE, LESSONS_TABLE
from conftest import ALICE, BOB


def _auth(token: str = "tok-alice") -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def catalog(admin):
    """Two published courses and one draft per member."""
    admin.add(COURSES_TABLE, "c_pub_alice", title="Alice Public", owner_id=ALICE,
              status="published", priceCents=4999, created_at="2024-01-02T00:00:00Z")
    admin.add(COURSES_TABLE, "c_draft_alice", title="Alice Draft", owner_id=ALICE,
              status="draft", priceCents=0)
    admin.add(COURSES_TABLE, "c_pub_bob", title="Bob Public", owner_id=BOB,
              status="published", priceCents=1000)
    admin.add(COURSES_TABLE, "c_draft_bob", title="Bob Draft", owner_id=BOB,
              status="draft", priceCents=2000)
    return admin


def _ids(response) -> set[str]:
    return {c["id"] for c in response.json()["courses"]}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert "error" in response.json()


class TestConfiguration:
    """Missing server credentials surface as a generic 500."""

    @pytest.fixture
    def bare_client(self, monkeypatch):
        monkeypatch.delenv("MEMBERSTACK_SECRET_KEY", raising=False)
        monkeypatch.delenv("MEMBERSTACK_APP_ID", raising=False)
        app.dependency_overrides.clear()
        return TestClient(app)

    def test_list_without_credentials(self, bare_client):
        response = bare_client.get("/api/courses")
        assert response.status_code == 500
        assert response.json() == {"error": "Server configuration error"}

    def test_verify_token_without_secret(self, bare_client):
        response = bare_client.post("/api/auth/verify-token", headers=_auth())
        assert response.status_code == 500
        assert response.json() == {"error": "Server configuration error"}

    def test_app_id_missing(self, bare_client, monkeypatch):
        monkeypatch.setenv("MEMBERSTACK_SECRET_KEY", "sk_test")
        response = bare_client.post("/api/migrate")
        assert response.status_code == 500


class TestListCourses:
    """GET /api/courses visibility rules."""

    def test_anonymous_sees_published_only(self, client, catalog):
        response = client.get("/api/courses")
        assert response.status_code == 200
        assert _ids(response) == {"c_pub_alice", "c_pub_bob"}

    def test_member_sees_published_and_own(self, client, catalog):
        response = client.get("/api/courses", headers=_auth())
        assert _ids(response) == {"c_pub_alice", "c_draft_alice", "c_pub_bob"}

    def test_owner_filter_requires_auth(self, client, catalog):
        response = client.get("/api/courses", params={"owner_id": ALICE})
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required to filter by owner_id"}

    def test_owner_filter_own_courses(self, client, catalog):
        response = client.get("/api/courses", params={"owner_id": ALICE}, headers=_auth())
        assert _ids(response) == {"c_pub_alice", "c_draft_alice"}

    def test_owner_filter_hides_other_members_drafts(self, client, catalog):
        response = client.get("/api/courses", params={"owner_id": BOB}, headers=_auth())
        assert _ids(response) == {"c_pub_bob"}

    def test_invalid_token_is_anonymous(self, client, catalog):
        response = client.get("/api/courses", headers=_auth("tok-unknown"))
        assert _ids(response) == {"c_pub_alice", "c_pub_bob"}

    def test_price_comes_from_cents(self, client, catalog):
        courses = {c["id"]: c for c in client.get("/api/courses").json()["courses"]}
        assert courses["c_pub_alice"]["price"] == 49.99
        assert courses["c_pub_bob"]["price"] == 10.0

    def test_admin_failure_degrades_to_empty_list(self, client, catalog):
        catalog.fail_with = AdminAPIError("boom", 500)
        response = client.get("/api/courses")
        assert response.status_code == 200
        assert response.json() == {
            "courses": [],
            "message": "Unable to fetch courses via Admin REST API.",
        }

    def test_record_without_status_reads_as_published(self, client, admin):
        admin.add(COURSES_TABLE, "c_legacy", title="Legacy", owner_id=BOB)
        courses = client.get("/api/courses").json()["courses"]
        assert [c["status"] for c in courses] == ["published"]


class TestCreateCourse:
    """POST /api/courses."""

    def test_requires_token(self, client):
        response = client.post("/api/courses", json={"title": "X"})
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_rejects_invalid_token(self, client):
        response = client.post("/api/courses", json={"title": "X"}, headers=_auth("tok-unknown"))
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    def test_verification_error_is_invalid_token(self, client):
        response = client.post("/api/courses", json={"title": "X"}, headers=_auth("tok-boom"))
        assert response.status_code == 401

    @pytest.mark.parametrize("body", [{}, {"title": ""}, {"title": "   "}])
    def test_title_is_required(self, client, body):
        response = client.post("/api/courses", json=body, headers=_auth())
        assert response.status_code == 400
        assert response.json() == {"error": "Title is required"}

    def test_negative_price_rejected(self, client):
        response = client.post("/api/courses", json={"title": "X", "price": -1}, headers=_auth())
        assert response.status_code == 400

    def test_creates_draft_owned_by_caller(self, client, admin):
        response = client.post(
            "/api/courses",
            json={"title": "New", "price": 19.99, "owner_id": BOB, "tags": ["a", "b"]},
            headers=_auth(),
        )
        assert response.status_code == 201
        course = response.json()["course"]
        assert course["owner_id"] == ALICE
        assert course["status"] == "draft"
        assert course["price"] == 19.99
        assert course["tags"] == ["a", "b"]
        assert course["created_at"] == course["updated_at"]

        stored = admin.tables[COURSES_TABLE][course["id"]]["data"]
        assert stored["priceCents"] == 1999
        assert "price" not in stored
        assert stored["owner_id"] == ALICE

    def test_explicit_status_is_kept(self, client):
        response = client.post("/api/courses", json={"title": "Live", "status": "published"},
                               headers=_auth())
        assert response.json()["course"]["status"] == "published"

    def test_missing_table(self, client, admin):
        del admin.tables[COURSES_TABLE]
        response = client.post("/api/courses", json={"title": "X"}, headers=_auth())
        assert response.status_code == 400
        assert response.json() == {"error": "Courses table not found. Please create the table first."}

    def test_admin_failure_is_500(self, client, admin):
        admin.fail_with = AdminAPIError("upstream exploded", 502)
        response = client.post("/api/courses", json={"title": "X"}, headers=_auth())
        assert response.status_code == 500
        assert response.json() == {"error": "upstream exploded"}


class TestGetCourse:
    """GET /api/courses/{id}: hidden and missing look the same."""

    def test_published_is_public(self, client, catalog):
        response = client.get("/api/courses/c_pub_bob")
        assert response.status_code == 200
        assert response.json()["course"]["title"] == "Bob Public"

    def test_missing(self, client, catalog):
        response = client.get("/api/courses/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Course not found"}

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer tok-alice"}])
    def test_draft_hidden_from_non_owner(self, client, catalog, headers):
        response = client.get("/api/courses/c_draft_bob", headers=headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Course not found"}

    def test_draft_visible_to_owner(self, client, catalog):
        response = client.get("/api/courses/c_draft_bob", headers=_auth("tok-bob"))
        assert response.status_code == 200

    def test_missing_table_is_404(self, client, admin):
        del admin.tables[COURSES_TABLE]
        assert client.get("/api/courses/c1").status_code == 404


class TestUpdateCourse:
    """PUT /api/courses/{id}."""

    def test_requires_token(self, client, catalog):
        assert client.put("/api/courses/c_pub_alice", json={"title": "Y"}).status_code == 401

    def test_missing(self, client, catalog):
        response = client.put("/api/courses/nope", json={"title": "Y"}, headers=_auth())
        assert response.status_code == 404

    def test_non_owner_forbidden(self, client, catalog):
        response = client.put("/api/courses/c_pub_bob", json={"title": "Mine now"}, headers=_auth())
        assert response.status_code == 403
        assert response.json() == {"error": "You don't have permission to update this course"}
        assert catalog.updates == []

    def test_non_owner_forbidden_on_draft(self, client, catalog):
        response = client.put("/api/courses/c_draft_bob", json={"title": "Y"}, headers=_auth())
        assert response.status_code == 403

    def test_owner_partial_update(self, client, catalog):
        response = client.put(
            "/api/courses/c_pub_alice",
            json={"price": 25, "id": "other", "owner_id": BOB, "created_at": "1999-01-01"},
            headers=_auth(),
        )
        assert response.status_code == 200
        course = response.json()["course"]
        assert course["id"] == "c_pub_alice"
        assert course["title"] == "Alice Public"
        assert course["owner_id"] == ALICE
        assert course["price"] == 25.0
        assert course["created_at"] == "2024-01-02T00:00:00Z"

        (record_id, sent), = catalog.updates
        assert record_id == "c_pub_alice"
        assert sent["priceCents"] == 2500
        assert "price" not in sent
        assert not {"id", "owner_id", "created_at"} & set(sent)
        assert "updated_at" in sent

    def test_raw_cents_are_not_writable(self, client, catalog):
        response = client.put("/api/courses/c_pub_alice", json={"priceCents": -500, "title": "Renamed"},
                              headers=_auth())
        assert response.status_code == 200
        assert response.json()["course"]["price"] == 49.99
        (_, sent), = catalog.updates
        assert "priceCents" not in sent
        assert catalog.tables[COURSES_TABLE]["c_pub_alice"]["data"]["priceCents"] == 4999

    def test_zero_price_is_written(self, client, catalog):
        client.put("/api/courses/c_pub_alice", json={"price": 0}, headers=_auth())
        (_, sent), = catalog.updates
        assert sent["priceCents"] == 0


class TestDeleteCourse:
    """DELETE /api/courses/{id}."""

    def test_owner_deletes(self, client, catalog):
        response = client.delete("/api/courses/c_draft_alice", headers=_auth())
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Course deleted"}
        assert "c_draft_alice" not in catalog.tables[COURSES_TABLE]

    def test_non_owner_forbidden(self, client, catalog):
        response = client.delete("/api/courses/c_pub_bob", headers=_auth())
        assert response.status_code == 403
        assert "c_pub_bob" in catalog.tables[COURSES_TABLE]

    def test_requires_token(self, client, catalog):
        assert client.delete("/api/courses/c_pub_alice").status_code == 401

    def test_missing(self, client, catalog):
        assert client.delete("/api/courses/nope", headers=_auth()).status_code == 404


class TestLessons:
    """GET /api/lessons."""

    def test_course_id_required(self, client):
        response = client.get("/api/lessons")
        assert response.status_code == 400
        assert response.json() == {"error": "course_id parameter is required"}

    def test_sorted_by_order(self, client, admin):
        admin.add(LESSONS_TABLE, "l2", course_id="c1", title="Second", order=2)
        admin.add(LESSONS_TABLE, "l1", course_id="c1", title="First", order=1)
        admin.add(LESSONS_TABLE, "lx", course_id="c2", title="Elsewhere", order=0)
        response = client.get("/api/lessons", params={"course_id": "c1"})
        assert [l["title"] for l in response.json()["lessons"]] == ["First", "Second"]

    def test_missing_table_degrades(self, client, admin):
        del admin.tables[LESSONS_TABLE]
        response = client.get("/api/lessons", params={"course_id": "c1"})
        assert response.status_code == 200
        assert response.json() == {
            "lessons": [],
            "message": "Unable to fetch lessons. Lessons table may not exist yet.",
        }


class TestVerifyToken:
    """POST /api/auth/verify-token."""

    def test_header_token(self, client):
        response = client.post("/api/auth/verify-token", headers=_auth())
        assert response.status_code == 200
        assert response.json() == {
            "member": {"id": ALICE, "memberId": ALICE, "type": "member"},
            "appId": "app_test",
        }

    def test_body_token(self, client):
        response = client.post("/api/auth/verify-token", json={"token": "tok-bob"})
        assert response.json()["member"]["id"] == BOB

    def test_missing_token(self, client):
        response = client.post("/api/auth/verify-token")
        assert response.status_code == 401
        assert response.json() == {"error": "Token not provided"}

    def test_invalid_token(self, client):
        response = client.post("/api/auth/verify-token", json={"token": "tok-unknown"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    def test_verification_error(self, client):
        response = client.post("/api/auth/verify-token", headers=_auth("tok-boom"))
        assert response.status_code == 401
        assert response.json() == {"error": "Token verification failed"}


class TestMigrate:
    """POST/GET /api/migrate."""

    def test_table_exists(self, client):
        body = client.post("/api/migrate").json()
        assert body["success"] is True
        assert body["tableExists"] is True
        assert body["tableCreated"] is False

    def test_table_missing(self, client, admin):
        del admin.tables[COURSES_TABLE]
        body = client.post("/api/migrate").json()
        assert body["success"] is False
        assert body["needsCreation"] is True
        assert body["appId"] == "app_test"
        assert body["tableSchema"]["key"] == COURSES_TABLE
        assert {f["key"] for f in body["tableSchema"]["fields"]} >= {"title", "owner_id", "priceCents", "status"}
        assert body["instructions"]
        assert body["dashboardUrl"].startswith("https://")

    def test_usage(self, client):
        response = client.get("/api/migrate")
        assert response.status_code == 200
        assert "usage" in response.json()


class TestSeed:
    """POST/GET /api/seed-courses."""

    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch):
        monkeypatch.setattr("memberstack.seed.time.sleep", lambda _: None)

    def test_requires_auth(self, client):
        assert client.post("/api/seed-courses").status_code == 401

    def test_count_from_query(self, client, admin):
        body = client.post("/api/seed-courses", params={"count": 3}, headers=_auth()).json()
        assert body["success"] is True
        assert body["requested"] == 3
        assert body["created"] == 3
        assert body["errors"] == 0
        assert "errorDetails" not in body
        owners = {r["data"]["owner_id"] for r in admin.tables[COURSES_TABLE].values()}
        assert owners == {ALICE}

    def test_count_from_body(self, client, admin):
        body = client.post("/api/seed-courses", json={"count": 7}, headers=_auth()).json()
        assert body["requested"] == 7
        assert len(admin.tables[COURSES_TABLE]) == 7

    @pytest.mark.parametrize("raw, expected", [(0, 1), (-5, 1), (500, 200), ("abc", 50)])
    def test_count_is_clamped(self, client, raw, expected):
        body = client.post("/api/seed-courses", json={"count": raw}, headers=_auth()).json()
        assert body["requested"] == expected

    def test_failures_are_collected(self, client, admin):
        admin.fail_with = AdminAPIError("quota exceeded", 429)
        body = client.post("/api/seed-courses", params={"count": 12}, headers=_auth()).json()
        assert body["success"] is True
        assert body["created"] == 0
        assert body["errors"] == 12
        assert len(body["errorDetails"]) == 10
        assert body["errorDetails"][0] == "Course 1: quota exceeded"

    def test_usage(self, client):
        response = client.get("/api/seed-courses")
        assert response.status_code == 200
        assert response.json()["max"] == 200
