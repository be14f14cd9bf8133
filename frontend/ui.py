"""
Streamlit frontend for the course catalog.

Talks to the FastAPI backend (CATALOG_API_URL, default http://localhost:8000)
through CourseDirectoryClient and signs members in with MemberAuthClient.

Views, selected by the `view` query parameter:
    browse   sidebar filters + course cards (default)
    course   one course with its lessons; owners may delete it (needs `id`)
    new      create-course form (signed-in members)
    setup    courses table check and demo seeding

Filters are plain widgets, so every change reruns the script and the
course list is narrowed again from the fetched base list.
"""

import logging

import streamlit as st

from catalog.config import get_settings
from catalog.filters import (
    ALL,
    PRICE_FILTERS,
    SORT_OPTIONS,
    CourseFilters,
    apply_filters,
    category_counts,
    format_duration,
    format_price,
    sidebar_categories,
)
from catalog.images import course_thumbnail
from catalog.models import COURSE_CATEGORIES, COURSE_STATUSES, Course
from catalog.session import SessionContext
from frontend.api_client import AuthenticationRequired, CatalogClientError, CourseDirectoryClient
from frontend.member_auth import MemberAuthClient, MemberAuthError, sign_in, sign_out

log = logging.getLogger(__name__)

CARDS_PER_ROW = 3

SORT_LABELS = {
    "newest": "Newest",
    "price-low": "Price: low to high",
    "price-high": "Price: high to low",
    "rating": "Top rated",
}
PRICE_LABELS = {"all": "All prices", "free": "Free", "paid": "Paid"}

FILTER_KEYS = {
    "filter_search": "",
    "filter_category": ALL,
    "filter_price": ALL,
    "filter_sort": "newest",
}


# ---------------------------------------------------------------------------
# Session + clients
# ---------------------------------------------------------------------------

def _session() -> SessionContext:
    if "catalog_session" not in st.session_state:
        st.session_state["catalog_session"] = SessionContext(st.session_state).hydrate()
    return st.session_state["catalog_session"]


def _auth() -> MemberAuthClient | None:
    if "member_auth" not in st.session_state:
        settings = get_settings()
        try:
            st.session_state["member_auth"] = MemberAuthClient(settings.public_key, settings.client_url)
        except MemberAuthError as exc:
            log.warning("Member sign-in disabled: %s", exc)
            st.session_state["member_auth"] = None
    return st.session_state["member_auth"]


def _client() -> CourseDirectoryClient:
    return CourseDirectoryClient(get_settings().api_url, _session(), sdk=_auth())


def _go(view: str, **params: str) -> None:
    st.query_params.clear()
    st.query_params["view"] = view
    for key, value in params.items():
        st.query_params[key] = value
    st.rerun()


def _show_client_error(exc: CatalogClientError) -> None:
    if isinstance(exc, AuthenticationRequired):
        st.warning(f"{exc.message} Use the sidebar to sign in.")
    else:
        st.error(exc.message)


# ---------------------------------------------------------------------------
# Sidebar: auth panel
# ---------------------------------------------------------------------------

def render_auth_panel() -> None:
    session = _session()
    auth = _auth()

    st.sidebar.header("Account")
    if session.is_authenticated:
        st.sidebar.write(f"Signed in as **{session.display_name or session.member_id}**")
        if st.sidebar.button("Sign out"):
            sign_out(auth, session)
            st.rerun()
        return

    if auth is None:
        st.sidebar.info("Set MEMBERSTACK_PUBLIC_KEY to enable sign-in.")
        return

    mode = st.sidebar.radio("Mode", ["Sign in", "Sign up"], horizontal=True, label_visibility="collapsed")
    with st.sidebar.form("auth_form", clear_on_submit=True):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button(mode)

    if submitted:
        try:
            sign_in(auth, session, email, password, signup=(mode == "Sign up"))
        except MemberAuthError as exc:
            st.sidebar.error(str(exc))
            return
        st.rerun()


# ---------------------------------------------------------------------------
# Browse
# ---------------------------------------------------------------------------

def _clear_filters() -> None:
    for key, default in FILTER_KEYS.items():
        st.session_state[key] = default


def render_filters(courses: list[Course]) -> CourseFilters:
    for key, default in FILTER_KEYS.items():
        st.session_state.setdefault(key, default)

    categories = sidebar_categories(courses)
    counts = category_counts(courses, categories)

    st.sidebar.header("Filters")
    search = st.sidebar.text_input("Search", key="filter_search", placeholder="Title, tag, category…")
    category = st.sidebar.radio(
        "Category", categories, key="filter_category",
        format_func=lambda c: f"{'All categories' if c == ALL else c} ({counts.get(c, 0)})",
    )
    price = st.sidebar.selectbox("Price", PRICE_FILTERS, key="filter_price",
                                 format_func=PRICE_LABELS.get)
    sort = st.sidebar.selectbox("Sort by", SORT_OPTIONS, key="filter_sort",
                                format_func=SORT_LABELS.get)

    filters = CourseFilters(search=search.strip(), category=category, price=price, sort=sort)
    if filters.has_active_filters:
        st.sidebar.button("Clear filters", on_click=_clear_filters)
    return filters


def render_course_card(course: Course) -> None:
    with st.container(border=True):
        st.image(course_thumbnail(course.thumbnail_url, course.id), use_container_width=True)
        st.markdown(f"**{course.title or 'Untitled course'}**")
        st.caption(f"{format_price(course.price)}  ·  {format_duration(course.duration)}"
                   f"  ·  {course.category or 'Uncategorized'}")
        if course.status != "published":
            st.caption(f"Status: {course.status}")
        if course.tags:
            st.caption(" ".join(f"#{t}" for t in course.tags[:4]))
        if st.button("View", key=f"view_{course.id}"):
            _go("course", id=course.id)


def render_browse() -> None:
    st.title("Courses")
    session = _session()

    top = st.columns([3, 1])
    if session.is_authenticated and top[1].button("New course"):
        _go("new")

    try:
        courses = _client().list()
    except CatalogClientError as exc:
        _show_client_error(exc)
        courses = []

    filters = render_filters(courses)
    shown = apply_filters(courses, filters)
    top[0].caption(f"Showing {len(shown)} of {len(courses)} courses")

    if not shown:
        if courses:
            st.info("No courses match these filters.")
        else:
            st.info("No courses yet. Visit the setup page to check the table or seed demo data.")
        return

    for start in range(0, len(shown), CARDS_PER_ROW):
        cols = st.columns(CARDS_PER_ROW)
        for col, course in zip(cols, shown[start:start + CARDS_PER_ROW]):
            with col:
                render_course_card(course)


# ---------------------------------------------------------------------------
# Course detail
# ---------------------------------------------------------------------------

def render_course(course_id: str | None) -> None:
    if st.button("← All courses"):
        _go("browse")
    if not course_id:
        st.error("No course selected.")
        return

    client = _client()
    try:
        course = client.get(course_id)
    except CatalogClientError as exc:
        _show_client_error(exc)
        return

    st.title(course.title or "Untitled course")
    st.image(course_thumbnail(course.thumbnail_url, course.id), use_container_width=True)
    meta = st.columns(3)
    meta[0].metric("Price", format_price(course.price))
    meta[1].metric("Duration", format_duration(course.duration))
    meta[2].metric("Category", course.category or "N/A")
    if course.description:
        st.write(course.description)
    if course.tags:
        st.caption(" ".join(f"#{t}" for t in course.tags))
    if course.video_link:
        st.markdown(f"[Watch intro video]({course.video_link})")

    st.subheader("Lessons")
    try:
        lessons = client.list_lessons(course_id)
    except CatalogClientError as exc:
        _show_client_error(exc)
        lessons = []
    if not lessons:
        st.caption("No lessons yet.")
    for lesson in lessons:
        with st.expander(f"{lesson.order}. {lesson.title or 'Untitled lesson'}"):
            st.write(lesson.description or "")
            if lesson.duration:
                st.caption(format_duration(lesson.duration))

    if _session().member_id and course.owner_id == _session().member_id:
        st.divider()
        st.caption(f"You own this course (status: {course.status}).")
        if st.button("Delete course", type="primary"):
            try:
                client.delete(course_id)
            except CatalogClientError as exc:
                _show_client_error(exc)
                return
            st.success("Course deleted")
            _go("browse")


# ---------------------------------------------------------------------------
# New course
# ---------------------------------------------------------------------------

def render_new_course() -> None:
    if st.button("← All courses"):
        _go("browse")
    st.title("New course")

    if not _session().is_authenticated:
        st.warning("Sign in to create a course.")
        return

    with st.form("new_course"):
        title = st.text_input("Title *")
        description = st.text_area("Description")
        price = st.number_input("Price (USD)", min_value=0.0, step=1.0, format="%.2f")
        duration = st.number_input("Duration (minutes)", min_value=0, step=10)
        status = st.selectbox("Status", COURSE_STATUSES)
        category = st.selectbox("Category", ["", *COURSE_CATEGORIES])
        tags = st.text_input("Tags", placeholder="comma,separated")
        video_link = st.text_input("Video link")
        thumbnail_url = st.text_input("Thumbnail URL")
        submitted = st.form_submit_button("Create course")

    if not submitted:
        return
    if not title.strip():
        st.error("Title is required")
        return

    fields = {
        "title": title.strip(),
        "description": description,
        "price": price,
        "duration": int(duration) or None,
        "status": status,
        "category": category or None,
        "tags": [t.strip() for t in tags.split(",") if t.strip()],
        "video_link": video_link,
        "thumbnail_url": thumbnail_url,
    }
    try:
        course = _client().create({k: v for k, v in fields.items() if v is not None})
    except CatalogClientError as exc:
        _show_client_error(exc)
        return
    _go("course", id=course.id)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

def render_setup() -> None:
    if st.button("← All courses"):
        _go("browse")
    st.title("Setup")
    client = _client()

    st.subheader("Courses table")
    if st.button("Check courses table"):
        try:
            result = client.check_or_run_migration()
        except CatalogClientError as exc:
            _show_client_error(exc)
            result = None
        if result is not None:
            if result.get("tableExists"):
                st.success(result.get("message", "Courses table is ready."))
            else:
                st.warning(result.get("message", "Courses table not found."))
                for line in result.get("instructions") or []:
                    st.text(line)
                schema = result.get("tableSchema")
                if schema:
                    st.dataframe(schema.get("fields", []), use_container_width=True, hide_index=True)
                if result.get("dashboardUrl"):
                    st.markdown(f"[Open dashboard]({result['dashboardUrl']})")

    st.subheader("Demo data")
    count = st.number_input("Courses to seed", min_value=1, max_value=200, value=50, step=10)
    if st.button("Seed courses"):
        with st.spinner("Seeding…"):
            try:
                result = client.seed(int(count))
            except CatalogClientError as exc:
                _show_client_error(exc)
                return
        st.success(result.get("message", "Done"))
        for detail in result.get("errorDetails") or []:
            st.caption(detail)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

VIEWS = ("browse", "course", "new", "setup")


def main() -> None:
    st.set_page_config(page_title="Course Catalog", layout="wide")
    render_auth_panel()

    view = st.query_params.get("view", "browse")
    if view not in VIEWS:
        view = "browse"

    if st.sidebar.button("Setup"):
        _go("setup")

    if view == "course":
        render_course(st.query_params.get("id"))
    elif view == "new":
        render_new_course()
    elif view == "setup":
        render_setup()
    else:
        render_browse()
