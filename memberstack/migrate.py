"""
Courses table check.

The Admin API cannot create data tables, so the "migration" only probes
the courses table. When it is missing, the caller gets the table schema
and dashboard steps to create it by hand instead of an error.
"""

import logging
from typing import Any

from catalog.repository import COURSES_TABLE

log = logging.getLogger(__name__)

DASHBOARD_URL = "https://app.memberstack.com"

ACCESS_RULES = {
    "createRule": "ADMIN_ONLY",
    "readRule": "PUBLIC",
    "updateRule": "ADMIN_ONLY",
    "deleteRule": "ADMIN_ONLY",
}


def _field(key: str, name: str, type_: str, required: bool, description: str) -> dict[str, Any]:
    return {"key": key, "name": name, "type": type_, "required": required, "description": description}


COURSES_TABLE_SCHEMA: dict[str, Any] = {
    "name": "Courses",
    "key": COURSES_TABLE,
    "accessRules": ACCESS_RULES,
    "fields": [
        _field("title", "Title", "TEXT", True, "Course title"),
        _field("description", "Description", "TEXT", False, "Course description"),
        _field("owner_id", "Owner ID", "TEXT", True, "Member id of the course creator"),
        _field("priceCents", "Price (cents)", "NUMBER", True, "Price in cents (e.g., 9999 = $99.99)"),
        _field("status", "Status", "TEXT", False, "draft, published or archived"),
        _field("video_link", "Video Link", "TEXT", False, "URL to the course video"),
        _field("thumbnail_url", "Thumbnail URL", "TEXT", False, "URL to course thumbnail image"),
        _field("duration", "Duration (minutes)", "NUMBER", False, "Total length in minutes"),
        _field("category", "Category", "TEXT", False, "Catalog category"),
        _field("tags", "Tags", "TEXT", False, "List of tags"),
        _field("created_at", "Created At", "TEXT", False, "ISO timestamp, set on create"),
        _field("updated_at", "Updated At", "TEXT", False, "ISO timestamp, refreshed on update"),
    ],
}


def setup_instructions(app_id: str | None) -> list[str]:
    return [
        f"1. Go to {DASHBOARD_URL}",
        "2. Sign in to your Memberstack account (create an account if you don't have one)",
        f"3. Select your app (current app ID: {app_id})",
        "4. Navigate to 'Tables (Beta)' in the sidebar",
        "5. Click 'Create Table'",
        "6. Configure the table:",
        "   - Name: 'Courses'",
        f"   - Key: '{COURSES_TABLE}' (lowercase, must match exactly)",
        "   - Access Rules:",
        "     * Create: ADMIN_ONLY",
        "     * Read: PUBLIC (so courses can be viewed)",
        "     * Update: ADMIN_ONLY",
        "     * Delete: ADMIN_ONLY",
        "7. Add the fields listed below with their exact types and requirements",
        "8. Click 'Create'",
        "9. Come back and run the table check again to verify",
    ]


def check_courses_table(client: Any, app_id: str | None) -> dict[str, Any]:
    """Probe the courses table; errors other than 404 propagate to the caller."""
    if client.table_exists(COURSES_TABLE):
        log.info("Courses table exists")
        return {
            "success": True,
            "message": "Courses data table exists and is ready to use!",
            "tableExists": True,
            "tableCreated": False,
        }

    log.warning("Courses table not found for app %s", app_id)
    return {
        "success": False,
        "message": "Courses data table not found. Please create it manually in your Memberstack dashboard.",
        "tableExists": False,
        "tableCreated": False,
        "needsCreation": True,
        "tableSchema": COURSES_TABLE_SCHEMA,
        "instructions": setup_instructions(app_id),
        "dashboardUrl": DASHBOARD_URL,
        "appId": app_id,
    }
