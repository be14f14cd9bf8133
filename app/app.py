"""
FastAPI application — single entry point for the course catalog REST API.

Run as a script:
    python app/app.py

Or as a module:
    uvicorn app.app:app --reload

Routers:
    /api/courses         course CRUD (owner-scoped writes)
    /api/lessons         lessons of a course
    /api/auth            token verification
    /api/migrate         courses table check
    /api/seed-courses    demo data
    /health              liveness

Every error answers {"error": "..."}. Logs go to stdout and
logs/app.log (rotating, 5 MB max, 3 backups).
"""

import asyncio
import logging
import logging.handlers
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

# Ensure project root is on sys.path when running as a script (python app/app.py)
sys.path.insert(0, str(Path(__file__).parent.parent))

from api import auth, courses, lessons, setup
from catalog.config import get_settings
from catalog.errors import ConfigurationError

LOG_FILE_NAME = "app.log"


def _setup_logging() -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    log_dir = get_settings().log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    fmt = logging.Formatter("%(asctime)s  %(levelname)s  %(message)s")

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(fmt)

    # Rotate at 5 MB, keep 3 backups
    rotating = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    rotating.setFormatter(fmt)

    root.setLevel(logging.INFO)
    root.addHandler(stream)
    root.addHandler(rotating)


_setup_logging()
log = logging.getLogger("api")


# ---------------------------------------------------------------------------
# App + lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    if not settings.secret_key:
        log.warning("MEMBERSTACK_SECRET_KEY is not set; data routes will answer 500.")
    if not settings.app_id:
        log.warning("MEMBERSTACK_APP_ID is not set; data routes will answer 500.")
    log.info("Admin API: %s", settings.admin_url)

    yield  # server runs here


app = FastAPI(title="Course Catalog", lifespan=lifespan)

app.include_router(courses.router)
app.include_router(lessons.router)
app.include_router(auth.router)
app.include_router(setup.router)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

@app.exception_handler(HTTPException)
async def http_error(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"error": f"{field}: {message}" if field else message})


@app.exception_handler(ConfigurationError)
async def configuration_error(_: Request, exc: ConfigurationError) -> JSONResponse:
    log.error("Configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Server configuration error"})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _launch_server() -> None:
    config = uvicorn.Config(app, host="0.0.0.0", port=8000, reload=False)
    server = uvicorn.Server(config)

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        uvicorn.run(app, host="0.0.0.0", port=8000, reload=False)
        return

    log.warning(
        "Detected an existing asyncio event loop; serving with create_task() instead of asyncio.run()."
    )
    asyncio.create_task(server.serve())


if __name__ == "__main__":
    log.info("=== Course Catalog — launching server on http://0.0.0.0:8000 ===")
    _launch_server()
