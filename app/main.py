"""
Language-school roster, enrollment and attendance API.
Run: uvicorn app.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.core.models  # noqa: F401  registers every table on Base.metadata
from app.api.v1.attendance.router import router as attendance_router
from app.api.v1.classes.classes_router import router as classes_router
from app.api.v1.enrollments.router import router as enrollments_router
from app.api.v1.roster.router import router as roster_router
from app.api.v1.students.router import router as students_router
from app.api.v1.teachers.router import router as teachers_router
from app.core.logging_config import setup_logging
from app.core.timeout import RequestTimeoutMiddleware

logger = logging.getLogger(__name__)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log with traceback, answer a generic 500 (CORS headers still applied)."""
    logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="Language School Backend", version="0.1.0")

    app.add_middleware(RequestTimeoutMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Routers
    app.include_router(classes_router)
    app.include_router(teachers_router)
    app.include_router(students_router)
    app.include_router(enrollments_router)
    app.include_router(attendance_router)
    app.include_router(roster_router)

    @app.get("/api/v1/health", tags=["health"])
    async def health_check():
        return {"status": "ok"}

    return app


app = create_app()
