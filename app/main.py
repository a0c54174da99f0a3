"""
Gradebook — Class grading backend for the school LMS.
FastAPI entry point.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import GradebookError, InvalidScore, InvalidWeights, StoreUnavailable, ValidationError
from app.core.middleware import RequestLoggingMiddleware
from app.routers import auth, admin, teacher, student
from app.utils.response import error_response

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Grade settings, submission grading and overall grades for teacher and student portals",
    version="1.0.0",
    debug=settings.DEBUG,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(teacher.router)
app.include_router(student.router)


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    logger.error("%s %s failed: data store unavailable %s", request.method, request.url.path, exc.details)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message="An unexpected error occurred", error_code=exc.error_code),
    )


@app.exception_handler(GradebookError)
async def gradebook_error_handler(request: Request, exc: GradebookError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=exc.message,
            data=exc.details or None,
            error_code=exc.error_code,
        ),
    )


SCORE_FIELDS = {"score", "max_score"}
WEIGHT_FIELDS = {"quiz_percentage", "assignment_percentage", "exam_percentage"}


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the same envelope and error codes as the services raise."""
    errors = exc.errors()
    fields = {part for err in errors for part in err.get("loc", ()) if isinstance(part, str)}
    if fields & SCORE_FIELDS:
        error = InvalidScore("Score must be a number")
    elif fields & WEIGHT_FIELDS:
        error = InvalidWeights("Percentages must be whole numbers")
    else:
        error = ValidationError("Invalid request body")
    logger.info("%s %s rejected: %s", request.method, request.url.path, error.error_code)
    return JSONResponse(
        status_code=error.status_code,
        content=error_response(
            message=error.message,
            data=[{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in errors],
            error_code=error.error_code,
        ),
    )


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running",
        "auth_mode": settings.AUTH_MODE,
    }


@app.get("/api/health")
async def health():
    return {"status": "healthy", "auth_mode": settings.AUTH_MODE}
