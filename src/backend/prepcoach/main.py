"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prepcoach.api.routes import router
from prepcoach.core.config import settings
from prepcoach.core.errors import PrepCoachError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="PrepCoach - Interview Practice",
    description="""
Practice interviews grounded in your own resume and a target job description.

## How It Works
1. **Upload a resume and a job description** -- text is extracted, split into sentence-aligned chunks, and embedded
2. **Start a session** -- three interview questions are generated from the job description
3. **Answer** -- each answer is scored 1-10 with feedback, citing the most relevant passages
""",
    version="1.0.0",
    openapi_tags=[
        {"name": "Documents", "description": "Upload and manage resume / job description PDFs"},
        {"name": "Chat", "description": "Practice sessions: questions, scored answers, history"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PrepCoachError)
async def handle_prepcoach_error(request: Request, exc: PrepCoachError) -> JSONResponse:
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    body = {"message": exc.user_message}
    if settings.debug:
        body["error"] = str(exc)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    body = {"message": PrepCoachError.default_message}
    if settings.debug:
        body["error"] = str(exc)
    return JSONResponse(status_code=500, content=body)


app.include_router(router, prefix="/api/v1")


@app.get("/health", tags=["System"])
async def health():
    """Health check endpoint used by Docker."""
    return {"status": "ok"}
