from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from siren_api import __version__
from siren_api.design.router import router as designs_router
from siren_api.errors import ApplicationError, log_error
from siren_api.logging import configure_logging
from siren_api.schemas import HealthResponse

# Configure logging based on environment
configure_logging(
    log_file=Path(os.environ["SIREN_LOG_FILE"]) if os.getenv("SIREN_LOG_FILE") else None,
    enable_structured_logging=os.getenv("SIREN_STRUCTURED_LOGS", "false").lower() == "true",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SirenOOP Design Architect",
    version=__version__,
    description="AI-assisted object-oriented design workflow service",
    docs_url="/docs" if os.getenv("SIREN_ENABLE_DOCS", "true").lower() == "true" else None,
    redoc_url="/redoc" if os.getenv("SIREN_ENABLE_DOCS", "true").lower() == "true" else None,
)

if os.getenv("SIREN_ENABLE_CORS", "false").lower() == "true":
    from fastapi.middleware.cors import CORSMiddleware

    allowed_origins = os.getenv("SIREN_ALLOWED_ORIGINS", "").split(",")
    allowed_origins = [origin.strip() for origin in allowed_origins if origin.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"

    if os.getenv("SIREN_ENFORCE_HTTPS", "false").lower() == "true":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response


@app.exception_handler(ApplicationError)
async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    report = log_error(logger, exc, path=request.url.path, method=request.method)
    return JSONResponse(status_code=report.status_code, content=report.model_dump(mode="json"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    report = log_error(logger, exc, path=request.url.path, method=request.method)
    return JSONResponse(status_code=report.status_code, content=report.model_dump(mode="json"))


app.include_router(designs_router)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, timestamp=datetime.now(UTC))
