"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notes_api.api import admin, auth, notes
from notes_api.config import get_settings
from notes_api.database import init_db
from notes_api.exceptions import AppError
from notes_api.logging import configure_logging
from notes_api.services.notification_service import NotificationService
from notes_api.services.otp_ledger import build_otp_ledger

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    configure_logging()
    if settings.auto_create_tables:
        init_db()
    app.state.otp_ledger = build_otp_ledger(settings)
    app.state.notification_service = NotificationService(settings)
    logger.info(f"Notes API started ({settings.environment})")
    try:
        yield
    finally:
        await app.state.otp_ledger.close()


app = FastAPI(
    title="Notes API",
    description="Personal notes with email/phone OTP sign-up and admin moderation",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router)
app.include_router(notes.router)
app.include_router(admin.router)


def _error_body(request: Request, message: str) -> dict:
    # Auth routes have always answered with "msg", the rest with "message"
    key = "msg" if request.url.path.startswith("/api/auth") else "message"
    return {key: message}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(request, message)
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "Server error"),
    )


@app.get("/")
async def root():
    return {"message": "Notes API is running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
