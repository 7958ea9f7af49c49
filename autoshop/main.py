import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from . import models  # noqa: F401 - register tables with Base
from .database import Base, engine
from .domain.appointments import admin_router as admin_appointments_router
from .domain.appointments import router as appointments_router
from .domain.appointments.exceptions import (
    AppointmentNotFoundError,
    BookingError,
    BookingValidationError,
    InvalidStatusTransitionError,
    SlotUnavailableError,
)
from .domain.catalog import admin_router as admin_services_router
from .domain.catalog import router as services_router
from .routes import auth_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Auto Shop Booking API", version=__version__, lifespan=lifespan)


def first_validation_message(errors: list) -> str:
    """Human-readable text of the first failed rule"""
    if not errors:
        return "Invalid request"
    error = errors[0]
    message = str(error.get("msg", "Invalid request"))
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        return message[len("Value error, ") :]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{field}: {message}" if field else message


def jsonable_errors(errors: list) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": str(error.get("msg", ""))} for error in errors
    ]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report the first violated rule; the full list is kept for clients that want it"""
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": first_validation_message(exc.errors()),
            "errors": jsonable_errors(exc.errors()),
        },
    )


@app.exception_handler(BookingError)
async def booking_exception_handler(request: Request, exc: BookingError):
    """Map appointment domain errors to HTTP responses"""
    if isinstance(exc, SlotUnavailableError):
        status_code, error = 409, "slot_unavailable"
    elif isinstance(exc, InvalidStatusTransitionError):
        status_code, error = 409, "invalid_status_transition"
    elif isinstance(exc, AppointmentNotFoundError):
        status_code, error = 404, "not_found"
    elif isinstance(exc, BookingValidationError):
        status_code, error = 422, "validation_error"
    else:
        status_code, error = 503, "booking_failed"

    logger.info(f"Booking error on {request.url.path}: {error} - {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "error": error})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "detail": "The booking system is temporarily unavailable. Please try again.",
            "error": "service_unavailable",
        },
    )


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(services_router)
app.include_router(admin_services_router)
app.include_router(appointments_router)
app.include_router(admin_appointments_router)


@app.get("/")
async def root():
    return {"message": "Auto Shop Booking API", "version": __version__}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
