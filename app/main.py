import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import CORS_ORIGINS, ORGANIZATION_NAME
from .database import Base, admin_engine, engine
from .domain.reservations.router import admin_router as reservations_admin_router
from .domain.reservations.router import router as reservations_router
from .domain.slots.router import admin_router as slots_admin_router
from .domain.slots.router import router as slots_router
from .domain.users.router import router as users_router
from .email_service import is_email_configured
from .errors import database_error_to_http
from .routes.auth import router as auth_router
from .routes.realtime import router as realtime_router
from .routes.verification import router as verification_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

VALUE_ERROR_PREFIX = "Value error, "


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=admin_engine or engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    if not is_email_configured():
        logger.warning("⚠️ RESEND_API_KEY not set - reservation emails will be skipped")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title=f"{ORGANIZATION_NAME} Reservations API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header. Other validation errors
    also carry the first failing field and its message for form display.
    """
    errors = exc.errors()
    for error in errors:
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."
                },
            )

    logger.warning(f"Validation error for {request.url.path}: {errors}")
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    return JSONResponse(
        status_code=422,
        content={
            "detail": jsonable_encoder(errors),
            "field": loc[-1] if loc else None,
            "message": str(first.get("msg", "Invalid request")).removeprefix(VALUE_ERROR_PREFIX),
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    http_exc = database_error_to_http(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


logger.info(f"CORS allowed origins: {CORS_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(verification_router)
app.include_router(slots_router)
app.include_router(slots_admin_router)
app.include_router(reservations_router)
app.include_router(reservations_admin_router)
app.include_router(realtime_router)


@app.get("/")
def root():
    return {"message": f"{ORGANIZATION_NAME} Reservations API is running"}


@app.get("/health")
def health():
    return {"status": "healthy", "email_configured": is_email_configured(), "admin_access": admin_engine is not None}
