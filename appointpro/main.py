import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from .config import ALLOWED_ORIGINS, ENVIRONMENT, OTP_SWEEP_INTERVAL_SECONDS
from .database import get_db, init_db
from .domain.accounts.router import profile_router, staff_router
from .domain.accounts.router import router as auth_router
from .domain.appointments.router import admin_router as appointments_admin_router
from .domain.appointments.router import router as appointments_router
from .domain.availability.router import admin_router as availability_admin_router
from .domain.availability.router import router as availability_router
from .domain.catalog.router import admin_router as catalog_admin_router
from .domain.catalog.router import router as catalog_router
from .domain.otp.dependencies import build_otp_service
from .domain.payments.router import router as payments_router
from .domain.support.router import admin_router as support_admin_router
from .domain.support.router import router as support_router
from .shared.errors import AppError

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
    """
    Startup order: schema first, then the OTP service, then the sweeper.
    A schema failure aborts startup so no request ever sees a half-built store.
    """
    logger.info("🚀 Application starting up...")
    try:
        init_db()
    except Exception as e:
        logger.error(f"❌ Failed to create database tables: {e}")
        raise

    app.state.otp_service = build_otp_service()
    sweeper = asyncio.create_task(app.state.otp_service.run_sweeper(OTP_SWEEP_INTERVAL_SECONDS))

    yield

    logger.info("Application shutting down...")
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper


app = FastAPI(title="AppointPro API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.error_code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {exc.error_code}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={
                    "detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header.",
                    "error_code": "NO_TOKEN",
                },
            )

    # For other validation errors, return 422 as normal
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "error_code": "VALIDATION_ERROR"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ {request.method} {request.url.path} - Unhandled error: {exc}")
    content = {"detail": "Internal server error", "error_code": "SERVER_ERROR"}
    if ENVIRONMENT == "development":
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# CORS Configuration
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(staff_router)
app.include_router(availability_router)
app.include_router(availability_admin_router)
app.include_router(appointments_router)
app.include_router(appointments_admin_router)
app.include_router(payments_router)
app.include_router(support_router)
app.include_router(support_admin_router)
app.include_router(catalog_router)
app.include_router(catalog_admin_router)


@app.get("/")
def root():
    return {"message": "AppointPro API is running"}


@app.get("/api/health")
def health(db: Session = Depends(get_db)):
    """Report database reachability for monitoring"""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"❌ Health check database probe failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "unreachable"},
        )
    return {"status": "healthy", "database": "connected"}
