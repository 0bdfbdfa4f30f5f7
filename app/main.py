import logging
import time
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

# Register every table on Base before create_all
from . import (
    models,  # noqa: F401
    models_hosting,  # noqa: F401
)
from .config import CORS_ORIGINS
from .database import Base, engine
from .domain.hosting.errors import HostingError
from .domain.hosting.router import router as hosting_router
from .rate_limiter import get_redis_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🐾 Pet Hosting API starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Hosting tables ready")
    except SQLAlchemyError as e:
        # Concurrent workers race on CREATE TABLE
        if "already exists" not in str(e):
            logger.error(f"❌ Failed to create hosting tables: {e}")
            raise
        logger.info("Hosting tables already created by another worker")

    try:
        get_redis_client()
    except redis.RedisError as e:
        logger.warning(f"⚠️ Redis unavailable, booking requests are refused until it recovers: {e}")

    yield
    logger.info("Pet Hosting API shutting down")


app = FastAPI(title="Pet Hosting API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(HostingError)
async def hosting_error_handler(request: Request, exc: HostingError):
    if exc.status_code in (403, 409):
        logger.warning(f"🚫 {request.method} {request.url.path} refused ({exc.status_code}): {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A missing bearer header is an authentication failure, not a bad body"""
    errors = exc.errors()
    if any("authorization" in str(error.get("loc", "")).lower() for error in errors):
        logger.warning(f"Missing or invalid Authorization header on {request.url.path}")
        return JSONResponse(
            status_code=401,
            content={"detail": "Not authenticated. Please provide a valid Bearer token in the Authorization header."},
        )

    logger.warning(f"Rejected request body for {request.url.path}: {len(errors)} error(s)")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(errors)})


def jsonable_errors(errors: list) -> list:
    # ctx may hold the raw exception raised by a validator
    return [{k: v for k, v in error.items() if k != "ctx"} for error in errors]


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
        raise
    if response.status_code >= 500:
        elapsed_ms = (time.time() - start) * 1000
        logger.error(f"❌ {request.method} {request.url.path} - {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

app.include_router(hosting_router)


@app.get("/")
def root():
    return {"message": "Pet Hosting API is running"}


@app.get("/health")
def health():
    """Liveness plus the state of the database and the rate-limit store"""
    checks = {}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"❌ Health check: database unreachable: {e}")
        checks["database"] = "unavailable"
    try:
        get_redis_client()
        checks["redis"] = "ok"
    except redis.RedisError:
        checks["redis"] = "unavailable"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, "checks": checks}
