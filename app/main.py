"""
SUT Badminton Registration — FastAPI application entry-point.

Run with:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

import app.models  # noqa: F401
from app.config import settings
from app.database import Base, async_session, engine
from app.services.registration import seed_team_code_sequences
from app.services.storage import StorageError

# ── Import routers ──
from app.routers import admin, auth, registration

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: create tables and team code counters on startup ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    reason = settings.admin_unavailable_reason()
    if reason:
        logger.warning(f"{reason}; admin routes will answer 503")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session() as db:
        await seed_team_code_sequences(db)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Team registration, payment slips and admin review for the SUT badminton tournament.",
    version="0.1.0",
    lifespan=lifespan,
)

# ── CORS: explicit origins, plus localhost during development ──
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=r"http://localhost(:\d+)?" if settings.CORS_ALLOW_LOCALHOST else None,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))

# ── Uploaded files in storage simulation mode ──
if not settings.SUPABASE_URL:
    Path(settings.MEDIA_DIR).mkdir(parents=True, exist_ok=True)
    app.mount("/media", StaticFiles(directory=settings.MEDIA_DIR), name="media")


# ── Error handlers ──
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "File storage is unavailable, please try again"})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database failure on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Database error, please try again"})


# ── Register API routers ──
app.include_router(auth.router)
app.include_router(admin.router)
app.include_router(registration.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
