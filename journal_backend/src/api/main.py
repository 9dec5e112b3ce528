import os
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv

from src.api.errors import register_error_handlers
from src.api.routers import ai, auth, journal, letters, settings
from src.db.db import init_db

# Load .env for DB/JWT/logging settings
load_dotenv()

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [origin.strip() for origin in os.environ.get("CORS_ORIGINS", "*").split(",") if origin.strip()]

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "auth", "description": "Signup, signin and the current user"},
    {"name": "journal", "description": "Journal entries, time capsules and mood statistics"},
    {"name": "settings", "description": "Per-user preferences"},
    {"name": "profile", "description": "Per-user profile"},
    {"name": "weekly letters", "description": "Letters from your future self"},
    {"name": "ai", "description": "Entry analysis and letter generation"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database schema ready")
    yield


app = FastAPI(
    title="MindSoothe Journal API",
    description="FastAPI backend for mood journaling with AI reflections and weekly letters.",
    version="1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    # browsers refuse credentialed requests to a wildcard origin
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

register_error_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """One access line per request; never logs headers or bodies."""
    started = time.perf_counter()
    response = await call_next(request)
    if request.url.path != "/favicon.ico":
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method, request.url.path, response.status_code, (time.perf_counter() - started) * 1000,
        )
    return response


@app.get("/", tags=["health"])
def root():
    """Service banner."""
    return {"message": "MindSoothe Backend API", "status": "running", "version": app.version}


@app.get("/api/health", tags=["health"])
def health_check():
    """Health check."""
    return {"status": "ok"}


@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    return Response(status_code=204)


app.include_router(auth.router)
app.include_router(journal.router)
app.include_router(settings.router)
app.include_router(letters.router)
app.include_router(ai.router)
