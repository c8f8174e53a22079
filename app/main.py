import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import (
    battles_router,
    challenges_router,
    leaderboard_router,
    submissions_router,
    system_router,
)
from domain.errors import ArenaError
from .db import get_engine, init_db
from .deps import get_execution_client
from .settings import APP_DESCRIPTION, APP_TITLE, APP_VERSION, CORS_ALLOW_ORIGINS, STORE_BACKEND

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ArenaError)
async def arena_error_handler(request: Request, exc: ArenaError):
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content={"detail": exc.message})


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {APP_TITLE} v{APP_VERSION}...")

    if STORE_BACKEND == "sql":
        init_db(get_engine())
        logger.info("Database tables ready")
    else:
        logger.warning(f"STORE_BACKEND={STORE_BACKEND} - using in-memory records")

    logger.info("Startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    get_execution_client().close()
    logger.info("Execution client closed")


app.include_router(challenges_router)
app.include_router(battles_router)
app.include_router(submissions_router)
app.include_router(leaderboard_router)
app.include_router(system_router)


__all__ = ["app"]
