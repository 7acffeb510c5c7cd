import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .chat import ChatHub
from .config import Settings, get_settings
from .exceptions import CatalogError
from .routers import admin, artists, auth, chat, health, notifications, projects, tracks, users
from .seed import seed_storage
from .storage import CatalogRepository, build_storage

logger = logging.getLogger(__name__)


# --- Error handlers: every failure is {"error": message} ---

async def catalog_error_handler(request: Request, exc: CatalogError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=getattr(exc, "headers", None),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # bad path ids, missing fields, values outside an enum
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid data", "errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None, storage: Optional[CatalogRepository] = None) -> FastAPI:
    """
    Build the API. Tests pass their own settings and repository; otherwise
    both come from the environment.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)
    if storage is None:
        storage = build_storage(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables / load sample data on first start
        storage.initialize()
        if settings.seed_sample_data:
            seed_storage(storage)
        logger.info("GeeKTunes API started (%s storage)", type(storage).__name__)
        yield

    # --- 1. FastAPI app ---
    app = FastAPI(
        title="GeeKTunes API",
        description="Catalog of geek-culture musicians: artists, projects, likes, notifications and chat",
        version=__version__,
        lifespan=lifespan,
    )

    # --- 2. Shared state (injected through dependencies) ---
    app.state.settings = settings
    app.state.storage = storage
    app.state.chat_hub = ChatHub(typing_timeout=settings.typing_timeout_seconds)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(artists.router)
    app.include_router(projects.router)
    app.include_router(tracks.router)
    app.include_router(notifications.router)
    app.include_router(users.user_router)
    app.include_router(users.users_router)
    app.include_router(admin.router)
    app.include_router(chat.router)
    app.include_router(chat.ws_router)

    return app


app = create_app()
