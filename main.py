"""
Expense Tracker API — application entry point.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.categories import router as categories_router
from api.errors import register_exception_handlers
from api.expenses import router as expenses_router
from api.middleware import register_middleware
from api.users import router as users_router
from auth.jwt import TokenService
from auth.routes import router as auth_router
from config.settings import Settings, config
from database.session import init_models
from utils.schemas import envelope

API_VERSION = "1.0.0"

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "httpcore", "httpx"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or config
    app = FastAPI(
        title="Expense Tracker API",
        version=API_VERSION,
        description="Users, categories and expenses with bearer-token auth.",
    )

    # One signing key per process, fixed for its lifetime
    app.state.token_service = TokenService(
        secret=settings.jwt_secret,
        expiry_seconds=settings.jwt_expiry_seconds,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)
    register_exception_handlers(app)

    # Routes
    prefix = settings.api_prefix.rstrip("/")
    app.include_router(auth_router, prefix=f"{prefix}/auth")
    app.include_router(users_router, prefix=f"{prefix}/users")
    app.include_router(categories_router, prefix=f"{prefix}/categories")
    app.include_router(expenses_router, prefix=f"{prefix}/expenses")

    @app.get("/", tags=["system"])
    async def health() -> dict:
        return envelope({"version": API_VERSION}, message="Expense Tracker API is running")

    @app.on_event("startup")
    async def on_startup():
        if settings.auto_create_tables:
            await init_models()
        if settings.jwt_secret == Settings.model_fields["jwt_secret"].default:
            logger.warning("JWT_SECRET is not set — using the built-in development secret.")
        logger.info("Environment: %s", settings.environment)
        logger.info("Application ready to accept requests.")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
