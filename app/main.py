from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from app.api.routes.health import router as health_router
from app.api.routes.identity import router as identity_router
from app.api.routes.internal_admin import router as internal_admin_router
from app.api.routes.leaderboard import router as leaderboard_router
from app.api.routes.referrals import router as referrals_router
from app.api.routes.scores import router as scores_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import engine
from app.services.cache import close_cache


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    yield
    await close_cache()
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)

    app = FastAPI(
        title="Campaign Rewards API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.include_router(health_router)
    app.include_router(identity_router)
    app.include_router(scores_router)
    app.include_router(referrals_router)
    app.include_router(leaderboard_router)
    app.include_router(internal_admin_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
