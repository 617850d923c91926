from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from app.settings import get_settings
from app.logging import configure_logging
from app.error_handlers import attach_error_handlers
from app.container import Container, build_container
from api.router import api_router


def create_app(container: Optional[Container] = None) -> FastAPI:
    settings = container.settings if container else get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "container", None) is None:
            app.state.container = build_container(settings)
        yield

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.container = container
    attach_error_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
