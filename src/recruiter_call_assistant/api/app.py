from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from recruiter_call_assistant.api.dependencies import close_clients
from recruiter_call_assistant.api.routes_chat import router as chat_router
from recruiter_call_assistant.api.routes_speech import router as speech_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    logger.info("Recruiter call assistant API starting")
    yield
    await close_clients()


def create_app() -> FastAPI:
    app = FastAPI(title="Recruiter Call Assistant", lifespan=_lifespan)

    @app.middleware("http")
    async def _allow_any_origin(request, call_next):
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    app.include_router(chat_router)
    app.include_router(speech_router)
    return app


app = create_app()
