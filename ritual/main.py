import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ritual.container import build_services
from ritual.core.config import settings
from ritual.core.errors import (
    NotificationSchedulingFailed,
    RecommendationGenerationFailed,
    recovery_actions,
    user_friendly_message,
)
from ritual.core.logging import configure_logging
from ritual.routers import health, notifications, recommendations
from ritual.schemas.errors import ErrorOut


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if not hasattr(app.state, "services"):
        app.state.services = build_services()
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# CORS
origins = settings.cors_origin_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

prefix = settings.API_PREFIX
app.include_router(health.router, prefix=prefix)
app.include_router(recommendations.router, prefix=prefix)
app.include_router(notifications.router, prefix=prefix)

logger = logging.getLogger("ritual.requests")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


def _error(status_code: int, detail: str, context: str) -> JSONResponse:
    body = ErrorOut(detail=detail, message=user_friendly_message(context), recovery_actions=recovery_actions(context))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(RecommendationGenerationFailed)
async def recommendation_failed(request: Request, exc: RecommendationGenerationFailed):
    return _error(503, "recommendation_generation_failed", "ai")


@app.exception_handler(NotificationSchedulingFailed)
async def scheduling_failed(request: Request, exc: NotificationSchedulingFailed):
    return _error(502, "notification_scheduling_failed", "notification")


@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "env": settings.APP_ENV}
