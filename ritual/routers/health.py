from fastapi import APIRouter

from ritual import __version__
from ritual.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV, "version": __version__}
