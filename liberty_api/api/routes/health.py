"""
Health routes
"""
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from liberty_api.config import settings


router = APIRouter(tags=["Health"])


@router.get("/ping", response_class=PlainTextResponse)
async def ping():
    """Liveness check"""
    return "ok"


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
