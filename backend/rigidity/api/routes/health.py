"""
Health check endpoints
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from rigidity.core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint

    Returns:
        dict: Health status, reply variant and whether a provider key is set
    """
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.app_name,
        "mode": settings.deformation_mode.value,
        "provider_configured": bool(settings.openai_api_key),
    }
