"""
Health check endpoints for the API.
"""
import logging
from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime

from fragments_api.config import settings
from fragments_api.dependencies import get_artifact_storage
from fragments_api.storage.interface import ArtifactStorage

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.
    Returns API status and version information.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }

@router.get("/health/storage")
def storage_health(
    storage: ArtifactStorage = Depends(get_artifact_storage)
) -> Dict[str, Any]:
    """
    Check fragments storage health.
    Verifies the storage location is reachable and returns its statistics.
    """
    try:
        storage_stats = storage.get_storage_stats()
        
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            **storage_stats,
        }
        
    except Exception as e:
        logger.warning(f"Storage health check failed: {e}")
        return {
            "status": "unhealthy",
            "timestamp": datetime.now().isoformat(),
            "error": str(e)
        }
