"""
Health Check Router
Simple health check endpoint
"""
from datetime import datetime

from fastapi import APIRouter, Request

from budgetwise.core.config import settings
from budgetwise.db.store import JsonFileStore

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.
    Returns API status and which budget store is in use.
    """
    store = getattr(request.app.state, "store", None)
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "store": "file" if isinstance(store, JsonFileStore) else "memory",
        "timestamp": datetime.utcnow().isoformat(),
    }
