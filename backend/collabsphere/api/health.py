"""
Status and health check endpoints
"""
from fastapi import APIRouter, Request
from datetime import datetime
from typing import Dict, Any

from collabsphere.core.config import get_settings
from collabsphere.core.error_handlers import ServiceUnavailableError

router = APIRouter(tags=["health"])


@router.get("/", response_model=Dict[str, Any])
async def root():
    """
    Service status and version
    """
    settings = get_settings()
    return {
        "status": "running",
        "message": settings.app_name,
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.app_version
    }


@router.get("/health", response_model=Dict[str, Any])
async def health_check(request: Request):
    """
    Health check endpoint for load balancers
    """
    signaling_server = request.app.state.signaling_server
    if signaling_server.is_shutting_down:
        raise ServiceUnavailableError()

    return {
        "status": "healthy",
        "uptime": signaling_server.uptime_seconds(),
        "connections": signaling_server.connection_count(),
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/health/stats", response_model=Dict[str, Any])
async def server_stats(request: Request):
    """
    Coordination statistics: connections, rooms, chat, relay and recordings
    """
    return request.app.state.signaling_server.get_server_stats()
