"""
Health check endpoints for production deployment.

Provides:
- /health - Basic liveness check (is the app running?)
- /metrics - Room and connection counts for monitoring
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """
    Basic liveness check - is the app running?

    This endpoint should always return 200 if the process is alive.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/metrics")
async def metrics(request: Request):
    """Expose room and connection counts for dashboards and alerting."""
    state = request.app.state
    metrics_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **state.registry.stats(),
        "connected_websockets": len(state.connections),
        "logged_in_users": len(state.directory),
    }
    return metrics_data
