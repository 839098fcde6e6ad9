"""
Health check routes.
Probes for load-balancer readiness and liveness.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from datetime import datetime, timezone
import time
import logging

from booking_api.db.database import check_connection, get_db
from booking_api.db.repositories import OrderRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time for uptime reporting
_STARTUP_TIME = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
def health_check(db: Session = Depends(get_db)):
    """Database connectivity, stored reservation count and uptime."""
    health = {
        "status": "healthy",
        "database": "unavailable",
        "reservations": 0,
        "uptime_seconds": int(time.time() - _STARTUP_TIME),
        "timestamp": _now(),
    }
    try:
        health["reservations"] = OrderRepository(db).count()
        health["database"] = "available"
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        health["status"] = "degraded"
    return health


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """ready is true only when the database answers."""
    if check_connection(db):
        return {"ready": True, "timestamp": _now()}
    return {"ready": False, "error": "database unavailable", "timestamp": _now()}


@router.get("/live")
def liveness_check():
    """Liveness probe. Returns 200 if service is running."""
    return {"alive": True, "uptime_seconds": int(time.time() - _STARTUP_TIME), "timestamp": _now()}
