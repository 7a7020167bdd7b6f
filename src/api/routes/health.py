"""
Health check endpoints.

Provides endpoints for monitoring application health and status.
"""

from typing import Dict, Any
from fastapi import APIRouter

from analysis.client import get_vision_analyzer
from catalog.store import get_catalog
from config.settings import get_settings
from storage.repository import InMemoryStorage, get_storage
from tutorials.resolver import get_tutorial_resolver


router = APIRouter(tags=["Health"])

SERVICE_NAME = "beauty-advisor-api"


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        Health status with basic info
    """
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
    }


@router.get("/health/detailed")
def detailed_health_check() -> Dict[str, Any]:
    """
    Detailed health check with dependency status.

    Checks:
    - Product catalog loaded
    - Tutorial tables loaded
    - Storage backend reachable
    - Vision analysis configured
    """
    settings = get_settings()
    checks: Dict[str, Any] = {"config": "ok"}

    try:
        checks["catalog"] = {"status": "ok", "products": len(get_catalog())}
    except Exception as e:
        checks["catalog"] = {"status": "error", "error": str(e)}

    try:
        resolver = get_tutorial_resolver()
        checks["tutorials"] = {"status": "ok", "categories": len(resolver.tables.categories)}
    except Exception as e:
        checks["tutorials"] = {"status": "error", "error": str(e)}

    try:
        storage = get_storage()
        backend = "memory" if isinstance(storage, InMemoryStorage) else "supabase"
        checks["storage"] = {
            "status": "ok" if storage.health_check() else "error",
            "backend": backend,
        }
    except Exception as e:
        checks["storage"] = {"status": "error", "error": str(e)}

    checks["analysis"] = {
        "status": "configured" if get_vision_analyzer().enabled else "not_configured",
        "model": settings.analysis_model,
    }

    healthy = all(
        check.get("status") == "ok"
        for name, check in checks.items()
        if name in ("catalog", "tutorials", "storage")
    )
    return {
        "status": "healthy" if healthy and checks["analysis"]["status"] == "configured" else "degraded",
        "service": SERVICE_NAME,
        "environment": settings.environment,
        "checks": checks,
    }


@router.get("/ready")
def readiness_check() -> Dict[str, str]:
    """
    Kubernetes-style readiness probe.

    Ready once the catalog is loaded and storage answers.
    """
    try:
        if len(get_catalog()) == 0:
            return {"status": "not_ready", "reason": "catalog_empty"}
    except Exception:
        return {"status": "not_ready", "reason": "catalog_unavailable"}

    if not get_storage().health_check():
        return {"status": "not_ready", "reason": "storage_unavailable"}

    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes-style liveness probe.

    Returns 200 if the service is alive.
    """
    return {"status": "alive"}
