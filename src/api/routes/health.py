"""
Liveness and readiness probes.
"""

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from medintake_lib.helpers.readiness_probe import HealthStatus, get_readiness_probe

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness: the process is up and serving requests."""
    return {"status": "ok"}


@router.get("/ready")
async def readiness_check():
    """
    Readiness: the timeline database and artifact bucket both respond.

    Returns:
        The probe report; 200 when healthy, 503 otherwise.

    Raises:
        HTTPException: 500 if the probe itself fails.
    """
    try:
        report = await get_readiness_probe().check_health()
    except Exception as e:
        logger.exception("❌ Readiness probe failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Health check failed: {str(e)}",
        )

    if report.status == HealthStatus.UNHEALTHY:
        failing = [c.name for c in report.checks if c.status == HealthStatus.UNHEALTHY]
        logger.warning(f"⚠️ Not ready: {', '.join(failing)} unhealthy")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=report.to_dict(),
        )
    return report.to_dict()
