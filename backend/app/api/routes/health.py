"""Health Probes: liveness, plus readiness over the database and payment config.

Invariants:
    - GET /health/ answers 200 while the process is up
    - GET /health/ready answers 503 only when the database ping fails;
      a missing Stripe key is reported but does not take the API out of rotation
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import app.infrastructure.database as database
from app.config import get_settings

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "helpmarket-api"}


@router.get("/ready")
async def readiness():
    manager = database.db_manager
    database_ok = manager is not None and await manager.ping()
    payments_ok = not get_settings().stripe_secret_key.endswith("_placeholder")
    checks = {
        "database": "healthy" if database_ok else "unreachable",
        "payments": "configured" if payments_ok else "missing_key",
    }
    if not database_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
