import resource
import time
from typing import Any, Dict
from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from app.core.config import settings
from app.core.logger import get_logger
from app.db.base_class import utcnow
from app.db.session import engine

# Initialize logger
logger = get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}
MEMORY_WARNING_MB = 500
STARTED_AT = time.monotonic()

_STATUS_RANK = {"healthy": 0, "warning": 1, "error": 2}


def _check_configuration() -> Dict[str, str]:
    issues = settings.config_issues()
    return {"status": "warning" if issues else "healthy", "details": ", ".join(issues) or "OK"}


def _check_database() -> Dict[str, str]:
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return {"status": "healthy", "details": "Connected"}
    except Exception as e:
        logger.error(f"Health check database failure: {str(e)}")
        return {"status": "error", "details": "Connection failed"}


def _check_auth_provider() -> Dict[str, str]:
    if settings.SUPABASE_URL and settings.SUPABASE_ANON_KEY:
        return {"status": "healthy", "details": "Configuration valid"}
    return {"status": "error", "details": "Missing Supabase configuration"}


def _check_memory() -> Dict[str, str]:
    # ru_maxrss is reported in kilobytes on Linux
    rss_mb = round(resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024)
    return {
        "status": "healthy" if rss_mb < MEMORY_WARNING_MB else "warning",
        "details": f"RSS: {rss_mb}MB",
    }


@router.get("")
def health_check() -> Any:
    """
    Report configuration, database, auth provider and memory health.
    Answers 503 when any check is in error.
    """
    started = time.perf_counter()
    checks = {
        "configuration": _check_configuration(),
        "database": _check_database(),
        "supabase": _check_auth_provider(),
        "memory": _check_memory(),
    }
    overall = max((check["status"] for check in checks.values()), key=_STATUS_RANK.get)
    body = {
        "status": overall,
        "timestamp": utcnow().isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "checks": checks,
        "responseTime": round((time.perf_counter() - started) * 1000, 2),
    }
    if overall != "healthy":
        logger.warning(f"Health check reported {overall}: {checks}")
    return JSONResponse(
        content=body,
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE if overall == "error" else status.HTTP_200_OK,
        headers=NO_CACHE_HEADERS,
    )


@router.head("")
def health_probe() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=NO_CACHE_HEADERS)
