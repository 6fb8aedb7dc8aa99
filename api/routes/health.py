"""
Health Check Routes
===================

Kubernetes-compatible health and readiness endpoints, plus the service index.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from api import __version__
from api.schemas import HealthResponse, HealthStatus, ReadinessResponse
from observability.logging_config import get_logger

router = APIRouter(tags=["Health"])

logger = get_logger(__name__)


@router.get(
    "/",
    summary="Service index",
    description="Describes the service and its endpoints",
)
async def index() -> dict:
    """API documentation in a nutshell."""
    return {
        "service": "SQL Query Agent API",
        "version": __version__,
        "endpoints": {
            "POST /api/v1/ask": {
                "description": "Ask a question in natural language and get SQL query results",
                "body": {
                    "question": "string (required) - Your question about the database",
                    "debug": "boolean (optional) - Include the step trace",
                    "max_rows": "number (optional) - Maximum rows to return (default: 100)",
                    "max_retries": "number (optional) - Maximum generation attempts (default: 3)",
                },
                "example": {
                    "question": "How many users are in the database?",
                    "debug": False,
                    "max_rows": 100,
                },
            },
            "GET /health": "Health check endpoint",
            "GET /ready": "Readiness check (database connectivity)",
            "GET /metrics": "Prometheus metrics",
        },
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the service",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
        HealthResponse with current service status
    """
    checks = {
        "api": True,
        "agent": getattr(request.app.state, "agent", None) is not None,
    }

    status = HealthStatus.HEALTHY if all(checks.values()) else HealthStatus.DEGRADED

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns whether the service is ready to handle requests",
)
async def readiness_check(request: Request) -> ReadinessResponse:
    """
    Readiness check for Kubernetes.

    The service is ready once the agent is built and the database answers.
    """
    engine = getattr(request.app.state, "engine", None)
    database_ok = False
    if engine is not None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            database_ok = True
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("readiness.database_unreachable", error=str(exc))

    checks = {
        "agent_loaded": getattr(request.app.state, "agent", None) is not None,
        "database": database_ok,
    }

    return ReadinessResponse(
        ready=all(checks.values()),
        checks=checks,
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Simple liveness probe",
)
async def liveness_check() -> dict:
    """Simple endpoint to verify the process is running."""
    return {"status": "ok"}
