"""
Prometheus Metrics
==================

Application metrics for monitoring and alerting.
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from sql_agent.models import AgentResult

# Custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "sql_agent",
    "SQL query agent application information",
    registry=REGISTRY,
)

# Question metrics
QUESTIONS_TOTAL = Counter(
    "sql_agent_questions_total",
    "Total number of questions processed",
    ["status", "failure_kind"],
    registry=REGISTRY,
)

QUESTION_DURATION = Histogram(
    "sql_agent_question_duration_seconds",
    "End-to-end question processing duration in seconds",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

GENERATION_ATTEMPTS = Histogram(
    "sql_agent_generation_attempts",
    "Number of generation attempts per question",
    buckets=[1, 2, 3, 4, 5],
    registry=REGISTRY,
)

# Safety metrics
SAFETY_REJECTIONS = Counter(
    "sql_agent_safety_rejections_total",
    "Safety rule violations in rejected queries",
    ["rule"],
    registry=REGISTRY,
)

EXECUTED_ROWS = Histogram(
    "sql_agent_executed_rows",
    "Rows returned by executed queries",
    buckets=[0, 1, 10, 50, 100, 500, 1000],
    registry=REGISTRY,
)

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=REGISTRY,
)

ACTIVE_QUESTIONS = Gauge(
    "sql_agent_active_questions",
    "Number of questions currently being processed",
    registry=REGISTRY,
)

ASK_PATH = "/api/v1/ask"


def setup_metrics(app: FastAPI, version: str, environment: str) -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        version: Service version
        environment: Deployment environment name
    """
    APP_INFO.info({
        "version": version,
        "environment": environment,
    })

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_ask_endpoint = request.url.path == ASK_PATH
        if is_ask_endpoint:
            ACTIVE_QUESTIONS.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_ask_endpoint:
                ACTIVE_QUESTIONS.dec()


def track_question_metrics(
    result: AgentResult,
    duration_seconds: float,
    rejected_rules: list[str] | None = None,
) -> None:
    """
    Track metrics for a completed question.

    Args:
        result: Final agent result
        duration_seconds: Total processing time
        rejected_rules: Safety rules violated by rejected attempts
    """
    if result.success:
        QUESTIONS_TOTAL.labels(status="success", failure_kind="").inc()
        EXECUTED_ROWS.observe(result.outcome.row_count)
    else:
        QUESTIONS_TOTAL.labels(status="failure", failure_kind=result.kind.value).inc()

    QUESTION_DURATION.observe(duration_seconds)
    if result.attempts:
        GENERATION_ATTEMPTS.observe(result.attempts)

    for rule in rejected_rules or []:
        SAFETY_REJECTIONS.labels(rule=rule).inc()


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )
