"""
FastAPI Application
===================

Main FastAPI application for the SQL query agent.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.middleware.telemetry import TelemetryMiddleware
from api.routes.ask import router as ask_router
from api.routes.health import router as health_router
from api.schemas import ErrorResponse
from observability.logging_config import get_logger, setup_logging
from observability.metrics import metrics_endpoint, setup_metrics
from observability.tracing import setup_tracing
from sql_agent.agent import SQLQueryAgent
from sql_agent.config import Settings, get_settings
from sql_agent.database import (
    DatabaseQueryExecutor,
    InformationSchemaProvider,
    create_engine_from_settings,
)
from sql_agent.generation import LLMQueryGenerator, LLMResultSummarizer
from sql_agent.llm.openai_llm import OpenAILLM

logger = get_logger(__name__)


def create_agent(settings: Settings, engine, llm) -> SQLQueryAgent:
    """Wire the agent to its collaborators."""
    return SQLQueryAgent(
        schema_provider=InformationSchemaProvider(engine, schema_name=settings.db_schema),
        generator=LLMQueryGenerator(llm),
        executor=DatabaseQueryExecutor(engine),
        summarizer=LLMResultSummarizer(llm),
        max_retries=settings.agent_max_retries,
        max_rows=settings.agent_max_rows,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    settings: Settings = app.state.settings

    logger.info(
        "Starting SQL Query Agent API",
        version=__version__,
        model=settings.llm_model,
        environment=settings.environment,
    )

    engine = create_engine_from_settings(settings)
    llm = OpenAILLM.from_settings(settings)
    app.state.engine = engine
    app.state.agent = create_agent(settings, engine, llm)

    try:
        yield
    finally:
        logger.info("Shutting down SQL Query Agent API")
        await llm.close()
        await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    setup_logging(
        level=settings.log_level,
        json_format=settings.log_format.lower() == "json" or None,
        environment=settings.environment,
    )

    app = FastAPI(
        title="SQL Query Agent API",
        description=(
            "Answers natural-language questions from a database. Generated SQL "
            "must pass a safety gate before it is executed."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(ask_router)

    setup_metrics(app, version=__version__, environment=settings.environment)
    app.add_route("/metrics", metrics_endpoint)

    setup_tracing(
        app,
        otlp_endpoint=settings.otlp_endpoint,
        environment=settings.environment,
        version=__version__,
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        request_id = getattr(request.state, "request_id", None)
        logger.exception("Unhandled error", error=str(exc))
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                request_id=request_id,
                details={"error_type": type(exc).__name__, "message": str(exc)},
            ).model_dump(),
        )

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )
