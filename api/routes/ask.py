"""
Ask Routes
==========

Main API endpoint: natural-language question in, database answer out.
"""

import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.schemas import AskFailureResponse, AskRequest, AskResponse, ErrorResponse
from observability.logging_config import get_logger
from observability.metrics import track_question_metrics
from sql_agent.agent import SQLQueryAgent
from sql_agent.verifiers.safety import violated_rules

router = APIRouter(prefix="/api/v1", tags=["Ask"])

logger = get_logger(__name__)


def get_agent(request: Request) -> SQLQueryAgent:
    """Dependency to get the configured agent from app state."""
    return request.app.state.agent


@router.post(
    "/ask",
    response_model=AskResponse,
    responses={
        400: {"model": AskFailureResponse, "description": "The question could not be answered"},
        422: {"description": "Invalid request body"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Answer a question from the database",
    description=(
        "Generates SQL for the question, rejects anything that is not a single "
        "read-only SELECT, executes the accepted query and summarizes the rows."
    ),
)
async def ask(
    body: AskRequest,
    request: Request,
    agent: SQLQueryAgent = Depends(get_agent),
):
    """
    Answer a natural-language question.

    Args:
        body: Question and per-request limits
        request: Incoming request (for the request ID)
        agent: Injected SQLQueryAgent instance

    Returns:
        AskResponse on success, AskFailureResponse with status 400 otherwise
    """
    request_id = getattr(request.state, "request_id", None)
    start_time = time.perf_counter()

    logger.info("ask.received", question=body.question)
    result = await agent.run(
        body.question,
        max_retries=body.max_retries,
        max_rows=body.max_rows,
    )

    duration = time.perf_counter() - start_time
    rejected = [
        rule
        for entry in result.trace
        if entry.step == "safety_check" and not entry.success
        for rule in violated_rules(entry.details.get("issues", []))
    ]
    track_question_metrics(result, duration, rejected)

    if result.success:
        logger.info(
            "ask.answered",
            row_count=result.outcome.row_count,
            execution_time_ms=round(result.outcome.elapsed_ms, 2),
        )
        return AskResponse.from_result(result, body.debug, request_id, duration * 1000)

    logger.warning("ask.failed", reason=result.reason, kind=result.kind.value)
    return JSONResponse(
        status_code=400,
        content=AskFailureResponse.from_result(result, request_id).model_dump(mode="json"),
    )
