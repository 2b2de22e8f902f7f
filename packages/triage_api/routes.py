"""API routes for escalation management."""

import time
from typing import Optional

from fastapi import APIRouter, HTTPException  # type: ignore[import-not-found]
from pydantic import ValidationError

from triage_core import EscalationService
from triage_core.metrics import HTTP_LATENCY, HTTP_REQUESTS
from triage_runtime import (
    CaseNotFoundError,
    CaseStatus,
    InvalidTransitionError,
    PersistenceError,
    TriageError,
)

from .app import get_app_state
from .models import (
    ErrorResponse,
    EscalateResponse,
    EscalationResponse,
    EvaluateRequest,
    EvaluationResponse,
    ResolveRequest,
    SpecialistResponse,
    StatsResponse,
    TriggerResponse,
)

router = APIRouter(prefix="/escalations", tags=["escalations"])
specialists_router = APIRouter(prefix="/specialists", tags=["specialists"])


def _get_service() -> EscalationService:
    service = get_app_state().service
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Engine not configured. Please provide a configuration first.",
        )
    return service


def _http_error(error: Exception) -> HTTPException:
    """Map an engine error onto an HTTP error."""
    if isinstance(error, CaseNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, PersistenceError):
        return HTTPException(status_code=503, detail=str(error))
    if isinstance(error, (ValueError, ValidationError)):
        return HTTPException(status_code=422, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def _observe(method: str, endpoint: str, start_time: float, status_code: str) -> None:
    HTTP_LATENCY.labels(method=method, endpoint=endpoint).observe(
        time.perf_counter() - start_time
    )
    HTTP_REQUESTS.labels(method=method, endpoint=endpoint, status=status_code).inc()


@router.post(
    "/evaluate",
    response_model=EvaluationResponse,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def evaluate_issue(request: EvaluateRequest) -> EvaluationResponse:
    """Score an issue without opening a case.

    Args:
        request: Case id, issue text and signals

    Returns:
        EvaluationResponse with score, severity and triggers

    Raises:
        HTTPException: If the engine is not configured or the input is invalid
    """
    start_time = time.perf_counter()
    status_code = "200"

    try:
        service = _get_service()
        result = await service.evaluate(
            request.case_id, request.issue, request.context, request.manual_request
        )
        return EvaluationResponse(
            should_escalate=result.should_escalate,
            severity=result.severity.value,
            score=result.score,
            triggers=[
                TriggerResponse(type=trigger.type.value, weight=trigger.weight)
                for trigger in result.triggers
            ],
            suggested_actions=result.suggested_actions,
        )
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except (TriageError, ValueError, ValidationError) as e:
        error = _http_error(e)
        status_code = str(error.status_code)
        raise error from e
    except Exception:
        status_code = "500"
        raise
    finally:
        _observe("POST", "/escalations/evaluate", start_time, status_code)


@router.post(
    "",
    response_model=EscalateResponse,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def create_escalation(request: EvaluateRequest) -> EscalateResponse:
    """Evaluate an issue and open an escalation case when warranted.

    Args:
        request: Case id, issue text and signals

    Returns:
        EscalateResponse; ``escalation`` is set only when a case was opened

    Raises:
        HTTPException: If the input is invalid or the case could not be persisted
    """
    start_time = time.perf_counter()
    status_code = "200"

    try:
        service = _get_service()
        result, case = await service.evaluate_and_escalate(
            request.case_id, request.issue, request.context, request.manual_request
        )
        if case is None:
            return EscalateResponse(
                escalated=False, severity=result.severity.value, score=result.score
            )

        return EscalateResponse(
            escalated=True,
            severity=case.severity.value,
            score=case.score,
            escalation=EscalationResponse.from_case(case),
        )
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except (TriageError, ValueError, ValidationError) as e:
        error = _http_error(e)
        status_code = str(error.status_code)
        raise error from e
    except Exception:
        status_code = "500"
        raise
    finally:
        _observe("POST", "/escalations", start_time, status_code)


@router.get("", response_model=list[EscalationResponse])  # type: ignore[misc]
async def list_escalations(
    status: Optional[CaseStatus] = None, limit: Optional[int] = None
) -> list[EscalationResponse]:
    """List escalation cases, oldest first.

    Args:
        status: Optional status filter
        limit: Optional maximum number of cases

    Returns:
        Matching cases
    """
    start_time = time.perf_counter()
    status_code = "200"

    try:
        service = _get_service()
        return [EscalationResponse.from_case(case) for case in service.list_cases(status, limit)]
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except Exception:
        status_code = "500"
        raise
    finally:
        _observe("GET", "/escalations", start_time, status_code)


@router.get("/stats", response_model=StatsResponse)  # type: ignore[misc]
async def get_stats() -> StatsResponse:
    """Aggregate counts and rates over the escalation queue."""
    start_time = time.perf_counter()
    status_code = "200"

    try:
        stats = _get_service().get_stats()
        return StatsResponse(**stats.model_dump())
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    finally:
        _observe("GET", "/escalations/stats", start_time, status_code)


@router.get(
    "/{escalation_id}",
    response_model=EscalationResponse,
    responses={404: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def get_escalation(escalation_id: str) -> EscalationResponse:
    """Get the current state of an escalation case.

    Args:
        escalation_id: The escalation id

    Returns:
        EscalationResponse for the case

    Raises:
        HTTPException: If the case is not found
    """
    start_time = time.perf_counter()
    status_code = "200"

    try:
        service = _get_service()
        return EscalationResponse.from_case(service.get_case(escalation_id))
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except TriageError as e:
        error = _http_error(e)
        status_code = str(error.status_code)
        raise error from e
    finally:
        _observe("GET", "/escalations/{id}", start_time, status_code)


@router.post(
    "/{escalation_id}/start",
    response_model=EscalationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def start_work(escalation_id: str) -> EscalationResponse:
    """Record that the assigned specialist started on a case."""
    start_time = time.perf_counter()
    status_code = "200"

    try:
        service = _get_service()
        return EscalationResponse.from_case(await service.start_work(escalation_id))
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except TriageError as e:
        error = _http_error(e)
        status_code = str(error.status_code)
        raise error from e
    finally:
        _observe("POST", "/escalations/{id}/start", start_time, status_code)


@router.post(
    "/{escalation_id}/resolve",
    response_model=EscalationResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)  # type: ignore[misc]
async def resolve_escalation(escalation_id: str, request: ResolveRequest) -> EscalationResponse:
    """Close an in-progress case.

    Args:
        escalation_id: The escalation id
        request: Action, outcome and prevention measures

    Returns:
        EscalationResponse for the resolved case

    Raises:
        HTTPException: If the case is unknown, not in progress, or not persisted
    """
    start_time = time.perf_counter()
    status_code = "200"

    try:
        service = _get_service()
        case = await service.resolve(
            escalation_id,
            action=request.action,
            outcome=request.outcome,
            prevention_measures=request.prevention_measures,
            success=request.success,
        )
        return EscalationResponse.from_case(case)
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except (TriageError, ValueError) as e:
        error = _http_error(e)
        status_code = str(error.status_code)
        raise error from e
    finally:
        _observe("POST", "/escalations/{id}/resolve", start_time, status_code)


@specialists_router.get("", response_model=list[SpecialistResponse])  # type: ignore[misc]
async def list_specialists() -> list[SpecialistResponse]:
    """List specialists with their current load and availability."""
    start_time = time.perf_counter()
    status_code = "200"

    try:
        specialists = await _get_service().list_specialists()
        return [
            SpecialistResponse(
                id=specialist.id,
                name=specialist.name,
                specialties=specialist.specialties,
                availability=specialist.availability.value,
                current_load=specialist.current_load,
                success_rate=specialist.success_rate,
                average_resolution_time=specialist.average_resolution_time,
            )
            for specialist in specialists
        ]
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    finally:
        _observe("GET", "/specialists", start_time, status_code)
