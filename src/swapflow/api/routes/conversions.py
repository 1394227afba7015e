"""Route discovery, selection and execution endpoints."""

import logging

from fastapi import APIRouter, Request

from swapflow.errors import ExecutionError, ValidationError
from swapflow.services.conversion import ConversionService
from swapflow.web.contracts.routes import (
    ExecutionRequest,
    ExecutionResponse,
    ExecutionStatusResponse,
    ReceiptInfo,
    RouteInfo,
    RouteListResponse,
    RouteRequest,
    RouteSelectRequest,
    SelectedRouteResponse,
    StepProgress,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(request: Request) -> ConversionService:
    return request.app.state.conversion_service


@router.post("/routes", response_model=RouteListResponse)
async def discover_routes(body: RouteRequest, request: Request) -> RouteListResponse:
    """Discover candidate routes for a session.

    An empty route list is a normal outcome ("no routes available").
    """
    service = _service(request)
    quote = service.build_request(
        from_chain=body.from_chain,
        to_chain=body.to_chain,
        from_symbol=body.from_symbol,
        to_symbol=body.to_symbol,
        amount=body.amount,
        slippage_tolerance=body.slippage,
    )
    routes = await service.discover_routes(quote, context_id=body.session_id)
    selected = service.get_selected_route(body.session_id)

    return RouteListResponse(
        success=True,
        session_id=body.session_id,
        routes=[RouteInfo.from_route(r) for r in routes],
        selected_route_id=selected.id if selected else None,
        error=None if routes else "No routes available",
    )


@router.post("/routes/select", response_model=SelectedRouteResponse)
async def select_route(body: RouteSelectRequest, request: Request) -> SelectedRouteResponse:
    """Override the default route with one from the current candidate set."""
    route = _service(request).select_route(body.route_id, context_id=body.session_id)
    return SelectedRouteResponse(
        success=True, session_id=body.session_id, route=RouteInfo.from_route(route)
    )


@router.get("/routes/selected", response_model=SelectedRouteResponse)
async def get_selected_route(request: Request, session_id: str = "default") -> SelectedRouteResponse:
    route = _service(request).get_selected_route(session_id)
    return SelectedRouteResponse(
        success=route is not None,
        session_id=session_id,
        route=RouteInfo.from_route(route) if route else None,
    )


@router.post("/executions", response_model=ExecutionResponse)
async def execute_route(body: ExecutionRequest, request: Request) -> ExecutionResponse:
    """Execute the selected route and wait for settlement."""
    service = _service(request)

    route = None
    if body.route_id is not None:
        route = next(
            (r for r in service.get_routes(body.session_id) if r.id == body.route_id), None
        )
        if route is None:
            raise ValidationError(f"Route '{body.route_id}' is not in the current candidate set")

    progress: list[StepProgress] = []
    try:
        receipt = await service.execute_route(
            route,
            on_progress=lambda step, index: progress.append(StepProgress(index=index, step=step)),
            context_id=body.session_id,
        )
    except ExecutionError as e:
        logger.error(f"Execution failed for session {body.session_id}: {e}")
        return ExecutionResponse(
            success=False,
            session_id=body.session_id,
            status="failed",
            progress=progress,
            error=str(e),
        )

    return ExecutionResponse(
        success=True,
        session_id=body.session_id,
        status="completed",
        receipt=ReceiptInfo.from_receipt(receipt),
        progress=progress,
    )


@router.get("/executions/{session_id}", response_model=ExecutionStatusResponse)
async def get_execution(session_id: str, request: Request) -> ExecutionStatusResponse:
    return ExecutionStatusResponse.from_session(session_id, _service(request).get_execution(session_id))


@router.delete("/executions/{session_id}")
async def reset_session(session_id: str, request: Request) -> dict:
    """Acknowledge the outcome and clear quote state for a session."""
    _service(request).reset(session_id)
    return {"success": True, "session_id": session_id}
