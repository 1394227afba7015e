"""Health check endpoints."""

from fastapi import APIRouter, Request

from swapflow import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "swapflow"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with configuration and provider info."""
    settings = request.app.state.settings
    service = request.app.state.conversion_service
    return {
        "status": "healthy",
        "service": "swapflow",
        "version": __version__,
        "config": settings.get_safe_dict(),
        "providers": service.registry.names,
        "open_limit_orders": len(service.ledger),
    }
