"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from swapflow.config import Settings, get_settings
from swapflow.errors import SessionBusyError, ValidationError
from swapflow.services.conversion import ConversionService


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    # Shutdown: stop any scheduled or in-flight quote refreshes
    app.state.conversion_service.close()


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[ConversionService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="swapflow API",
        description="Asset conversion routing and execution API",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.conversion_service = service or ConversionService(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SessionBusyError)
    async def session_busy_handler(request: Request, exc: SessionBusyError):
        return JSONResponse(status_code=409, content={"success": False, "error": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    # Register routes
    from swapflow.api.routes import conversions, health, orders

    app.include_router(health.router, tags=["Health"])
    app.include_router(conversions.router, prefix="/api/v1", tags=["Routes"])
    app.include_router(orders.router, prefix="/api/v1", tags=["Limit Orders"])

    return app
