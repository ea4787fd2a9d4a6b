from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import socketio
from loguru import logger

from collabsphere.api import health_router
from collabsphere.core.config import get_settings
from collabsphere.core.logging_config import configure_logging, RequestLoggingMiddleware
from collabsphere.core.error_handlers import (
    api_error_handler,
    http_exception_handler,
    validation_error_handler,
    general_exception_handler,
    APIError
)
from collabsphere.websocket import SignalingServer


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events for the FastAPI application
    """
    # Startup
    configure_logging()
    logger.info("Starting signaling server...")
    app.state.signaling_server.log_startup_banner()

    yield

    # Shutdown: uvicorn has already stopped accepting connections
    logger.info("Termination signal received, closing server gracefully...")
    await app.state.signaling_server.shutdown()


def create_app(signaling_server: Optional[SignalingServer] = None) -> FastAPI:
    """Create the HTTP application around a signaling server."""
    settings = signaling_server.settings if signaling_server else get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Presence, negotiation relay, recording arbitration and chat history for peer-to-peer calls",
        version=settings.app_version,
        lifespan=lifespan
    )
    app.state.signaling_server = signaling_server or SignalingServer(settings)

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.allow_credentials,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health_router)

    return app


def create_asgi_app(app: FastAPI) -> socketio.ASGIApp:
    """Serve Socket.IO and the HTTP routes from one ASGI application."""
    signaling_server = app.state.signaling_server
    return socketio.ASGIApp(
        signaling_server.sio,
        other_asgi_app=app,
        socketio_path=signaling_server.settings.socketio_path
    )


app = create_app()
asgi_app = create_asgi_app(app)
