"""
Logging configuration for the signaling server
"""
import sys
import os
from loguru import logger
from datetime import datetime
from collabsphere.core.config import get_settings


def configure_logging():
    """
    Configure loguru sinks for the current environment
    """
    settings = get_settings()

    # Remove default logger
    logger.remove()

    # Console logging with appropriate level
    logger.add(
        sys.stdout,
        format=settings.log_format,
        level=settings.log_level,
        colorize=settings.environment == "development",
        backtrace=True,
        diagnose=settings.environment == "development"
    )

    # File logging if specified
    if settings.log_file:
        logger.add(
            settings.log_file,
            format=settings.log_format,
            level=settings.log_level,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            compression="gz",
            backtrace=True,
            diagnose=False
        )

    # Structured logging for production log aggregators
    if settings.environment == "production":
        logger.add(
            sys.stdout,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}",
            level=settings.log_level,
            serialize=True,
            backtrace=False,
            diagnose=False
        )

    if settings.error_log_dir:
        error_log_path = os.path.join(
            settings.error_log_dir, f"errors_{datetime.now().strftime('%Y%m%d')}.log"
        )
        os.makedirs(settings.error_log_dir, exist_ok=True)

        logger.add(
            error_log_path,
            format=settings.log_format,
            level="ERROR",
            rotation="1 day",
            retention="30 days",
            compression="gz",
            backtrace=True,
            diagnose=True
        )

    logger.info(f"Logging configured for {settings.environment} environment")


class RequestLoggingMiddleware:
    """
    Middleware for logging HTTP requests and responses
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = datetime.now()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status_code = message["status"]
                processing_time = (datetime.now() - start_time).total_seconds()
                method = scope["method"]
                path = scope["path"]
                client_ip = scope["client"][0] if scope.get("client") else "unknown"

                log_level = "ERROR" if status_code >= 500 else "INFO"
                logger.log(
                    log_level,
                    f"{method} {path} -> {status_code} ({processing_time:.3f}s) from {client_ip}"
                )

            await send(message)

        await self.app(scope, receive, send_wrapper)
