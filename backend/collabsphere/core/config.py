from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from functools import lru_cache
import os


class Settings(BaseSettings):
    """
    Application settings and configuration
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "WebRTC Signaling Server"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = int(os.getenv("PORT", "5000"))

    # Environment detection
    environment: str = os.getenv("ENVIRONMENT", "production")

    # CORS
    allowed_origins: List[str] = [
        "https://collabsphere.space",
        "https://www.collabsphere.space",
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    frontend_url: Optional[str] = None
    allow_credentials: bool = True

    # Socket.IO transport
    socketio_path: str = "socket.io"
    transports: List[str] = ["websocket", "polling"]
    ping_timeout: int = 60  # seconds
    ping_interval: int = 25  # seconds
    max_http_buffer_size: int = 100_000_000  # 100MB
    socketio_logger: bool = False

    # Shutdown
    graceful_shutdown_timeout: int = 10  # seconds

    # Logging
    log_level: str = "INFO"
    log_format: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
    )
    log_file: Optional[str] = None
    log_rotation: str = "10 MB"
    log_retention: str = "14 days"
    error_log_dir: Optional[str] = None

    @property
    def cors_origins(self) -> List[str]:
        """Configured origins plus FRONTEND_URL, without duplicates"""
        origins = list(self.allowed_origins)
        if self.frontend_url:
            origins.append(self.frontend_url)
        return list(dict.fromkeys(origin for origin in origins if origin))


# Create settings instance with caching
@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings
    """
    return Settings()


settings = get_settings()
