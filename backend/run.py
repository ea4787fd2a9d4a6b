#!/usr/bin/env python3
"""
Run script for the signaling server
"""

import uvicorn
from collabsphere.core.config import settings

if __name__ == "__main__":
    # uvicorn handles SIGINT/SIGTERM: stop accepting, then run lifespan shutdown
    uvicorn.run(
        "collabsphere.main:asgi_app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        timeout_graceful_shutdown=settings.graceful_shutdown_timeout
    )
