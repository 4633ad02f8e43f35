""" main.py: FastAPI application entry point and runtime configuration.

This module builds the ASGI app, mounts the chat router under `/api`, configures CORS (Cross-Origin Resource
Sharing) and exposes a Prometheus metrics endpoint at `/metrics`. When executed directly, it starts a Uvicorn server
using host/port values from configuration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
import logging
from config import CONFIG
from version import __version__

# --- Router Imports ---
from api import chat as chat_router

# Get a logger instance for this module
logger = logging.getLogger(__name__)

app = FastAPI(title="Dual-lane assistant orchestrator", version=__version__)

# Include routers
app.include_router(chat_router.router, prefix="/api", tags=["Chat"])

# Add Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Configure CORS
allow_origins = CONFIG.get('cors', {}).get('allow_origins', ["*"])
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# The uvicorn server is used to run the FastAPI application.
if __name__ == '__main__':
    import uvicorn
    logger.info("[__main__] Starting Uvicorn server for main.py\n")
    uvicorn.run(
        app,
        host=CONFIG.get('server', {}).get('host', '0.0.0.0'),
        port=CONFIG.get('server', {}).get('port', 8080)
    )
