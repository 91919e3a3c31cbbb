"""DevOps MCP FastAPI application - health check and HTTP tool calls."""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devops_core.config import get_settings

from .. import __version__
from .routers import tools

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("devops-mcp.http")

settings = get_settings()
logger.info("Starting DevOps MCP HTTP API")

# Create FastAPI app
app = FastAPI(
    title="DevOps MCP API",
    description="Azure DevOps work item tools over HTTP",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tools.router)


@app.get("/")
def root():
    """Root endpoint with server info."""
    return {
        "name": "DevOps MCP API",
        "version": __version__,
        "docs": "/docs",
        "tools": "/tools",
        "description": "Azure DevOps work item tools over HTTP"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    }


def run():
    """Console script entry point."""
    import uvicorn

    uvicorn.run("devops_mcp.api.main:app", host="0.0.0.0", port=8000)
