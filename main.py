# ============================================================================
# AGENT ORCHESTRATOR - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - FastAPI application entry point
# PURPOSE: Main application with orchestration loop
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Orchestrator Main Application

FastAPI application that:
1. Provides HTTP API for jobs, journal entries and logs
2. Runs the orchestration loop and event delivery in the background
3. Manages database connections (STORAGE_BACKEND=postgres) or
   process-local stores (STORAGE_BACKEND=memory)

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from __version__ import __version__, BUILD_DATE, EPOCH
from api.routes import router, set_services
from core.config import StorageBackend, get_defaults
from orchestrator import Runtime, build_runtime

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Global instances
_runtime: Optional[Runtime] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes services on startup, cleans up on shutdown.
    """
    global _runtime

    defaults = get_defaults()
    logger.info(
        f"Starting Agent Orchestrator v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE}, "
        f"storage={defaults.storage.backend.value})"
    )

    # Optional: create the schema on startup (for development)
    if (
        defaults.storage.backend == StorageBackend.POSTGRES
        and os.environ.get("AUTO_BOOTSTRAP_SCHEMA", "").lower() == "true"
    ):
        from repositories.schema import deploy_schema
        logger.info("Auto-bootstrap enabled, deploying schema...")
        try:
            count = await asyncio.to_thread(deploy_schema)
            logger.info(f"Schema bootstrap completed ({count} statements)")
        except Exception as e:
            logger.warning(f"Schema bootstrap failed (may already exist): {e}")

    _runtime = await build_runtime(defaults)
    set_services(orchestrator=_runtime.orchestrator)

    await _runtime.start()
    loop_task = asyncio.create_task(_runtime.orchestrator.start())
    logger.info("Orchestrator started")

    yield

    # Shutdown
    logger.info("Shutting down Agent Orchestrator...")

    await _runtime.stop()
    await loop_task

    if defaults.storage.backend == StorageBackend.POSTGRES:
        from repositories.database import close_pool
        await close_pool()

    logger.info("Agent Orchestrator stopped")


# Create FastAPI app
app = FastAPI(
    title="Agent Orchestrator",
    description=f"Epoch {EPOCH} multi-agent job orchestration",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router, prefix="/api/v1")


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/livez", tags=["Health"])
async def livez():
    """Process is up. No dependency checks."""
    return {"status": "alive"}


@app.get("/health", tags=["Health"])
async def health():
    """Per-agent queue depth. 503 when any agent's queue cannot be read."""
    if _runtime is None:
        return JSONResponse(status_code=503, content={"healthy": False, "agents": {}})

    result = await _runtime.orchestrator.health_check()
    return JSONResponse(status_code=200 if result["healthy"] else 503, content=result)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Agent Orchestrator",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
