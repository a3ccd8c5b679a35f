# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Main orchestration loop
# PURPOSE: Dispatch queued jobs to registered agents
# CREATED: 19 OCT 2026
# ============================================================================
"""
Orchestrator Module

Usage:
    from orchestrator import build_memory_runtime

    runtime = build_memory_runtime()
    await runtime.start()
    await runtime.orchestrator.start()  # Blocks until stop()
"""

from .loop import DispatchResult, Orchestrator
from .factory import (
    Runtime,
    build_memory_runtime,
    build_postgres_runtime,
    build_runtime,
)

__all__ = [
    "DispatchResult",
    "Orchestrator",
    "Runtime",
    "build_memory_runtime",
    "build_postgres_runtime",
    "build_runtime",
]
