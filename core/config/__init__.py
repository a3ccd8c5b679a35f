# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the agent orchestrator.
"""

from core.config.defaults import (
    StorageBackend,
    OrchestratorDefaults,
    JobDefaults,
    EventBusDefaults,
    AgentDefaults,
    StorageDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "StorageBackend",
    "OrchestratorDefaults",
    "JobDefaults",
    "EventBusDefaults",
    "AgentDefaults",
    "StorageDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
