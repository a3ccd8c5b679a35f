# ============================================================================
# VERSION - AGENT ORCHESTRATOR
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# ============================================================================
"""
Version information for the Agent Orchestrator.

This is the single source of truth for the application version.
Updated manually for each release.
"""
# Version format: major.minor.patch
# Criteria for 0.2 - journal + commitment agents dispatched end to end
__version__ = "0.2.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"

EPOCH = 1
CODENAME = "Agent Orchestrator"
