# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Event and log services
# PURPOSE: Publish/subscribe and agent logging on top of the stores
# CREATED: 19 OCT 2026
# ============================================================================
"""
Services Module

Usage:
    from services import EventService, AgentLogService

    events = EventService(InMemoryEventStore())
    unsubscribe = await events.subscribe(EventType.COMMITMENT_DETECTED, handler)
"""

from .event_service import EventService, Subscription
from .log_service import AgentLogService

__all__ = [
    "EventService",
    "Subscription",
    "AgentLogService",
]
