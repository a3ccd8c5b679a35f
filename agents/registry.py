# ============================================================================
# AGENT REGISTRY
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# STATUS: Core - Handler registration and lookup
# PURPOSE: Map each AgentType to the handler the orchestrator dispatches to
# CREATED: 19 OCT 2026
# ============================================================================
"""
Agent Registry

Design:
- One registry per orchestrator instance (no module-level state)
- Keyed by the closed AgentType enum
- Re-registering a type replaces the previous handler
- Handlers are async callables taking a MessageEnvelope
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from core.contracts import AgentType
from core.errors import AgentNotRegisteredError
from core.models import MessageEnvelope, utcnow

logger = logging.getLogger(__name__)

# Handler function type
AgentHandler = Callable[[MessageEnvelope], Awaitable[Any]]


class AgentRegistry:
    """Registry of agent handlers."""

    def __init__(self):
        self._handlers: Dict[AgentType, AgentHandler] = {}
        self._metadata: Dict[AgentType, Dict[str, Any]] = {}

    def register(self, agent_type: AgentType, handler: AgentHandler) -> None:
        """
        Register (or replace) the handler for an agent type.

        Args:
            agent_type: Agent identity
            handler: Async callable taking a MessageEnvelope
        """
        agent_type = AgentType(agent_type)
        if agent_type in self._handlers:
            logger.info(f"Replacing handler for {agent_type.value}")

        self._handlers[agent_type] = handler
        self._metadata[agent_type] = {
            "agent_type": agent_type.value,
            "handler": getattr(handler, "__qualname__", type(handler).__name__),
            "module": getattr(handler, "__module__", None),
            "is_async": inspect.iscoroutinefunction(handler)
            or inspect.iscoroutinefunction(getattr(handler, "__call__", None)),
            "registered_at": utcnow().isoformat(),
        }
        logger.info(f"Registered handler for {agent_type.value}")

    def unregister(self, agent_type: AgentType) -> bool:
        removed = self._handlers.pop(AgentType(agent_type), None) is not None
        self._metadata.pop(AgentType(agent_type), None)
        return removed

    def get(self, agent_type: AgentType) -> Optional[AgentHandler]:
        return self._handlers.get(AgentType(agent_type))

    def get_or_raise(self, agent_type: AgentType) -> AgentHandler:
        """
        Raises:
            AgentNotRegisteredError if no handler is registered
        """
        handler = self.get(agent_type)
        if handler is None:
            raise AgentNotRegisteredError(str(getattr(agent_type, "value", agent_type)))
        return handler

    def types(self) -> List[AgentType]:
        """Registered agent types in registration order."""
        return list(self._handlers)

    def items(self) -> List[tuple]:
        """Snapshot of (agent_type, handler) pairs."""
        return list(self._handlers.items())

    def metadata(self) -> List[Dict[str, Any]]:
        return list(self._metadata.values())

    def clear(self) -> None:
        self._handlers.clear()
        self._metadata.clear()

    def __contains__(self, agent_type: object) -> bool:
        try:
            return AgentType(agent_type) in self._handlers
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[AgentType]:
        return iter(list(self._handlers))
