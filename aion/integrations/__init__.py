"""
Integrations package - Action registry and built-in integrations.
"""

from aion.integrations.registry import Action, ActionRegistry, Integration
from aion.integrations import ai, http_request, logic, messaging, sheets


BUILTIN_INTEGRATIONS = (
    logic.logic,
    ai.openai,
    ai.gemini,
    ai.groq,
    ai.openrouter,
    messaging.telegram,
    messaging.discord,
    messaging.slack,
    http_request.http,
    sheets.sheets,
)


def build_default_registry() -> ActionRegistry:
    """Create a registry holding every built-in integration."""
    registry = ActionRegistry()
    for integration in BUILTIN_INTEGRATIONS:
        registry.register(integration)
    return registry


__all__ = [
    "Action",
    "ActionRegistry",
    "Integration",
    "BUILTIN_INTEGRATIONS",
    "build_default_registry",
]
