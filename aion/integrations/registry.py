"""
Action Registry for the workflow engine.

An integration groups related actions (usually one third-party provider).
Each action wraps an async handler ``(config, context) -> output`` and may
declare a pydantic model describing its configuration. The registry is an
explicit value built once at startup and handed to every runner.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Type
import logging

from pydantic import BaseModel, ValidationError

from aion.engine.errors import ActionValidationError, DuplicateIntegrationError
from aion.engine.models import ContextView


logger = logging.getLogger(__name__)

Handler = Callable[[Any, ContextView], Awaitable[Dict[str, Any]]]


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


@dataclass
class Action:
    """
    A named, invokable unit of behavior provided by an integration.

    Attributes:
        id: Identifier, unique within its integration
        name: Human-readable name
        handler: Async function receiving (config, context)
        description: What the action does
        config_model: Optional pydantic model the resolved data is validated into
    """
    id: str
    name: str
    handler: Handler
    description: str = ""
    config_model: Optional[Type[BaseModel]] = None

    async def invoke(self, data: Dict[str, Any], context: ContextView) -> Any:
        """Validate the resolved data and run the handler."""
        if self.config_model is None:
            config: Any = dict(data)
        else:
            try:
                config = self.config_model.model_validate(data)
            except ValidationError as e:
                raise ActionValidationError(
                    f"Invalid configuration for action '{self.id}': "
                    f"{_describe_validation_error(e)}"
                ) from e
        return await self.handler(config, context)

    def config_schema(self) -> Optional[Dict[str, Any]]:
        """JSON schema of the action's configuration, if typed."""
        if self.config_model is None:
            return None
        return self.config_model.model_json_schema(by_alias=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "config_schema": self.config_schema(),
        }


@dataclass
class Integration:
    """
    A named collection of related actions.

    Usage:
        telegram = Integration(id="telegram", name="Telegram", category="social")

        @telegram.action("send_message", "Send Message", config=TelegramConfig)
        async def send_message(config, context):
            ...
    """
    id: str
    name: str
    category: str
    description: str = ""
    auth_provider: Optional[str] = None  # credential provider key, e.g. "google"
    actions: Dict[str, Action] = field(default_factory=dict)

    def action(
        self,
        action_id: str,
        name: str,
        description: str = "",
        config: Optional[Type[BaseModel]] = None,
    ) -> Callable[[Handler], Handler]:
        """
        Decorator to attach an async handler as an action.

        Args:
            action_id: Action identifier
            name: Display name
            description: Action description (defaults to docstring)
            config: Pydantic model for the action's configuration

        Returns:
            Decorator function
        """
        def decorator(func: Handler) -> Handler:
            if action_id in self.actions:
                raise ValueError(f"Action '{action_id}' already defined on '{self.id}'")
            self.actions[action_id] = Action(
                id=action_id,
                name=name,
                handler=func,
                description=(description or func.__doc__ or "").strip(),
                config_model=config,
            )
            return func

        return decorator

    def get_action(self, action_id: str) -> Optional[Action]:
        return self.actions.get(action_id)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize integration metadata for discovery."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "auth_provider": self.auth_provider,
            "actions": [action.to_dict() for action in self.actions.values()],
        }


class ActionRegistry:
    """
    Catalog of integrations and their actions.

    Registration happens once at startup; integrations cannot be removed or
    replaced afterwards, so concurrent runs can share one registry.

    Usage:
        registry = ActionRegistry()
        registry.register(telegram)

        action = registry.get_action("telegram", "send_message")
    """

    def __init__(self):
        self._integrations: Dict[str, Integration] = {}

    def register(self, integration: Integration) -> Integration:
        """
        Add an integration.

        Raises:
            DuplicateIntegrationError: If the id is already registered
        """
        if integration.id in self._integrations:
            raise DuplicateIntegrationError(integration.id)
        self._integrations[integration.id] = integration
        logger.debug(
            f"Registered integration: {integration.id} "
            f"({len(integration.actions)} actions)"
        )
        return integration

    def get_integration(self, integration_id: str) -> Optional[Integration]:
        return self._integrations.get(integration_id)

    def get_action(self, integration_id: str, action_id: str) -> Optional[Action]:
        """Look up an action; returns None when either id is unknown."""
        integration = self.get_integration(integration_id)
        if integration is None:
            return None
        return integration.get_action(action_id)

    def get_all_integrations(self) -> List[Integration]:
        return list(self._integrations.values())

    def get_integrations_by_category(self, category: str) -> List[Integration]:
        return [i for i in self._integrations.values() if i.category == category]

    def __contains__(self, integration_id: str) -> bool:
        return integration_id in self._integrations

    def __len__(self) -> int:
        return len(self._integrations)

    def __iter__(self) -> Iterator[Integration]:
        return iter(self._integrations.values())
