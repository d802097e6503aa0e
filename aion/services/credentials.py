"""
Credential injection for integrations that authenticate with OAuth tokens.

An integration declaring ``auth_provider`` (e.g. Google Sheets) expects an
``accessToken`` in its node data. The token is fetched from a
CredentialProvider just before the run and copied into the node, so stored
graphs never contain secrets.
"""

from typing import Any, Dict, Iterable, List, Optional, Protocol, Union
import logging

from aion.config import settings
from aion.engine.models import Node
from aion.integrations.registry import ActionRegistry


logger = logging.getLogger(__name__)

TOKEN_KEYS = ("accessToken", "access_token")


class CredentialProvider(Protocol):
    """Source of OAuth access tokens, keyed by provider name."""

    async def get_access_token(self, provider: str) -> Optional[str]:
        ...


class StaticCredentialProvider:
    """
    Tokens from explicit values or from settings.

    Without an explicit mapping, ``<PROVIDER>_ACCESS_TOKEN`` is read from
    settings at lookup time (``google`` -> ``GOOGLE_ACCESS_TOKEN``).
    """

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self._tokens = tokens

    async def get_access_token(self, provider: str) -> Optional[str]:
        if self._tokens is not None:
            return self._tokens.get(provider)
        return getattr(settings, f"{provider.upper()}_ACCESS_TOKEN", None)


def _has_token(data: Dict[str, Any]) -> bool:
    return any(data.get(key) for key in TOKEN_KEYS)


async def inject_credentials(
    nodes: Iterable[Union[Node, Dict[str, Any]]],
    registry: ActionRegistry,
    provider: CredentialProvider,
) -> List[Node]:
    """
    Return copies of the nodes with access tokens added where needed.

    Args:
        nodes: Graph nodes (models or dicts)
        registry: Registry used to look up each node's integration
        provider: Where tokens come from

    Returns:
        New node list; the input nodes are never modified
    """
    tokens: Dict[str, Optional[str]] = {}
    result = []

    for raw in nodes:
        node = raw if isinstance(raw, Node) else Node.model_validate(raw)
        node = node.model_copy(deep=True)
        result.append(node)

        config = node.config
        if not config.has_action:
            continue
        integration = registry.get_integration(config.integration_id)
        if integration is None or not integration.auth_provider:
            continue

        data = dict(config.data or {})
        if _has_token(data):
            continue

        auth = integration.auth_provider
        if auth not in tokens:
            tokens[auth] = await provider.get_access_token(auth)
        if not tokens[auth]:
            logger.warning(f"No {auth} access token available for node {node.id}")
            continue

        data["accessToken"] = tokens[auth]
        config.data = data

    return result
