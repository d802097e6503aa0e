"""
Shared helpers for integration handlers.

Handlers perform their own outbound I/O through ``send`` so that transport
failures and non-2xx responses surface as ExternalCallError naming the
provider and carrying the provider's own error text.
"""

from typing import Annotated, Any, Optional
import json
import logging

import httpx
from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from aion.config import settings
from aion.engine.errors import ActionValidationError, ExternalCallError


logger = logging.getLogger(__name__)


def _to_text(value: Any) -> Any:
    """Coerce resolved template values into text fields."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


# A string field that also accepts numbers or structures produced by templates
Text = Annotated[Optional[str], BeforeValidator(_to_text)]


class ActionConfig(BaseModel):
    """
    Base for typed action configuration.

    Editor data uses camelCase keys (apiKey, chatId); snake_case is accepted
    too. Unknown keys are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def require(value: Any, message: str) -> None:
    """Raise a validation error before any I/O when a required field is empty."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ActionValidationError(message)


def http_client(**kwargs: Any) -> httpx.AsyncClient:
    """Create the HTTP client used for provider calls."""
    kwargs.setdefault("timeout", settings.HTTP_TIMEOUT)
    return httpx.AsyncClient(**kwargs)


def provider_error_text(response: httpx.Response) -> str:
    """Extract the provider's own error message from a response."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        for key in ("description", "message"):
            if data.get(key):
                return str(data[key])

    return response.text.strip() or response.reason_phrase or f"HTTP {response.status_code}"


async def send(provider: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
    """
    Perform a request on behalf of a handler.

    Args:
        provider: Display name used in error messages
        method: HTTP method
        url: Target URL
        **kwargs: Passed to httpx (json, params, headers, content...)

    Raises:
        ExternalCallError: On network failure or a non-2xx response
    """
    async with http_client() as client:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalCallError(provider, str(e) or e.__class__.__name__) from e

    if response.is_error:
        logger.warning(f"{provider} returned HTTP {response.status_code}")
        raise ExternalCallError(provider, provider_error_text(response), response.status_code)

    return response


def json_body(provider: str, response: httpx.Response) -> Any:
    """Decode a JSON response body or fail with the provider's name."""
    try:
        return response.json()
    except ValueError as e:
        raise ExternalCallError(
            provider, f"Invalid JSON response: {response.text[:200]}", response.status_code
        ) from e
