"""
Generic HTTP request integration.
"""

from typing import Any, Dict, Optional

from pydantic import field_validator

from aion.engine.errors import ActionValidationError
from aion.engine.models import ContextView
from aion.integrations import base
from aion.integrations.base import ActionConfig, Text, require
from aion.integrations.registry import Integration


METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

http = Integration(
    id="http",
    name="HTTP Request",
    category="api",
    description="Call any HTTP endpoint",
)


class HttpRequestConfig(ActionConfig):
    url: Text = None
    method: str = "GET"
    headers: Optional[Dict[str, Any]] = None
    query: Optional[Dict[str, Any]] = None
    body: Any = None

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        if value is None or value == "":
            return "GET"
        return str(value).strip().upper()


def _decode(response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            pass
    return response.text


@http.action("request", "HTTP Request", config=HttpRequestConfig)
async def http_request(config: HttpRequestConfig, context: ContextView) -> Dict[str, Any]:
    """
    Send a request and return its status, headers and decoded body.

    Mappings and lists are sent as JSON; anything else as the raw body.
    """
    require(config.url, "URL is required")
    if config.method not in METHODS:
        raise ActionValidationError(f"Unsupported HTTP method '{config.method}'")

    kwargs: Dict[str, Any] = {}
    if config.headers:
        kwargs["headers"] = {k: str(v) for k, v in config.headers.items()}
    if config.query:
        kwargs["params"] = {k: str(v) for k, v in config.query.items()}
    if isinstance(config.body, (dict, list)):
        kwargs["json"] = config.body
    elif config.body not in (None, ""):
        kwargs["content"] = str(config.body)

    response = await base.send("HTTP", config.method, config.url, **kwargs)

    return {
        "status": response.status_code,
        "headers": dict(response.headers),
        "body": _decode(response),
    }
