"""
Google Sheets integration.

The bearer token is not part of the node configuration the user writes: it
is injected as ``accessToken`` by the credential provider before the run.
"""

from typing import Any, Dict, List
from urllib.parse import quote
import json

from pydantic import field_validator

from aion.engine.errors import ActionValidationError
from aion.engine.models import ContextView
from aion.integrations import base
from aion.integrations.base import ActionConfig, Text, require
from aion.integrations.registry import Integration


SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets/{spreadsheet_id}/values/{range}"

sheets = Integration(
    id="google_sheets",
    name="Google Sheets",
    category="data",
    description="Read and append spreadsheet rows",
    auth_provider="google",
)


class SheetRangeConfig(ActionConfig):
    access_token: Text = None
    spreadsheet_id: Text = None
    range: Text = "Sheet1"


class AppendRowConfig(SheetRangeConfig):
    values: List[List[Any]] = []

    @field_validator("values", mode="before")
    @classmethod
    def parse_values(cls, value: Any) -> Any:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                # A bare string is a single cell
                return [[value]]
        if isinstance(value, list) and value and not any(isinstance(v, list) for v in value):
            # Flat list is one row
            return [value]
        return value


def _check(config: SheetRangeConfig) -> None:
    if not config.access_token:
        raise ActionValidationError("Google Sheets authentication required: no access token available")
    require(config.spreadsheet_id, "Spreadsheet ID is required")
    require(config.range, "Range is required")


def _url(config: SheetRangeConfig, suffix: str = "") -> str:
    return SHEETS_API.format(
        spreadsheet_id=config.spreadsheet_id.strip(),
        range=quote(config.range, safe="") + suffix,
    )


@sheets.action("append_row", "Append Row", config=AppendRowConfig)
async def append_row(config: AppendRowConfig, context: ContextView) -> Dict[str, Any]:
    """Append one or more rows after the last row of a range."""
    _check(config)
    if not config.values:
        raise ActionValidationError("Values are required")

    response = await base.send(
        "Google Sheets",
        "POST",
        _url(config, ":append"),
        params={"valueInputOption": "USER_ENTERED"},
        headers={"Authorization": f"Bearer {config.access_token}"},
        json={"values": config.values},
    )
    data = base.json_body("Google Sheets", response)
    updates = data.get("updates", {}) if isinstance(data, dict) else {}

    return {
        "updated_range": updates.get("updatedRange"),
        "updated_rows": updates.get("updatedRows", 0),
    }


@sheets.action("read_range", "Read Range", config=SheetRangeConfig)
async def read_range(config: SheetRangeConfig, context: ContextView) -> Dict[str, Any]:
    """Read the cell values of a range."""
    _check(config)

    response = await base.send(
        "Google Sheets",
        "GET",
        _url(config),
        headers={"Authorization": f"Bearer {config.access_token}"},
    )
    data = base.json_body("Google Sheets", response)
    if not isinstance(data, dict):
        data = {}
    values = data.get("values", [])

    return {"range": data.get("range"), "values": values, "count": len(values)}
