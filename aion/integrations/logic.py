"""
Logic integration: control-flow and data-shaping actions that need no
third-party provider.
"""

from typing import Any, Dict, List, Optional
import asyncio
import logging

from pydantic import BaseModel, Field

from aion.config import settings
from aion.engine.errors import ActionValidationError
from aion.engine.models import ContextView
from aion.integrations.base import ActionConfig, Text
from aion.integrations.registry import Integration


logger = logging.getLogger(__name__)

logic = Integration(
    id="logic",
    name="Logic",
    category="logic",
    description="Branching, delays, variables and debugging helpers",
)


# ============================================================
# Conditions
# ============================================================

OPERATORS = (
    "equals",
    "not_equals",
    "greater_than",
    "less_than",
    "contains",
    "not_contains",
    "starts_with",
    "is_empty",
    "is_not_empty",
)


class ConditionConfig(ActionConfig):
    left_value: Any = None
    operator: str = "equals"
    right_value: Any = None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_number(value: Any, side: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ActionValidationError(f"{side} value '{value}' is not a number")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def evaluate_condition(left: Any, operator: str, right: Any) -> bool:
    """
    Compare two resolved values.

    Equality and text operators compare string forms, so "5" equals 5.
    Ordering operators require both sides to be numeric.
    """
    if operator == "equals":
        return _as_text(left) == _as_text(right)
    if operator == "not_equals":
        return _as_text(left) != _as_text(right)
    if operator == "greater_than":
        return _as_number(left, "Left") > _as_number(right, "Right")
    if operator == "less_than":
        return _as_number(left, "Left") < _as_number(right, "Right")
    if operator in ("contains", "not_contains"):
        if isinstance(left, (list, tuple)):
            found = any(_as_text(item) == _as_text(right) for item in left)
        else:
            found = _as_text(right) in _as_text(left)
        return found if operator == "contains" else not found
    if operator == "starts_with":
        return _as_text(left).startswith(_as_text(right))
    if operator == "is_empty":
        return _is_empty(left)
    if operator == "is_not_empty":
        return not _is_empty(left)
    raise ActionValidationError(
        f"Unknown operator '{operator}'. Available: {', '.join(OPERATORS)}"
    )


@logic.action("if_else", "IF / ELSE", config=ConditionConfig)
async def if_else(config: ConditionConfig, context: ContextView) -> Dict[str, Any]:
    """Evaluate a condition and report which branch (true/false) applies."""
    result = evaluate_condition(config.left_value, config.operator, config.right_value)
    return {
        "result": result,
        "branch": "true" if result else "false",
        "operator": config.operator,
        "left_value": config.left_value,
        "right_value": config.right_value,
    }


@logic.action("filter", "Filter", config=ConditionConfig)
async def filter_run(config: ConditionConfig, context: ContextView) -> Dict[str, Any]:
    """Continue the run only when the condition holds."""
    if evaluate_condition(config.left_value, config.operator, config.right_value):
        return {"passed": True}
    return {
        "passed": False,
        "stop_execution": True,
        "reason": f"Condition '{config.operator}' not met",
    }


# ============================================================
# Data
# ============================================================

@logic.action("log", "Log to Console")
async def log_input(config: Dict[str, Any], context: ContextView) -> Dict[str, Any]:
    """Log the input to the execution console and pass it through."""
    logger.info(f"Workflow Log: {config}")
    return config


class VariableEntry(BaseModel):
    key: Text = None
    value: Any = None


class SetVariableConfig(ActionConfig):
    var_list: List[VariableEntry] = []


@logic.action("set_variable", "Set Variable", config=SetVariableConfig)
async def set_variable(config: SetVariableConfig, context: ContextView) -> Dict[str, Any]:
    """Expose named values as {{Set Variable.key}}."""
    return {
        entry.key.strip(): entry.value
        for entry in config.var_list
        if entry.key and entry.key.strip()
    }


# ============================================================
# Timing
# ============================================================

class DelayConfig(ActionConfig):
    seconds: Optional[float] = Field(None, allow_inf_nan=False)


@logic.action("delay", "Delay", config=DelayConfig)
async def delay(config: DelayConfig, context: ContextView) -> Dict[str, Any]:
    """Pause the run. Longer waits belong to a scheduled trigger."""
    requested = config.seconds or 0
    if requested < 0:
        raise ActionValidationError("Delay must not be negative")

    seconds = min(requested, settings.MAX_DELAY_SECONDS)
    if seconds < requested:
        logger.info(f"Delay of {requested}s capped at {seconds}s")

    await asyncio.sleep(seconds)
    return {"delayed_seconds": seconds}
