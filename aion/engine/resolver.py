"""
Variable Resolver - Resolves {{identifier.path}} placeholders in node data.

Supports:
- {{trigger.field}} - Access the run's trigger payload
- {{nodeId.field}} - Access a previous node's output by id
- {{Node Label.field}} - Access by label (case, spaces, - and _ ignored)
- {{node.output.field}} - A leading "output" segment is optional
- {{node.items.0.name}} - Integer segments index into lists

Unresolvable placeholders are left as literal text; they never fail a run.
"""

import json
import re
from typing import Any, List, Mapping, Sequence, Tuple

from aion.engine.models import Node


# Marks a lookup that found nothing (distinct from a stored None)
_MISSING = object()

# Tried in order when a requested "text" key is absent
TEXT_FALLBACK_KEYS = ("topic", "input", "message")

TRIGGER_IDENTIFIER = "trigger"


def normalize_identifier(value: str) -> str:
    """Lowercase and drop whitespace, hyphens and underscores."""
    return re.sub(r"[\s\-_]+", "", value.lower())


def _stringify(value: Any) -> str:
    """Render a resolved value inside surrounding text."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


class VariableResolver:
    """
    Resolves placeholders against an execution context.

    Examples:
        {{trigger.topic}} -> "x"  (trigger payload {"topic": "x"})
        {{Writer.text}}   -> "hello"  (Writer produced {"topic": "hello"})
        {{missing.field}} -> "{{missing.field}}"

    A string made of exactly one placeholder resolves to the value itself,
    keeping its type. Placeholders embedded in other text are rendered as
    text.
    """

    # The path may not contain braces, so "{{a.x}} {{b.y}}" is two matches
    PLACEHOLDER_PATTERN = re.compile(r"\{\{((?:(?!\{\{|\}\}).)+)\}\}")

    def __init__(self, nodes: Sequence[Node], context: Any):
        """
        Args:
            nodes: All nodes of the graph, used for label lookups
            context: ExecutionContext or ContextView supplying outputs and trigger
        """
        self._outputs: Mapping[str, Any] = context.node_outputs
        self._trigger = context.trigger
        self._labels: List[Tuple[str, str]] = [
            (normalize_identifier(node.label), node.id)
            for node in nodes
            if node.label
        ]

    def resolve(self, value: Any) -> Any:
        """Resolve placeholders in strings, recursing through lists and mappings."""
        if isinstance(value, str):
            return self._resolve_string(value)
        if isinstance(value, Mapping):
            return {key: self.resolve(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.resolve(item) for item in value]
        return value

    def _resolve_string(self, text: str) -> Any:
        match = self.PLACEHOLDER_PATTERN.fullmatch(text)
        if match:
            value = self._resolve_path(match.group(1))
            return match.group(0) if value is _MISSING else value

        def replace(match: "re.Match[str]") -> str:
            value = self._resolve_path(match.group(1))
            if value is _MISSING:
                return match.group(0)
            return _stringify(value)

        return self.PLACEHOLDER_PATTERN.sub(replace, text)

    def _resolve_path(self, path: str) -> Any:
        identifier, *parts = path.strip().split(".")

        value = self._find_source(identifier)
        if value is _MISSING:
            return _MISSING

        if parts and parts[0].lower() == "output":
            parts = parts[1:]

        last = len(parts) - 1
        for index, part in enumerate(parts):
            if value is None:
                return _MISSING
            value = self._step(value, part, index == last)
            if value is _MISSING:
                return _MISSING

        return value

    def _find_source(self, identifier: str) -> Any:
        if identifier in self._outputs:
            return self._outputs[identifier]

        wanted = normalize_identifier(identifier)
        if wanted:
            for label, node_id in self._labels:
                if label == wanted and node_id in self._outputs:
                    return self._outputs[node_id]

        if identifier == TRIGGER_IDENTIFIER:
            return self._trigger

        return _MISSING

    @staticmethod
    def _step(value: Any, key: str, is_last: bool) -> Any:
        if isinstance(value, Mapping):
            if key in value:
                return value[key]
            # Node outputs disagree on where their main text lives
            if is_last and key == "text":
                for fallback in TEXT_FALLBACK_KEYS:
                    if fallback in value:
                        return value[fallback]
            return _MISSING

        if isinstance(value, (list, tuple)) and key.isdigit():
            index = int(key)
            if index < len(value):
                return value[index]

        return _MISSING
