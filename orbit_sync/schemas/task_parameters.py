"""
orbit_sync/schemas/task_parameters.py

Typed extraction of Camunda task variables for one sync run.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

# Variable names still used by older BPMN models.
LEGACY_VARIABLE_ALIASES: dict[str, str] = {
    "source_token": "Orbit_token",
    "dest_token": "airtable_token",
    "source_query": "Orbit_query",
}

# Keys that also accept an integer variable, rendered in decimal.
_NUMERIC_KEYS: frozenset[str] = frozenset({"items"})


def unwrap_variable(raw: Any) -> Any:
    """
    Return the plain value of a Camunda variable (``{"type": ..., "value": ...}``).
    """

    if isinstance(raw, Mapping) and "value" in raw:
        return raw.get("value")
    return raw


class TaskParameters(BaseModel):
    """
    Parameters of one sync invocation.

    Every field is a string. Missing keys, nulls and values of an
    unexpected type become an empty string, so extraction never fails.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    direction: str = ""
    items: str = ""
    sort_string: str = ""
    workplace_slug: str = ""
    source_token: str = ""
    base_id: str = ""
    table_name: str = ""
    dest_token: str = ""
    source_query: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_string(cls, value: Any, info: ValidationInfo) -> str:
        if isinstance(value, str):
            return value.strip()
        if info.field_name in _NUMERIC_KEYS and isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return ""

    @classmethod
    def from_variables(cls, variables: Mapping[str, Any] | None) -> "TaskParameters":
        """
        Build parameters from a Camunda variable mapping.

        Accepts either raw Camunda variables or already-unwrapped values.
        """

        if not isinstance(variables, Mapping):
            return cls()

        values: dict[str, Any] = {}
        for name in cls.model_fields:
            if name in variables:
                values[name] = unwrap_variable(variables[name])
                continue
            legacy_name = LEGACY_VARIABLE_ALIASES.get(name)
            if legacy_name and legacy_name in variables:
                values[name] = unwrap_variable(variables[legacy_name])
        return cls(**values)

    def redacted(self) -> dict[str, str]:
        """
        Return a loggable view with bearer tokens masked.
        """

        payload = self.model_dump()
        for key in ("source_token", "dest_token"):
            if payload[key]:
                payload[key] = "***"
        return payload
