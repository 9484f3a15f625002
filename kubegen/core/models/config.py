"""
ConfigRecord — the persisted key/value state of one generation target.

Keys are identifiers shared by the generator and its blueprints.
Values must be primitives (str, int, float, bool, None) or lists and
mappings of primitives; anything else is rejected with ConfigInvalid.
"""

from __future__ import annotations

import copy
from typing import Any

from pydantic import BaseModel, Field, field_validator

from kubegen.core.errors import ConfigInvalid

_PRIMITIVES = (str, int, float, bool, type(None))


def check_primitive(value: Any, key: str) -> None:
    """Raise ConfigInvalid unless ``value`` is a (nested) primitive."""
    if isinstance(value, _PRIMITIVES):
        return
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            check_primitive(item, f"{key}[{i}]")
        return
    if isinstance(value, dict):
        for sub_key, item in value.items():
            if not isinstance(sub_key, str):
                raise ConfigInvalid(f"non-string key {sub_key!r}", key=key)
            check_primitive(item, f"{key}.{sub_key}")
        return
    raise ConfigInvalid(
        f"unsupported value type {type(value).__name__}", key=key,
    )


class ConfigRecord(BaseModel):
    """Raw stored configuration for one target."""

    target_id: str
    namespace: str
    values: dict[str, Any] = Field(default_factory=dict)

    @field_validator("values")
    @classmethod
    def _values_are_primitive(cls, values: dict[str, Any]) -> dict[str, Any]:
        for key, value in values.items():
            check_primitive(value, key)
        return values

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the values, safe to hand to derivation code."""
        return copy.deepcopy(self.values)
