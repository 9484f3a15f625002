"""
GenerationTarget — one unit of scaffolding work.

A target is either the deployment bundle itself (the directory the
generator writes into) or one of the application folders it deploys.
``config`` holds the raw stored/answered values, ``derived`` the
values computed from them during Loading and Preparing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class GenerationTarget(BaseModel):
    """Raw + derived configuration of one deployment unit."""

    name: str
    folder: str = "."
    config: dict[str, Any] = Field(default_factory=dict)
    derived: dict[str, Any] = Field(default_factory=dict)
    existed: bool = False

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a value, derived fields first."""
        if key in self.derived:
            return self.derived[key]
        return self.config.get(key, default)

    @property
    def base_name(self) -> str:
        return str(self.config.get("baseName") or self.name)
