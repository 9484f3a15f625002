"""
Action and Receipt models — the external process contract.

Generator tasks never spawn processes themselves. They describe the
command as an Action and hand it to the adapter registry, which
returns a Receipt. Adapters report failure in the Receipt; deciding
whether a failed Receipt is fatal is the task's job.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A named external command requested by a task."""

    id: str                         # e.g. "check:kubectl"
    adapter: str = "shell"
    name: str = ""
    params: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def command(cls, action_id: str, command: str, **params: Any) -> Action:
        """Build a shell action for ``command``."""
        return cls(id=action_id, adapter="shell", name=action_id, params={"command": command, **params})


class Receipt(BaseModel):
    """Outcome of one Action."""

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    return_code: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)
