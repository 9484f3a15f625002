"""
Adapter base — the contract between generator tasks and external tools.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from kubegen.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An Action plus where and how to run it."""

    action: Action
    cwd: str = "."
    timeout: int = 60
    dry_run: bool = False

    @property
    def command(self) -> str:
        return str(self.action.params.get("command", ""))


class Adapter(ABC):
    """Runs Actions and reports the outcome as a Receipt.

    ``execute`` must not raise: failures, timeouts and missing
    binaries all come back as a failed Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used in ``Action.adapter``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool can run at all. Fast, never raises."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
