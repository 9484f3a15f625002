"""
Mock adapter — stands in for the shell in tests.

Succeeds by default. Responses can be set per action ID, and every
received context is kept in ``call_log``.
"""

from __future__ import annotations

from kubegen.adapters.base import Adapter, ExecutionContext
from kubegen.core.models.action import Receipt


class MockAdapter(Adapter):
    """Configurable test double."""

    def __init__(
        self,
        adapter_name: str = "shell",
        available: bool = True,
        default_output: str = "[mock] executed",
        fail_all: bool = False,
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._fail_all = fail_all
        self._responses: dict[str, Receipt] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Commands received, in order."""
        return [c.command for c in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._responses[action_id] = receipt

    def set_success(self, action_id: str, output: str) -> None:
        self._responses[action_id] = Receipt.success(
            adapter=self._name, action_id=action_id, output=output, return_code=0,
        )

    def set_failure(self, action_id: str, error: str = "Mock failure", return_code: int = 1) -> None:
        self._responses[action_id] = Receipt.failure(
            adapter=self._name, action_id=action_id, error=error, return_code=return_code,
        )

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action_id = context.action.id

        if action_id in self._responses:
            return self._responses[action_id]
        if self._fail_all:
            return Receipt.failure(
                adapter=self._name, action_id=action_id, error="Mock failure", return_code=127,
            )
        return Receipt.success(
            adapter=self._name,
            action_id=action_id,
            output=self._default_output,
            return_code=0,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        self._call_log.clear()
        self._responses.clear()
