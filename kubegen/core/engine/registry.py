"""
Task group registry — the ordered list of (phase, TaskGroup) pairs.

Generators build the registry once, at construction, by registering
their base task groups. The runner executes entries in registration
order; the registry never reorders them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from kubegen.core.engine.phases import Phase, TaskGroup

logger = logging.getLogger(__name__)


class TaskGroupRegistry:
    """Ordered registry of base task groups, one per phase."""

    def __init__(self) -> None:
        self._groups: dict[Phase, TaskGroup] = {}

    def register(
        self,
        phase: Phase | str,
        tasks: TaskGroup | Mapping[str, Callable[..., Any]],
    ) -> TaskGroup:
        """Append a phase.

        Raises:
            ValueError: unknown phase name, or the phase is already registered.
        """
        phase = Phase.parse(phase)
        if phase in self._groups:
            raise ValueError(f"Phase '{phase.value}' is already registered")

        group = tasks if isinstance(tasks, TaskGroup) else TaskGroup.of(phase, tasks)
        if group.phase is not phase:
            raise ValueError(
                f"Task group for '{group.phase.value}' registered under '{phase.value}'"
            )

        self._groups[phase] = group
        logger.debug("Registered phase %s (%d tasks)", phase.value, len(group))
        return group

    def get(self, phase: Phase | str) -> TaskGroup | None:
        return self._groups.get(Phase.parse(phase))

    @property
    def phases(self) -> list[Phase]:
        return list(self._groups)

    def __iter__(self) -> Iterator[TaskGroup]:
        return iter(list(self._groups.values()))

    def __len__(self) -> int:
        return len(self._groups)
