"""
Phases and task groups.

The lifecycle is a fixed list of named phases. Each phase owns one
TaskGroup: an ordered mapping of task name to task function. Task
names are unique within a group because the mapping is keyed by name.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from kubegen.core.models.context import GenerationContext
from kubegen.core.models.target import GenerationTarget

# A run-level task mutates the context; a per-target task also gets the target.
Task = Callable[[GenerationContext], Any]
TargetTask = Callable[[GenerationContext, GenerationTarget], Any]

BASE_SOURCE = "base"


class Phase(str, Enum):
    """Known phase names, in canonical lifecycle order."""

    INITIALIZING = "initializing"
    PROMPTING = "prompting"
    CONFIGURING = "configuring"
    LOADING = "loading"
    PREPARING = "preparing"
    PREPARING_EACH_TARGET = "preparing-each-target"
    WRITING = "writing"
    END = "end"

    @classmethod
    def parse(cls, name: str | Phase) -> Phase:
        if isinstance(name, Phase):
            return name
        try:
            return cls(name)
        except ValueError:
            known = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown phase '{name}' (known: {known})") from None


# Phases whose tasks run once per application target instead of once per run.
PER_TARGET_PHASES = frozenset({Phase.PREPARING_EACH_TARGET})


@dataclass
class TaskGroup:
    """Ordered tasks for one phase, tagged with who supplied them."""

    phase: Phase
    tasks: dict[str, Callable[..., Any]] = field(default_factory=dict)
    source: str = BASE_SOURCE

    @classmethod
    def of(
        cls,
        phase: Phase | str,
        tasks: Mapping[str, Callable[..., Any]],
        source: str = BASE_SOURCE,
    ) -> TaskGroup:
        return cls(phase=Phase.parse(phase), tasks=dict(tasks), source=source)

    @property
    def per_target(self) -> bool:
        return self.phase in PER_TARGET_PHASES

    @property
    def names(self) -> list[str]:
        return list(self.tasks)

    def __iter__(self) -> Iterator[tuple[str, Callable[..., Any]]]:
        return iter(self.tasks.items())

    def __len__(self) -> int:
        return len(self.tasks)
