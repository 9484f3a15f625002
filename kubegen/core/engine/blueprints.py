"""
Blueprint delegation — per-phase substitution of task groups.

A blueprint is an extension generator. For any phase it may return a
full replacement task group; otherwise it returns None. Resolution
walks the blueprints in priority (declaration) order and the first
one that answers supplies the phase's tasks. Base and blueprint tasks
are never merged: a blueprint that wants base behaviour must include
the base tasks itself (it receives the base group for that purpose).

With no blueprints registered every phase resolves to its base group.

Blueprints installed as packages are discovered through the
``kubegen.blueprints`` entry-point group.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from importlib.metadata import entry_points
from typing import Any

from kubegen.core.engine.phases import Phase, TaskGroup
from kubegen.core.errors import ConfigInvalid

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "kubegen.blueprints"

Override = Mapping[str, Callable[..., Any]] | TaskGroup


class Blueprint:
    """Base class for blueprints. Overrides nothing by default."""

    name: str = "blueprint"

    def task_group(self, phase: Phase, base: TaskGroup) -> Override | None:
        """Return replacement tasks for ``phase``, or None to pass."""
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class StaticBlueprint(Blueprint):
    """Blueprint declared from a ``{phase: tasks}`` mapping.

    A value may also be a callable taking the base TaskGroup and
    returning the tasks, for blueprints that wrap base behaviour.
    """

    def __init__(
        self,
        name: str,
        overrides: Mapping[Phase | str, Override | Callable[[TaskGroup], Override]],
    ):
        self.name = name
        self._overrides = {Phase.parse(k): v for k, v in overrides.items()}

    def task_group(self, phase: Phase, base: TaskGroup) -> Override | None:
        override = self._overrides.get(phase)
        if override is None:
            return None
        if callable(override) and not isinstance(override, (Mapping, TaskGroup)):
            return override(base)
        return override


class BlueprintChain:
    """Blueprints in priority order."""

    def __init__(self, blueprints: Iterable[Blueprint] = ()):
        self._blueprints: list[Blueprint] = []
        for blueprint in blueprints:
            self.add(blueprint)

    def add(self, blueprint: Blueprint) -> None:
        if any(b.name == blueprint.name for b in self._blueprints):
            raise ConfigInvalid(f"Blueprint '{blueprint.name}' declared twice", key="blueprints")
        self._blueprints.append(blueprint)

    @property
    def names(self) -> list[str]:
        return [b.name for b in self._blueprints]

    def __len__(self) -> int:
        return len(self._blueprints)

    def resolve_task_group(self, phase: Phase | str, base: TaskGroup) -> TaskGroup:
        """Effective task group for ``phase``: first blueprint override, else base."""
        phase = Phase.parse(phase)
        for blueprint in self._blueprints:
            override = blueprint.task_group(phase, base)
            if override is None:
                continue
            if isinstance(override, TaskGroup):
                if override.phase is not phase:
                    raise ConfigInvalid(
                        f"Blueprint '{blueprint.name}' returned tasks for "
                        f"'{override.phase.value}' when asked for '{phase.value}'",
                        key="blueprints",
                    )
                group = TaskGroup(phase=phase, tasks=dict(override.tasks), source=blueprint.name)
            else:
                group = TaskGroup.of(phase, override, source=blueprint.name)
            logger.debug(
                "Phase %s delegated to blueprint %s (%d tasks)",
                phase.value, blueprint.name, len(group),
            )
            return group
        return base


def load_blueprints(names: Iterable[str]) -> list[Blueprint]:
    """Instantiate installed blueprints by entry-point name, keeping order.

    Raises:
        ConfigInvalid: a name is not installed or does not load a Blueprint.
    """
    names = list(names)
    if not names:
        return []

    available = {ep.name: ep for ep in entry_points(group=ENTRY_POINT_GROUP)}
    loaded: list[Blueprint] = []
    for name in names:
        ep = available.get(name)
        if ep is None:
            raise ConfigInvalid(
                f"Blueprint '{name}' is not installed (known: {', '.join(sorted(available)) or 'none'})",
                key="blueprints",
            )
        obj = ep.load()
        blueprint = obj if isinstance(obj, Blueprint) else obj()
        if not isinstance(blueprint, Blueprint):
            raise ConfigInvalid(f"Entry point '{name}' did not produce a Blueprint", key="blueprints")
        logger.info("Loaded blueprint %s from %s", blueprint.name, ep.value)
        loaded.append(blueprint)
    return loaded
