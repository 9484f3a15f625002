"""
GenerationContext — the single mutable state of one generator run.

Every task receives the context as its only argument (per-target
tasks also get the target). Nothing else is shared between tasks:
no module globals, no attributes stashed on the generator.

GlobalFlags and ScriptSelection are the run-wide values derived from
the targets; ScriptSelection is fixed once during Preparing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from kubegen.core.errors import InternalFault
from kubegen.core.models.target import GenerationTarget
from kubegen.core.models.template import GeneratedFile

if TYPE_CHECKING:
    from kubegen.adapters.registry import AdapterRegistry
    from kubegen.core.config.loader import GeneratorOptions
    from kubegen.core.persistence.config_store import ConfigStore
    from kubegen.core.services.prompts import Prompter


PlatformType = Literal["k8s", "helm"]


class GlobalFlags(BaseModel):
    """Run-wide inputs and capability flags consumed by derivation and writing."""

    generator_type: PlatformType = "k8s"
    docker_repository_name: str = ""
    istio: bool = True
    use_kafka: bool = False
    use_keycloak: bool = False
    requires_admin_password: bool = False
    monitoring: str = "no"
    clustered_db_apps: list[str] = Field(default_factory=list)


class ScriptSelection(BaseModel):
    """Which deploy scripts a platform type produces.

    ``k8s`` yields a single kubectl apply script; ``helm`` yields the
    apply/upgrade pair. The two sets never overlap.
    """

    model_config = ConfigDict(frozen=True)

    generator_type: PlatformType
    scripts: tuple[str, ...]


@dataclass
class GenerationContext:
    """State owned by a single run."""

    options: GeneratorOptions
    store: ConfigStore
    adapters: AdapterRegistry
    prompter: Prompter | None = None

    deployment: GenerationTarget = field(
        default_factory=lambda: GenerationTarget(name="deployment"),
    )
    apps: list[GenerationTarget] = field(default_factory=list)
    flags: GlobalFlags = field(default_factory=GlobalFlags)
    constants: dict[str, Any] = field(default_factory=dict)

    regenerate: bool = False
    has_warning: bool = False
    warning_message: str = ""
    warnings: list[str] = field(default_factory=list)
    summary: list[str] = field(default_factory=list)
    generated: list[GeneratedFile] = field(default_factory=list)
    executable_scripts: list[str] = field(default_factory=list)
    # Names of mandatory tool checks that already passed in this run
    mandatory_checks_passed: set[str] = field(default_factory=set)

    _script_selection: ScriptSelection | None = field(default=None, repr=False)

    @property
    def targets(self) -> list[GenerationTarget]:
        """Deployment target followed by the application targets."""
        return [self.deployment, *self.apps]

    def note_existed(self, target: GenerationTarget) -> None:
        """Fold a target's ``existed`` flag into the sticky regenerate flag."""
        self.regenerate = self.regenerate or target.existed

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def script_selection(self) -> ScriptSelection | None:
        return self._script_selection

    def set_script_selection(self, selection: ScriptSelection) -> None:
        """Record the platform script selection; it may only be set once."""
        if self._script_selection is not None and self._script_selection != selection:
            raise InternalFault(
                f"script selection already fixed to {self._script_selection.generator_type}, "
                f"refusing {selection.generator_type}"
            )
        self._script_selection = selection
