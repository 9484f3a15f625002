"""
Generator runner — executes the registered phases in order.

Flow:
    for each registered phase (registration order):
        resolve effective task group (base or one blueprint)
        run its tasks in declaration order, one at a time
        stop everything on the first fatal condition

Non-fatal outcomes (checks skipped under ``skip_checks``, advisory
check failures, failed post-generation commands) are recorded in the
report and the next task runs. No rollback is attempted after a fatal
condition: files already written and config already persisted stay as
they are.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from kubegen.core.engine.blueprints import BlueprintChain
from kubegen.core.engine.phases import TaskGroup
from kubegen.core.engine.registry import TaskGroupRegistry
from kubegen.core.errors import (
    CheckFailed,
    ConfigInvalid,
    ExternalProcessFailed,
    GenerationAborted,
    InternalFault,
)
from kubegen.core.models.context import GenerationContext
from kubegen.core.models.target import GenerationTarget

logger = logging.getLogger(__name__)

TaskStatus = Literal["ok", "skipped", "warning", "failed"]


@dataclass
class TaskResult:
    """Outcome of one task invocation."""

    phase: str
    task: str
    source: str
    status: TaskStatus = "ok"
    target: str | None = None
    error_type: str = ""
    message: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "task": self.task,
            "source": self.source,
            "status": self.status,
            "target": self.target,
            "error_type": self.error_type,
            "message": self.message,
            "duration_ms": self.duration_ms,
        }


@dataclass
class RunReport:
    """Result of a full run."""

    results: list[TaskResult] = field(default_factory=list)
    phases_completed: list[str] = field(default_factory=list)
    failure: TaskResult | None = None
    warnings: list[str] = field(default_factory=list)
    has_warning: bool = False

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def status(self) -> str:
        """``ok``, ``warning`` (success with caveats) or ``failed``."""
        if self.failure is not None:
            return "failed"
        if self.has_warning or self.warnings or any(
            r.status in ("skipped", "warning") for r in self.results
        ):
            return "warning"
        return "ok"

    def executed(self, phase: str | None = None) -> list[str]:
        """Names of tasks that ran, optionally limited to one phase."""
        return [r.task for r in self.results if phase is None or r.phase == phase]

    def raise_for_status(self) -> None:
        if self.failure is not None:
            raise GenerationAborted(self.failure.phase, self.failure.task, self.failure.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "phases_completed": self.phases_completed,
            "failure": self.failure.to_dict() if self.failure else None,
            "warnings": self.warnings,
            "results": [r.to_dict() for r in self.results],
        }


class GeneratorRunner:
    """Runs a registry's phases against one context."""

    def __init__(
        self,
        registry: TaskGroupRegistry,
        blueprints: BlueprintChain | None = None,
    ):
        self.registry = registry
        self.blueprints = blueprints or BlueprintChain()

    def run(self, ctx: GenerationContext) -> RunReport:
        report = RunReport()

        for base in self.registry:
            group = self.blueprints.resolve_task_group(base.phase, base)
            phase = group.phase.value
            logger.info("── %s (%s, %d tasks)", phase, group.source, len(group))

            for name, task, target in self._invocations(ctx, group):
                result = self._run_task(ctx, group, name, task, target)
                report.results.append(result)
                if result.failed:
                    report.failure = result
                    logger.error(
                        "Run aborted in phase %s, task %s: %s", phase, name, result.message,
                    )
                    return self._finish(ctx, report)

            report.phases_completed.append(phase)

        return self._finish(ctx, report)

    # ── Internals ───────────────────────────────────────────────────

    @staticmethod
    def _invocations(
        ctx: GenerationContext, group: TaskGroup,
    ) -> list[tuple[str, Callable[..., Any], GenerationTarget | None]]:
        if not group.per_target:
            return [(name, task, None) for name, task in group]
        return [(name, task, target) for target in ctx.apps for name, task in group]

    @staticmethod
    def _finish(ctx: GenerationContext, report: RunReport) -> RunReport:
        report.warnings = list(ctx.warnings)
        report.has_warning = ctx.has_warning
        return report

    def _run_task(
        self,
        ctx: GenerationContext,
        group: TaskGroup,
        name: str,
        task: Callable[..., Any],
        target: GenerationTarget | None,
    ) -> TaskResult:
        result = TaskResult(
            phase=group.phase.value,
            task=name,
            source=group.source,
            target=target.name if target else None,
        )
        start = time.monotonic()

        try:
            if target is None:
                task(ctx)
            else:
                task(ctx, target)
        except CheckFailed as e:
            result.error_type = "CheckFailed"
            result.message = str(e)
            if ctx.options.skip_checks:
                result.status = "skipped"
                logger.warning("Check skipped (%s): %s", name, e)
            elif not e.mandatory:
                result.status = "warning"
                ctx.warn(result.message)
                logger.warning("%s", result.message)
            else:
                result.status = "failed"
        except ConfigInvalid as e:
            result.status = "failed"
            result.error_type = "ConfigInvalid"
            result.message = str(e)
        except ExternalProcessFailed as e:
            result.status = "warning"
            result.error_type = "ExternalProcessFailed"
            result.message = f"{e}. {e.remediation}".strip() if e.remediation else str(e)
            ctx.warn(result.message)
            logger.warning("%s", result.message)
        except InternalFault as e:
            result.status = "failed"
            result.error_type = "InternalFault"
            result.message = str(e)
        except Exception as e:
            logger.debug("Unexpected error in task %s", name, exc_info=True)
            result.status = "failed"
            result.error_type = "InternalFault"
            result.message = f"{type(e).__name__}: {e}"

        result.duration_ms = int((time.monotonic() - start) * 1000)
        logger.debug("%s:%s → %s", result.phase, name, result.status)
        return result
