"""
External tool checks — docker, kubectl, helm, Knative serving.

A check runs one command through the adapter registry and, when a
minimum version is declared, parses the first ``X.Y[.Z]`` in the
output. What happens on a problem depends on the check's severity:

    mandatory  → raise CheckFailed (the runner aborts unless skip_checks)
    advisory   → context warning, generation continues

With ``skip_checks`` no command is run at all.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace

from kubegen.core.errors import CheckFailed
from kubegen.core.models.action import Action, Receipt
from kubegen.core.models.context import GenerationContext

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


@dataclass(frozen=True)
class ToolCheck:
    """One external dependency probe."""

    name: str
    command: str
    message: str
    mandatory: bool = False
    min_version: tuple[int, ...] | None = None


DOCKER = ToolCheck(
    name="docker",
    command="docker -v",
    min_version=(1, 10),
    message=(
        "Docker 1.10.0 or later is not installed on your computer.\n"
        "Read https://docs.docker.com/engine/installation/"
    ),
)

KUBECTL = ToolCheck(
    name="kubectl",
    command="kubectl version --client",
    mandatory=True,
    min_version=(1, 2),
    message=(
        "kubectl 1.2 or later is not installed on your computer.\n"
        "Make sure you have Kubernetes installed. Read https://kubernetes.io/docs/setup/"
    ),
)

HELM = ToolCheck(
    name="helm",
    command="helm version",
    min_version=(2, 12),
    message=(
        "Helm 2.12.x or later is not installed on your computer.\n"
        "Make sure you have Helm installed. Read https://github.com/helm/helm/"
    ),
)

KNATIVE = ToolCheck(
    name="knative",
    command="kubectl get deploy -n knative-serving --label-columns=serving.knative.dev/release",
    min_version=(0, 8),
    message=(
        "Knative 0.8.* or later is not installed on your computer.\n"
        "Make sure you have Knative and Istio installed. Read https://knative.dev/docs/install/"
    ),
)


def parse_version(text: str) -> tuple[int, ...] | None:
    """First dotted version number in ``text``, e.g. ``(1, 28, 2)``."""
    match = _VERSION_RE.search(text)
    if match is None:
        return None
    return tuple(int(part) for part in match.groups() if part is not None)


def _problem(check: ToolCheck, receipt: Receipt) -> str | None:
    if receipt.failed:
        return check.message
    if check.min_version is None:
        return None
    found = parse_version(receipt.output)
    if found is None or found < check.min_version:
        return check.message
    return None


def run_check(ctx: GenerationContext, check: ToolCheck) -> bool:
    """Run ``check``; return True when it passed or was skipped.

    Raises:
        CheckFailed: a mandatory check did not pass.
    """
    if ctx.options.skip_checks:
        logger.debug("Skipping %s check", check.name)
        return True

    receipt = ctx.adapters.run(
        Action.command(f"check:{check.name}", check.command),
        cwd=ctx.options.destination,
    )
    problem = _problem(check, receipt)
    if problem is None:
        logger.info("✓ %s", check.name)
        if check.mandatory:
            ctx.mandatory_checks_passed.add(check.name)
        return True

    if check.mandatory:
        raise CheckFailed(check.name, problem, mandatory=True)

    logger.warning("%s", problem)
    ctx.warn(problem)
    return False


def helm_check_for(generator_type: str) -> ToolCheck:
    """Helm is only a hard requirement when generating Helm charts."""
    return replace(HELM, mandatory=generator_type == "helm")
