"""
Prompt tasks of the Knative generator.

Every task asks one batch of questions through ``ctx.prompter`` and
merges the answers into the deployment target. Nothing is written to
the config store here: ``save_config`` persists the collected answers
in one write during Configuring, so a run aborted while prompting
leaves no record behind. On regeneration (a deployment record already
existed) the stored answers are reused and nothing is asked.
"""

from __future__ import annotations

import base64
import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from kubegen.core.errors import ConfigInvalid, InternalFault
from kubegen.core.models.config import ConfigRecord
from kubegen.core.models.context import GenerationContext
from kubegen.core.persistence.config_store import APP_NAMESPACE, ConfigStore
from kubegen.core.services.prompts import Question

logger = logging.getLogger(__name__)

_DNS_LABEL_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_DOMAIN_RE = re.compile(r"^([a-z0-9]([-a-z0-9]*[a-z0-9])?\.)+[a-z]{2,}$")

# Databases whose charts/manifests support more than one peer
CLUSTERABLE_DATABASES = ("mongodb", "couchbase")


def _ask(ctx: GenerationContext, name: str, questions: Sequence[Question]) -> dict[str, Any]:
    if ctx.prompter is None:
        raise InternalFault("no prompter configured")
    answers = ctx.prompter.ask(name, questions)
    ctx.deployment.config.update(answers)
    return answers


def _stored(ctx: GenerationContext, key: str, default: Any = None) -> Any:
    return ctx.deployment.config.get(key, default)


def app_target_id(ctx: GenerationContext, folder: str) -> str:
    """Config store id of an application folder."""
    return str(Path(_stored(ctx, "directoryPath", "../")) / folder)


def discover_apps(store: ConfigStore, directory_path: str) -> list[str]:
    """Folders below ``directory_path`` holding an application record."""
    root = store.root / directory_path
    if not root.is_dir():
        return []
    return [
        child.name
        for child in sorted(root.iterdir())
        if child.is_dir() and store.exists(str(Path(directory_path) / child.name), APP_NAMESPACE)
    ]


def load_app_records(ctx: GenerationContext, folders: Sequence[str]) -> list[ConfigRecord]:
    records = []
    for folder in folders:
        record, existed = ctx.store.load(app_target_id(ctx, folder), APP_NAMESPACE)
        if existed:
            records.append(record)
    return records


# ── Tasks ───────────────────────────────────────────────────────────


def ask_for_path(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return

    def validate(value: str) -> str | None:
        if not (ctx.options.destination / value).is_dir():
            return f"{value} is not a directory"
        return None

    _ask(ctx, "askForPath", [Question(
        key="directoryPath",
        message="Enter the root directory where your applications are located",
        default=_stored(ctx, "directoryPath", "../"),
        validate=validate,
    )])


def ask_for_apps(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return

    directory_path = _stored(ctx, "directoryPath", "../")
    available = discover_apps(ctx.store, directory_path)
    if not available:
        raise ConfigInvalid(f"No application found in {directory_path}", key="appsFolders")

    _ask(ctx, "askForApps", [Question(
        key="appsFolders",
        message="Which applications do you want to include in your configuration?",
        kind="checkbox",
        choices=tuple(available),
        default=_stored(ctx, "appsFolders") or available,
        validate=lambda value: None if value else "Please choose at least one application",
    )])


def ask_for_generator_type(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return
    _ask(ctx, "askForGeneratorType", [Question(
        key="generatorType",
        message="Which *type* of generator should we use?",
        kind="list",
        choices=("k8s", "helm"),
        default=_stored(ctx, "generatorType", "k8s"),
    )])


def ask_for_monitoring(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return
    _ask(ctx, "askForMonitoring", [Question(
        key="monitoring",
        message="Do you want to export your metrics for monitoring?",
        kind="list",
        choices=("no", "prometheus"),
        default=_stored(ctx, "monitoring", "no"),
    )])


def ask_for_clusters_mode(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return
    folders = _stored(ctx, "appsFolders") or []
    clusterable = tuple(
        Path(r.target_id).name
        for r in load_app_records(ctx, folders)
        if r.get("prodDatabaseType") in CLUSTERABLE_DATABASES
    )
    if not clusterable:
        ctx.deployment.config["clusteredDbApps"] = []
        return

    _ask(ctx, "askForClustersMode", [Question(
        key="clusteredDbApps",
        message="Which applications do you want to use with clustered databases?",
        kind="checkbox",
        choices=clusterable,
        default=_stored(ctx, "clusteredDbApps", []),
    )])


def ask_for_service_discovery(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return
    folders = _stored(ctx, "appsFolders") or []
    types = {r.get("serviceDiscoveryType", "no") or "no" for r in load_app_records(ctx, folders)}
    if len(types) == 1:
        value = types.pop()
        ctx.deployment.config["serviceDiscoveryType"] = value
        logger.info("Service discovery: %s (shared by all applications)", value)
        return

    _ask(ctx, "askForServiceDiscovery", [Question(
        key="serviceDiscoveryType",
        message="Which Service Discovery registry and Configuration server would you like to use?",
        kind="list",
        choices=("eureka", "consul", "no"),
        default=_stored(ctx, "serviceDiscoveryType", "eureka"),
    )])


def ask_for_admin_password(ctx: GenerationContext) -> None:
    if ctx.regenerate or _stored(ctx, "serviceDiscoveryType") != "eureka":
        return
    answers = _ask(ctx, "askForAdminPassword", [Question(
        key="adminPassword",
        message="Enter the admin password used to secure the JHipster Registry",
        kind="password",
        default="admin",
        validate=lambda value: None if value else "Password can't be empty",
    )])
    encoded = base64.b64encode(str(answers["adminPassword"]).encode()).decode()
    ctx.deployment.config["adminPasswordBase64"] = encoded


def ask_for_kubernetes_namespace(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return
    _ask(ctx, "askForKubernetesNamespace", [Question(
        key="kubernetesNamespace",
        message="What should we use for the Kubernetes namespace?",
        default=_stored(ctx, "kubernetesNamespace", "default"),
        validate=lambda value: None if _DNS_LABEL_RE.match(str(value)) else (
            f"'{value}' is not a valid namespace (lowercase letters, digits and '-')"
        ),
    )])


def ask_for_docker_repository_name(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return
    _ask(ctx, "askForDockerRepositoryName", [Question(
        key="dockerRepositoryName",
        message="What should we use for the base Docker repository name?",
        default=_stored(ctx, "dockerRepositoryName", ""),
    )])


def ask_for_docker_push_command(ctx: GenerationContext) -> None:
    if ctx.regenerate:
        return
    _ask(ctx, "askForDockerPushCommand", [Question(
        key="dockerPushCommand",
        message="What command should we use for push Docker image to repository?",
        default=_stored(ctx, "dockerPushCommand", "docker push"),
        validate=lambda value: None if str(value).strip() else "Push command can't be empty",
    )])


def ask_for_ingress_domain(ctx: GenerationContext) -> None:
    if ctx.regenerate or not _stored(ctx, "istio", True):
        return
    _ask(ctx, "askForIngressDomain", [Question(
        key="ingressDomain",
        message="What is the root FQDN for your ingress services (leave empty for the cluster default)?",
        default=_stored(ctx, "ingressDomain", ""),
        validate=lambda value: None if not value or _DOMAIN_RE.match(str(value)) else (
            f"'{value}' is not a valid domain name"
        ),
    )])
