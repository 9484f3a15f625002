"""
Kubernetes Knative generator.

Builds Knative manifests (plain kubectl or Helm charts) for a set of
application folders. The generator only declares task groups; the
lifecycle engine runs them in phase order, with any blueprint able
to replace a whole phase.

    gen = KnativeGenerator(GeneratorOptions(destination=Path("deploy")))
    report = gen.run()
"""

from __future__ import annotations

import base64
import logging
import secrets
from collections.abc import Callable, Iterable
from typing import Any

from kubegen.adapters.registry import AdapterRegistry, default_registry
from kubegen.core.config.loader import GeneratorOptions
from kubegen.core.engine.blueprints import Blueprint, BlueprintChain, load_blueprints
from kubegen.core.engine.phases import Phase
from kubegen.core.engine.registry import TaskGroupRegistry
from kubegen.core.engine.runner import GeneratorRunner, RunReport
from kubegen.core.errors import ConfigInvalid
from kubegen.core.models.config import ConfigRecord
from kubegen.core.models.context import GenerationContext
from kubegen.core.models.target import GenerationTarget
from kubegen.core.persistence.config_store import APP_NAMESPACE, ConfigStore
from kubegen.core.services import post_actions
from kubegen.core.services.checks import DOCKER, HELM, KNATIVE, KUBECTL, helm_check_for, run_check
from kubegen.core.services.derive import (
    HELM_CONSTANTS,
    KAFKA,
    KUBERNETES_CONSTANTS,
    db_peer_count,
    derive,
    derive_deployment,
    deployment_flags,
    platform_constants,
    select_scripts,
    target_image_name,
    validate_app_record,
    with_app_capabilities,
)
from kubegen.core.services.generators import knative_prompts as prompts
from kubegen.core.services.generators.knative_files import DOCKER_CONTAINERS, generate_files
from kubegen.core.services.prompts import AnswersPrompter, Prompter
from kubegen.core.services.writer import write_files as write_to_disk

logger = logging.getLogger(__name__)

DEPLOYMENT_TARGET = "."

TaskMap = dict[str, Callable[..., Any]]


# ── Initializing ────────────────────────────────────────────────────


def say_hello(ctx: GenerationContext) -> None:
    logger.info("☸ Welcome to the Kubernetes Knative Generator ☸")
    logger.info("Files will be generated in the folder: %s", ctx.options.destination.resolve())


def existing_deployment(ctx: GenerationContext) -> None:
    ctx.deployment.existed = ctx.store.exists(DEPLOYMENT_TARGET)
    ctx.note_existed(ctx.deployment)
    if ctx.regenerate:
        logger.info("Existing deployment configuration found, regenerating")


def load_docker_dependencies(ctx: GenerationContext) -> None:
    ctx.constants["dockerContainers"] = dict(DOCKER_CONTAINERS)


def check_docker(ctx: GenerationContext) -> None:
    run_check(ctx, DOCKER)


def check_kubernetes(ctx: GenerationContext) -> None:
    run_check(ctx, KUBECTL)


def check_helm(ctx: GenerationContext) -> None:
    record, _ = ctx.store.load(DEPLOYMENT_TARGET)
    generator_type = ctx.options.answers.get("generatorType") or record.get("generatorType", "k8s")
    run_check(ctx, helm_check_for(generator_type))


def check_knative(ctx: GenerationContext) -> None:
    run_check(ctx, KNATIVE)


def load_config(ctx: GenerationContext) -> None:
    record, existed = ctx.store.load(DEPLOYMENT_TARGET)
    ctx.deployment.config.update(record.snapshot())
    ctx.deployment.existed = ctx.deployment.existed or existed
    ctx.note_existed(ctx.deployment)


def local_init(ctx: GenerationContext) -> None:
    ctx.deployment.config["deploymentApplicationType"] = "microservice"
    ctx.deployment.config["istio"] = True


def setup_kubernetes_constants(ctx: GenerationContext) -> None:
    ctx.constants.update(KUBERNETES_CONSTANTS)


def setup_helm_constants(ctx: GenerationContext) -> None:
    ctx.constants.update(HELM_CONSTANTS)


# ── Configuring ─────────────────────────────────────────────────────


def save_config(ctx: GenerationContext) -> None:
    """Persist the deployment answers collected while prompting."""
    ctx.store.write(DEPLOYMENT_TARGET, ctx.deployment.config)


def generate_jwt_secret(ctx: GenerationContext) -> None:
    """Create the shared JWT secret once; later runs keep the stored one."""
    if ctx.deployment.config.get("jwtSecretKey"):
        return
    secret = base64.b64encode(secrets.token_bytes(64)).decode()
    ctx.deployment.config["jwtSecretKey"] = secret
    ctx.store.write(DEPLOYMENT_TARGET, {"jwtSecretKey": secret})


# ── Loading ─────────────────────────────────────────────────────────


def check_helm_for_platform(ctx: GenerationContext) -> None:
    """Require helm once the chosen generator type is known.

    ``check_helm`` runs before prompting and can only see pre-supplied
    or stored answers, so a type picked interactively is checked here.
    """
    if ctx.deployment.config.get("generatorType") != "helm":
        return
    if HELM.name in ctx.mandatory_checks_passed:
        return
    run_check(ctx, helm_check_for("helm"))


def load_from_rc(ctx: GenerationContext) -> None:
    """Load every selected application folder's record as a target."""
    folders = ctx.deployment.config.get("appsFolders") or []
    if not folders:
        raise ConfigInvalid("no applications selected", key="appsFolders")

    apps: list[GenerationTarget] = []
    for folder in folders:
        target_id = prompts.app_target_id(ctx, folder)
        record, existed = ctx.store.load(target_id, APP_NAMESPACE)
        if not existed:
            raise ConfigInvalid(f"no application configuration found in {target_id}", key="appsFolders")
        validate_app_record(record)
        target = GenerationTarget(
            name=str(record.get("baseName")), folder=folder, config=record.snapshot(), existed=existed,
        )
        ctx.note_existed(target)
        apps.append(target)
    ctx.apps = apps


def load_shared_config(ctx: GenerationContext) -> None:
    """Derived fields for every app and the deployment, then global flags."""
    flags = deployment_flags(ctx.deployment.config)
    for app in ctx.apps:
        record = ConfigRecord(target_id=app.folder, namespace=APP_NAMESPACE, values=app.config)
        app.derived.update(derive(record, flags))

    deployment_record = ConfigRecord(
        target_id=DEPLOYMENT_TARGET, namespace=ctx.store.namespace, values=ctx.deployment.config,
    )
    ctx.deployment.derived.update(derive_deployment(deployment_record))
    ctx.flags = with_app_capabilities(flags, [app.derived for app in ctx.apps])
    ctx.constants.update(platform_constants(ctx.flags.generator_type))


# ── Preparing ───────────────────────────────────────────────────────


def set_post_prompt_props(ctx: GenerationContext) -> None:
    for app in ctx.apps:
        app.derived["dbPeerCount"] = db_peer_count(bool(app.derived.get("clusteredDb")))
        if app.config.get("messageBroker") == KAFKA:
            ctx.flags.use_kafka = True
    ctx.flags.use_keycloak = False


def select_platform_scripts(ctx: GenerationContext) -> None:
    ctx.set_script_selection(select_scripts(ctx.flags.generator_type))


def configure_image_name(ctx: GenerationContext, app: GenerationTarget) -> None:
    app.derived["targetImageName"] = target_image_name(app.base_name, ctx.flags.docker_repository_name)


# ── Writing ─────────────────────────────────────────────────────────


def write_files(ctx: GenerationContext) -> None:
    files = generate_files(ctx)
    ctx.generated = files
    write_to_disk(ctx.options.destination, files, force=ctx.options.force)


# ── End ─────────────────────────────────────────────────────────────


def check_images(ctx: GenerationContext) -> None:
    post_actions.check_images(ctx)


def deploy(ctx: GenerationContext) -> None:
    selection = post_actions.confirmed_selection(ctx)
    ctx.summary.extend(post_actions.deployment_summary(ctx, selection))
    for line in ctx.summary:
        logger.info("%s", line)
    post_actions.mark_scripts_executable(ctx, selection)


def apply_deployment(ctx: GenerationContext) -> None:
    if not ctx.options.apply:
        return
    post_actions.run_apply_script(ctx, post_actions.confirmed_selection(ctx))


class KnativeGenerator:
    """Knative deployment generator: base task groups + runner wiring."""

    def __init__(
        self,
        options: GeneratorOptions,
        adapters: AdapterRegistry | None = None,
        prompter: Prompter | None = None,
        blueprints: Iterable[Blueprint] = (),
    ):
        self.options = options
        self.store = ConfigStore(options.destination)
        self.adapters = adapters or default_registry()
        self.prompter = prompter or AnswersPrompter(options.answers)
        self.blueprints = BlueprintChain([*blueprints, *load_blueprints(options.blueprints)])
        self.registry = self._build_registry()
        self.last_context: GenerationContext | None = None

    def initializing(self) -> TaskMap:
        return {
            "say_hello": say_hello,
            "existing_deployment": existing_deployment,
            "load_docker_dependencies": load_docker_dependencies,
            "check_docker": check_docker,
            "check_kubernetes": check_kubernetes,
            "check_helm": check_helm,
            "check_knative": check_knative,
            "load_config": load_config,
            "local_init": local_init,
            "setup_kubernetes_constants": setup_kubernetes_constants,
            "setup_helm_constants": setup_helm_constants,
        }

    def prompting(self) -> TaskMap:
        return {
            "ask_for_path": prompts.ask_for_path,
            "ask_for_apps": prompts.ask_for_apps,
            "ask_for_generator_type": prompts.ask_for_generator_type,
            "ask_for_monitoring": prompts.ask_for_monitoring,
            "ask_for_clusters_mode": prompts.ask_for_clusters_mode,
            "ask_for_service_discovery": prompts.ask_for_service_discovery,
            "ask_for_admin_password": prompts.ask_for_admin_password,
            "ask_for_kubernetes_namespace": prompts.ask_for_kubernetes_namespace,
            "ask_for_docker_repository_name": prompts.ask_for_docker_repository_name,
            "ask_for_docker_push_command": prompts.ask_for_docker_push_command,
            "ask_for_ingress_domain": prompts.ask_for_ingress_domain,
        }

    def configuring(self) -> TaskMap:
        return {"save_config": save_config, "generate_jwt_secret": generate_jwt_secret}

    def loading(self) -> TaskMap:
        return {
            "check_helm_for_platform": check_helm_for_platform,
            "load_from_rc": load_from_rc,
            "load_shared_config": load_shared_config,
        }

    def preparing(self) -> TaskMap:
        return {
            "set_post_prompt_props": set_post_prompt_props,
            "select_platform_scripts": select_platform_scripts,
        }

    def preparing_each_target(self) -> TaskMap:
        return {"configure_image_name": configure_image_name}

    def writing(self) -> TaskMap:
        return {"write_files": write_files}

    def end(self) -> TaskMap:
        return {"check_images": check_images, "deploy": deploy, "apply_deployment": apply_deployment}

    def _build_registry(self) -> TaskGroupRegistry:
        registry = TaskGroupRegistry()
        registry.register(Phase.INITIALIZING, self.initializing())
        registry.register(Phase.PROMPTING, self.prompting())
        registry.register(Phase.CONFIGURING, self.configuring())
        registry.register(Phase.LOADING, self.loading())
        registry.register(Phase.PREPARING, self.preparing())
        registry.register(Phase.PREPARING_EACH_TARGET, self.preparing_each_target())
        registry.register(Phase.WRITING, self.writing())
        registry.register(Phase.END, self.end())
        return registry

    def new_context(self) -> GenerationContext:
        return GenerationContext(
            options=self.options,
            store=self.store,
            adapters=self.adapters,
            prompter=self.prompter,
        )

    def run(self, ctx: GenerationContext | None = None) -> RunReport:
        ctx = ctx or self.new_context()
        self.last_context = ctx
        logger.info(
            "Running knative generator (%d phases, blueprints: %s)",
            len(self.registry), ", ".join(self.blueprints.names) or "none",
        )
        return GeneratorRunner(self.registry, self.blueprints).run(ctx)
