"""
End-of-run summary and post actions.

After Writing, the End phase:
    1. looks for each app's Jib image cache; a missing cache turns the
       run into "success with warning" and adds the build commands
    2. builds the summary lines the CLI prints (tag/push, Jib, deploy)
    3. marks the selected deploy scripts executable (the set
       chosen during Preparing, never both platform variants)
    4. optionally runs the apply script
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Literal

from kubegen.core.errors import ExternalProcessFailed, InternalFault
from kubegen.core.models.action import Action
from kubegen.core.models.context import GenerationContext, ScriptSelection
from kubegen.core.services.derive import select_scripts
from kubegen.core.services.writer import make_executable

logger = logging.getLogger(__name__)

Outcome = Literal["success", "success_with_warning"]

_ARM_MACHINES = ("arm64", "aarch64")


def app_directory(ctx: GenerationContext, folder: str) -> Path:
    directory_path = ctx.deployment.config.get("directoryPath", "../")
    return (ctx.options.destination / directory_path / folder).resolve()


def jib_build_command(build_tool: str, image: str, machine: str | None = None, local: bool = False) -> str:
    """Jib command building ``image`` (to the local daemon when ``local``)."""
    arm = (machine or platform.machine()).lower() in _ARM_MACHINES
    if build_tool == "gradle":
        goal = "jibDockerBuild" if local else "jibBuild"
        arch = " -PjibArchitecture=arm64" if arm else ""
        return f"./gradlew bootJar -Pprod {goal}{arch} -Djib.to.image={image}"
    goal = "jib:dockerBuild" if local else "jib:build"
    arch = " -Djib-maven-plugin.architecture=arm64" if arm else ""
    return f"./mvnw -ntp -Pprod verify {goal}{arch} -Djib.to.image={image}"


def check_images(ctx: GenerationContext) -> list[str]:
    """Record a warning for every app without a Jib cache; return their names."""
    missing: list[str] = []
    lines: list[str] = []
    for app in ctx.apps:
        cache = app_directory(ctx, app.folder) / app.get("jibCacheDir", "target/jib-cache")
        if cache.is_dir():
            continue
        missing.append(app.name)
        command = jib_build_command(
            app.config.get("buildTool", "maven"), app.get("lowercaseBaseName", app.name), local=True,
        )
        lines.append(f"  {command} in {app_directory(ctx, app.folder)}")

    if missing:
        ctx.has_warning = True
        ctx.warning_message = "\n".join(lines)
        logger.info("No Jib cache for: %s", ", ".join(missing))
    return missing


def classify_outcome(ctx: GenerationContext) -> Outcome:
    return "success_with_warning" if ctx.has_warning else "success"


def deployment_summary(ctx: GenerationContext, selection: ScriptSelection) -> list[str]:
    """Human-readable next steps for the generated output."""
    lines: list[str] = []
    if classify_outcome(ctx) == "success_with_warning":
        lines.append("Kubernetes Knative configuration generated, but no Jib cache found")
        lines.append("If you forgot to generate the Docker image for this application, please run:")
        lines.append(ctx.warning_message)
    else:
        lines.append("Kubernetes Knative configuration successfully generated!")

    lines.append(
        "You will need to push your image to a registry. If you have not done so, "
        "use the following commands to tag and push the images:"
    )
    push = ctx.deployment.config.get("dockerPushCommand", "docker push")
    for app in ctx.apps:
        original = app.get("lowercaseBaseName", app.name)
        target = app.get("targetImageName", original)
        if original != target:
            lines.append(f"  docker image tag {original} {target}")
        lines.append(f"  {push} {target}")

    if ctx.flags.docker_repository_name:
        lines.append("Alternatively, you can use Jib to build and push image directly to a remote registry:")
        for app in ctx.apps:
            command = jib_build_command(
                app.config.get("buildTool", "maven"), app.get("targetImageName", app.name),
            )
            lines.append(f"  {command} in {app_directory(ctx, app.folder)}")

    apply_script, *rest = selection.scripts
    lines.append("You can deploy all your apps by running the following script:")
    lines.append(f"  bash {apply_script}")
    if rest:
        lines.append("You can upgrade (after any changes) all your apps by running the following script:")
        lines.extend(f"  bash {script}" for script in rest)
    return lines


def confirmed_selection(ctx: GenerationContext) -> ScriptSelection:
    """Re-derive the script selection and check it against the Preparing choice."""
    selection = select_scripts(ctx.flags.generator_type)
    fixed = ctx.script_selection
    if fixed is None:
        ctx.set_script_selection(selection)
    elif fixed != selection:
        raise InternalFault(
            f"platform changed after Preparing: {fixed.generator_type} → {selection.generator_type}"
        )
    return selection


def mark_scripts_executable(ctx: GenerationContext, selection: ScriptSelection) -> list[str]:
    """chmod the selected scripts.

    Raises:
        ExternalProcessFailed: a script could not be made executable.
    """
    failed: list[str] = []
    for script in selection.scripts:
        try:
            make_executable(ctx.options.destination / script)
        except OSError as e:
            logger.debug("chmod %s failed: %s", script, e)
            failed.append(script)
            continue
        ctx.executable_scripts.append(script)

    if failed:
        names = " ".join(failed)
        raise ExternalProcessFailed(
            "chmod",
            f"Failed to make '{names}' executable",
            remediation=f"You may need to run 'chmod +x {names}'",
        )
    return list(ctx.executable_scripts)


def run_apply_script(ctx: GenerationContext, selection: ScriptSelection) -> None:
    """Run the apply script through the shell adapter.

    Raises:
        ExternalProcessFailed: the script exited non-zero.
    """
    script = selection.scripts[0]
    receipt = ctx.adapters.run(
        Action.command(f"apply:{script}", f"bash {script}"),
        cwd=ctx.options.destination,
        timeout=600,
    )
    if receipt.failed:
        raise ExternalProcessFailed(
            f"bash {script}",
            receipt.error or "apply script failed",
            remediation=f"Check your cluster access, then run 'bash {script}' again",
        )
    logger.info("Applied %s", script)
