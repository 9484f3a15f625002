"""
CLI commands for the Knative generator.

Thin wrappers over ``kubegen.core.services.generators.knative``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from kubegen.core.errors import ConfigInvalid


@click.group("knative")
def knative() -> None:
    """Kubernetes Knative — generate services, charts and deploy scripts."""


@knative.command("generate")
@click.argument("destination", type=click.Path(file_okay=False, path_type=Path), required=False)
@click.option(
    "--answers", "answers_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with options and pre-supplied answers.",
)
@click.option("--skip-checks", is_flag=True, help="Do not check for docker/kubectl/helm/Knative.")
@click.option("--skip-prompts", is_flag=True, help="Never ask; use answers and defaults.")
@click.option("--no-force", is_flag=True, help="Keep existing generated files.")
@click.option("--apply", "apply_", is_flag=True, help="Run the apply script when done.")
@click.option("--blueprint", "blueprints", multiple=True, help="Installed blueprint to use (repeatable, in priority order).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the run report as JSON.")
@click.pass_context
def generate(
    ctx: click.Context,
    destination: Path | None,
    answers_path: Path | None,
    skip_checks: bool,
    skip_prompts: bool,
    no_force: bool,
    apply_: bool,
    blueprints: tuple[str, ...],
    as_json: bool,
) -> None:
    """Generate Knative deployment files into DESTINATION."""
    from kubegen.core.config.loader import GeneratorOptions, load_options, options_from_env
    from kubegen.core.services.generators.knative import KnativeGenerator
    from kubegen.core.services.prompts import AnswersPrompter, ClickPrompter

    overrides = {
        "destination": destination,
        "skip_checks": skip_checks or None,
        "skip_prompts": skip_prompts or None,
        "force": False if no_force else None,
        "apply": apply_ or None,
        "blueprints": list(blueprints) or None,
    }
    try:
        base = load_options(answers_path) if answers_path is not None else GeneratorOptions()
        options = options_from_env(base).model_copy(
            update={k: v for k, v in overrides.items() if v is not None},
        )
        options.destination.mkdir(parents=True, exist_ok=True)

        interactive = not options.skip_prompts and sys.stdin.isatty()
        prompter = ClickPrompter() if interactive else AnswersPrompter(options.answers)
        generator = KnativeGenerator(options, prompter=prompter)
    except ConfigInvalid as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    report = generator.run()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(0 if report.succeeded else 1)

    quiet = (ctx.obj or {}).get("quiet", False)

    if report.failure is not None:
        failure = report.failure
        click.secho(
            f"❌ Generation failed in phase '{failure.phase}', task '{failure.task}'",
            fg="red", bold=True,
        )
        click.echo(f"   {failure.error_type}: {failure.message}")
        sys.exit(1)

    if report.warnings:
        click.secho("⚠️  Warnings:", fg="yellow")
        for warning in report.warnings:
            click.echo(f"   • {warning}")
        click.echo()

    if report.status == "warning":
        click.secho("✅ Generated with warnings", fg="yellow", bold=True)
    else:
        click.secho("✅ Kubernetes Knative configuration generated", fg="green", bold=True)

    if not quiet:
        for result in report.results:
            if result.status == "skipped":
                click.echo(f"   ⊘ {result.phase}/{result.task}: {result.message}")
        summary = generator.last_context.summary if generator.last_context else []
        for line in summary:
            click.echo(line)
