"""
kubegen — CLI entrypoint.

Usage:
    kubegen --help
    kubegen knative generate ./deploy --answers answers.yml
"""

from __future__ import annotations

import os

import click

from kubegen import __version__
from kubegen.core.observability.logging_config import level_from_flags, setup_logging
from kubegen.ui.cli.knative import knative


@click.group()
@click.version_option(version=__version__, prog_name="kubegen")
@click.option("--verbose", "-v", is_flag=True, help="Show phase and task progress.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """kubegen — scaffold Kubernetes/Knative deployments for your applications."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet

    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get("KUBEGEN_LOG_FILE"),
        log_file_level=os.environ.get("KUBEGEN_LOG_FILE_LEVEL"),
    )


cli.add_command(knative)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
