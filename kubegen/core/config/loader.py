"""
Run options — what the CLI (or a test) asks the generator to do.

Options can come from three places, later ones winning:
    options file (YAML)  <  KUBEGEN_* environment variables  <  CLI flags

The options file may also carry ``answers``: pre-supplied prompt
answers keyed by config key, used for non-interactive runs.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from kubegen.core.errors import ConfigInvalid

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class GeneratorOptions(BaseModel):
    """Options for one generator run."""

    destination: Path = Field(default_factory=Path.cwd)
    skip_checks: bool = False
    skip_prompts: bool = False
    force: bool = True
    apply: bool = False
    answers: dict[str, Any] = Field(default_factory=dict)
    blueprints: list[str] = Field(default_factory=list)


def load_options(path: Path, **overrides: Any) -> GeneratorOptions:
    """Load options from a YAML file, then apply keyword overrides.

    Raises:
        ConfigInvalid: the file is missing, not YAML, or fails validation.
    """
    if not path.is_file():
        raise ConfigInvalid(f"Options file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigInvalid(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigInvalid(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        options = GeneratorOptions.model_validate(data)
    except ValidationError as e:
        raise ConfigInvalid(f"Invalid options in {path}: {e}") from e

    logger.debug("Loaded options from %s (%d answers)", path, len(options.answers))
    return options


def options_from_env(base: GeneratorOptions | None = None) -> GeneratorOptions:
    """Overlay ``KUBEGEN_SKIP_CHECKS`` / ``KUBEGEN_DESTINATION`` onto ``base``."""
    options = base.model_copy() if base else GeneratorOptions()

    skip = os.environ.get("KUBEGEN_SKIP_CHECKS")
    if skip is not None:
        options.skip_checks = skip.strip().lower() in _TRUTHY

    dest = os.environ.get("KUBEGEN_DESTINATION")
    if dest:
        options.destination = Path(dest)

    return options
