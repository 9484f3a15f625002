"""
Generator error taxonomy.

Tasks signal conditions by raising one of these. The runner decides,
per class, whether the condition aborts the run or is only recorded:

    CheckFailed            external tool missing/too old — fatal when mandatory,
                           a warning when advisory, skipped under skip_checks
    ConfigInvalid          stored or answered config is unusable — always fatal
    ExternalProcessFailed  post-generation command failed — recorded, run continues
    InternalFault          anything unexpected — always fatal
"""

from __future__ import annotations


class GeneratorError(Exception):
    """Base class for all conditions raised by generator tasks."""


class CheckFailed(GeneratorError):
    """An external dependency check did not pass."""

    def __init__(self, check: str, message: str, mandatory: bool = True):
        self.check = check
        self.mandatory = mandatory
        super().__init__(f"{check}: {message}")


class ConfigInvalid(GeneratorError):
    """Persisted or user-supplied configuration failed validation."""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(f"{key}: {message}" if key else message)


class ExternalProcessFailed(GeneratorError):
    """A helper script or build command exited non-zero."""

    def __init__(self, command: str, message: str, remediation: str = ""):
        self.command = command
        self.remediation = remediation
        super().__init__(f"{command}: {message}")


class InternalFault(GeneratorError):
    """Unexpected condition inside a task."""


class GenerationAborted(GeneratorError):
    """Raised by ``RunReport.raise_for_status`` when a run failed."""

    def __init__(self, phase: str, task: str, message: str):
        self.phase = phase
        self.task = task
        super().__init__(f"Phase {phase} / task {task}: {message}")
