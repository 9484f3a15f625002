"""
Shell command adapter — runs ``Action.params["command"]`` via the shell.
"""

from __future__ import annotations

import logging
import shutil
import subprocess

from kubegen.adapters.base import Adapter, ExecutionContext
from kubegen.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Execute a shell command line and capture its output."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def execute(self, context: ExecutionContext) -> Receipt:
        command = context.command
        action_id = context.action.id
        if not command:
            return Receipt.failure(
                adapter=self.name, action_id=action_id, error="Missing required param: 'command'",
            )

        logger.debug("Executing: %s (cwd=%s)", command, context.cwd)
        try:
            result = subprocess.run(
                command,
                shell=True,
                cwd=context.cwd,
                capture_output=True,
                text=True,
                timeout=context.timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"Command timed out after {context.timeout}s",
                metadata={"command": command},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=action_id,
                error=f"Command execution error: {e}",
                metadata={"command": command},
            )

        stdout = result.stdout.strip()
        stderr = result.stderr.strip()
        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=action_id,
                output=stdout,
                return_code=0,
                metadata={"command": command, "stderr": stderr},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=action_id,
            error=stderr or f"Command exited with code {result.returncode}",
            output=stdout,
            return_code=result.returncode,
            metadata={"command": command},
        )
