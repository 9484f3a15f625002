"""
Tests for the adapter layer — registry dispatch, mock and shell adapters.
"""

import sys

from kubegen.adapters.base import Adapter, ExecutionContext
from kubegen.adapters.mock import MockAdapter
from kubegen.adapters.registry import AdapterRegistry, default_registry
from kubegen.adapters.shell.command import ShellCommandAdapter
from kubegen.core.models.action import Action


class _Exploding(Adapter):
    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return True

    def execute(self, context: ExecutionContext):
        raise RuntimeError("kaboom")


class TestAdapterRegistry:
    def test_dispatch_to_named_adapter(self, shell_registry, mock_shell):
        receipt = shell_registry.run(Action.command("probe", "helm version"))
        assert receipt.ok
        assert mock_shell.commands == ["helm version"]

    def test_unknown_adapter(self):
        receipt = AdapterRegistry().run(Action(id="x", adapter="nope"))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_adapter_exception_becomes_failure(self):
        registry = AdapterRegistry()
        registry.register(_Exploding())
        receipt = registry.run(Action.command("x", "true"))
        assert receipt.failed
        assert "kaboom" in receipt.error

    def test_dry_run_skips(self, shell_registry, mock_shell):
        receipt = shell_registry.run(Action.command("x", "kubectl apply -f ."), dry_run=True)
        assert receipt.status == "skipped"
        assert "kubectl apply" in receipt.output
        assert mock_shell.call_count == 0

    def test_cwd_is_passed(self, shell_registry, mock_shell, tmp_path):
        shell_registry.run(Action.command("x", "ls"), cwd=tmp_path)
        assert mock_shell.call_log[0].cwd == str(tmp_path)

    def test_default_registry_has_shell(self):
        assert default_registry().list_adapters() == ["shell"]


class TestMockAdapter:
    def test_canned_failure(self):
        mock = MockAdapter()
        mock.set_failure("check:docker", "no docker", return_code=127)
        receipt = mock.execute(ExecutionContext(action=Action.command("check:docker", "docker -v")))
        assert receipt.failed
        assert receipt.return_code == 127

    def test_fail_all(self):
        mock = MockAdapter(fail_all=True)
        assert mock.execute(ExecutionContext(action=Action.command("a", "x"))).failed

    def test_reset(self):
        mock = MockAdapter()
        mock.execute(ExecutionContext(action=Action.command("a", "x")))
        mock.reset()
        assert mock.call_count == 0


class TestShellCommandAdapter:
    def test_success(self, tmp_path):
        ctx = ExecutionContext(action=Action.command("echo", f'"{sys.executable}" -c "print(42)"'), cwd=str(tmp_path))
        receipt = ShellCommandAdapter().execute(ctx)
        assert receipt.ok
        assert receipt.output == "42"

    def test_non_zero_exit(self, tmp_path):
        ctx = ExecutionContext(
            action=Action.command("fail", f'"{sys.executable}" -c "import sys; sys.exit(3)"'),
            cwd=str(tmp_path),
        )
        receipt = ShellCommandAdapter().execute(ctx)
        assert receipt.failed
        assert receipt.return_code == 3

    def test_missing_command(self):
        receipt = ShellCommandAdapter().execute(ExecutionContext(action=Action(id="x")))
        assert receipt.failed
        assert "command" in receipt.error
