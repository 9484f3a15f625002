"""
Tests for the lifecycle engine — registry, blueprint delegation, runner.
"""

import itertools

import pytest

from kubegen.core.engine.blueprints import Blueprint, BlueprintChain, StaticBlueprint
from kubegen.core.engine.phases import BASE_SOURCE, Phase, TaskGroup
from kubegen.core.engine.registry import TaskGroupRegistry
from kubegen.core.engine.runner import GeneratorRunner
from kubegen.core.errors import (
    CheckFailed,
    ConfigInvalid,
    ExternalProcessFailed,
    GenerationAborted,
    InternalFault,
)
from kubegen.core.models.target import GenerationTarget


def _recorder(label: str):
    def task(ctx):
        ctx.summary.append(label)
    return task


def _raiser(exc: Exception):
    def task(ctx):
        raise exc
    return task


# ── Phases / TaskGroup ───────────────────────────────────────────────


class TestPhase:
    def test_parse_known(self):
        assert Phase.parse("loading") is Phase.LOADING
        assert Phase.parse(Phase.END) is Phase.END

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown phase"):
            Phase.parse("deploying")

    def test_canonical_order(self):
        names = [p.value for p in Phase]
        assert names.index("initializing") < names.index("prompting") < names.index("configuring")
        assert names.index("loading") < names.index("preparing") < names.index("writing")
        assert names[-1] == "end"

    def test_task_group_keeps_declaration_order(self):
        group = TaskGroup.of("writing", {"b": _recorder("b"), "a": _recorder("a")})
        assert group.names == ["b", "a"]
        assert group.source == BASE_SOURCE
        assert not group.per_target

    def test_preparing_each_target_is_per_target(self):
        assert TaskGroup.of(Phase.PREPARING_EACH_TARGET, {}).per_target


# ── Registry ─────────────────────────────────────────────────────────


class TestTaskGroupRegistry:
    def test_registration_order(self):
        registry = TaskGroupRegistry()
        registry.register("writing", {})
        registry.register("initializing", {})
        assert registry.phases == [Phase.WRITING, Phase.INITIALIZING]

    def test_duplicate_phase_rejected(self):
        registry = TaskGroupRegistry()
        registry.register("loading", {})
        with pytest.raises(ValueError, match="already registered"):
            registry.register(Phase.LOADING, {})

    def test_unknown_phase_rejected(self):
        with pytest.raises(ValueError):
            TaskGroupRegistry().register("cleanup", {})

    def test_mismatched_group_rejected(self):
        registry = TaskGroupRegistry()
        with pytest.raises(ValueError):
            registry.register("loading", TaskGroup.of("writing", {}))


# ── Blueprint delegation ─────────────────────────────────────────────


class TestBlueprintChain:
    def _base(self):
        return TaskGroup.of("writing", {"write": _recorder("base-write")})

    def test_no_blueprints_uses_base(self):
        base = self._base()
        assert BlueprintChain().resolve_task_group("writing", base) is base

    def test_passing_blueprint_uses_base(self):
        base = self._base()
        chain = BlueprintChain([Blueprint()])
        assert chain.resolve_task_group("writing", base) is base

    def test_first_override_wins(self):
        first = StaticBlueprint("first", {"writing": {"one": _recorder("1")}})
        second = StaticBlueprint("second", {"writing": {"two": _recorder("2")}})
        group = BlueprintChain([first, second]).resolve_task_group("writing", self._base())
        assert group.source == "first"
        assert group.names == ["one"]

    def test_later_blueprint_used_when_earlier_passes(self):
        first = StaticBlueprint("first", {"loading": {"x": _recorder("x")}})
        second = StaticBlueprint("second", {"writing": {"two": _recorder("2")}})
        group = BlueprintChain([first, second]).resolve_task_group("writing", self._base())
        assert group.source == "second"

    def test_substitution_not_merge(self):
        bp = StaticBlueprint("bp", {"writing": {"other": _recorder("other")}})
        group = BlueprintChain([bp]).resolve_task_group("writing", self._base())
        assert "write" not in group.tasks

    def test_callable_override_can_reuse_base(self):
        bp = StaticBlueprint("bp", {"writing": lambda base: {**base.tasks, "extra": _recorder("extra")}})
        group = BlueprintChain([bp]).resolve_task_group("writing", self._base())
        assert group.names == ["write", "extra"]
        assert group.source == "bp"

    def test_resolution_is_deterministic(self):
        bp = StaticBlueprint("bp", {"writing": {"one": _recorder("1")}})
        chain = BlueprintChain([StaticBlueprint("noop", {}), bp])
        base = self._base()
        a = chain.resolve_task_group("writing", base)
        b = chain.resolve_task_group("writing", base)
        assert (a.source, a.names) == (b.source, b.names)

    def test_duplicate_blueprint_names_rejected(self):
        with pytest.raises(ConfigInvalid):
            BlueprintChain([StaticBlueprint("bp", {}), StaticBlueprint("bp", {})])

    def test_wrong_phase_group_rejected(self):
        class Confused(Blueprint):
            name = "confused"

            def task_group(self, phase, base):
                return TaskGroup.of("end", {})

        with pytest.raises(ConfigInvalid):
            BlueprintChain([Confused()]).resolve_task_group("writing", self._base())


# ── Runner ───────────────────────────────────────────────────────────


def _registry(**phases):
    registry = TaskGroupRegistry()
    for name, tasks in phases.items():
        registry.register(name.replace("_", "-"), tasks)
    return registry


class TestGeneratorRunner:
    def test_phases_run_in_registration_order(self, ctx):
        registry = _registry(
            initializing={"i": _recorder("initializing")},
            loading={"l": _recorder("loading")},
            writing={"w": _recorder("writing")},
            end={"e": _recorder("end")},
        )
        report = GeneratorRunner(registry).run(ctx)
        assert ctx.summary == ["initializing", "loading", "writing", "end"]
        assert report.phases_completed == ["initializing", "loading", "writing", "end"]
        assert report.status == "ok"

    def test_task_order_never_changes_phase_order(self, ctx):
        tasks = {name: _recorder(f"prep:{name}") for name in ("a", "b", "c")}
        for perm in itertools.permutations(tasks):
            ctx.summary.clear()
            registry = _registry(
                loading={"load": _recorder("loading")},
                preparing={name: tasks[name] for name in perm},
                end={"end": _recorder("end")},
            )
            GeneratorRunner(registry).run(ctx)
            assert ctx.summary[0] == "loading"
            assert ctx.summary[1:4] == [f"prep:{n}" for n in perm]
            assert ctx.summary[-1] == "end"

    def test_later_task_sees_earlier_mutation(self, ctx):
        def load(c):
            c.deployment.config["clustered"] = True

        def derive(c):
            c.deployment.derived["peers"] = 3 if c.deployment.config["clustered"] else 1

        report = GeneratorRunner(_registry(loading={"load": load, "derive": derive})).run(ctx)
        assert report.succeeded
        assert ctx.deployment.derived["peers"] == 3

    def test_config_invalid_in_configuring_stops_everything(self, ctx):
        registry = _registry(
            initializing={"i": _recorder("initializing")},
            configuring={"bad": _raiser(ConfigInvalid("bad value", key="x")), "after": _recorder("after")},
            loading={"l": _recorder("loading")},
            preparing={"p": _recorder("preparing")},
            writing={"w": _recorder("writing")},
        )
        report = GeneratorRunner(registry).run(ctx)
        assert ctx.summary == ["initializing"]
        assert not report.succeeded
        assert report.status == "failed"
        assert report.failure.phase == "configuring"
        assert report.failure.task == "bad"
        assert report.failure.error_type == "ConfigInvalid"
        assert report.phases_completed == ["initializing"]

    def test_raise_for_status(self, ctx):
        report = GeneratorRunner(_registry(loading={"bad": _raiser(ConfigInvalid("nope"))})).run(ctx)
        with pytest.raises(GenerationAborted) as info:
            report.raise_for_status()
        assert info.value.phase == "loading"

    def test_check_failed_is_fatal_without_skip_checks(self, ctx):
        registry = _registry(
            initializing={"check": _raiser(CheckFailed("kubectl", "missing"))},
            end={"e": _recorder("end")},
        )
        report = GeneratorRunner(registry).run(ctx)
        assert report.failure.error_type == "CheckFailed"
        assert ctx.summary == []

    def test_check_failed_is_skipped_with_skip_checks(self, ctx):
        ctx.options.skip_checks = True
        registry = _registry(
            initializing={
                "check_a": _raiser(CheckFailed("kubectl", "missing")),
                "check_b": _raiser(CheckFailed("helm", "missing")),
            },
            end={"e": _recorder("end")},
        )
        report = GeneratorRunner(registry).run(ctx)
        assert report.succeeded
        assert ctx.summary == ["end"]
        assert [r.status for r in report.results[:2]] == ["skipped", "skipped"]
        assert report.status == "warning"

    def test_advisory_check_failed_is_a_warning(self, ctx):
        registry = _registry(
            initializing={"check": _raiser(CheckFailed("docker", "not installed", mandatory=False))},
            writing={"w": _recorder("writing")},
        )
        report = GeneratorRunner(registry).run(ctx)
        assert report.succeeded
        assert ctx.summary == ["writing"]
        assert report.results[0].status == "warning"
        assert report.results[0].error_type == "CheckFailed"
        assert "docker: not installed" in report.warnings
        assert report.status == "warning"

    def test_external_process_failure_is_recorded(self, ctx):
        registry = _registry(end={
            "chmod": _raiser(ExternalProcessFailed("chmod", "denied", remediation="run chmod +x")),
            "after": _recorder("after"),
        })
        report = GeneratorRunner(registry).run(ctx)
        assert report.succeeded
        assert ctx.summary == ["after"]
        assert report.results[0].status == "warning"
        assert "run chmod +x" in report.warnings[0]

    def test_unexpected_exception_is_internal_fault(self, ctx):
        registry = _registry(
            preparing={"boom": _raiser(KeyError("missing")), "after": _recorder("after")},
            writing={"w": _recorder("writing")},
        )
        report = GeneratorRunner(registry).run(ctx)
        assert report.failure.error_type == "InternalFault"
        assert "KeyError" in report.failure.message
        assert ctx.summary == []

    def test_internal_fault_is_fatal(self, ctx):
        report = GeneratorRunner(_registry(writing={"w": _raiser(InternalFault("broken"))})).run(ctx)
        assert report.failure.message == "broken"

    def test_blueprint_replaces_phase(self, ctx):
        registry = _registry(
            loading={"l": _recorder("base-loading")},
            writing={"w": _recorder("base-writing")},
        )
        bp = StaticBlueprint("custom", {"writing": {"w": _recorder("custom-writing")}})
        report = GeneratorRunner(registry, BlueprintChain([bp])).run(ctx)
        assert ctx.summary == ["base-loading", "custom-writing"]
        assert report.results[1].source == "custom"

    def test_blueprint_dropping_base_task_skips_it(self, ctx):
        """Overriding a phase without re-declaring its base tasks drops them."""
        registry = _registry(loading={"load_config": _recorder("load_config"), "derive": _recorder("derive")})
        bp = StaticBlueprint("partial", {"loading": {"derive": _recorder("derive")}})
        GeneratorRunner(registry, BlueprintChain([bp])).run(ctx)
        assert ctx.summary == ["derive"]

    def test_per_target_phase_runs_for_each_app(self, ctx):
        ctx.apps = [GenerationTarget(name="a"), GenerationTarget(name="b")]

        def tag(c, target):
            c.summary.append(f"tag:{target.name}")

        def count(c, target):
            c.summary.append(f"count:{target.name}")

        registry = _registry(preparing_each_target={"tag": tag, "count": count})
        report = GeneratorRunner(registry).run(ctx)
        assert ctx.summary == ["tag:a", "count:a", "tag:b", "count:b"]
        assert [r.target for r in report.results] == ["a", "a", "b", "b"]

    def test_report_to_dict(self, ctx):
        report = GeneratorRunner(_registry(end={"e": _recorder("end")})).run(ctx)
        data = report.to_dict()
        assert data["status"] == "ok"
        assert data["results"][0]["task"] == "e"
        assert data["failure"] is None
