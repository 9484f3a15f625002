"""
Tests for the prompting collaborator.
"""

from unittest.mock import patch

import pytest

from kubegen.core.errors import ConfigInvalid
from kubegen.core.services.prompts import (
    AnswersPrompter,
    ClickPrompter,
    Question,
    check_answer,
)

GENERATOR_TYPE = Question(
    key="generatorType",
    message="Which kind of deployment?",
    kind="list",
    default="k8s",
    choices=("k8s", "helm"),
)


class TestCheckAnswer:
    def test_list_choice(self):
        assert check_answer(GENERATOR_TYPE, "helm") == "helm"

    def test_list_unknown_choice(self):
        with pytest.raises(ConfigInvalid, match="generatorType"):
            check_answer(GENERATOR_TYPE, "nomad")

    def test_checkbox_from_string(self):
        q = Question(key="appsFolders", message="Apps", kind="checkbox", choices=("a", "b"))
        assert check_answer(q, "a, b") == ["a", "b"]

    def test_checkbox_unknown(self):
        q = Question(key="appsFolders", message="Apps", kind="checkbox", choices=("a",))
        with pytest.raises(ConfigInvalid, match="unknown choice"):
            check_answer(q, ["a", "z"])

    def test_confirm_coerces(self):
        q = Question(key="istio", message="Istio?", kind="confirm")
        assert check_answer(q, 1) is True

    def test_validator(self):
        q = Question(
            key="kubernetesNamespace",
            message="Namespace",
            validate=lambda v: None if v.islower() else "must be lowercase",
        )
        assert check_answer(q, "demo") == "demo"
        with pytest.raises(ConfigInvalid, match="must be lowercase"):
            check_answer(q, "Demo")


class TestAnswersPrompter:
    def test_supplied_answer(self):
        answers = AnswersPrompter({"generatorType": "helm"}).ask("type", [GENERATOR_TYPE])
        assert answers == {"generatorType": "helm"}

    def test_default_when_unanswered(self):
        answers = AnswersPrompter().ask("type", [GENERATOR_TYPE])
        assert answers == {"generatorType": "k8s"}

    def test_bad_supplied_answer(self):
        with pytest.raises(ConfigInvalid):
            AnswersPrompter({"generatorType": "swarm"}).ask("type", [GENERATOR_TYPE])


class TestClickPrompter:
    def test_list_uses_click_prompt(self):
        with patch("kubegen.core.services.prompts.click.prompt", return_value="helm") as prompt:
            answers = ClickPrompter().ask("type", [GENERATOR_TYPE])
        assert answers == {"generatorType": "helm"}
        assert prompt.call_args.kwargs["default"] == "k8s"

    def test_confirm_uses_click_confirm(self):
        q = Question(key="istio", message="Istio?", kind="confirm", default=True)
        with patch("kubegen.core.services.prompts.click.confirm", return_value=False):
            assert ClickPrompter().ask("istio", [q]) == {"istio": False}

    def test_empty_checkbox_does_not_prompt(self):
        q = Question(key="clusteredDbApps", message="Clustered?", kind="checkbox")
        with patch("kubegen.core.services.prompts.click.prompt") as prompt:
            assert ClickPrompter().ask("clusters", [q]) == {"clusteredDbApps": []}
        prompt.assert_not_called()
