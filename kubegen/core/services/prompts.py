"""
Prompting collaborator — questions in, answers out.

Generator prompt tasks describe what they need as ``Question``s and
hand them to a ``Prompter``. Two prompters exist:

    AnswersPrompter  non-interactive: pre-supplied answers, else defaults
    ClickPrompter    interactive terminal prompts via click

Answers are validated here, so a bad answer surfaces as ConfigInvalid
regardless of where it came from.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal

import click

from kubegen.core.errors import ConfigInvalid

logger = logging.getLogger(__name__)

QuestionKind = Literal["input", "confirm", "list", "checkbox", "password"]


@dataclass(frozen=True)
class Question:
    """One config key to ask for."""

    key: str
    message: str
    kind: QuestionKind = "input"
    default: Any = None
    choices: tuple[str, ...] = ()
    validate: Callable[[Any], str | None] | None = None


def check_answer(question: Question, value: Any) -> Any:
    """Validate one answer against its question.

    Raises:
        ConfigInvalid: not one of the choices, or rejected by the validator.
    """
    if question.kind == "confirm":
        value = bool(value)
    elif question.kind == "checkbox":
        if isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]
        value = list(value or [])
        unknown = [v for v in value if question.choices and v not in question.choices]
        if unknown:
            raise ConfigInvalid(f"unknown choice(s) {', '.join(unknown)}", key=question.key)
    elif question.kind == "list":
        if question.choices and value not in question.choices:
            raise ConfigInvalid(
                f"'{value}' is not one of {', '.join(question.choices)}", key=question.key,
            )

    if question.validate is not None:
        error = question.validate(value)
        if error:
            raise ConfigInvalid(error, key=question.key)
    return value


class Prompter(ABC):
    """Asks a named batch of questions."""

    def ask(self, name: str, questions: Sequence[Question]) -> dict[str, Any]:
        answers: dict[str, Any] = {}
        for question in questions:
            raw = self.answer(question)
            answers[question.key] = check_answer(question, raw)
        logger.debug("Prompt %s answered: %s", name, sorted(answers))
        return answers

    @abstractmethod
    def answer(self, question: Question) -> Any:
        """Raw answer for one question."""


class AnswersPrompter(Prompter):
    """Answers from a mapping; unanswered questions take their default."""

    def __init__(self, answers: Mapping[str, Any] | None = None):
        self.answers = dict(answers or {})

    def answer(self, question: Question) -> Any:
        if question.key in self.answers:
            return self.answers[question.key]
        return question.default


class ClickPrompter(Prompter):
    """Interactive prompts on the terminal."""

    def answer(self, question: Question) -> Any:
        if question.kind == "confirm":
            return click.confirm(question.message, default=bool(question.default))

        if question.kind == "list":
            return click.prompt(
                question.message,
                type=click.Choice(list(question.choices)),
                default=question.default,
                show_choices=True,
            )

        if question.kind == "checkbox":
            if not question.choices:
                return []
            click.echo(f"{question.message} ({', '.join(question.choices)})")
            default = ",".join(question.default or question.choices)
            return click.prompt("Comma-separated selection", default=default)

        if question.kind == "password":
            return click.prompt(question.message, default=question.default, hide_input=True)

        return click.prompt(question.message, default=question.default or "", show_default=True)
