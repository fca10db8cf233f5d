"""Typed view of quiz responses.

Raw submissions carry an ``answer`` whose shape depends on the question it
refers to. :func:`resolve_responses` looks each response up against the quiz
definition and turns the payload into one of the answer variants below, so
scoring and extraction never have to guess at JSON shapes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from crm.app.schemas.quiz import (
    ChoiceQuestion,
    ImageGridQuestion,
    NameQuestion,
    QuizOption,
    QuizQuestion,
    QuizResponse,
    RadioQuestion,
)


@dataclass(frozen=True)
class ChoiceAnswer:
    question: ChoiceQuestion
    option: QuizOption | None


@dataclass(frozen=True)
class NameAnswer:
    question: NameQuestion
    first_name: str | None
    last_name: str | None
    answered: bool


@dataclass(frozen=True)
class TextAnswer:
    """Free-form answer for text, email, phone and contact questions."""

    question: QuizQuestion
    text: str | None
    answered: bool


ResolvedAnswer = Union[ChoiceAnswer, NameAnswer, TextAnswer]


def is_answered(answer: Any) -> bool:
    if answer is None:
        return False
    if isinstance(answer, str):
        return len(answer.strip()) > 0
    if isinstance(answer, Mapping):
        return any(isinstance(v, str) and v.strip() for v in answer.values())
    if isinstance(answer, (list, tuple)):
        return any(isinstance(v, str) and v.strip() for v in answer)
    return True


def stringify_answer(answer: Any) -> str:
    if answer is None:
        return ""
    if isinstance(answer, bool):
        return "true" if answer else "false"
    if isinstance(answer, float) and answer.is_integer():
        return str(int(answer))
    return str(answer)


def find_option(question: ChoiceQuestion, response: QuizResponse) -> QuizOption | None:
    if response.selected_option_id is not None:
        for option in question.options:
            if option.id == response.selected_option_id:
                return option
    selected_value = stringify_answer(response.answer)
    for option in question.options:
        if option.value == selected_value:
            return option
    return None


def _name_part(obj: Mapping, *keys: str) -> str | None:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str):
            value = value.strip()
            return value or None
    return None


def _split_name(raw: str) -> tuple[str | None, str | None]:
    parts = raw.split()
    if not parts:
        return None, None
    return parts[0], " ".join(parts[1:]) or None


def resolve_answer(question: QuizQuestion, response: QuizResponse) -> ResolvedAnswer:
    answer = response.answer
    if isinstance(question, (RadioQuestion, ImageGridQuestion)):
        return ChoiceAnswer(question=question, option=find_option(question, response))
    if isinstance(question, NameQuestion):
        if isinstance(answer, Mapping):
            first = _name_part(answer, "firstName", "first_name")
            last = _name_part(answer, "lastName", "last_name")
        elif isinstance(answer, str):
            first, last = _split_name(answer)
        else:
            first = last = None
        return NameAnswer(question=question, first_name=first, last_name=last, answered=is_answered(answer))
    text = answer if isinstance(answer, str) else None
    return TextAnswer(question=question, text=text, answered=is_answered(answer))


def index_questions(questions: Iterable[QuizQuestion]) -> dict[str, QuizQuestion]:
    return {q.id: q for q in questions}


def resolve_responses(
    questions: Iterable[QuizQuestion], responses: Iterable[QuizResponse]
) -> list[ResolvedAnswer]:
    """Pair responses with their questions, in submission order.

    Responses pointing at a question id the quiz does not define are dropped.
    """
    by_id = index_questions(questions)
    resolved: list[ResolvedAnswer] = []
    for response in responses:
        question = by_id.get(response.question_id)
        if question is None:
            continue
        resolved.append(resolve_answer(question, response))
    return resolved

