from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from crm.app.schemas.quiz import (
    ImageGridQuestion,
    NameQuestion,
    QuizConfig,
    QuizResponse,
    RadioQuestion,
)
from crm.app.services.quiz.answers import find_option, is_answered

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[0-9\s\-()]{7,20}$")

MIN_WEIGHT, MAX_WEIGHT = 1, 10
MIN_OPTION_SCORE, MAX_OPTION_SCORE = 0, 10
MIN_CHOICE_OPTIONS = 2


def _valid_name(answer: Any) -> bool:
    if isinstance(answer, Mapping):
        first = answer.get("firstName", answer.get("first_name"))
        last = answer.get("lastName", answer.get("last_name"))
        return isinstance(first, str) and bool(first.strip()) and isinstance(last, str) and bool(last.strip())
    if isinstance(answer, str):
        return len(answer.split()) >= 2
    return False


def validate_submission_responses(config: QuizConfig, responses: Iterable[QuizResponse]) -> dict[str, str]:
    """Check a submission against its quiz; returns ``{question_id: message}``.

    The last response for a question wins. Unanswered optional questions are
    not format-checked.
    """
    by_question = {r.question_id: r for r in responses}
    errors: dict[str, str] = {}

    for question in config.questions:
        response = by_question.get(question.id)
        answer = response.answer if response is not None else None
        picked = response is not None and response.selected_option_id is not None

        if not (is_answered(answer) or picked):
            if question.required:
                errors[question.id] = "This question is required"
            continue

        if question.type == "email":
            if isinstance(answer, str) and not EMAIL_RE.match(answer.strip()):
                errors[question.id] = "Please enter a valid email address"
        elif question.type == "phone":
            if isinstance(answer, str) and not PHONE_RE.match(answer.strip()):
                errors[question.id] = "Please enter a valid phone number"
        elif isinstance(question, NameQuestion):
            if not _valid_name(answer):
                errors[question.id] = "Please enter your first and last name"
        elif isinstance(question, (RadioQuestion, ImageGridQuestion)):
            if find_option(question, response) is None:
                errors[question.id] = "Please select a valid option"

    return errors


def check_quiz_config(config: QuizConfig) -> list[str]:
    """Authoring-time checks that keep lead scores inside 0..100."""
    problems: list[str] = []
    seen_ids: set[str] = set()

    for index, question in enumerate(config.questions, start=1):
        where = f"question {index}"
        if question.id in seen_ids:
            problems.append(f"{where}: duplicate question id {question.id!r}")
        seen_ids.add(question.id)
        if not question.question_text.strip():
            problems.append(f"{where}: question text is required")
        if not MIN_WEIGHT <= question.weight <= MAX_WEIGHT:
            problems.append(f"{where}: weight must be between {MIN_WEIGHT} and {MAX_WEIGHT}")

        if not isinstance(question, (RadioQuestion, ImageGridQuestion)):
            continue
        if len(question.options) < MIN_CHOICE_OPTIONS:
            problems.append(f"{where}: at least {MIN_CHOICE_OPTIONS} options required")
        option_ids: set[str] = set()
        for option in question.options:
            if option.id in option_ids:
                problems.append(f"{where}: duplicate option id {option.id!r}")
            option_ids.add(option.id)
            if not option.label.strip():
                problems.append(f"{where}: option label is required")
            if not option.value.strip():
                problems.append(f"{where}: option value is required")
            if not MIN_OPTION_SCORE <= option.score <= MAX_OPTION_SCORE:
                problems.append(
                    f"{where}: option score must be between {MIN_OPTION_SCORE} and {MAX_OPTION_SCORE}"
                )

    if not config.settings.thank_you_message.strip():
        problems.append("thank you message is required")
    return problems
