from __future__ import annotations

import math
from collections.abc import Iterable

from crm.app.schemas.quiz import QuizConfig, QuizResponse
from crm.app.services.quiz.answers import ChoiceAnswer, resolve_responses

# highest score a single choice option can carry
MAX_OPTION_SCORE = 10


def calculate_lead_score(config: QuizConfig, responses: Iterable[QuizResponse]) -> int:
    """Score a submission from 0 to 100.

    Choice questions earn ``weight * option.score`` out of ``weight * 10``.
    Every other question type is binary: ``weight`` if answered, else 0.
    """
    earned = 0
    maximum = 0

    for answer in resolve_responses(config.questions, responses):
        weight = answer.question.weight
        if isinstance(answer, ChoiceAnswer):
            maximum += weight * MAX_OPTION_SCORE
            if answer.option is not None:
                earned += weight * answer.option.score
        else:
            maximum += weight
            if answer.answered:
                earned += weight

    if maximum == 0:
        return 0
    # half rounds up
    return int(math.floor(earned / maximum * 100 + 0.5))
