from __future__ import annotations

import re
from collections.abc import Iterable

from crm.app.schemas.quiz import ExtractedContactInfo, QuizQuestion, QuizResponse
from crm.app.services.quiz.answers import NameAnswer, TextAnswer, resolve_responses

_PHONE_STRIP_RE = re.compile(r"[\s\-()]")


def normalize_phone(raw: str) -> str:
    """Strip formatting from a phone number and make sure it carries a ``+``.

    Length and country code are not checked.
    """
    phone = _PHONE_STRIP_RE.sub("", raw.strip())
    if phone and not phone.startswith("+") and phone[0].isdigit():
        phone = "+" + phone
    return phone


def extract_contact_info(
    questions: Iterable[QuizQuestion], responses: Iterable[QuizResponse]
) -> ExtractedContactInfo:
    info: dict[str, str] = {}

    for answer in resolve_responses(questions, responses):
        if isinstance(answer, NameAnswer):
            if answer.first_name is not None:
                info["first_name"] = answer.first_name
            if answer.last_name is not None:
                info["last_name"] = answer.last_name
        elif isinstance(answer, TextAnswer) and answer.text and answer.text.strip():
            if answer.question.type == "email":
                info["email"] = answer.text.strip().lower()
            elif answer.question.type == "phone":
                info["phone"] = normalize_phone(answer.text)

    return ExtractedContactInfo(**info)
