"""Contact extraction from quiz responses."""

import pytest

from crm.app.schemas.quiz import QuizConfig, QuizResponse
from crm.app.services.quiz.extraction import extract_contact_info, normalize_phone


def _questions(*questions):
    return QuizConfig.model_validate({"questions": list(questions)}).questions


NAME = {"id": "q1", "type": "name", "question_text": "Name"}
EMAIL = {"id": "q2", "type": "email", "question_text": "Email"}
PHONE = {"id": "q3", "type": "phone", "question_text": "Phone"}


class TestExtractContactInfo:
    def test_name_object_and_email(self):
        info = extract_contact_info(
            _questions(NAME, EMAIL),
            [
                QuizResponse(question_id="q1", answer={"firstName": "Ana", "lastName": "Lee"}),
                QuizResponse(question_id="q2", answer=" ANA@EXAMPLE.COM "),
            ],
        )
        assert info.model_dump(exclude_none=True) == {
            "first_name": "Ana",
            "last_name": "Lee",
            "email": "ana@example.com",
        }

    def test_name_string_is_split(self):
        info = extract_contact_info(
            _questions(NAME), [QuizResponse(question_id="q1", answer="  Mary  Ann   Smith ")]
        )
        assert info.first_name == "Mary"
        assert info.last_name == "Ann Smith"

    def test_single_word_name_has_no_last_name(self):
        info = extract_contact_info(_questions(NAME), [QuizResponse(question_id="q1", answer="Cher")])
        assert info.first_name == "Cher"
        assert info.last_name is None

    def test_phone_is_normalized(self):
        info = extract_contact_info(_questions(PHONE), [QuizResponse(question_id="q3", answer="(555) 123-4567")])
        assert info.phone == "+5551234567"

    def test_last_response_wins(self):
        questions = _questions(EMAIL, dict(EMAIL, id="q4"))
        info = extract_contact_info(
            questions,
            [
                QuizResponse(question_id="q2", answer="first@example.com"),
                QuizResponse(question_id="q4", answer="second@example.com"),
            ],
        )
        assert info.email == "second@example.com"

    def test_blank_answer_does_not_overwrite(self):
        questions = _questions(EMAIL, dict(EMAIL, id="q4"))
        info = extract_contact_info(
            questions,
            [
                QuizResponse(question_id="q2", answer="kept@example.com"),
                QuizResponse(question_id="q4", answer="   "),
            ],
        )
        assert info.email == "kept@example.com"

    def test_dispatch_follows_question_type(self):
        # an email-shaped answer to a text question is not an email
        questions = _questions({"id": "t", "type": "text", "question_text": "Notes"})
        info = extract_contact_info(questions, [QuizResponse(question_id="t", answer="a@b.com")])
        assert info.model_dump(exclude_none=True) == {}

    def test_unknown_question_and_wrong_shapes_are_ignored(self):
        info = extract_contact_info(
            _questions(NAME, EMAIL),
            [
                QuizResponse(question_id="ghost", answer="x@y.com"),
                QuizResponse(question_id="q2", answer={"email": "x@y.com"}),
                QuizResponse(question_id="q1", answer=42),
            ],
        )
        assert info.model_dump(exclude_none=True) == {}


class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("(555) 123-4567", "+5551234567"),
            ("+44 20 1234", "+44201234"),
            ("  0044-20 ", "+004420"),
            ("ext. 12", "ext.12"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_phone(raw) == expected
