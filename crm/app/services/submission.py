from __future__ import annotations

import logging

from fastapi import status
from sqlalchemy.orm import Session

from crm.app.core.errors import AppError
from crm.app.models import Lead, LeadSource, LeadStatus, Quiz
from crm.app.schemas.quiz import QuizConfig, QuizSubmission, QuizSubmissionResult
from crm.app.services.audit import record_audit
from crm.app.services.quiz.extraction import extract_contact_info
from crm.app.services.quiz.scoring import calculate_lead_score
from crm.app.services.quiz.validation import validate_submission_responses

logger = logging.getLogger("crm.quiz")


def submit_quiz(db: Session, quiz: Quiz, submission: QuizSubmission) -> QuizSubmissionResult:
    """Turn a quiz submission into a lead.

    A lead from the same company with the same phone number absorbs the new
    responses (score kept at the higher of the two); otherwise a new lead is
    created. The lead and its audit entry are committed together.
    """
    config = QuizConfig.model_validate(quiz.config)

    errors = validate_submission_responses(config, submission.responses)
    if errors:
        first = next(iter(errors.values()))
        raise AppError(first, "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST, extra={"errors": errors})

    contact = extract_contact_info(config.questions, submission.responses)
    score = calculate_lead_score(config, submission.responses)
    stored_responses = [r.model_dump(mode="json") for r in submission.responses]

    existing = None
    if contact.phone:
        existing = (
            db.query(Lead)
            .filter(Lead.company_id == quiz.company_id, Lead.phone == contact.phone)
            .order_by(Lead.created_at.asc())
            .first()
        )

    if existing is not None:
        previous_score = existing.score
        existing.quiz_id = quiz.id
        existing.quiz_responses = list(existing.quiz_responses or []) + stored_responses
        existing.score = max(existing.score or 0, score)
        for key in ("first_name", "last_name", "email"):
            value = getattr(contact, key)
            if value:
                setattr(existing, key, value)
        lead = existing
        record_audit(
            db,
            company_id=quiz.company_id,
            user_id=None,
            action="LEAD_QUIZ_MERGE",
            entity="Lead",
            entity_id=lead.id,
            old_values={"score": previous_score},
            new_values={"score": lead.score, "quiz_id": str(quiz.id)},
        )
    else:
        lead = Lead(
            company_id=quiz.company_id,
            quiz_id=quiz.id,
            first_name=contact.first_name,
            last_name=contact.last_name,
            email=contact.email,
            phone=contact.phone,
            source=LeadSource.QUIZ,
            status=LeadStatus.NEW,
            quiz_responses=stored_responses,
            score=score,
        )
        db.add(lead)
        db.flush()
        record_audit(
            db,
            company_id=quiz.company_id,
            user_id=None,
            action="LEAD_CREATE",
            entity="Lead",
            entity_id=lead.id,
            new_values={"source": LeadSource.QUIZ.value, "score": score, "quiz_id": str(quiz.id)},
        )

    db.commit()
    logger.info(
        "quiz submission quiz=%s lead=%s score=%s merged=%s",
        quiz.id,
        lead.id,
        score,
        existing is not None,
    )
    return QuizSubmissionResult(lead_id=lead.id, score=score, merged=existing is not None)
