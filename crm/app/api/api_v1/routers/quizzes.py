from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm.app.core.errors import AppError
from crm.app.crud.quizzes import (
    create_quiz,
    delete_quiz,
    get_public_quiz,
    get_quiz,
    get_quiz_by_slug,
    get_submittable_quiz,
    list_quizzes,
    update_quiz,
)
from crm.app.db.session import get_db
from crm.app.dependencies.auth import TenantContext, require_permission
from crm.app.schemas import QuizConfig, QuizCreate, QuizRead, QuizSubmission, QuizSubmissionResult, QuizUpdate
from crm.app.services.audit import record_audit
from crm.app.services.quiz.validation import check_quiz_config
from crm.app.services.submission import submit_quiz

router = APIRouter(prefix="/quizzes", tags=["quizzes"], redirect_slashes=False)

manage_quizzes = require_permission("canManageQuizzes")


def _ensure_valid_config(config: QuizConfig) -> None:
    problems = check_quiz_config(config)
    if problems:
        raise AppError(problems[0], "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST, extra={"problems": problems})


@router.get("", response_model=list[QuizRead])
@router.get("/", response_model=list[QuizRead])
def get_quizzes(db: Session = Depends(get_db), tenant: TenantContext = Depends(manage_quizzes)):
    return list_quizzes(db, company_id=tenant.company_id)


@router.post("", response_model=QuizRead, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=QuizRead, status_code=status.HTTP_201_CREATED)
def create_quiz_handler(
    payload: QuizCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(manage_quizzes),
):
    _ensure_valid_config(payload.config)
    if get_quiz_by_slug(db, payload.slug, company_id=tenant.company_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already in use")
    quiz = create_quiz(db, payload, company_id=tenant.company_id)
    record_audit(
        db,
        company_id=tenant.company_id,
        user_id=tenant.user_id,
        action="QUIZ_CREATE",
        entity="Quiz",
        entity_id=quiz.id,
        new_values={"slug": quiz.slug, "title": quiz.title},
    )
    db.commit()
    db.refresh(quiz)
    return quiz


@router.get("/public/{company_slug}/{quiz_slug}", response_model=QuizRead)
def get_public_quiz_handler(company_slug: str, quiz_slug: str, db: Session = Depends(get_db)):
    quiz = get_public_quiz(db, company_slug, quiz_slug)
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not available")
    return quiz


@router.post("/{quiz_id}/submit", response_model=QuizSubmissionResult, status_code=status.HTTP_201_CREATED)
def submit_quiz_handler(quiz_id: uuid.UUID, payload: QuizSubmission, db: Session = Depends(get_db)):
    quiz = get_submittable_quiz(db, quiz_id)
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not available")
    return submit_quiz(db, quiz, payload)


@router.get("/{quiz_id}", response_model=QuizRead)
def get_quiz_handler(
    quiz_id: uuid.UUID,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(manage_quizzes),
):
    quiz = get_quiz(db, quiz_id, company_id=tenant.company_id)
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    return quiz


@router.patch("/{quiz_id}", response_model=QuizRead)
def update_quiz_handler(
    quiz_id: uuid.UUID,
    payload: QuizUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(manage_quizzes),
):
    quiz = get_quiz(db, quiz_id, company_id=tenant.company_id)
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    if payload.config is not None:
        _ensure_valid_config(payload.config)
    old_values = {"title": quiz.title, "is_published": quiz.is_published, "is_active": quiz.is_active}
    updated = update_quiz(db, quiz, payload)
    record_audit(
        db,
        company_id=tenant.company_id,
        user_id=tenant.user_id,
        action="QUIZ_UPDATE",
        entity="Quiz",
        entity_id=quiz.id,
        old_values=old_values,
        new_values={"title": updated.title, "is_published": updated.is_published, "is_active": updated.is_active},
    )
    db.commit()
    db.refresh(updated)
    return updated


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quiz_handler(
    quiz_id: uuid.UUID,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(manage_quizzes),
):
    quiz = get_quiz(db, quiz_id, company_id=tenant.company_id)
    if not quiz:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    record_audit(
        db,
        company_id=tenant.company_id,
        user_id=tenant.user_id,
        action="QUIZ_DELETE",
        entity="Quiz",
        entity_id=quiz.id,
        old_values={"slug": quiz.slug, "title": quiz.title},
    )
    delete_quiz(db, quiz)
    db.commit()
