from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from crm.app.models import Company, Quiz
from crm.app.schemas.quiz import QuizCreate, QuizUpdate


def create_quiz(db: Session, payload: QuizCreate, *, company_id: uuid.UUID) -> Quiz:
    data = payload.model_dump(mode="json")
    quiz = Quiz(
        company_id=company_id,
        slug=data["slug"],
        title=data["title"],
        description=data["description"],
        is_published=data["is_published"],
        is_active=data["is_active"],
        config=data["config"],
    )
    db.add(quiz)
    db.flush()
    db.refresh(quiz)
    return quiz


def get_quiz(db: Session, quiz_id: uuid.UUID, *, company_id: uuid.UUID) -> Quiz | None:
    return db.query(Quiz).filter(Quiz.id == quiz_id, Quiz.company_id == company_id).first()


def get_quiz_by_slug(db: Session, slug: str, *, company_id: uuid.UUID) -> Quiz | None:
    return db.query(Quiz).filter(Quiz.slug == slug, Quiz.company_id == company_id).first()


def get_public_quiz(db: Session, company_slug: str, quiz_slug: str) -> Quiz | None:
    return (
        db.query(Quiz)
        .join(Company, Company.id == Quiz.company_id)
        .filter(
            Company.slug == company_slug,
            Company.is_active.is_(True),
            Quiz.slug == quiz_slug,
            Quiz.is_published.is_(True),
            Quiz.is_active.is_(True),
        )
        .first()
    )


def get_submittable_quiz(db: Session, quiz_id: uuid.UUID) -> Quiz | None:
    return (
        db.query(Quiz)
        .join(Company, Company.id == Quiz.company_id)
        .filter(
            Quiz.id == quiz_id,
            Quiz.is_published.is_(True),
            Quiz.is_active.is_(True),
            Company.is_active.is_(True),
        )
        .first()
    )


def list_quizzes(db: Session, *, company_id: uuid.UUID) -> list[Quiz]:
    return db.query(Quiz).filter(Quiz.company_id == company_id).order_by(Quiz.created_at.desc()).all()


def update_quiz(db: Session, quiz: Quiz, payload: QuizUpdate) -> Quiz:
    data = payload.model_dump(mode="json", exclude_unset=True)

    for key in ("title", "description", "is_published", "is_active"):
        if key in data and (data[key] is not None or key == "description"):
            setattr(quiz, key, data[key])
    if data.get("config") is not None:
        quiz.config = data["config"]

    db.flush()
    db.refresh(quiz)
    return quiz


def delete_quiz(db: Session, quiz: Quiz) -> None:
    db.delete(quiz)
    db.flush()
