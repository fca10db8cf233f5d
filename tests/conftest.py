"""Shared fixtures: in-memory SQLite database, seeded tenant, API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import secrets
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from crm.app.core.security import hash_password
from crm.app.db.session import Base, get_db
from crm.app.main import app
from crm.app.models import Company, Deal, DealStage, Lead, LeadSource, LeadStatus, Quiz, Role, User, UserToken

PASSWORD = "s3cret-pass"

QUIZ_CONFIG = {
    "version": 1,
    "questions": [
        {
            "id": "budget",
            "type": "radio",
            "question_text": "What is your budget?",
            "weight": 10,
            "options": [
                {"id": "low", "label": "Low", "value": "low", "score": 2},
                {"id": "high", "label": "High", "value": "high", "score": 10},
            ],
        },
        {"id": "name", "type": "name", "question_text": "Your name", "weight": 5},
        {"id": "email", "type": "email", "question_text": "Your email", "weight": 5},
        {"id": "phone", "type": "phone", "question_text": "Your phone", "weight": 5},
        {"id": "notes", "type": "text", "question_text": "Anything else?", "weight": 5, "required": False},
    ],
    "settings": {"thank_you_message": "Thanks!"},
}

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db, company, username, role, permissions=None):
    user = User(
        company_id=company.id,
        username=username,
        email=f"{username}@example.com",
        first_name=username.capitalize(),
        last_name="Tester",
        password_hash=hash_password(PASSWORD),
        role=role,
        permissions=permissions,
    )
    db.add(user)
    db.flush()
    token = UserToken(
        user_id=user.id,
        token=secrets.token_urlsafe(16),
        expires_at=datetime.now(timezone.utc) + timedelta(days=1),
    )
    db.add(token)
    db.flush()
    return user, token.token


@pytest.fixture()
def tenant(db):
    """One company with an owner, a manager, two employees and a published quiz."""
    company = Company(slug="acme", name="Acme")
    db.add(company)
    db.flush()

    owner, owner_token = _make_user(db, company, "owner", Role.OWNER)
    manager, manager_token = _make_user(db, company, "manager", Role.MANAGER)
    employee, employee_token = _make_user(db, company, "employee", Role.EMPLOYEE)
    exporter, exporter_token = _make_user(
        db, company, "exporter", Role.EMPLOYEE, permissions={"canExportData": True, "canManageQuizzes": True}
    )

    quiz = Quiz(
        company_id=company.id,
        slug="lead-magnet",
        title="Lead magnet",
        config=QUIZ_CONFIG,
        is_published=True,
    )
    db.add(quiz)
    db.commit()

    return {
        "company": company,
        "owner": owner,
        "manager": manager,
        "employee": employee,
        "exporter": exporter,
        "quiz": quiz,
        "tokens": {
            "owner": owner_token,
            "manager": manager_token,
            "employee": employee_token,
            "exporter": exporter_token,
        },
    }


@pytest.fixture()
def other_tenant(db):
    company = Company(slug="globex", name="Globex")
    db.add(company)
    db.flush()
    owner, token = _make_user(db, company, "globex-owner", Role.OWNER)
    db.commit()
    return {"company": company, "owner": owner, "token": token}


@pytest.fixture()
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def headers(tenant):
    """Authorization headers keyed by seeded username."""
    return {name: {"Authorization": f"Bearer {token}"} for name, token in tenant["tokens"].items()}


@pytest.fixture()
def pipeline(db, tenant, other_tenant):
    """Three acme leads with a spread of statuses and deals, plus one globex lead.

    * ``hot``: NEW, quiz, score 80, one open 1000 deal, created yesterday
    * ``won``: CONVERTED, manual, score 40, a 5000 won deal and a 200 lost one
    * ``cold``: CONTACTED, import, score 20, no deals, 40 days old, assigned to the employee
    """
    now = datetime.now(timezone.utc)
    company = tenant["company"]

    hot = Lead(
        company_id=company.id,
        quiz_id=tenant["quiz"].id,
        first_name="Ana",
        last_name="Lee",
        email="ana@example.com",
        phone="+15550001",
        company_name='Acme, "Intl"',
        source=LeadSource.QUIZ,
        status=LeadStatus.NEW,
        score=80,
        tags="vip,hot",
        created_at=now - timedelta(days=1),
    )
    won = Lead(
        company_id=company.id,
        first_name="Bo",
        source=LeadSource.MANUAL,
        status=LeadStatus.CONVERTED,
        score=40,
        tags="100%",
        converted_at=now - timedelta(days=1),
        created_at=now - timedelta(days=2),
    )
    cold = Lead(
        company_id=company.id,
        assigned_to_id=tenant["employee"].id,
        first_name="Cy",
        source=LeadSource.IMPORT,
        status=LeadStatus.CONTACTED,
        score=20,
        created_at=now - timedelta(days=40),
    )
    foreign = Lead(
        company_id=other_tenant["company"].id,
        first_name="Xi",
        source=LeadSource.QUIZ,
        status=LeadStatus.NEW,
        score=99,
        created_at=now - timedelta(days=1),
    )
    db.add_all([hot, won, cold, foreign])
    db.flush()

    db.add_all(
        [
            Deal(company_id=company.id, lead_id=hot.id, title="Starter", value=Decimal("1000"), stage=DealStage.PROPOSAL),
            Deal(
                company_id=company.id,
                lead_id=won.id,
                title="Enterprise",
                value=Decimal("5000"),
                stage=DealStage.CLOSED_WON,
                closed_at=now - timedelta(days=1),
            ),
            Deal(company_id=company.id, lead_id=won.id, title="Add-on", value=Decimal("200"), stage=DealStage.CLOSED_LOST),
            Deal(
                company_id=other_tenant["company"].id,
                lead_id=foreign.id,
                title="Foreign",
                value=Decimal("7777"),
                stage=DealStage.CLOSED_WON,
            ),
        ]
    )
    db.commit()
    return {"hot": hot, "won": won, "cold": cold, "foreign": foreign, "now": now}
