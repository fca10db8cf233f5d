from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from crm.app.models import User


def get_active_member(db: Session, user_id: uuid.UUID, *, company_id: uuid.UUID) -> User | None:
    return (
        db.query(User)
        .filter(User.id == user_id, User.company_id == company_id, User.is_active.is_(True))
        .first()
    )
