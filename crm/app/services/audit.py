from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from crm.app.models import AuditLog


def record_audit(
    db: Session,
    *,
    company_id: uuid.UUID,
    user_id: uuid.UUID | None,
    action: str,
    entity: str,
    entity_id: uuid.UUID | str,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an audit entry in the caller's session.

    Nothing is committed here; the entry lands together with the change it
    describes when the caller commits.
    """
    entry = AuditLog(
        company_id=company_id,
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id),
        old_values=old_values,
        new_values=new_values,
    )
    db.add(entry)
    return entry
