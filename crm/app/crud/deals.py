from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from crm.app.models import Deal, DealStage, Lead, LeadStatus
from crm.app.schemas.deal import DealCreate

CLOSED_STAGES = (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)


def get_deal(db: Session, deal_id: uuid.UUID, *, company_id: uuid.UUID) -> Deal | None:
    return db.query(Deal).filter(Deal.id == deal_id, Deal.company_id == company_id).first()


def list_deals(
    db: Session,
    *,
    company_id: uuid.UUID,
    stage: DealStage | None = None,
    lead_id: uuid.UUID | None = None,
) -> list[Deal]:
    query = db.query(Deal).filter(Deal.company_id == company_id)
    if stage is not None:
        query = query.filter(Deal.stage == stage)
    if lead_id is not None:
        query = query.filter(Deal.lead_id == lead_id)
    return query.order_by(Deal.created_at.desc()).all()


def apply_stage(deal: Deal, stage: DealStage) -> None:
    """Move a deal to ``stage``.

    Closing stamps ``closed_at``; a won deal also converts its lead.
    """
    now = datetime.now(timezone.utc)
    deal.stage = stage
    deal.closed_at = now if stage in CLOSED_STAGES else None
    if stage == DealStage.CLOSED_WON and deal.lead.status != LeadStatus.CONVERTED:
        deal.lead.status = LeadStatus.CONVERTED
        deal.lead.converted_at = now


def create_deal(db: Session, payload: DealCreate, lead: Lead, *, assigned_to_id: uuid.UUID) -> Deal:
    deal = Deal(
        company_id=lead.company_id,
        lead_id=lead.id,
        assigned_to_id=assigned_to_id,
        title=payload.title.strip(),
        value=payload.value,
        currency=payload.currency.upper(),
    )
    deal.lead = lead
    apply_stage(deal, payload.stage)
    db.add(deal)
    db.flush()
    return deal
