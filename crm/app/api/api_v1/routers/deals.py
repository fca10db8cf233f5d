from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crm.app.core.errors import AppError
from crm.app.crud.deals import CLOSED_STAGES, apply_stage, create_deal, get_deal, list_deals
from crm.app.crud.users import get_active_member
from crm.app.db.session import get_db
from crm.app.dependencies.auth import TenantContext, require_role
from crm.app.models import DealStage, Lead, Role
from crm.app.schemas import DealCreate, DealRead, DealStageUpdate
from crm.app.services.audit import record_audit

logger = logging.getLogger("crm.deals")

router = APIRouter(prefix="/deals", tags=["deals"], redirect_slashes=False)


@router.get("", response_model=list[DealRead])
@router.get("/", response_model=list[DealRead])
def get_deals(
    stage: DealStage | None = Query(None),
    lead_id: uuid.UUID | None = Query(None),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    return list_deals(db, company_id=tenant.company_id, stage=stage, lead_id=lead_id)


@router.post("", response_model=DealRead, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=DealRead, status_code=status.HTTP_201_CREATED)
def create_deal_handler(
    payload: DealCreate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_role(Role.MANAGER)),
):
    lead = db.query(Lead).filter(Lead.id == payload.lead_id, Lead.company_id == tenant.company_id).first()
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    if payload.assigned_to_id is not None:
        if not get_active_member(db, payload.assigned_to_id, company_id=tenant.company_id):
            raise AppError("User not found in company", "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST)
        assigned_to_id = payload.assigned_to_id
    else:
        assigned_to_id = lead.assigned_to_id or tenant.user_id

    deal = create_deal(db, payload, lead, assigned_to_id=assigned_to_id)
    record_audit(
        db,
        company_id=tenant.company_id,
        user_id=tenant.user_id,
        action="DEAL_CREATE",
        entity="Deal",
        entity_id=deal.id,
        new_values={
            "title": deal.title,
            "value": str(deal.value),
            "currency": deal.currency,
            "stage": deal.stage.value,
            "lead_id": str(lead.id),
        },
    )
    db.commit()
    db.refresh(deal)
    logger.info("deal created deal=%s lead=%s stage=%s by=%s", deal.id, lead.id, deal.stage.value, tenant.username)
    return deal


@router.get("/{deal_id}", response_model=DealRead)
def get_deal_handler(
    deal_id: uuid.UUID,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    deal = get_deal(db, deal_id, company_id=tenant.company_id)
    if not deal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deal not found")
    return deal


@router.patch("/{deal_id}/stage", response_model=DealRead)
def update_deal_stage(
    deal_id: uuid.UUID,
    payload: DealStageUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    deal = get_deal(db, deal_id, company_id=tenant.company_id)
    if not deal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Deal not found")
    previous = deal.stage
    if previous == payload.stage:
        return deal
    if previous in CLOSED_STAGES:
        raise AppError("Cannot change stage of a closed deal", "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST)

    apply_stage(deal, payload.stage)
    record_audit(
        db,
        company_id=tenant.company_id,
        user_id=tenant.user_id,
        action="DEAL_STAGE_CHANGE",
        entity="Deal",
        entity_id=deal.id,
        old_values={"stage": previous.value},
        new_values={"stage": payload.stage.value},
    )
    db.commit()
    db.refresh(deal)
    logger.info("deal stage deal=%s %s -> %s by=%s", deal.id, previous.value, deal.stage.value, tenant.username)
    return deal
