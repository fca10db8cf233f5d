from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm.app.core.errors import AppError
from crm.app.crud.users import get_active_member
from crm.app.db.session import get_db
from crm.app.dependencies.auth import TenantContext, get_tenant
from crm.app.dependencies.filters import get_predicate
from crm.app.models import Lead, LeadStatus
from crm.app.schemas import LeadAssign, LeadDetail, LeadRead, LeadStatusUpdate
from crm.app.services.audit import record_audit
from crm.app.services.filters.compiler import Predicate
from crm.app.services.filters.query import lead_where

logger = logging.getLogger("crm.leads")

router = APIRouter(prefix="/leads", tags=["leads"], redirect_slashes=False)


def _get_lead(db: Session, lead_id: uuid.UUID, company_id: uuid.UUID) -> Lead:
    lead = db.query(Lead).filter(Lead.id == lead_id, Lead.company_id == company_id).first()
    if not lead:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return lead


@router.get("", response_model=list[LeadRead])
@router.get("/", response_model=list[LeadRead])
def list_leads(
    predicate: Predicate = Depends(get_predicate),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    return (
        db.query(Lead)
        .filter(*lead_where(predicate, tenant.company_id))
        .order_by(Lead.created_at.desc())
        .all()
    )


@router.get("/{lead_id}", response_model=LeadDetail)
def get_lead(lead_id: uuid.UUID, db: Session = Depends(get_db), tenant: TenantContext = Depends(get_tenant)):
    return _get_lead(db, lead_id, tenant.company_id)


@router.patch("/{lead_id}/status", response_model=LeadRead)
def update_lead_status(
    lead_id: uuid.UUID,
    payload: LeadStatusUpdate,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    lead = _get_lead(db, lead_id, tenant.company_id)
    previous = lead.status
    if previous == payload.status:
        return lead

    lead.status = payload.status
    if payload.status == LeadStatus.CONVERTED:
        lead.converted_at = datetime.now(timezone.utc)
    elif previous == LeadStatus.CONVERTED:
        lead.converted_at = None

    record_audit(
        db,
        company_id=tenant.company_id,
        user_id=tenant.user_id,
        action="LEAD_STATUS_CHANGE",
        entity="Lead",
        entity_id=lead.id,
        old_values={"status": previous.value},
        new_values={"status": payload.status.value},
    )
    db.commit()
    db.refresh(lead)
    logger.info("lead status lead=%s %s -> %s by=%s", lead.id, previous.value, lead.status.value, tenant.username)
    return lead


@router.patch("/{lead_id}/assign", response_model=LeadRead)
def assign_lead(
    lead_id: uuid.UUID,
    payload: LeadAssign,
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(get_tenant),
):
    lead = _get_lead(db, lead_id, tenant.company_id)
    if payload.assigned_to_id is not None and not get_active_member(
        db, payload.assigned_to_id, company_id=tenant.company_id
    ):
        raise AppError("User not found in company", "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST)
    previous = lead.assigned_to_id
    if previous == payload.assigned_to_id:
        return lead

    lead.assigned_to_id = payload.assigned_to_id
    record_audit(
        db,
        company_id=tenant.company_id,
        user_id=tenant.user_id,
        action="LEAD_ASSIGN",
        entity="Lead",
        entity_id=lead.id,
        old_values={"assigned_to_id": str(previous) if previous else None},
        new_values={"assigned_to_id": str(payload.assigned_to_id) if payload.assigned_to_id else None},
    )
    db.commit()
    db.refresh(lead)
    logger.info("lead assigned lead=%s to=%s by=%s", lead.id, lead.assigned_to_id, tenant.username)
    return lead
