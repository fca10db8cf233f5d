from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from crm.app.core.config import get_settings
from crm.app.db.session import get_db
from crm.app.dependencies.auth import TenantContext, require_permission, require_role
from crm.app.dependencies.filters import get_predicate
from crm.app.models import Role
from crm.app.schemas.analytics import ChartData, FieldDefinitionRead, StatCard
from crm.app.services.analytics import get_chart_data, get_stats
from crm.app.services.export import fetch_export_leads, format_leads_to_csv, format_leads_to_xlsx
from crm.app.services.filters.compiler import Predicate
from crm.app.services.filters.fields import FIELD_CONFIG

logger = logging.getLogger("crm.analytics")

router = APIRouter(prefix="/analytics", tags=["analytics"], redirect_slashes=False)

can_export = require_permission("canExportData", minimum=Role.MANAGER)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/fields", response_model=list[FieldDefinitionRead])
def get_fields(tenant: TenantContext = Depends(require_role(Role.EMPLOYEE))):
    return [
        FieldDefinitionRead(
            field=field,
            label=definition.label,
            type=definition.type,
            operators=list(definition.operators),
            options=list(definition.options) if definition.options else None,
        )
        for field, definition in FIELD_CONFIG.items()
    ]


@router.get("/stats", response_model=list[StatCard])
def stats(
    predicate: Predicate = Depends(get_predicate),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    return get_stats(db, predicate, tenant.company_id)


@router.get("/charts", response_model=ChartData)
def charts(
    predicate: Predicate = Depends(get_predicate),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(require_role(Role.EMPLOYEE)),
):
    return get_chart_data(db, predicate, tenant.company_id)


@router.get("/export.csv")
def export_csv(
    predicate: Predicate = Depends(get_predicate),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(can_export),
):
    leads = fetch_export_leads(db, predicate, tenant.company_id, limit=get_settings().export_row_limit)
    logger.info("export csv company=%s rows=%s by=%s", tenant.company_id, len(leads), tenant.username)
    return Response(
        content=format_leads_to_csv(leads).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="leads.csv"'},
    )


@router.get("/export.xlsx")
def export_xlsx(
    predicate: Predicate = Depends(get_predicate),
    db: Session = Depends(get_db),
    tenant: TenantContext = Depends(can_export),
):
    leads = fetch_export_leads(db, predicate, tenant.company_id, limit=get_settings().export_row_limit)
    logger.info("export xlsx company=%s rows=%s by=%s", tenant.company_id, len(leads), tenant.username)
    return Response(
        content=format_leads_to_xlsx(leads),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="leads.xlsx"'},
    )
