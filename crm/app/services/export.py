from __future__ import annotations

import csv
import io
import uuid
from collections.abc import Iterable, Sequence
from datetime import timezone

from openpyxl import Workbook
from sqlalchemy.orm import Session, selectinload

from crm.app.models import Lead
from crm.app.services.filters.compiler import Predicate
from crm.app.services.filters.query import lead_where

EXPORT_HEADERS = [
    "Name",
    "Email",
    "Phone",
    "Company",
    "Status",
    "Score",
    "Source",
    "Assigned To",
    "Created",
    "Quiz",
    "Deals Count",
    "Total Deal Value",
]

# lets Excel detect UTF-8 (Arabic names, accents)
UTF8_BOM = "\ufeff"


def fetch_export_leads(db: Session, predicate: Predicate, company_id: uuid.UUID, *, limit: int) -> list[Lead]:
    return (
        db.query(Lead)
        .options(selectinload(Lead.assigned_to), selectinload(Lead.quiz), selectinload(Lead.deals))
        .filter(*lead_where(predicate, company_id))
        .order_by(Lead.created_at.desc())
        .limit(limit)
        .all()
    )


def _join_name(*parts: str | None) -> str:
    return " ".join(p for p in parts if p)


def _number(value) -> int | float:
    number = float(value or 0)
    return int(number) if number.is_integer() else number


def lead_export_row(lead: Lead) -> list:
    assigned = _join_name(lead.assigned_to.first_name, lead.assigned_to.last_name) if lead.assigned_to else ""
    created = ""
    if lead.created_at is not None:
        moment = lead.created_at
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        created = moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    deals = lead.deals or []
    return [
        _join_name(lead.first_name, lead.last_name),
        lead.email or "",
        lead.phone or "",
        lead.company_name or "",
        lead.status.value if lead.status is not None else "",
        lead.score if lead.score is not None else "",
        lead.source.value if lead.source is not None else "",
        assigned,
        created,
        lead.quiz.title if lead.quiz else "",
        len(deals),
        _number(sum(float(d.value or 0) for d in deals)),
    ]


def format_rows_to_csv(rows: Iterable[Sequence]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(rows)
    # no trailing newline after the last record
    return UTF8_BOM + buf.getvalue().rstrip("\n")


def format_leads_to_csv(leads: Iterable[Lead]) -> str:
    return format_rows_to_csv(lead_export_row(lead) for lead in leads)


def format_leads_to_xlsx(leads: Iterable[Lead]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Leads"
    ws.append(EXPORT_HEADERS)
    for lead in leads:
        ws.append(lead_export_row(lead))

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()
