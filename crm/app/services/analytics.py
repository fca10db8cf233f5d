from __future__ import annotations

import math
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from crm.app.models import Deal, DealStage, Lead, LeadStatus
from crm.app.schemas.analytics import ChartData, ChartDataPoint, FunnelStep, StatCard
from crm.app.services.filters.compiler import Predicate
from crm.app.services.filters.query import deal_where, lead_where

SOURCE_COLORS = {
    "quiz": "#6366f1",
    "manual": "#10b981",
    "import": "#f59e0b",
}
DEFAULT_SOURCE_COLOR = "#94a3b8"
DAILY_ACTIVITY_DAYS = 30
OPEN_STAGES = [s for s in DealStage if s not in (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)]


def pct_change(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return (current - previous) / previous * 100


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _count_leads(db: Session, where: list, *extra) -> int:
    return db.query(func.count(Lead.id)).filter(*where, *extra).scalar() or 0


def get_stats(db: Session, predicate: Predicate, company_id: uuid.UUID) -> list[StatCard]:
    where = lead_where(predicate, company_id)
    deals = deal_where(company_id)

    total_leads = _count_leads(db, where)
    converted = _count_leads(db, where, Lead.status == LeadStatus.CONVERTED)
    pipeline_value = float(
        db.query(func.sum(Deal.value)).filter(deals, Deal.stage.in_(OPEN_STAGES)).scalar() or 0
    )
    revenue = float(
        db.query(func.sum(Deal.value)).filter(deals, Deal.stage == DealStage.CLOSED_WON).scalar() or 0
    )
    avg_deal = float(db.query(func.avg(Deal.value)).filter(deals).scalar() or 0)
    avg_score = float(db.query(func.avg(Lead.score)).filter(*where).scalar() or 0)
    conversion_rate = converted / total_leads * 100 if total_leads else 0.0

    # previous period comparison is not tracked yet; every change is measured against zero
    previous = 0

    def card(label: str, value: float | int, icon: str, fmt: str) -> StatCard:
        return StatCard(
            label=label,
            value=value,
            change=pct_change(value, previous),
            change_label="vs previous period",
            icon=icon,
            format=fmt,
        )

    return [
        card("Total Leads", total_leads, "Users", "number"),
        card("Conversion Rate", _round1(conversion_rate), "TrendingUp", "percentage"),
        card("Pipeline Value", pipeline_value, "DollarSign", "currency"),
        card("Total Revenue", revenue, "Banknote", "currency"),
        card("Avg Deal Size", _round_half_up(avg_deal), "BarChart3", "currency"),
        card("Avg Lead Score", _round_half_up(avg_score), "Target", "number"),
    ]


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def get_chart_data(
    db: Session,
    predicate: Predicate,
    company_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> ChartData:
    where = lead_where(predicate, company_id)

    by_source = (
        db.query(Lead.source, func.count(Lead.id))
        .filter(*where)
        .group_by(Lead.source)
        .all()
    )
    leads_by_source = [
        ChartDataPoint(
            label=source.value if source is not None else "unknown",
            value=int(count),
            color=SOURCE_COLORS.get(source.value if source is not None else "", DEFAULT_SOURCE_COLOR),
        )
        for source, count in by_source
    ]

    end = _as_utc(now or datetime.now(timezone.utc))
    start = end - timedelta(days=DAILY_ACTIVITY_DAYS)
    created = (
        db.query(Lead.created_at)
        .filter(*where, Lead.created_at >= start, Lead.created_at <= end)
        .all()
    )
    per_day = Counter(_as_utc(row[0]).date().isoformat() for row in created)
    daily_activity = []
    day = start.date()
    while day <= end.date():
        key = day.isoformat()
        daily_activity.append(ChartDataPoint(label=key, value=per_day.get(key, 0)))
        day += timedelta(days=1)

    steps = [
        ("Total Leads", _count_leads(db, where)),
        (
            "Contacted",
            _count_leads(
                db,
                where,
                Lead.status.in_([LeadStatus.CONTACTED, LeadStatus.QUALIFIED, LeadStatus.CONVERTED]),
            ),
        ),
        ("Qualified", _count_leads(db, where, Lead.status.in_([LeadStatus.QUALIFIED, LeadStatus.CONVERTED]))),
        ("Converted", _count_leads(db, where, Lead.status == LeadStatus.CONVERTED)),
        (
            "Won",
            db.query(func.count(Deal.id))
            .filter(deal_where(company_id), Deal.stage == DealStage.CLOSED_WON)
            .scalar()
            or 0,
        ),
    ]
    return ChartData(leads_by_source=leads_by_source, daily_activity=daily_activity, funnel=build_funnel(steps))


def build_funnel(steps: list[tuple[str, int]]) -> list[FunnelStep]:
    if not steps:
        return []
    base = steps[0][1] or 1
    funnel: list[FunnelStep] = []
    for index, (stage, count) in enumerate(steps):
        prev = count if index == 0 else (steps[index - 1][1] or 1)
        drop_off = 0.0 if index == 0 else (prev - count) / prev * 100
        funnel.append(
            FunnelStep(
                stage=stage,
                count=count,
                percentage=_round1(count / base * 100),
                drop_off=_round1(drop_off),
            )
        )
    return funnel
