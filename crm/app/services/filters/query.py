from __future__ import annotations

import uuid

from sqlalchemy.sql.elements import ColumnElement

from crm.app.models import Deal, DealStage, Lead, LeadSource, LeadStatus
from crm.app.schemas.analytics import FilterableField
from crm.app.services.filters.compiler import Condition, Predicate

_COLUMNS = {
    FilterableField.STATUS: (Lead.status, LeadStatus),
    FilterableField.SOURCE: (Lead.source, LeadSource),
    FilterableField.SCORE: (Lead.score, None),
    FilterableField.ASSIGNED_TO_ID: (Lead.assigned_to_id, None),
    FilterableField.CREATED_AT: (Lead.created_at, None),
    FilterableField.CONVERTED_AT: (Lead.converted_at, None),
    FilterableField.TAGS: (Lead.tags, None),
    FilterableField.DEAL_STAGE: (Deal.stage, DealStage),
    FilterableField.DEAL_VALUE: (Deal.value, None),
    FilterableField.DEAL_CLOSED_AT: (Deal.closed_at, None),
}


def condition_clause(condition: Condition) -> ColumnElement[bool]:
    column, enum_cls = _COLUMNS[condition.field]
    value = condition.value
    if enum_cls is not None:
        value = tuple(enum_cls(v) for v in value) if condition.op == "in" else enum_cls(value)

    if condition.op == "eq":
        return column == value
    if condition.op == "in":
        return column.in_(value)
    if condition.op == "contains":
        return column.contains(value, autoescape=True)
    if condition.op == "startswith":
        return column.startswith(value, autoescape=True)
    if condition.op == "gt":
        return column > value
    if condition.op == "gte":
        return column >= value
    if condition.op == "lt":
        return column < value
    if condition.op == "lte":
        return column <= value
    if condition.op == "between":
        low, high = value
        return column.between(low, high)
    raise ValueError(f"unsupported comparison: {condition.op}")


def lead_where(predicate: Predicate, company_id: uuid.UUID) -> list[ColumnElement[bool]]:
    """WHERE clauses for ``Lead`` queries, always scoped to one company.

    Each ``deal.*`` condition matches leads having at least one deal that
    satisfies it; leads without deals never match such a condition.
    """
    clauses: list[ColumnElement[bool]] = [Lead.company_id == company_id]
    for condition in predicate.conditions:
        clause = condition_clause(condition)
        if condition.is_deal_field:
            clause = Lead.deals.any(clause)
        clauses.append(clause)
    return clauses


def deal_where(company_id: uuid.UUID) -> ColumnElement[bool]:
    return Deal.company_id == company_id
