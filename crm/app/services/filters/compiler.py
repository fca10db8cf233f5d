"""Compile analytics filter rows into a storage-agnostic predicate.

Each :class:`Condition` names a filterable field, a comparison and an
already-parsed operand. Rows that cannot be compiled (operator not legal for
the field, blank or unparseable values, half-specified ranges) are skipped.
Tenant scoping is the caller's job.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Literal

from crm.app.schemas.analytics import DateRange, FieldType, FilterableField, FilterRow, Operator
from crm.app.services.filters.fields import DATE_PRESETS, FIELD_CONFIG, is_operator_allowed

logger = logging.getLogger("crm.analytics")

Comparison = Literal["eq", "in", "contains", "startswith", "gt", "gte", "lt", "lte", "between"]

_NUMBER_COMPARISONS: dict[str, Comparison] = {
    Operator.GT.value: "gt",
    Operator.GTE.value: "gte",
    Operator.LT.value: "lt",
    Operator.LTE.value: "lte",
}
_PRESET_DAYS = {Operator.LAST_7_DAYS.value: 7, Operator.LAST_30_DAYS.value: 30}


@dataclass(frozen=True)
class Condition:
    field: FilterableField
    op: Comparison
    value: Any

    @property
    def is_deal_field(self) -> bool:
        return self.field.value.startswith("deal.")


@dataclass(frozen=True)
class Predicate:
    """Conjunction of conditions; empty means match everything."""

    conditions: tuple[Condition, ...] = field(default_factory=tuple)
    skipped: tuple[str, ...] = field(default_factory=tuple)

    @property
    def lead_conditions(self) -> tuple[Condition, ...]:
        return tuple(c for c in self.conditions if not c.is_deal_field)

    @property
    def deal_conditions(self) -> tuple[Condition, ...]:
        return tuple(c for c in self.conditions if c.is_deal_field)

    def __bool__(self) -> bool:
        return bool(self.conditions)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def parse_number(value: str | None) -> float | None:
    if _blank(value):
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_datetime(value: str | None, tz: tzinfo) -> datetime | None:
    """Parse an ISO date or datetime; naive values are read in ``tz``. Returns UTC."""
    if _blank(value):
        return None
    raw = value.strip()
    if raw[-1] in "Zz":
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(raw), time.min)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc)


def parse_csv(value: str | None) -> list[str]:
    if _blank(value):
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def preset_window(operator: str, now: datetime, tz: tzinfo) -> tuple[datetime, datetime] | None:
    if operator in _PRESET_DAYS:
        return now - timedelta(days=_PRESET_DAYS[operator]), now
    local_now = now.astimezone(tz)
    if operator == Operator.THIS_MONTH.value:
        start = local_now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    elif operator == Operator.THIS_YEAR.value:
        start = local_now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    else:
        return None
    return start.astimezone(timezone.utc), now


def _between(row_field: FilterableField, low: Any, high: Any) -> Condition:
    return Condition(row_field, "between", (low, high))


def compile_row(row: FilterRow, *, now: datetime, tz: tzinfo) -> Condition | None:
    """Condition for a single row, or ``None`` when the row is ignored."""
    definition = FIELD_CONFIG.get(row.field)
    if definition is None or not is_operator_allowed(row.field, row.operator):
        return None
    op = row.operator
    kind = definition.type

    if kind is FieldType.DATE:
        if op in {p.value for p in DATE_PRESETS}:
            window = preset_window(op, now, tz)
            return _between(row.field, *window) if window else None
        if op == Operator.BETWEEN.value:
            low, high = parse_datetime(row.value, tz), parse_datetime(row.value2, tz)
            if low is None or high is None:
                return None
            return _between(row.field, low, high)
        moment = parse_datetime(row.value, tz)
        if moment is None:
            return None
        return Condition(row.field, "gte" if op == Operator.AFTER.value else "lte", moment)

    if kind is FieldType.NUMBER:
        if op == Operator.BETWEEN.value:
            low, high = parse_number(row.value), parse_number(row.value2)
            if low is None or high is None:
                return None
            return _between(row.field, low, high)
        number = parse_number(row.value)
        if number is None:
            return None
        return Condition(row.field, _NUMBER_COMPARISONS.get(op, "eq"), number)

    if kind is FieldType.ENUM:
        options = definition.options or ()
        if op == Operator.IN.value:
            values = [v for v in parse_csv(row.value) if v in options]
            return Condition(row.field, "in", tuple(values)) if values else None
        if _blank(row.value) or row.value.strip() not in options:
            return None
        return Condition(row.field, "eq", row.value.strip())

    if _blank(row.value):
        return None
    if kind is FieldType.RELATION:
        try:
            return Condition(row.field, "eq", uuid.UUID(row.value.strip()))
        except ValueError:
            return None
    if op == Operator.CONTAINS.value:
        return Condition(row.field, "contains", row.value)
    if op == Operator.STARTS_WITH.value:
        return Condition(row.field, "startswith", row.value)
    return Condition(row.field, "eq", row.value)


def compile_filters(
    rows: Sequence[FilterRow],
    *,
    date_range: DateRange | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> Predicate:
    tz = tz or timezone.utc
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    conditions: list[Condition] = []
    skipped: list[str] = []
    for row in rows:
        condition = compile_row(row, now=now, tz=tz)
        if condition is None:
            skipped.append(row.id)
        else:
            conditions.append(condition)

    if date_range is not None:
        if date_range.from_ is not None:
            conditions.append(Condition(FilterableField.CREATED_AT, "gte", _as_utc(date_range.from_, tz)))
        if date_range.to is not None:
            conditions.append(Condition(FilterableField.CREATED_AT, "lte", _as_utc(date_range.to, tz)))

    if skipped:
        logger.debug("compile_filters: skipped rows=%s", skipped)
    return Predicate(conditions=tuple(conditions), skipped=tuple(skipped))


def _as_utc(moment: datetime, tz: tzinfo) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz)
    return moment.astimezone(timezone.utc)
