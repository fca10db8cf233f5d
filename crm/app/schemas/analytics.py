from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class FilterableField(str, Enum):
    STATUS = "status"
    SOURCE = "source"
    SCORE = "score"
    ASSIGNED_TO_ID = "assignedToId"
    CREATED_AT = "createdAt"
    CONVERTED_AT = "convertedAt"
    TAGS = "tags"
    DEAL_STAGE = "deal.stage"
    DEAL_VALUE = "deal.value"
    DEAL_CLOSED_AT = "deal.closedAt"


class FieldType(str, Enum):
    STRING = "string"
    ENUM = "enum"
    NUMBER = "number"
    DATE = "date"
    RELATION = "relation"


class Operator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    IN = "in"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    BETWEEN = "between"
    AFTER = "after"
    BEFORE = "before"
    LAST_7_DAYS = "last7days"
    LAST_30_DAYS = "last30days"
    THIS_MONTH = "thisMonth"
    THIS_YEAR = "thisYear"


class FilterRow(BaseModel):
    id: str
    field: FilterableField
    # kept as a plain string so a row with a stray operator survives the URL
    # round trip and is dropped at compile time instead
    operator: str
    value: str | None = None
    value2: str | None = None


class DateRange(BaseModel):
    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None

    model_config = {"populate_by_name": True}


class FilterState(BaseModel):
    filters: list[FilterRow] = Field(default_factory=list)
    date_range: DateRange = Field(default_factory=DateRange)


class FieldDefinitionRead(BaseModel):
    field: FilterableField
    label: str
    type: FieldType
    operators: list[Operator]
    options: list[str] | None = None


class StatCard(BaseModel):
    label: str
    value: float | int
    change: float | None = None
    change_label: str | None = None
    icon: str
    format: Literal["number", "currency", "percentage"]


class ChartDataPoint(BaseModel):
    label: str
    value: int
    color: str | None = None


class FunnelStep(BaseModel):
    stage: str
    count: int
    percentage: float
    drop_off: float


class ChartData(BaseModel):
    leads_by_source: list[ChartDataPoint]
    daily_activity: list[ChartDataPoint]
    funnel: list[FunnelStep]
