from __future__ import annotations

from dataclasses import dataclass

from crm.app.models import DealStage, LeadSource, LeadStatus
from crm.app.schemas.analytics import FieldType, FilterableField, Operator

OPERATORS_BY_TYPE: dict[FieldType, tuple[Operator, ...]] = {
    FieldType.STRING: (Operator.EQUALS, Operator.CONTAINS, Operator.STARTS_WITH),
    FieldType.ENUM: (Operator.EQUALS, Operator.IN),
    FieldType.NUMBER: (
        Operator.EQUALS,
        Operator.GT,
        Operator.GTE,
        Operator.LT,
        Operator.LTE,
        Operator.BETWEEN,
    ),
    FieldType.DATE: (
        Operator.AFTER,
        Operator.BEFORE,
        Operator.BETWEEN,
        Operator.LAST_7_DAYS,
        Operator.LAST_30_DAYS,
        Operator.THIS_MONTH,
        Operator.THIS_YEAR,
    ),
    FieldType.RELATION: (Operator.EQUALS,),
}

DATE_PRESETS = frozenset(
    {Operator.LAST_7_DAYS, Operator.LAST_30_DAYS, Operator.THIS_MONTH, Operator.THIS_YEAR}
)


@dataclass(frozen=True)
class FieldDefinition:
    label: str
    type: FieldType
    options: tuple[str, ...] | None = None

    @property
    def operators(self) -> tuple[Operator, ...]:
        return OPERATORS_BY_TYPE[self.type]


FIELD_CONFIG: dict[FilterableField, FieldDefinition] = {
    FilterableField.STATUS: FieldDefinition("Lead Status", FieldType.ENUM, tuple(s.value for s in LeadStatus)),
    FilterableField.SOURCE: FieldDefinition("Source", FieldType.ENUM, tuple(s.value for s in LeadSource)),
    FilterableField.SCORE: FieldDefinition("Lead Score", FieldType.NUMBER),
    FilterableField.ASSIGNED_TO_ID: FieldDefinition("Assigned To", FieldType.RELATION),
    FilterableField.CREATED_AT: FieldDefinition("Created Date", FieldType.DATE),
    FilterableField.CONVERTED_AT: FieldDefinition("Converted Date", FieldType.DATE),
    FilterableField.TAGS: FieldDefinition("Tags", FieldType.STRING),
    FilterableField.DEAL_STAGE: FieldDefinition("Deal Stage", FieldType.ENUM, tuple(s.value for s in DealStage)),
    FilterableField.DEAL_VALUE: FieldDefinition("Deal Value", FieldType.NUMBER),
    FilterableField.DEAL_CLOSED_AT: FieldDefinition("Deal Closed Date", FieldType.DATE),
}


def get_operators_for_field(field: FilterableField) -> tuple[Operator, ...]:
    return FIELD_CONFIG[field].operators


def is_operator_allowed(field: FilterableField, operator: str) -> bool:
    return operator in {op.value for op in get_operators_for_field(field)}
