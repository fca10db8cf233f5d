from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from crm.app.models import DealStage


class DealCreate(BaseModel):
    lead_id: uuid.UUID
    title: str = Field(min_length=1, max_length=200)
    value: Decimal = Field(gt=0, le=Decimal("9999999999.99"), decimal_places=2)
    currency: str = Field(default="USD", min_length=1, max_length=8)
    stage: DealStage = DealStage.PROSPECTING
    assigned_to_id: uuid.UUID | None = None


class DealStageUpdate(BaseModel):
    stage: DealStage


class DealRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    lead_id: uuid.UUID
    assigned_to_id: uuid.UUID | None = None
    title: str
    value: Decimal
    currency: str
    stage: DealStage
    closed_at: datetime | None = None
    created_at: datetime
