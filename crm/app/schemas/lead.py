from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from crm.app.models import LeadSource, LeadStatus


class LeadRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    quiz_id: uuid.UUID | None = None
    assigned_to_id: uuid.UUID | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company_name: str | None = None
    source: LeadSource
    status: LeadStatus
    score: int | None = None
    tags: str | None = None
    converted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class LeadDetail(LeadRead):
    quiz_responses: list | None = None


class LeadStatusUpdate(BaseModel):
    status: LeadStatus


class LeadAssign(BaseModel):
    assigned_to_id: uuid.UUID | None = None
