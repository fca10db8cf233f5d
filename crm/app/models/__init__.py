from crm.app.models.crm_models import (
    AuditLog,
    Company,
    Deal,
    DealStage,
    Lead,
    LeadSource,
    LeadStatus,
    Quiz,
    Role,
    User,
    UserToken,
)

__all__ = [
    "AuditLog",
    "Company",
    "Deal",
    "DealStage",
    "Lead",
    "LeadSource",
    "LeadStatus",
    "Quiz",
    "Role",
    "User",
    "UserToken",
]
