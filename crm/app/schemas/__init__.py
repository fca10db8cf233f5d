from crm.app.schemas.analytics import (
    ChartData,
    FieldDefinitionRead,
    FilterableField,
    FilterRow,
    FilterState,
    Operator,
    StatCard,
)
from crm.app.schemas.auth import LoginRequest, LoginResponse
from crm.app.schemas.deal import DealCreate, DealRead, DealStageUpdate
from crm.app.schemas.lead import LeadAssign, LeadDetail, LeadRead, LeadStatusUpdate
from crm.app.schemas.quiz import (
    ExtractedContactInfo,
    QuizConfig,
    QuizCreate,
    QuizRead,
    QuizResponse,
    QuizSubmission,
    QuizSubmissionResult,
    QuizUpdate,
)

__all__ = [
    "ChartData",
    "DealCreate",
    "DealRead",
    "DealStageUpdate",
    "ExtractedContactInfo",
    "FieldDefinitionRead",
    "FilterableField",
    "FilterRow",
    "FilterState",
    "LeadAssign",
    "LeadDetail",
    "LeadRead",
    "LeadStatusUpdate",
    "LoginRequest",
    "LoginResponse",
    "Operator",
    "QuizConfig",
    "QuizCreate",
    "QuizRead",
    "QuizResponse",
    "QuizSubmission",
    "QuizSubmissionResult",
    "QuizUpdate",
    "StatCard",
]
