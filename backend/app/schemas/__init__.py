"""
Pydantic schemas for request/response validation.
"""
from .common import (
    CamelModel,
    SuccessResponse,
    IdListRequest,
    IntIdListRequest,
    DeleteResponse,
)
from .questions import (
    OptionOut,
    QuestionOut,
    TestQuestionsResponse,
    StartTestResponse,
    OptionIn,
    QuestionSave,
    AdminOptionOut,
    AdminQuestionOut,
)
from .protocol import (
    ProtocolEntry,
    ResultSummary,
    ProtocolResponse,
    LastResultResponse,
)
from .submissions import (
    SubmittedAnswer,
    SubmissionRequest,
    SubmissionResponse,
)
from .review import (
    PendingReviewItem,
    Verdict,
    VerdictBatchRequest,
    VerdictBatchResponse,
)
from .tests import (
    CatalogueEntry,
    AdminTestOut,
    TestCreate,
    TestRename,
    TestStatusUpdate,
    TestSettingsIn,
    TestSettingsOut,
)
from .results import (
    ResultRow,
    ResultPage,
)

__all__ = [
    "CamelModel",
    "SuccessResponse",
    "IdListRequest",
    "IntIdListRequest",
    "DeleteResponse",
    "OptionOut",
    "QuestionOut",
    "TestQuestionsResponse",
    "StartTestResponse",
    "OptionIn",
    "QuestionSave",
    "AdminOptionOut",
    "AdminQuestionOut",
    "ProtocolEntry",
    "ResultSummary",
    "ProtocolResponse",
    "LastResultResponse",
    "SubmittedAnswer",
    "SubmissionRequest",
    "SubmissionResponse",
    "PendingReviewItem",
    "Verdict",
    "VerdictBatchRequest",
    "VerdictBatchResponse",
    "CatalogueEntry",
    "AdminTestOut",
    "TestCreate",
    "TestRename",
    "TestStatusUpdate",
    "TestSettingsIn",
    "TestSettingsOut",
    "ResultRow",
    "ResultPage",
]
