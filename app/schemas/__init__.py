from app.schemas.resume import JobDescriptionResponse, ResumeResponse, ResumeListItem
from app.schemas.interview import (
    ExchangeResponse,
    MockInterviewResponse,
    MockInterviewDetail,
    PracticeAnswerResponse,
    PracticeQuestionResponse,
    PracticeSessionResponse,
    PracticeSessionDetail,
)
from app.schemas.profile import ProfileResponse, CoverLetterResponse, SwotResponse, GapDefenseResponse


def dump(schema, obj) -> dict:
    """Serialize an ORM row through a response schema into JSON-safe data."""
    return schema.model_validate(obj).model_dump(mode="json")


__all__ = [
    "JobDescriptionResponse",
    "ResumeResponse",
    "ResumeListItem",
    "ExchangeResponse",
    "MockInterviewResponse",
    "MockInterviewDetail",
    "PracticeAnswerResponse",
    "PracticeQuestionResponse",
    "PracticeSessionResponse",
    "PracticeSessionDetail",
    "ProfileResponse",
    "CoverLetterResponse",
    "SwotResponse",
    "GapDefenseResponse",
    "dump",
]
