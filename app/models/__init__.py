from app.models.profile import Profile
from app.models.job_description import JobDescription
from app.models.resume import Resume
from app.models.mock_interview import MockInterview, MockInterviewExchange
from app.models.practice import PracticeSession, PracticeQuestion, PracticeAnswer
from app.models.coaching import SwotAnalysis, GapDefense, CoverLetter
from app.models.usage import UsageTracking

__all__ = [
    "Profile",
    "JobDescription",
    "Resume",
    "MockInterview",
    "MockInterviewExchange",
    "PracticeSession",
    "PracticeQuestion",
    "PracticeAnswer",
    "SwotAnalysis",
    "GapDefense",
    "CoverLetter",
    "UsageTracking",
]
