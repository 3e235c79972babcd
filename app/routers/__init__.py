from app.routers.resumes import router as resumes_router
from app.routers.job_descriptions import router as job_descriptions_router
from app.routers.mock import router as mock_router
from app.routers.practice import router as practice_router
from app.routers.profile import router as profile_router
from app.routers.coaching import router as coaching_router
from app.routers.cover_letter import router as cover_letter_router
from app.routers.linkedin import router as linkedin_router
from app.routers.audio import router as audio_router

__all__ = [
    "resumes_router",
    "job_descriptions_router",
    "mock_router",
    "practice_router",
    "profile_router",
    "coaching_router",
    "cover_letter_router",
    "linkedin_router",
    "audio_router",
]
