import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import FRONTEND_URL, LOG_LEVEL
from app.database import init_db
from app.routers import (
    resumes_router,
    job_descriptions_router,
    mock_router,
    practice_router,
    profile_router,
    coaching_router,
    cover_letter_router,
    linkedin_router,
    audio_router,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("[Startup] Database tables ready")
    yield


app = FastAPI(title="JobFoxy API", lifespan=lifespan)

app.include_router(resumes_router)
app.include_router(job_descriptions_router)
app.include_router(mock_router)
app.include_router(practice_router)
app.include_router(profile_router)
app.include_router(coaching_router)
app.include_router(cover_letter_router)
app.include_router(linkedin_router)
app.include_router(audio_router)


def _strip_trailing_slash(value: str) -> str:
    return value[:-1] if value.endswith("/") else value


allowed_origins = [
    _strip_trailing_slash(FRONTEND_URL),
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "JobFoxy API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
