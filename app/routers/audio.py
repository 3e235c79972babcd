import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from fastapi.responses import Response
from pydantic import BaseModel
from app.config import MAX_AUDIO_BYTES, MAX_TTS_CHARS
from app.dependencies import AuthUser, get_current_user
from app.services.speech import (
    SUPPORTED_AUDIO_TYPES,
    NoSpeechDetected,
    SpeechError,
    transcribe_audio,
    synthesize_speech,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/audio", tags=["audio"])


class TextToSpeechRequest(BaseModel):
    text: str
    voice: Optional[str] = None


def _speech_failure(e: SpeechError) -> HTTPException:
    if "timed out" in str(e).lower():
        return HTTPException(status_code=504, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.post("/stt")
async def speech_to_text(
    audio: UploadFile = File(...),
    current_user: AuthUser = Depends(get_current_user),
):
    """Transcribe an uploaded answer recording."""
    content_type = (audio.content_type or "").split(";")[0].strip()
    if content_type not in SUPPORTED_AUDIO_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid audio type. Supported: {', '.join(SUPPORTED_AUDIO_TYPES)}",
        )

    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="Audio file is empty")
    if len(data) > MAX_AUDIO_BYTES:
        raise HTTPException(status_code=400, detail=f"Audio file too large. Maximum size: {MAX_AUDIO_BYTES // (1024 * 1024)}MB")

    try:
        result = await transcribe_audio(data, content_type)
    except NoSpeechDetected:
        raise HTTPException(status_code=400, detail="No speech detected in audio")
    except SpeechError as e:
        raise _speech_failure(e)

    logger.info(f"[STT] {result['word_count']} words for user {current_user.id}")
    return {"success": True, **result}


@router.post("/tts")
async def text_to_speech(
    request: TextToSpeechRequest,
    current_user: AuthUser = Depends(get_current_user),
):
    text = request.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Text is required")
    if len(text) > MAX_TTS_CHARS:
        raise HTTPException(status_code=400, detail=f"Text too long. Maximum: {MAX_TTS_CHARS} characters")

    try:
        audio = await synthesize_speech(text, request.voice)
    except SpeechError as e:
        raise _speech_failure(e)

    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Content-Length": str(len(audio)), "Cache-Control": "no-cache"},
    )
