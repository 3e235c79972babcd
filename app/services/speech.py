"""Deepgram speech-to-text and text-to-speech over REST."""
import asyncio
import logging
from typing import Optional

import requests

from app.config import DEEPGRAM_API_KEY, DEEPGRAM_BASE_URL, DEEPGRAM_STT_MODEL, DEEPGRAM_TTS_MODEL

logger = logging.getLogger(__name__)

SUPPORTED_AUDIO_TYPES = ("audio/mp3", "audio/mpeg", "audio/wav", "audio/webm", "audio/ogg")
REQUEST_TIMEOUT = 60


class SpeechError(Exception):
    """Raised when the speech provider fails or returns nothing usable."""


class NoSpeechDetected(SpeechError):
    pass


def _headers(content_type: str) -> dict:
    if not DEEPGRAM_API_KEY:
        raise SpeechError("DEEPGRAM_API_KEY not found in environment variables")
    return {"Authorization": f"Token {DEEPGRAM_API_KEY}", "Content-Type": content_type}


def transcribe_audio_sync(audio: bytes, content_type: str) -> dict:
    try:
        resp = requests.post(
            f"{DEEPGRAM_BASE_URL}/listen",
            params={
                "model": DEEPGRAM_STT_MODEL,
                "smart_format": "true",
                "punctuate": "true",
                "paragraphs": "true",
                "utterances": "true",
            },
            headers=_headers(content_type),
            data=audio,
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
    except requests.Timeout as e:
        raise SpeechError("Transcription timed out") from e
    except requests.RequestException as e:
        logger.error(f"[Deepgram STT] Request failed: {e}")
        raise SpeechError("Failed to transcribe audio") from e

    result = resp.json()
    channels = (result.get("results") or {}).get("channels") or [{}]
    alternative = ((channels[0] or {}).get("alternatives") or [{}])[0] or {}
    transcript = (alternative.get("transcript") or "").strip()
    if not transcript:
        raise NoSpeechDetected("No speech detected in audio")

    words = alternative.get("words") or []
    return {
        "transcript": transcript,
        "confidence": alternative.get("confidence") or 0,
        "duration": (result.get("metadata") or {}).get("duration") or 0,
        "word_count": len(words),
        "words": [
            {"word": w.get("word"), "start": w.get("start"), "end": w.get("end"), "confidence": w.get("confidence")}
            for w in words
        ],
    }


def synthesize_speech_sync(text: str, voice: Optional[str] = None) -> bytes:
    try:
        resp = requests.post(
            f"{DEEPGRAM_BASE_URL}/speak",
            params={"model": voice or DEEPGRAM_TTS_MODEL, "encoding": "mp3"},
            headers=_headers("application/json"),
            json={"text": text},
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
    except requests.Timeout as e:
        raise SpeechError("Speech synthesis timed out") from e
    except requests.RequestException as e:
        logger.error(f"[Deepgram TTS] Request failed: {e}")
        raise SpeechError("Failed to generate speech") from e
    return resp.content


async def transcribe_audio(audio: bytes, content_type: str) -> dict:
    return await asyncio.to_thread(transcribe_audio_sync, audio, content_type)


async def synthesize_speech(text: str, voice: Optional[str] = None) -> bytes:
    return await asyncio.to_thread(synthesize_speech_sync, text, voice)
