from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import requests

from app.services.speech import NoSpeechDetected, SpeechError, transcribe_audio_sync

TRANSCRIPT = {
    "transcript": "I led the migration.",
    "confidence": 0.97,
    "duration": 2.4,
    "word_count": 4,
    "words": [],
}


def _upload(client, data=b"RIFF....WAVE", content_type="audio/wav"):
    return client.post("/api/audio/stt", files={"audio": ("answer.wav", data, content_type)})


def test_stt_rejects_unsupported_type(client):
    assert _upload(client, content_type="video/mp4").status_code == 400


def test_stt_rejects_empty_file(client):
    assert _upload(client, data=b"").status_code == 400


def test_stt_rejects_large_file(client):
    with patch("app.routers.audio.MAX_AUDIO_BYTES", 4):
        response = _upload(client, data=b"12345")
    assert response.status_code == 400
    assert "too large" in response.json()["detail"]


@patch("app.routers.audio.transcribe_audio", new_callable=AsyncMock)
def test_stt_success(mock_transcribe, client):
    mock_transcribe.return_value = TRANSCRIPT
    response = _upload(client, content_type="audio/webm;codecs=opus")
    assert response.status_code == 200
    assert response.json()["transcript"] == "I led the migration."
    mock_transcribe.assert_awaited_once()
    assert mock_transcribe.await_args.args[1] == "audio/webm"


@patch("app.routers.audio.transcribe_audio", new_callable=AsyncMock)
def test_stt_no_speech(mock_transcribe, client):
    mock_transcribe.side_effect = NoSpeechDetected("No speech detected in audio")
    assert _upload(client).status_code == 400


@patch("app.routers.audio.transcribe_audio", new_callable=AsyncMock)
def test_stt_timeout(mock_transcribe, client):
    mock_transcribe.side_effect = SpeechError("Transcription timed out")
    assert _upload(client).status_code == 504


def test_tts_validation(client):
    assert client.post("/api/audio/tts", json={"text": "  "}).status_code == 400
    assert client.post("/api/audio/tts", json={"text": "a" * 2001}).status_code == 400


@patch("app.routers.audio.synthesize_speech", new_callable=AsyncMock)
def test_tts_returns_mp3(mock_synthesize, client):
    mock_synthesize.return_value = b"ID3fake-mp3"
    response = client.post("/api/audio/tts", json={"text": "Welcome to your interview."})
    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mpeg"
    assert response.content == b"ID3fake-mp3"


@patch("app.routers.audio.synthesize_speech", new_callable=AsyncMock)
def test_tts_provider_failure(mock_synthesize, client):
    mock_synthesize.side_effect = SpeechError("Failed to generate speech")
    assert client.post("/api/audio/tts", json={"text": "Hello"}).status_code == 500


@patch("app.services.speech.DEEPGRAM_API_KEY", "dg-test")
@patch("app.services.speech.requests.post")
def test_transcribe_parses_deepgram_reply(mock_post):
    mock_post.return_value = MagicMock(json=MagicMock(return_value={
        "metadata": {"duration": 3.2},
        "results": {"channels": [{"alternatives": [{
            "transcript": " We cut costs by 30% ",
            "confidence": 0.91,
            "words": [{"word": "we", "start": 0.1, "end": 0.3, "confidence": 0.99}],
        }]}]},
    }))
    result = transcribe_audio_sync(b"audio", "audio/wav")
    assert result["transcript"] == "We cut costs by 30%"
    assert result["duration"] == 3.2
    assert result["word_count"] == 1
    assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Token dg-test"


@patch("app.services.speech.DEEPGRAM_API_KEY", "dg-test")
@patch("app.services.speech.requests.post")
def test_transcribe_empty_result(mock_post):
    mock_post.return_value = MagicMock(json=MagicMock(return_value={"results": {"channels": [{"alternatives": [{}]}]}}))
    with pytest.raises(NoSpeechDetected):
        transcribe_audio_sync(b"audio", "audio/wav")


@patch("app.services.speech.DEEPGRAM_API_KEY", "dg-test")
@patch("app.services.speech.requests.post", side_effect=requests.Timeout())
def test_transcribe_timeout(mock_post):
    with pytest.raises(SpeechError, match="timed out"):
        transcribe_audio_sync(b"audio", "audio/wav")


@patch("app.services.speech.DEEPGRAM_API_KEY", "")
def test_missing_deepgram_key():
    with pytest.raises(SpeechError, match="DEEPGRAM_API_KEY"):
        transcribe_audio_sync(b"audio", "audio/wav")
