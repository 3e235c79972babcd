import asyncio
import json
import logging
import re
import time
from typing import Any, Optional

from google import genai
from google.genai import types

from app.config import GEMINI_API_KEY, GEMINI_MODEL, GEMINI_MAX_RETRIES, GEMINI_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "Server is currently busy due to high demand. Please try again in a few moments."
TIMEOUT_MESSAGE = "Request timed out. The server is experiencing high load. Please try again in a few moments."
UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again in a few moments."


class LLMError(Exception):
    """Raised when the model cannot produce a usable response."""


_client: Optional[genai.Client] = None


def get_client() -> genai.Client:
    global _client
    if _client is None:
        if not GEMINI_API_KEY:
            raise LLMError("GEMINI_API_KEY not found in environment variables")
        _client = genai.Client(api_key=GEMINI_API_KEY)
    return _client


def _is_rate_limit(e: Exception) -> bool:
    error_str = str(e).lower()
    if "429" in str(e) or "resource exhausted" in error_str or "quota" in error_str or "rate limit" in error_str:
        return True
    status_code = getattr(e, "status_code", None) or getattr(e, "code", None)
    return status_code == 429


def _is_unavailable(e: Exception) -> bool:
    error_str = str(e).lower()
    if "503" in str(e) or "unavailable" in error_str or "overloaded" in error_str:
        return True
    status_code = getattr(e, "status_code", None) or getattr(e, "code", None)
    return status_code == 503


def call_gemini_with_retry(client, model, contents, config=None, max_retries=3, initial_delay=1, timeout=60):
    """
    Call Gemini API with retry logic for 503/429 errors and timeout.

    Args:
        client: Gemini client instance
        model: Model name to use
        contents: Prompt/content to send
        config: Optional GenerateContentConfig
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds before first retry
        timeout: Maximum time in seconds for the entire operation

    Returns:
        Response from Gemini API

    Raises:
        LLMError: If all retries fail, timeout, or non-retryable error occurs
    """
    last_exception = None
    start_time = time.time()

    for attempt in range(max_retries + 1):
        if time.time() - start_time > timeout:
            raise LLMError(TIMEOUT_MESSAGE)

        try:
            return client.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            is_rate_limit = _is_rate_limit(e)
            is_retryable = is_rate_limit or _is_unavailable(e)

            if is_retryable and attempt < max_retries:
                # Longer delays for rate limits
                base_delay = initial_delay * 2 if is_rate_limit else initial_delay
                delay = min(base_delay * (2 ** attempt), 10)  # Cap at 10 seconds

                if time.time() - start_time + delay > timeout:
                    raise LLMError(TIMEOUT_MESSAGE)

                logger.warning(f"[Gemini] Retrying in {delay}s (attempt {attempt + 1}/{max_retries}) - {str(e)[:100]}")
                time.sleep(delay)
                last_exception = e
                continue

            if is_rate_limit:
                raise LLMError(BUSY_MESSAGE) from e
            raise LLMError(str(e)) from e

    if last_exception is not None and _is_rate_limit(last_exception):
        raise LLMError(BUSY_MESSAGE)
    raise LLMError(UNAVAILABLE_MESSAGE)


async def call_gemini_with_retry_async(client, model, contents, config=None, max_retries=3, initial_delay=1, timeout=60):
    """Async wrapper for call_gemini_with_retry to avoid blocking the event loop."""
    return await asyncio.to_thread(
        call_gemini_with_retry,
        client, model, contents, config, max_retries, initial_delay, timeout
    )


def _strip_code_fences(text: str) -> str:
    fenced = re.search(r"```(?:json)?\s*(.*?)```", text, re.DOTALL | re.IGNORECASE)
    return fenced.group(1) if fenced else text


def _extract_first_json_object(text: str) -> Any:
    """Extract the first JSON object (or array) from a model response."""
    if not isinstance(text, str):
        raise ValueError("Model response was not text")
    text = _strip_code_fences(text).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start = text.find(open_ch)
        end = text.rfind(close_ch)
        if start < 0 or end <= start:
            continue
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            continue
    raise ValueError("No JSON object found in model response")


def _build_config(system: Optional[str], temperature: float, max_tokens: int, json_mode: bool) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        system_instruction=system,
        temperature=temperature,
        max_output_tokens=max_tokens,
        response_mime_type="application/json" if json_mode else None,
    )


async def generate_text(prompt, system: Optional[str] = None, temperature: float = 0.7, max_tokens: int = 1024) -> str:
    """Plain text completion."""
    response = await call_gemini_with_retry_async(
        client=get_client(),
        model=GEMINI_MODEL,
        contents=prompt,
        config=_build_config(system, temperature, max_tokens, json_mode=False),
        max_retries=GEMINI_MAX_RETRIES,
        initial_delay=2,
        timeout=GEMINI_TIMEOUT_SECONDS,
    )
    text = (response.text or "").strip()
    if not text:
        raise LLMError("Model returned an empty response")
    return text


async def generate_json(prompt, system: Optional[str] = None, temperature: float = 0.4, max_tokens: int = 2048) -> Any:
    """Completion parsed as JSON. Raises LLMError when the reply is not JSON."""
    response = await call_gemini_with_retry_async(
        client=get_client(),
        model=GEMINI_MODEL,
        contents=prompt,
        config=_build_config(system, temperature, max_tokens, json_mode=True),
        max_retries=GEMINI_MAX_RETRIES,
        initial_delay=2,
        timeout=GEMINI_TIMEOUT_SECONDS,
    )
    try:
        return _extract_first_json_object(response.text or "")
    except (ValueError, json.JSONDecodeError) as e:
        logger.error(f"[Gemini] Could not parse JSON response: {(response.text or '')[:200]}")
        raise LLMError("Model returned an invalid response") from e
