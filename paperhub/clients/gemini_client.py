import asyncio
import logging
import random
from typing import Optional
from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

def create_gemini_client(api_key: str, timeout_seconds: Optional[float] = None) -> genai.Client:
    """
    Build a Gemini client for one request.

    A fresh client per call picks up a rotated credential without a restart.
    """
    if not api_key:
        raise ValueError("Gemini API key is required")
    http_options = None
    if timeout_seconds:
        # HttpOptions.timeout is in milliseconds
        http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000))
    return genai.Client(api_key=api_key, http_options=http_options)

def is_transient_error(error: Exception) -> bool:
    """Backend busy or rate limited: nothing was processed, safe to resend"""
    error_str = str(error)
    return "503" in error_str or "UNAVAILABLE" in error_str or "429" in error_str

async def generate_content_with_retry(
    client: genai.Client,
    model: str,
    contents: list,
    config: Optional[types.GenerateContentConfig] = None,
    retries: int = 3,
    initial_delay: float = 2.0
):
    """
    Call Gemini generate_content with exponential backoff for 503/429 errors.
    Any other error is raised immediately.
    """
    delay = initial_delay

    for attempt in range(retries):
        try:
            return await client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config
            )
        except Exception as e:
            if not is_transient_error(e) or attempt == retries - 1:
                raise

            wait_time = delay + random.uniform(0, 1)
            logger.warning(
                f"Gemini API busy (503/429). Retrying in {wait_time:.2f}s... (Attempt {attempt + 1}/{retries})"
            )
            await asyncio.sleep(wait_time)
            delay *= 2  # Exponential backoff
