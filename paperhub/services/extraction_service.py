"""
Extraction gateway: exam PDF in, validated ParsedPaper out.

The gateway's own contract is narrow: valid JSON in the ExamSchema shape,
or a typed failure. Faithful transcription (no invented questions, figures
or equations) is asked of the model through PARSE_PROMPT and is not
re-checked here.
"""
import asyncio
import base64
import binascii
import json
import logging
from typing import Any, Callable, Literal, Optional, Union

from google.genai import types
from pydantic import BaseModel, ValidationError

from paperhub.clients.gemini_client import create_gemini_client, generate_content_with_retry
from paperhub.clients.redis_client import ExtractionCache
from paperhub.config import config
from paperhub.exceptions import MissingAPIKeyError
from paperhub.models.paper import ParsedPaper
from paperhub.services.exam_schema import EXAM_SCHEMA, PARSE_PROMPT
from paperhub.utils.hashing import compute_sha256

logger = logging.getLogger(__name__)

FailureKind = Literal["input", "backend", "timeout", "invalid_json", "invalid_schema"]

_FAILURE_MESSAGES = {
    "no_input": "No PDF data provided.",
    "invalid_base64": "PDF data is not valid base64.",
    "timeout": "Extraction timed out",
    "invalid_json": "Invalid JSON returned from AI",
    "invalid_schema": "AI response did not match the exam schema",
}


class ExtractionSuccess(BaseModel):
    status: Literal["ok"] = "ok"
    paper: ParsedPaper


class ExtractionFailure(BaseModel):
    status: Literal["failed"] = "failed"
    kind: FailureKind
    reason: str

    @property
    def message(self) -> str:
        if self.kind == "backend":
            return f"Generation failed: {self.reason}"
        return _FAILURE_MESSAGES.get(self.reason, self.reason)


ExtractionResult = Union[ExtractionSuccess, ExtractionFailure]


def http_status_for(failure: ExtractionFailure) -> int:
    """Input problems are the caller's (400); everything else is ours (500)"""
    return 400 if failure.kind == "input" else 500


def strip_data_uri(value: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix if present"""
    value = value.strip()
    if "," in value:
        value = value.split(",", 1)[1]
    return value.strip()


def decode_pdf_base64(file_base64: Optional[str]) -> Union[bytes, ExtractionFailure]:
    if not file_base64 or not file_base64.strip():
        return ExtractionFailure(kind="input", reason="no_input")
    clean = strip_data_uri(file_base64)
    if not clean:
        return ExtractionFailure(kind="input", reason="no_input")
    try:
        return base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError):
        return ExtractionFailure(kind="input", reason="invalid_base64")


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "value", None) or str(value)


def read_response_text(response: Any) -> Union[str, ExtractionFailure]:
    """
    Pull the JSON text out of the first candidate, joining all its text parts.

    When there is none (usually safety filtering) the backend's stated
    reason is returned as a failure.
    """
    candidates = getattr(response, "candidates", None) or []
    candidate = candidates[0] if candidates else None

    text = ""
    if candidate is not None:
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []
        # long JSON may arrive split over several text parts
        text = "".join(getattr(part, "text", None) or "" for part in parts)

    if text:
        return text

    reason = None
    if candidate is not None:
        reason = _enum_name(getattr(candidate, "finish_reason", None))
    else:
        feedback = getattr(response, "prompt_feedback", None)
        reason = _enum_name(getattr(feedback, "block_reason", None))
    return ExtractionFailure(kind="backend", reason=reason or "UNKNOWN")


def parse_exam_json(text: str) -> Union[ParsedPaper, ExtractionFailure]:
    """Parse model output into a ParsedPaper; malformed output is never repaired"""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse Gemini response as JSON: {e}")
        logger.debug(f"Gemini response (first 500 chars): {text[:500]}")
        return ExtractionFailure(kind="invalid_json", reason="invalid_json")

    if not isinstance(data, dict):
        logger.error(f"Gemini returned {type(data).__name__}, expected an object")
        return ExtractionFailure(kind="invalid_schema", reason="invalid_schema")

    try:
        return ParsedPaper.model_validate(data)
    except ValidationError as e:
        logger.error(f"Gemini response does not match the exam schema: {e.error_count()} error(s)")
        logger.debug(str(e))
        return ExtractionFailure(kind="invalid_schema", reason="invalid_schema")


class ExtractionGateway:
    """
    Sends exam PDFs to Gemini under a fixed schema and validates the result.

    Args:
        model: Gemini model name.
        api_key_provider: Returns the credential; called on every request.
        timeout_seconds: Upper bound for one extraction, retries included.
        client_factory: ``(api_key, timeout_seconds) -> genai.Client``.
        cache: Optional result cache keyed by PDF hash.
        max_retries: Attempts on transient busy errors.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key_provider: Optional[Callable[[], str]] = None,
        timeout_seconds: Optional[float] = None,
        client_factory: Callable[..., Any] = create_gemini_client,
        cache: Optional[ExtractionCache] = None,
        max_retries: Optional[int] = None,
        retry_delay: float = 2.0,
    ):
        self.model = model or config.GEMINI_GENERATION_MODEL
        self.api_key_provider = api_key_provider or config.get_api_key
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.EXTRACTION_TIMEOUT_SECONDS
        self.client_factory = client_factory
        self.cache = cache
        self.max_retries = max_retries if max_retries is not None else config.GEMINI_MAX_RETRIES
        self.retry_delay = retry_delay

    @classmethod
    def from_config(cls) -> "ExtractionGateway":
        cache = ExtractionCache() if config.REDIS_ENABLED else None
        return cls(cache=cache)

    async def extract(self, file_base64: Optional[str]) -> ExtractionResult:
        """Extract from a base64 payload, with or without a data-URI prefix"""
        decoded = decode_pdf_base64(file_base64)
        if isinstance(decoded, ExtractionFailure):
            logger.info(f"Rejected extraction request: {decoded.reason}")
            return decoded
        return await self.extract_pdf(decoded)

    async def extract_pdf(self, pdf_bytes: bytes) -> ExtractionResult:
        if not pdf_bytes:
            return ExtractionFailure(kind="input", reason="no_input")

        digest = compute_sha256(pdf_bytes)
        cache_key = self.cache.key(self.model, digest) if self.cache else None
        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                try:
                    paper = ParsedPaper.model_validate(cached)
                    logger.info(f"Extraction cache hit for {digest[:8]}...")
                    return ExtractionSuccess(paper=paper)
                except ValidationError:
                    logger.warning(f"Discarding stale cache entry for {digest[:8]}...")
                    self.cache.delete(cache_key)

        logger.info(f"Extracting exam paper {digest[:8]}... ({len(pdf_bytes)} bytes) with {self.model}")
        try:
            response = await asyncio.wait_for(self._generate(pdf_bytes), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Extraction timed out after {self.timeout_seconds}s")
            return ExtractionFailure(kind="timeout", reason="timeout")
        except MissingAPIKeyError as e:
            logger.error(f"Extraction not configured: {e.message}")
            return ExtractionFailure(kind="backend", reason="MISSING_API_KEY")
        except Exception as e:
            logger.error(f"Gemini request failed: {e}", exc_info=True)
            return ExtractionFailure(kind="backend", reason=str(e) or type(e).__name__)

        text = read_response_text(response)
        if isinstance(text, ExtractionFailure):
            logger.error(f"AI failed to generate content. Reason: {text.reason}")
            return text

        parsed = parse_exam_json(text)
        if isinstance(parsed, ExtractionFailure):
            return parsed

        logger.info(f"Extracted {len(parsed.questions)} question(s) for '{parsed.course_code or 'unknown course'}'")
        if cache_key:
            self.cache.set(cache_key, parsed.model_dump(mode="json"))
        return ExtractionSuccess(paper=parsed)

    async def _generate(self, pdf_bytes: bytes):
        client = self.client_factory(self.api_key_provider(), self.timeout_seconds)
        return await generate_content_with_retry(
            client,
            model=self.model,
            contents=[
                PARSE_PROMPT,
                types.Part.from_bytes(data=pdf_bytes, mime_type="application/pdf"),
            ],
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=EXAM_SCHEMA,
            ),
            retries=self.max_retries,
            initial_delay=self.retry_delay,
        )
