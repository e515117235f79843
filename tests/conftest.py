"""Pytest fixtures for PaperHub tests."""

import base64
import copy
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from paperhub.models.identity import Identity
from paperhub.services.answer_service import WorkspaceService
from paperhub.services.extraction_service import ExtractionGateway
from paperhub.services.paper_service import PaperService
from paperhub.services.university_service import UniversityService
from paperhub.store.memory import InMemoryDocumentStore

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\n%%EOF\n"

SAMPLE_EXAM = {
    "course_code": "CS101",
    "course_name": "Introduction to Computing",
    "exam_date": "2024-06-23",
    "exam_year": "2024",
    "questions": [
        {
            "question_number": "1",
            "text": "Answer the following about sorting.",
            "marks": 20,
            "figures": [{"label": "Figure 1", "description": "Unsorted array"}],
            "equations": [],
            "sub_questions": [
                {
                    "sub_number": "(a)",
                    "text": "Give the worst-case cost of quicksort.",
                    "marks": 5,
                    "figures": [],
                    "equations": [{"latex": "T(n) = T(n-1) + \\Theta(n)", "description": ""}],
                },
                {
                    "sub_number": "(b)",
                    "text": "Explain why merge sort is stable.",
                    "marks": None,
                    "figures": [],
                    "equations": [],
                },
            ],
        },
        {
            "question_number": "Q2",
            "text": "Evaluate the integral.",
            "marks": 10.5,
            "figures": [],
            "equations": [{"latex": "\\int_a^b f(x)\\,dx", "description": "área bajo la curva"}],
            "sub_questions": [],
        },
    ],
}


def encode_pdf(data: bytes = PDF_BYTES, prefix: bool = False) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:application/pdf;base64,{encoded}" if prefix else encoded


def make_response(text=None, finish_reason="STOP", candidates=True):
    """Shape-compatible stand-in for a google-genai GenerateContentResponse"""
    if not candidates:
        return SimpleNamespace(candidates=[], prompt_feedback=SimpleNamespace(block_reason=finish_reason))
    parts = [SimpleNamespace(text=text)] if text is not None else []
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts), finish_reason=finish_reason)
    return SimpleNamespace(candidates=[candidate], prompt_feedback=None)


def make_client(response=None, side_effect=None):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return client


class DictCache:
    """In-memory stand-in for ExtractionCache"""

    def __init__(self):
        self.data = {}

    def key(self, model, digest):
        return f"extraction:{model}:{digest}"

    def get(self, key):
        return copy.deepcopy(self.data.get(key))

    def set(self, key, value):
        self.data[key] = copy.deepcopy(value)
        return True

    def delete(self, key):
        self.data.pop(key, None)
        return True


@pytest.fixture
def sample_exam():
    return copy.deepcopy(SAMPLE_EXAM)


@pytest.fixture
def sample_exam_text(sample_exam):
    return json.dumps(sample_exam)


@pytest.fixture
def make_gateway():
    """Build a gateway around a fake Gemini client"""

    def _make(client, **kwargs):
        options = dict(
            model="test-model",
            api_key_provider=lambda: "test-key",
            timeout_seconds=5,
            max_retries=1,
            retry_delay=0,
        )
        options.update(kwargs)
        return ExtractionGateway(client_factory=lambda api_key, timeout: client, **options)

    return _make


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def paper_service(store):
    return PaperService(store)


@pytest.fixture
def university_service(store):
    return UniversityService(store)


@pytest.fixture
def workspace_service(paper_service):
    return WorkspaceService(paper_service)


@pytest.fixture
def identity():
    return Identity(uid="u1", display_name="Ada Lovelace", photo_url="https://example.com/ada.png", email="ada@example.com")


@pytest.fixture
def other_identity():
    return Identity(uid="u2", display_name="Alan Turing")
