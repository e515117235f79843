"""
Editable in-memory draft of one exam paper.

A DraftEngine belongs to one user session and is driven by sequential UI
events, so it holds no locks. Edits never touch storage; only ``save``
writes, and a failed save leaves the draft exactly as it was.
"""
import logging
import re
from typing import Callable, List, Literal, Optional

from paperhub.exceptions import EmptyDraftError, InputError, NoDraftError, NotAuthenticatedError
from paperhub.models.identity import Identity
from paperhub.models.paper import PaperDoc, PaperPayload, PaperStatus, ParsedPaper, Question
from paperhub.services.paper_service import PaperService
from paperhub.services.university_service import UniversityService

logger = logging.getLogger(__name__)

EditMode = Literal["create", "edit"]

IdentityProvider = Callable[[], Optional[Identity]]

_METADATA_FIELDS = ("title", "course_code", "course_name", "exam_date", "exam_year")


def default_title(parsed: ParsedPaper, filename: Optional[str] = None) -> str:
    """'<code> <year> Exam' when both are known, else the file name without .pdf"""
    if parsed.course_code and parsed.exam_year:
        return f"{parsed.course_code} {parsed.exam_year} Exam"
    if parsed.paper_title:
        return parsed.paper_title
    if filename:
        return re.sub(r"\.pdf$", "", filename, flags=re.IGNORECASE)
    return "Untitled paper"


class DraftEngine:

    def __init__(
        self,
        papers: PaperService,
        identity_provider: IdentityProvider,
        universities: Optional[UniversityService] = None,
    ):
        self.papers = papers
        self.identity_provider = identity_provider
        self.universities = universities
        self._clear()

    def _clear(self):
        self.loaded = False
        self.mode: EditMode = "create"
        self.active_paper_id: Optional[str] = None
        self.active_status: PaperStatus = "draft"
        self.title = ""
        self.course_code = ""
        self.course_name = ""
        self.exam_date = ""
        self.exam_year = ""
        self.university_id: Optional[str] = None
        self.questions: List[Question] = []
        self.selected_question_index = 0
        self.dirty = False

    # ===== loading =====

    def load_from_extraction(self, parsed: ParsedPaper, filename: Optional[str] = None) -> None:
        """Replace the draft with a fresh extraction result"""
        self._clear()
        self.loaded = True
        self.title = default_title(parsed, filename)
        self.course_code = parsed.course_code
        self.course_name = parsed.course_name
        self.exam_date = parsed.exam_date
        self.exam_year = parsed.exam_year
        self.questions = list(parsed.questions)
        logger.debug(f"Loaded extracted draft '{self.title}' with {len(self.questions)} question(s)")

    def load_from_existing(self, paper: PaperDoc) -> None:
        """Re-open a saved paper for continued editing"""
        self._clear()
        self.loaded = True
        self.mode = "edit"
        self.active_paper_id = paper.id
        self.active_status = paper.status
        self.title = paper.title
        self.course_code = paper.courseCode
        self.course_name = paper.courseName
        self.exam_date = paper.examDate
        self.exam_year = paper.examYear
        self.university_id = paper.universityId
        self.questions = list(paper.questions)
        logger.debug(f"Re-opened paper {paper.id} with {len(self.questions)} question(s)")

    # ===== selection =====

    @property
    def has_parsed_paper(self) -> bool:
        return len(self.questions) > 0

    @property
    def selected_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.selected_question_index]

    def select_question(self, index: int) -> None:
        self._check_question_index(index)
        self.selected_question_index = index

    def select_university(self, university_id: Optional[str]) -> None:
        self.university_id = university_id or None
        self.dirty = True

    # ===== edits (copy-on-write) =====

    def update_question_text(self, index: int, text: str) -> None:
        self._check_question_index(index)
        questions = list(self.questions)
        questions[index] = questions[index].model_copy(update={"text": text})
        self.questions = questions
        self.dirty = True

    def update_sub_question_text(self, q_index: int, s_index: int, text: str) -> None:
        self._check_question_index(q_index)
        question = self.questions[q_index]
        if not 0 <= s_index < len(question.sub_questions):
            raise IndexError(f"Sub-question index {s_index} out of range for question {q_index}")

        sub_questions = list(question.sub_questions)
        sub_questions[s_index] = sub_questions[s_index].model_copy(update={"text": text})
        questions = list(self.questions)
        questions[q_index] = question.model_copy(update={"sub_questions": sub_questions})
        self.questions = questions
        self.dirty = True

    def update_metadata(self, **fields: str) -> None:
        """Correct header fields: title, course_code, course_name, exam_date, exam_year"""
        unknown = set(fields) - set(_METADATA_FIELDS)
        if unknown:
            raise TypeError(f"Unknown draft field(s): {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(self, name, value or "")
        if fields:
            self.dirty = True

    def _check_question_index(self, index: int) -> None:
        if not 0 <= index < len(self.questions):
            raise IndexError(f"Question index {index} out of range ({len(self.questions)} questions)")

    # ===== persistence =====

    async def save(self, status: PaperStatus) -> str:
        """
        Persist the draft as ``status`` and return the paper id.

        Creates a paper the first time, updates it afterwards. Saving an
        already published paper again is allowed.
        """
        if status not in ("draft", "published"):
            raise InputError(f"Unknown paper status: {status}")
        if not self.loaded:
            raise NoDraftError("Upload and parse a paper first.")
        if not self.has_parsed_paper:
            raise EmptyDraftError("Add at least one question before saving.")

        identity = self.identity_provider()
        if identity is None:
            raise NotAuthenticatedError("You must be logged in to save a paper.")

        payload = PaperPayload(
            title=self.title,
            courseCode=self.course_code,
            courseName=self.course_name,
            examDate=self.exam_date,
            examYear=self.exam_year,
            questions=list(self.questions),
            status=status,
            ownerUid=identity.uid,
            ownerName=identity.display_name,
            ownerPhotoURL=identity.photo_url,
            universityId=self.university_id,
            universityName=await self._university_name(),
        )

        if self.mode == "edit" and self.active_paper_id:
            await self.papers.update_paper(self.active_paper_id, payload)
            paper_id = self.active_paper_id
        else:
            paper_id = await self.papers.create_paper(payload)

        self.mode = "edit"
        self.active_paper_id = paper_id
        self.active_status = status
        self.dirty = False
        return paper_id

    async def _university_name(self) -> Optional[str]:
        if not self.university_id or self.universities is None:
            return None
        university = await self.universities.get_university(self.university_id)
        if university is None:
            logger.warning(f"University {self.university_id} not found, saving unclassified name")
            return None
        return university.name
