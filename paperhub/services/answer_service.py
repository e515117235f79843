"""
Workspace adoption and answer editing.

Adoption is idempotent per (user, paper) on a best-effort basis: the store
is checked before building the skeleton and again right before the create
call, with no storage-level uniqueness constraint. Two adoptions that
interleave between the second check and the write can both succeed.
"""
import logging
from typing import List, Optional

from paperhub.exceptions import InputError, NotAuthenticatedError, NotFoundError, NotOwnerError, PaperNotPublishedError
from paperhub.models.answer import AdoptionResult, AnswerDoc, AnswerPayload, AnswerQuestion, AnswerSubQuestion
from paperhub.models.identity import Identity
from paperhub.models.paper import PaperDoc
from paperhub.services.paper_service import PaperService

logger = logging.getLogger(__name__)


def derive_answer_skeleton(paper: PaperDoc, owner: Identity) -> AnswerPayload:
    """
    Empty answer structure mirroring the paper's questions and sub-questions.

    Labels and order are copied as-is; exam metadata is a snapshot and does
    not follow later edits to the paper.
    """
    answers = [
        AnswerQuestion(
            question_number=question.question_number,
            answer="",
            sub_questions=[
                AnswerSubQuestion(sub_number=sub.sub_number, answer="")
                for sub in question.sub_questions or []
            ],
        )
        for question in paper.questions
    ]
    return AnswerPayload(
        paperId=paper.id,
        ownerUid=owner.uid,
        ownerName=owner.display_name,
        ownerPhotoURL=owner.photo_url,
        title=paper.title,
        courseCode=paper.courseCode,
        courseName=paper.courseName,
        examDate=paper.examDate,
        examYear=paper.examYear,
        universityId=paper.universityId,
        universityName=paper.universityName,
        answers=answers,
    )


def _labels(answers: List[AnswerQuestion]):
    return [(a.question_number, [s.sub_number for s in a.sub_questions]) for a in answers]


def update_question_answer(doc: AnswerDoc, index: int, value: str) -> AnswerDoc:
    if not 0 <= index < len(doc.answers):
        raise IndexError(f"Answer index {index} out of range")
    answers = list(doc.answers)
    answers[index] = answers[index].model_copy(update={"answer": value})
    return doc.model_copy(update={"answers": answers})


def update_sub_answer(doc: AnswerDoc, q_index: int, s_index: int, value: str) -> AnswerDoc:
    if not 0 <= q_index < len(doc.answers):
        raise IndexError(f"Answer index {q_index} out of range")
    question = doc.answers[q_index]
    if not 0 <= s_index < len(question.sub_questions):
        raise IndexError(f"Sub-answer index {s_index} out of range for answer {q_index}")
    sub_questions = list(question.sub_questions)
    sub_questions[s_index] = sub_questions[s_index].model_copy(update={"answer": value})
    answers = list(doc.answers)
    answers[q_index] = question.model_copy(update={"sub_questions": sub_questions})
    return doc.model_copy(update={"answers": answers})


class WorkspaceService:

    def __init__(self, papers: PaperService):
        self.papers = papers

    async def adopt(self, identity: Optional[Identity], paper_id: str) -> AdoptionResult:
        """Copy a published paper into the user's workspace, or return the existing copy"""
        if identity is None:
            raise NotAuthenticatedError("You must be logged in to save a paper to your workspace.")

        existing = await self.papers.find_answer_for_paper(identity.uid, paper_id)
        if existing:
            logger.info(f"Paper {paper_id} already in workspace of {identity.uid} ({existing})")
            return AdoptionResult(answer_id=existing, created=False)

        paper = await self.papers.get_paper_by_id(paper_id)
        if paper is None:
            raise NotFoundError(f"Paper {paper_id} not found")
        if paper.status != "published":
            raise PaperNotPublishedError("Only published papers can be added to a workspace.")

        skeleton = derive_answer_skeleton(paper, identity)

        # re-check just before writing; narrows but does not close the race
        existing = await self.papers.find_answer_for_paper(identity.uid, paper_id)
        if existing:
            return AdoptionResult(answer_id=existing, created=False)

        answer_id = await self.papers.create_answer_doc(skeleton)
        return AdoptionResult(answer_id=answer_id, created=True)

    async def get_owned(self, identity: Optional[Identity], answer_id: str) -> AnswerDoc:
        if identity is None:
            raise NotAuthenticatedError("You must be logged in to view your workspace.")
        doc = await self.papers.get_answer_doc_by_id(answer_id)
        if doc is None:
            raise NotFoundError(f"Answer doc {answer_id} not found")
        if doc.ownerUid != identity.uid:
            raise NotOwnerError("This workspace entry belongs to another user.")
        return doc

    async def save_progress(self, identity: Optional[Identity], doc: AnswerDoc) -> None:
        """
        Persist the answers of an owned answer doc; other fields are not written.

        Only answer text may change: question and sub-question labels, their
        count and their order must match the stored doc.
        """
        stored = await self.get_owned(identity, doc.id)
        if _labels(doc.answers) != _labels(stored.answers):
            raise InputError("Answers do not match the questions of this paper.")
        await self.papers.update_answer_doc(doc.id, answers=doc.answers)

    async def delete(self, identity: Optional[Identity], answer_id: str) -> None:
        await self.get_owned(identity, answer_id)
        await self.papers.delete_answer_doc(answer_id)
