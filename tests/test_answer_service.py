"""Tests for workspace adoption and answer editing."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from paperhub.exceptions import InputError, NotAuthenticatedError, NotFoundError, NotOwnerError, PaperNotPublishedError
from paperhub.models.answer import AnswerDoc
from paperhub.models.paper import PaperDoc, PaperPayload, ParsedPaper
from paperhub.services.answer_service import (
    WorkspaceService,
    derive_answer_skeleton,
    update_question_answer,
    update_sub_answer,
)


def save_paper(paper_service, sample_exam, status="published", owner="u9"):
    parsed = ParsedPaper.model_validate(sample_exam)
    payload = PaperPayload(
        title="CS101 2024 Exam",
        courseCode=parsed.course_code,
        courseName="introduction to computing",
        examDate=parsed.exam_date,
        examYear=parsed.exam_year,
        questions=parsed.questions,
        status=status,
        ownerUid=owner,
        ownerName="Grace Hopper",
        universityId="uni-1",
        universityName="cambridge",
    )
    return asyncio.run(paper_service.create_paper(payload))


@pytest.fixture
def published_id(paper_service, sample_exam):
    return save_paper(paper_service, sample_exam)


class TestSkeleton:
    """Tests for deriving an empty answer structure."""

    def test_mirrors_questions_and_sub_questions(self, paper_service, published_id, identity):
        paper = asyncio.run(paper_service.get_paper_by_id(published_id))

        skeleton = derive_answer_skeleton(paper, identity)

        assert [a.question_number for a in skeleton.answers] == ["1", "Q2"]
        assert [s.sub_number for s in skeleton.answers[0].sub_questions] == ["(a)", "(b)"]
        assert skeleton.answers[1].sub_questions == []
        assert all(a.answer == "" for a in skeleton.answers)
        assert skeleton.paperId == published_id
        assert skeleton.ownerUid == identity.uid
        assert skeleton.ownerName == "Ada Lovelace"
        assert skeleton.universityName == "cambridge"

    def test_paper_without_questions(self, identity):
        paper = PaperDoc(id="p1", title="Empty", status="published", ownerUid="u9", questions=[])
        assert derive_answer_skeleton(paper, identity).answers == []


class TestAdopt:
    """Tests for copying published papers into a workspace."""

    def test_creates_answer_doc(self, workspace_service, paper_service, published_id, identity):
        result = asyncio.run(workspace_service.adopt(identity, published_id))

        assert result.created is True
        doc = asyncio.run(paper_service.get_answer_doc_by_id(result.answer_id))
        assert doc.paperId == published_id
        assert doc.ownerUid == identity.uid
        assert doc.createdAt is not None

    def test_second_adoption_returns_existing_copy(self, workspace_service, paper_service, published_id, identity):
        first = asyncio.run(workspace_service.adopt(identity, published_id))
        second = asyncio.run(workspace_service.adopt(identity, published_id))

        assert second.created is False
        assert second.answer_id == first.answer_id
        docs = asyncio.run(paper_service.get_user_answer_docs(identity.uid))
        assert len(docs) == 1

    def test_each_user_gets_their_own_copy(self, workspace_service, published_id, identity, other_identity):
        mine = asyncio.run(workspace_service.adopt(identity, published_id))
        theirs = asyncio.run(workspace_service.adopt(other_identity, published_id))

        assert theirs.created is True
        assert theirs.answer_id != mine.answer_id

    def test_draft_cannot_be_adopted(self, workspace_service, paper_service, sample_exam, identity):
        draft_id = save_paper(paper_service, sample_exam, status="draft")
        with pytest.raises(PaperNotPublishedError):
            asyncio.run(workspace_service.adopt(identity, draft_id))

    def test_missing_paper(self, workspace_service, identity):
        with pytest.raises(NotFoundError):
            asyncio.run(workspace_service.adopt(identity, "nope"))

    def test_anonymous(self, workspace_service, published_id):
        with pytest.raises(NotAuthenticatedError):
            asyncio.run(workspace_service.adopt(None, published_id))

    def test_copy_found_on_recheck_is_reused(self, paper_service, published_id, identity):
        paper = asyncio.run(paper_service.get_paper_by_id(published_id))
        papers = MagicMock()
        papers.find_answer_for_paper = AsyncMock(side_effect=[None, "concurrent-id"])
        papers.get_paper_by_id = AsyncMock(return_value=paper)
        papers.create_answer_doc = AsyncMock()

        result = asyncio.run(WorkspaceService(papers).adopt(identity, published_id))

        assert result.answer_id == "concurrent-id"
        assert result.created is False
        papers.create_answer_doc.assert_not_called()

    def test_snapshot_does_not_follow_paper_edits(self, workspace_service, paper_service, published_id, identity):
        result = asyncio.run(workspace_service.adopt(identity, published_id))
        paper = asyncio.run(paper_service.get_paper_by_id(published_id))
        payload = PaperPayload.model_validate(paper.model_dump(exclude={"id", "createdAt", "updatedAt"}))
        asyncio.run(paper_service.update_paper(published_id, payload.model_copy(update={"title": "Renamed"})))

        doc = asyncio.run(paper_service.get_answer_doc_by_id(result.answer_id))
        assert doc.title == "CS101 2024 Exam"


class TestAnswerEdits:
    """Tests for copy-on-write answer updates."""

    @pytest.fixture
    def doc(self, workspace_service, paper_service, published_id, identity):
        result = asyncio.run(workspace_service.adopt(identity, published_id))
        return asyncio.run(paper_service.get_answer_doc_by_id(result.answer_id))

    def test_update_question_answer(self, doc):
        updated = update_question_answer(doc, 1, "F(b) - F(a)")

        assert updated is not doc
        assert updated.answers[1].answer == "F(b) - F(a)"
        assert updated.answers[0] is doc.answers[0]
        assert doc.answers[1].answer == ""

    def test_update_sub_answer(self, doc):
        updated = update_sub_answer(doc, 0, 0, "O(n^2)")

        assert updated.answers[0].sub_questions[0].answer == "O(n^2)"
        assert updated.answers[0].sub_questions[1] is doc.answers[0].sub_questions[1]
        assert updated.answers[1] is doc.answers[1]
        assert doc.answers[0].sub_questions[0].answer == ""

    def test_out_of_range(self, doc):
        with pytest.raises(IndexError):
            update_question_answer(doc, 2, "x")
        with pytest.raises(IndexError):
            update_sub_answer(doc, 1, 0, "x")

    def test_save_progress(self, workspace_service, paper_service, doc, identity):
        edited = update_sub_answer(update_question_answer(doc, 0, "See parts."), 0, 1, "Equal keys keep order.")

        asyncio.run(workspace_service.save_progress(identity, edited))

        stored = asyncio.run(paper_service.get_answer_doc_by_id(doc.id))
        assert stored.answers[0].answer == "See parts."
        assert stored.answers[0].sub_questions[1].answer == "Equal keys keep order."
        assert stored.title == doc.title

    def test_save_progress_writes_only_answers(self, workspace_service, paper_service, doc, identity):
        tampered = doc.model_copy(update={"title": "Hijacked", "ownerUid": "u2"})

        asyncio.run(workspace_service.save_progress(identity, tampered))

        stored = asyncio.run(paper_service.get_answer_doc_by_id(doc.id))
        assert stored.title == doc.title
        assert stored.ownerUid == identity.uid

    @pytest.mark.parametrize(
        "reshape",
        [
            lambda answers: [answers[0].model_copy(update={"question_number": "BOGUS"})] + answers[1:],
            lambda answers: answers[:1],
            lambda answers: list(reversed(answers)),
            lambda answers: [answers[0].model_copy(update={"sub_questions": answers[0].sub_questions[:1]})] + answers[1:],
        ],
        ids=["relabelled", "shortened", "reordered", "sub_question_dropped"],
    )
    def test_save_progress_rejects_changed_structure(self, workspace_service, paper_service, doc, identity, reshape):
        edited = update_question_answer(doc, 0, "x")
        reshaped = edited.model_copy(update={"answers": reshape(list(edited.answers))})

        with pytest.raises(InputError):
            asyncio.run(workspace_service.save_progress(identity, reshaped))

        stored = asyncio.run(paper_service.get_answer_doc_by_id(doc.id))
        assert stored.answers == doc.answers

    def test_other_user_cannot_save_or_delete(self, workspace_service, doc, other_identity):
        with pytest.raises(NotOwnerError):
            asyncio.run(workspace_service.save_progress(other_identity, doc))
        with pytest.raises(NotOwnerError):
            asyncio.run(workspace_service.delete(other_identity, doc.id))

    def test_delete(self, workspace_service, paper_service, doc, identity):
        asyncio.run(workspace_service.delete(identity, doc.id))

        assert asyncio.run(paper_service.get_answer_doc_by_id(doc.id)) is None
        with pytest.raises(NotFoundError):
            asyncio.run(workspace_service.get_owned(identity, doc.id))

    def test_answer_doc_round_trip_keeps_labels(self, doc):
        reloaded = AnswerDoc.model_validate(doc.model_dump(mode="json"))
        assert [a.question_number for a in reloaded.answers] == ["1", "Q2"]
