"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from conftest import encode_pdf, make_client, make_response

from paperhub.api.dependencies import get_extraction_gateway, get_store
from paperhub.app import app
from paperhub.config import config
from paperhub.store.memory import InMemoryDocumentStore

ADA = {"X-User-Uid": "u1", "X-User-Name": "Ada Lovelace"}
ALAN = {"X-User-Uid": "u2", "X-User-Name": "Alan Turing"}


@pytest.fixture
def backend():
    """Fake Gemini client; tests set its response per case"""
    return make_client()


@pytest.fixture
def client(backend, make_gateway):
    memory = InMemoryDocumentStore()
    gateway = make_gateway(backend)
    app.dependency_overrides[get_store] = lambda: memory
    app.dependency_overrides[get_extraction_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def publishable(sample_exam, **overrides):
    body = {
        "courseCode": sample_exam["course_code"],
        "courseName": "introduction to computing",
        "examDate": sample_exam["exam_date"],
        "examYear": sample_exam["exam_year"],
        "questions": sample_exam["questions"],
        "status": "published",
    }
    body.update(overrides)
    return body


class TestParseExamPaper:
    """Tests for POST /parseExamPaper."""

    def test_empty_body(self, client, backend):
        response = client.post("/parseExamPaper", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "No PDF data provided."}
        backend.aio.models.generate_content.assert_not_called()

    def test_no_body(self, client):
        assert client.post("/parseExamPaper").status_code == 400

    def test_success(self, client, backend, sample_exam_text):
        backend.aio.models.generate_content.return_value = make_response(sample_exam_text)

        response = client.post("/parseExamPaper", json={"fileBase64": encode_pdf(prefix=True)})

        assert response.status_code == 200
        body = response.json()
        assert body["course_code"] == "CS101"
        assert len(body["questions"]) == 2
        assert body["questions"][1]["equations"][0]["latex"] == "\\int_a^b f(x)\\,dx"

    def test_safety_block(self, client, backend):
        backend.aio.models.generate_content.return_value = make_response(text=None, finish_reason="SAFETY")

        response = client.post("/parseExamPaper", json={"fileBase64": encode_pdf()})

        assert response.status_code == 500
        assert response.json() == {"error": "Generation failed: SAFETY"}

    def test_invalid_json(self, client, backend):
        backend.aio.models.generate_content.return_value = make_response("{not json")

        response = client.post("/parseExamPaper", json={"fileBase64": encode_pdf()})

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid JSON returned from AI"}


class TestPaperRoutes:
    """Tests for saving, listing and searching papers."""

    def test_save_requires_identity(self, client, sample_exam):
        response = client.post("/papers", json=publishable(sample_exam))

        assert response.status_code == 401
        assert "error" in response.json()

    def test_empty_question_list_rejected(self, client, sample_exam):
        response = client.post("/papers", json=publishable(sample_exam, questions=[]), headers=ADA)

        assert response.status_code == 400
        assert client.get("/papers/mine", headers=ADA).json() == []

    def test_default_title_and_search(self, client, sample_exam):
        created = client.post("/papers", json=publishable(sample_exam), headers=ADA)
        assert created.status_code == 201
        paper_id = created.json()["id"]

        paper = client.get(f"/papers/{paper_id}").json()
        assert paper["title"] == "CS101 2024 Exam"
        assert paper["ownerName"] == "Ada Lovelace"

        found = client.get("/papers/search", params={"term": "cs1"}).json()
        assert [p["id"] for p in found] == [paper_id]

    def test_drafts_are_private(self, client, sample_exam):
        paper_id = client.post(
            "/papers", json=publishable(sample_exam, status="draft"), headers=ADA
        ).json()["id"]

        assert client.get(f"/papers/{paper_id}").status_code == 404
        assert client.get(f"/papers/{paper_id}", headers=ALAN).status_code == 404
        assert client.get(f"/papers/{paper_id}", headers=ADA).status_code == 200
        assert client.get("/papers/published").json() == []

    def test_only_owner_can_update(self, client, sample_exam):
        paper_id = client.post("/papers", json=publishable(sample_exam), headers=ADA).json()["id"]

        denied = client.put(f"/papers/{paper_id}", json=publishable(sample_exam, title="Mine now"), headers=ALAN)
        assert denied.status_code == 403

        updated = client.put(f"/papers/{paper_id}", json=publishable(sample_exam, title="Fixed"), headers=ADA)
        assert updated.status_code == 200
        assert client.get(f"/papers/{paper_id}").json()["title"] == "Fixed"
        assert len(client.get("/papers/mine", headers=ADA).json()) == 1


class TestWorkspaceRoutes:
    """Tests for adopting papers and editing answers."""

    def test_adopt_answer_and_delete(self, client, sample_exam):
        paper_id = client.post("/papers", json=publishable(sample_exam), headers=ADA).json()["id"]

        first = client.post(f"/workspace/{paper_id}", headers=ALAN)
        second = client.post(f"/workspace/{paper_id}", headers=ALAN)
        assert first.status_code == 201
        assert second.status_code == 200
        answer_id = first.json()["answer_id"]
        assert second.json() == {"answer_id": answer_id, "created": False}

        workspace = client.get("/workspace", headers=ALAN).json()
        assert [d["id"] for d in workspace] == [answer_id]
        answers = workspace[0]["answers"]
        assert [a["question_number"] for a in answers] == ["1", "Q2"]

        answers[0]["sub_questions"][0]["answer"] = "Theta(n^2)"
        saved = client.put(f"/workspace/answers/{answer_id}", json={"answers": answers}, headers=ALAN)
        assert saved.status_code == 200
        assert saved.json()["answers"][0]["sub_questions"][0]["answer"] == "Theta(n^2)"

        assert client.get(f"/workspace/answers/{answer_id}", headers=ADA).status_code == 403
        assert client.delete(f"/workspace/answers/{answer_id}", headers=ALAN).status_code == 204
        assert client.get("/workspace", headers=ALAN).json() == []

    def test_answers_must_keep_question_structure(self, client, sample_exam):
        paper_id = client.post("/papers", json=publishable(sample_exam), headers=ADA).json()["id"]
        answer_id = client.post(f"/workspace/{paper_id}", headers=ALAN).json()["answer_id"]

        relabelled = client.put(
            f"/workspace/answers/{answer_id}",
            json={"answers": [{"question_number": "BOGUS", "answer": "x"}]},
            headers=ALAN,
        )

        assert relabelled.status_code == 400
        stored = client.get(f"/workspace/answers/{answer_id}", headers=ALAN).json()
        assert [a["question_number"] for a in stored["answers"]] == ["1", "Q2"]

    def test_draft_cannot_be_adopted(self, client, sample_exam):
        paper_id = client.post(
            "/papers", json=publishable(sample_exam, status="draft"), headers=ADA
        ).json()["id"]

        assert client.post(f"/workspace/{paper_id}", headers=ADA).status_code == 400

    def test_adopt_requires_identity(self, client):
        assert client.post("/workspace/anything").status_code == 401


class TestUniversityRoutes:
    """Tests for the university catalogue."""

    @pytest.fixture(autouse=True)
    def ada_is_admin(self, monkeypatch):
        monkeypatch.setattr(config, "ADMIN_UIDS", ["u1"])

    def test_only_admins_edit_catalogue(self, client):
        assert client.post("/universities", json={"name": "Oxford"}, headers=ALAN).status_code == 403
        university_id = client.post("/universities", json={"name": "Oxford"}, headers=ADA).json()["id"]

        denied = client.post(f"/universities/{university_id}/courses", json={"course": "PPE"}, headers=ALAN)
        assert denied.status_code == 403
        assert client.delete(f"/universities/{university_id}/courses/PPE", headers=ALAN).status_code == 403
        assert client.post("/universities", json={"name": "Yale"}).status_code == 401
        assert [u["name"] for u in client.get("/universities").json()] == ["Oxford"]

    def test_create_and_classify(self, client, sample_exam):
        university = client.post(
            "/universities", json={"name": "Cambridge", "courses": ["CS101"]}, headers=ADA
        )
        assert university.status_code == 201
        university_id = university.json()["id"]

        paper_id = client.post(
            "/papers", json=publishable(sample_exam, universityId=university_id), headers=ADA
        ).json()["id"]

        assert client.get(f"/papers/{paper_id}").json()["universityName"] == "Cambridge"
        assert [u["name"] for u in client.get("/universities").json()] == ["Cambridge"]

    def test_course_management(self, client):
        university_id = client.post("/universities", json={"name": "Oxford"}, headers=ADA).json()["id"]

        added = client.post(f"/universities/{university_id}/courses", json={"course": "PPE"}, headers=ADA)
        assert added.json()["courses"] == ["PPE"]

        removed = client.delete(f"/universities/{university_id}/courses/PPE", headers=ADA)
        assert removed.json()["courses"] == []

    def test_health(self, client):
        assert client.get("/health").json()["ok"] is True
