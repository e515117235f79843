from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from paperhub.api.dependencies import (
    get_current_identity,
    get_paper_service,
    get_university_service,
    require_identity,
)
from paperhub.exceptions import NotFoundError, NotOwnerError
from paperhub.models.identity import Identity
from paperhub.models.paper import PaperDoc, PaperStatus, ParsedPaper, Question
from paperhub.services.draft_service import DraftEngine
from paperhub.services.paper_service import PaperService
from paperhub.services.university_service import UniversityService

router = APIRouter(prefix="/papers", tags=["papers"])


class SavePaperRequest(BaseModel):
    title: Optional[str] = None
    courseCode: str = ""
    courseName: str = ""
    examDate: str = ""
    examYear: str = ""
    questions: List[Question] = Field(default_factory=list)
    status: PaperStatus = "draft"
    universityId: Optional[str] = None


class SavePaperResponse(BaseModel):
    id: str
    status: PaperStatus


@router.get("/published", response_model=List[PaperDoc])
async def published_papers(
    limit: Optional[int] = Query(None, ge=1, le=500),
    papers: PaperService = Depends(get_paper_service)
):
    return await papers.get_published_papers(limit)


@router.get("/search", response_model=List[PaperDoc])
async def search_papers(
    term: str = "",
    limit: Optional[int] = Query(None, ge=1, le=100),
    papers: PaperService = Depends(get_paper_service)
):
    """Prefix search by course code, course name or university"""
    return await papers.search_published_papers(term, limit)


@router.get("/mine", response_model=List[PaperDoc])
async def my_papers(
    identity: Identity = Depends(require_identity),
    papers: PaperService = Depends(get_paper_service)
):
    return await papers.get_user_papers(identity.uid)


@router.get("/{paper_id}", response_model=PaperDoc)
async def get_paper(
    paper_id: str,
    identity: Optional[Identity] = Depends(get_current_identity),
    papers: PaperService = Depends(get_paper_service)
):
    paper = await papers.get_paper_by_id(paper_id)
    # drafts are only visible to their owner
    if paper is None or (paper.status != "published" and (identity is None or identity.uid != paper.ownerUid)):
        raise NotFoundError(f"Paper {paper_id} not found")
    return paper


@router.post("", response_model=SavePaperResponse, status_code=201)
async def create_paper(
    request: SavePaperRequest,
    identity: Identity = Depends(require_identity),
    papers: PaperService = Depends(get_paper_service),
    universities: UniversityService = Depends(get_university_service)
):
    """Save an edited extraction result as a new draft or published paper"""
    engine = DraftEngine(papers, lambda: identity, universities)
    engine.load_from_extraction(ParsedPaper(
        course_code=request.courseCode,
        course_name=request.courseName,
        exam_date=request.examDate,
        exam_year=request.examYear,
        questions=request.questions,
    ))
    if request.title:
        engine.update_metadata(title=request.title)
    engine.select_university(request.universityId)

    paper_id = await engine.save(request.status)
    return SavePaperResponse(id=paper_id, status=request.status)


@router.put("/{paper_id}", response_model=SavePaperResponse)
async def update_paper(
    paper_id: str,
    request: SavePaperRequest,
    identity: Identity = Depends(require_identity),
    papers: PaperService = Depends(get_paper_service),
    universities: UniversityService = Depends(get_university_service)
):
    """Re-save an owned paper; published papers may be corrected too"""
    existing = await papers.get_paper_by_id(paper_id)
    if existing is None:
        raise NotFoundError(f"Paper {paper_id} not found")
    if existing.ownerUid != identity.uid:
        raise NotOwnerError("Only the owner can edit this paper.")

    engine = DraftEngine(papers, lambda: identity, universities)
    engine.load_from_existing(existing.model_copy(update={
        "title": request.title or existing.title,
        "courseCode": request.courseCode,
        "courseName": request.courseName,
        "examDate": request.examDate,
        "examYear": request.examYear,
        "questions": request.questions,
        "universityId": request.universityId,
    }))

    await engine.save(request.status)
    return SavePaperResponse(id=paper_id, status=request.status)
