from typing import List
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from paperhub.api.dependencies import get_paper_service, get_workspace_service, require_identity
from paperhub.models.answer import AdoptionResult, AnswerDoc, AnswerQuestion
from paperhub.models.identity import Identity
from paperhub.services.answer_service import WorkspaceService
from paperhub.services.paper_service import PaperService

router = APIRouter(prefix="/workspace", tags=["workspace"])


class SaveAnswersRequest(BaseModel):
    answers: List[AnswerQuestion]


@router.get("", response_model=List[AnswerDoc])
async def my_workspace(
    identity: Identity = Depends(require_identity),
    papers: PaperService = Depends(get_paper_service)
):
    return await papers.get_user_answer_docs(identity.uid)


@router.post("/{paper_id}", response_model=AdoptionResult)
async def adopt_paper(
    paper_id: str,
    response: Response,
    identity: Identity = Depends(require_identity),
    workspace: WorkspaceService = Depends(get_workspace_service)
):
    """Copy a published paper into the caller's workspace (at most once)"""
    result = await workspace.adopt(identity, paper_id)
    response.status_code = 201 if result.created else 200
    return result


@router.get("/answers/{answer_id}", response_model=AnswerDoc)
async def get_answers(
    answer_id: str,
    identity: Identity = Depends(require_identity),
    workspace: WorkspaceService = Depends(get_workspace_service)
):
    return await workspace.get_owned(identity, answer_id)


@router.put("/answers/{answer_id}", response_model=AnswerDoc)
async def save_answers(
    answer_id: str,
    request: SaveAnswersRequest,
    identity: Identity = Depends(require_identity),
    workspace: WorkspaceService = Depends(get_workspace_service)
):
    doc = await workspace.get_owned(identity, answer_id)
    updated = doc.model_copy(update={"answers": request.answers})
    await workspace.save_progress(identity, updated)
    return await workspace.get_owned(identity, answer_id)


@router.delete("/answers/{answer_id}", status_code=204)
async def delete_answers(
    answer_id: str,
    identity: Identity = Depends(require_identity),
    workspace: WorkspaceService = Depends(get_workspace_service)
):
    await workspace.delete(identity, answer_id)
    return Response(status_code=204)
