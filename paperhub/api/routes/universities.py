from typing import List
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from paperhub.api.dependencies import get_university_service, require_admin
from paperhub.models.identity import Identity
from paperhub.models.university import University
from paperhub.services.university_service import UniversityService

router = APIRouter(prefix="/universities", tags=["universities"])


class CreateUniversityRequest(BaseModel):
    name: str
    courses: List[str] = Field(default_factory=list)


class AddCourseRequest(BaseModel):
    course: str


@router.get("", response_model=List[University])
async def list_universities(universities: UniversityService = Depends(get_university_service)):
    return await universities.get_universities()


@router.post("", response_model=University, status_code=201)
async def create_university(
    request: CreateUniversityRequest,
    identity: Identity = Depends(require_admin),
    universities: UniversityService = Depends(get_university_service)
):
    return await universities.create_university(request.name, request.courses)


@router.post("/{university_id}/courses", response_model=University)
async def add_course(
    university_id: str,
    request: AddCourseRequest,
    identity: Identity = Depends(require_admin),
    universities: UniversityService = Depends(get_university_service)
):
    return await universities.add_course(university_id, request.course)


@router.delete("/{university_id}/courses/{course}", response_model=University)
async def remove_course(
    university_id: str,
    course: str,
    identity: Identity = Depends(require_admin),
    universities: UniversityService = Depends(get_university_service)
):
    return await universities.remove_course(university_id, course)
