from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class AnswerSubQuestion(BaseModel):
    sub_number: str
    answer: str = ""


class AnswerQuestion(BaseModel):
    question_number: str
    answer: str = ""
    sub_questions: List[AnswerSubQuestion] = Field(default_factory=list)


class AnswerPayload(BaseModel):
    """Workspace copy of a paper; metadata is a snapshot taken at adoption"""
    paperId: str
    ownerUid: str
    ownerName: Optional[str] = None
    ownerPhotoURL: Optional[str] = None

    title: str = ""
    courseCode: str = ""
    courseName: str = ""
    examDate: str = ""
    examYear: str = ""

    universityId: Optional[str] = None
    universityName: Optional[str] = None

    answers: List[AnswerQuestion] = Field(default_factory=list)


class AnswerDoc(AnswerPayload):
    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class AdoptionResult(BaseModel):
    answer_id: str
    created: bool
