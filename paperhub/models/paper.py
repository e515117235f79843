from typing import Any, List, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

PaperStatus = Literal["draft", "published"]

Marks = Optional[Union[int, float]]


class ExamNode(BaseModel):
    """Base for every node of the extracted exam structure.

    An explicit ``null`` from the backend on a defaulted field is replaced by
    the field's empty value, so no field is ever absent or null where the
    shape says string or list.
    """

    @model_validator(mode="before")
    @classmethod
    def fill_empty_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name, field in cls.model_fields.items():
            if name not in data or data[name] is not None:
                continue
            if field.default == "":
                data[name] = ""
            elif field.default_factory is list:
                data[name] = []
        return data


class Figure(ExamNode):
    label: str = ""
    description: str = ""


class Equation(ExamNode):
    latex: str
    description: str = ""


class SubQuestion(ExamNode):
    sub_number: str
    text: str
    marks: Marks = None
    figures: List[Figure] = Field(default_factory=list)
    equations: List[Equation] = Field(default_factory=list)


class Question(ExamNode):
    question_number: str
    text: str
    marks: Marks = None
    figures: List[Figure] = Field(default_factory=list)
    equations: List[Equation] = Field(default_factory=list)
    sub_questions: List[SubQuestion] = Field(default_factory=list)


class ParsedPaper(ExamNode):
    course_code: str = ""
    course_name: str = ""
    exam_date: str = ""  # "YYYY-MM-DD" or ""
    exam_year: str = ""  # "2024" or ""
    questions: List[Question]
    # legacy responses carried a free-form title
    paper_title: Optional[str] = Field(default=None, exclude=True)


class PaperPayload(BaseModel):
    """Fields written to the papers collection on create/update"""
    title: str
    courseCode: str = ""
    courseName: str = ""
    examDate: str = ""
    examYear: str = ""
    status: PaperStatus = "draft"
    ownerUid: str
    ownerName: Optional[str] = None
    ownerPhotoURL: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    universityId: Optional[str] = None
    universityName: Optional[str] = None


class PaperDoc(PaperPayload):
    id: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
