from typing import List
from pydantic import BaseModel, Field

class University(BaseModel):
    id: str
    name: str
    courses: List[str] = Field(default_factory=list)  # set semantics, display order kept
