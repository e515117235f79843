from typing import Optional
from pydantic import BaseModel

class Identity(BaseModel):
    uid: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    email: Optional[str] = None
