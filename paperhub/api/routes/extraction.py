import logging
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from paperhub.api.dependencies import get_extraction_gateway
from paperhub.models.paper import ParsedPaper
from paperhub.services.extraction_service import ExtractionFailure, ExtractionGateway, http_status_for

logger = logging.getLogger(__name__)

router = APIRouter()

class ParseRequest(BaseModel):
    fileBase64: Optional[str] = None  # may carry a data:<mime>;base64, prefix

@router.post("/parseExamPaper", response_model=ParsedPaper)
async def parse_exam_paper(
    request: Optional[ParseRequest] = None,
    gateway: ExtractionGateway = Depends(get_extraction_gateway)
):
    """
    Convert an exam paper PDF into structured JSON.
    Can take a few minutes for long papers.
    """
    result = await gateway.extract(request.fileBase64 if request else None)

    if isinstance(result, ExtractionFailure):
        return JSONResponse(
            status_code=http_status_for(result),
            content={"error": result.message}
        )

    return result.paper
