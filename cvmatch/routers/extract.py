from typing import Optional

from fastapi import APIRouter, File, UploadFile
from starlette.concurrency import run_in_threadpool

from cvmatch.helpers.parsing import extract_text
from cvmatch.models.match import ExtractedText
from cvmatch.utils.exceptions import ValidationError
from cvmatch.utils.logging_config import log_api_call

router = APIRouter(tags=["extract"])


@router.post("/extract-jd-text", response_model=ExtractedText)
@log_api_call("extract-jd-text")
async def extract_jd_text(file: Optional[UploadFile] = File(None)):
    """Extract plain text from an uploaded job description (PDF, DOCX, TXT)"""
    if file is None:
        raise ValidationError("No file provided", field="file")

    data = await file.read()
    # pdfminer is CPU-bound; keep it off the event loop
    text = await run_in_threadpool(extract_text, data, file.content_type, file.filename)
    return ExtractedText(text=text)
