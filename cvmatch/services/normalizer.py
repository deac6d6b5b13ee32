"""
Input normalization: validates the job description and serializes the CV into
the canonical payload the oracle sees.
"""
import json

from cvmatch.models.cv import CVDocument
from cvmatch.models.match import NormalizedInput
from cvmatch.models.settings import MatchSettings
from cvmatch.utils.exceptions import EmptyJobDescription, OversizedJobDescription
from cvmatch.utils.logging_config import get_logger

logger = get_logger(__name__)

# Fields that never influence scoring
_ENTRY_LISTS = ("experience", "education", "certifications", "projects")


def serialize_cv(cv: CVDocument) -> str:
    """Deterministic JSON text of a CV, without UI ids and the photo blob"""
    exclude = {name: {"__all__": {"id"}} for name in _ENTRY_LISTS}
    exclude["personal_info"] = {"photo"}
    data = cv.model_dump(by_alias=True, exclude=exclude)
    return json.dumps(data, indent=2, ensure_ascii=False)


def normalize(cv: CVDocument, job_text: str, settings: MatchSettings) -> NormalizedInput:
    """Validate and canonicalize one analysis request.

    Raises EmptyJobDescription for blank text and OversizedJobDescription for
    text above the ceiling unless the settings ask for truncation.
    """
    text = (job_text or "").strip()
    if not text:
        raise EmptyJobDescription()

    original_length = len(text)
    limit = settings.max_job_description_chars
    truncated_at = None
    if original_length > limit:
        if settings.oversize_policy != "truncate":
            raise OversizedJobDescription(original_length, limit)
        text = text[:limit]
        truncated_at = limit
        logger.info(f"Job description truncated from {original_length} to {limit} characters")

    cv_payload = serialize_cv(cv)
    logger.debug(f"Normalized input: cv={len(cv_payload)} chars, job={len(text)} chars")

    return NormalizedInput(
        cv_payload=cv_payload,
        job_text=text,
        original_length=original_length,
        truncated=truncated_at is not None,
        truncated_at=truncated_at,
    )
