import math
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictStr, field_validator

from cvmatch.models.cv import CamelModel, CVDocument


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _score_number(v: Any) -> Any:
    # JSON numbers only; fractional scores are rounded, strings/bools rejected
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError("must be a number")
    if isinstance(v, float) and not math.isfinite(v):
        raise ValueError("must be a finite number")
    if not 0 <= v <= 100:
        raise ValueError("must be between 0 and 100")
    if isinstance(v, float):
        return round_half_up(v)
    return v


def _weight_number(v: Any) -> Any:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError("must be a number")
    if isinstance(v, float):
        if not v.is_integer():
            raise ValueError("must be a whole number")
        return int(v)
    return v


def _none_as_empty(v: Any) -> Any:
    return "" if v is None else v


Score = Annotated[int, BeforeValidator(_score_number), Field(ge=0, le=100)]
Weight = Annotated[int, BeforeValidator(_weight_number), Field(ge=0, le=100)]
TextList = List[StrictStr]
OptionalText = Annotated[str, BeforeValidator(_none_as_empty)]


class CategoryScore(CamelModel):
    name: str
    score: Score
    weight: Weight
    details: OptionalText = ""


class MatchResult(CamelModel):
    """Validated, reconciled outcome of one CV-JD analysis"""
    overall_score: Score
    categories: List[CategoryScore]
    missing_keywords: TextList
    strengths: TextList
    improvements: TextList
    summary: OptionalText = ""

    @field_validator("missing_keywords")
    @classmethod
    def dedupe_keywords(cls, v: List[str]) -> List[str]:
        seen = set()
        out = []
        for kw in v:
            kw = kw.strip()
            key = kw.casefold()
            if kw and key not in seen:
                seen.add(key)
                out.append(kw)
        return out

    @field_validator("strengths", "improvements")
    @classmethod
    def drop_blank_items(cls, v: List[str]) -> List[str]:
        return [item.strip() for item in v if item.strip()]


class NormalizedInput(BaseModel):
    """Canonical oracle payload for one analysis"""
    model_config = ConfigDict(frozen=True)

    cv_payload: str
    job_text: str
    original_length: int
    truncated: bool = False
    truncated_at: Optional[int] = None

    def report(self) -> "InputReport":
        return InputReport(
            original_length=self.original_length,
            truncated=self.truncated,
            truncated_at=self.truncated_at,
        )


class InputReport(BaseModel):
    """What normalization did to the job description"""
    model_config = ConfigDict(frozen=True)

    original_length: int
    truncated: bool = False
    truncated_at: Optional[int] = None


class RawOracleResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    model: Optional[str] = None
    status_code: int = 200


# -------- API payloads --------

class MatchRequest(CamelModel):
    cv_data: CVDocument = Field(default_factory=CVDocument)
    job_description: str = ""


class ExtractedText(BaseModel):
    text: str

