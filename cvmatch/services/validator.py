"""
Result validation: turns raw oracle text into a MatchResult or rejects it whole.
"""
import json
import re
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from cvmatch.models.match import MatchResult, RawOracleResponse
from cvmatch.models.rubric import ScoringRubric
from cvmatch.utils.exceptions import MalformedOutput, SchemaViolation
from cvmatch.utils.logging_config import get_logger

logger = get_logger(__name__)

_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_CLOSING_FENCE = re.compile(r"\r?\n?```$")

REQUIRED_FIELDS = ("overallScore", "categories", "missingKeywords", "strengths", "improvements")


def strip_code_fences(content: str) -> str:
    """Remove leading/trailing markdown code-fence markers"""
    text = content.strip()
    text = _OPENING_FENCE.sub("", text, count=1)
    text = _CLOSING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_json_object(content: str) -> Dict[str, Any]:
    text = strip_code_fences(content)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutput(details={"position": e.pos, "length": len(text)}, cause=e) from e
    if not isinstance(data, dict):
        raise MalformedOutput(
            f"AI response was a JSON {type(data).__name__}, expected an object",
            details={"length": len(text)},
        )
    return data


def _check_required(data: Dict[str, Any]) -> None:
    for key in REQUIRED_FIELDS:
        if data.get(key) is None:
            raise SchemaViolation(f"AI response is missing '{key}'", field=key)
    if not isinstance(data["categories"], list):
        raise SchemaViolation("'categories' must be a list", field="categories")


def _check_rubric_alignment(result: MatchResult, rubric: ScoringRubric) -> MatchResult:
    aligned = []
    for i, (got, expected) in enumerate(zip(result.categories, rubric.categories)):
        if got.name.strip().casefold() != expected.name.casefold():
            raise SchemaViolation(
                f"Category {i} is '{got.name}', expected '{expected.name}'",
                field=f"categories[{i}].name",
            )
        if got.weight != expected.weight:
            raise SchemaViolation(
                f"Category '{expected.name}' has weight {got.weight}, expected {expected.weight}",
                field=f"categories[{i}].weight",
            )
        aligned.append(got.model_copy(update={"name": expected.name}))

    return result.model_copy(update={"categories": aligned})


def validate(raw: RawOracleResponse, rubric: ScoringRubric) -> MatchResult:
    """Parse and schema-check one oracle response against the rubric.

    Raises MalformedOutput when the text is not a single JSON object and
    SchemaViolation when any part of the contract is broken.
    """
    data = parse_json_object(raw.content)
    _check_required(data)

    if len(data["categories"]) != len(rubric):
        raise SchemaViolation(
            f"Expected {len(rubric)} categories, got {len(data['categories'])}",
            field="categories",
        )

    try:
        result = MatchResult.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise SchemaViolation(
            f"Invalid '{location}': {first['msg']}",
            field=location,
            details={"error_count": e.error_count()},
            cause=e,
        ) from e

    result = _check_rubric_alignment(result, rubric)
    logger.debug(
        f"Oracle output validated: overallScore={result.overall_score}, "
        f"{len(result.missing_keywords)} missing keywords"
    )
    return result
