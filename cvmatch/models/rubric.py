"""
Scoring rubric: the fixed, versioned set of weighted categories a CV is scored on.
"""
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cvmatch.utils.exceptions import ConfigurationError

RUBRIC_CATEGORY_COUNT = 5
RUBRIC_TOTAL_WEIGHT = 100


class RubricCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    weight: int = Field(gt=0, le=RUBRIC_TOTAL_WEIGHT)
    description: str = ""


class ScoringRubric(BaseModel):
    """Weighted scoring categories; weights always sum to 100"""
    model_config = ConfigDict(frozen=True)

    version: str
    categories: Tuple[RubricCategory, ...]

    @model_validator(mode="after")
    def check_invariants(self):
        if len(self.categories) != RUBRIC_CATEGORY_COUNT:
            raise ValueError(
                f"rubric {self.version} has {len(self.categories)} categories, "
                f"expected {RUBRIC_CATEGORY_COUNT}"
            )
        total = sum(c.weight for c in self.categories)
        if total != RUBRIC_TOTAL_WEIGHT:
            raise ValueError(f"rubric {self.version} weights sum to {total}, expected {RUBRIC_TOTAL_WEIGHT}")
        names = [c.name.casefold() for c in self.categories]
        if len(set(names)) != len(names):
            raise ValueError(f"rubric {self.version} has duplicate category names")
        return self

    def __len__(self) -> int:
        return len(self.categories)

    @property
    def names(self) -> List[str]:
        return [c.name for c in self.categories]

    @property
    def weights(self) -> List[int]:
        return [c.weight for c in self.categories]


def build_rubric(version: str, categories: List[Tuple[str, int, str]]) -> ScoringRubric:
    """Build a rubric from (name, weight, description) triples.

    Raises ConfigurationError instead of a pydantic error so a bad rubric is
    reported as a configuration fault.
    """
    try:
        return ScoringRubric(
            version=version,
            categories=tuple(
                RubricCategory(name=name, weight=weight, description=description)
                for name, weight, description in categories
            ),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid scoring rubric: {e}", config_key="rubric", cause=e) from e


def check_rubric(rubric: ScoringRubric) -> None:
    """Re-assert rubric invariants (used at application startup)"""
    total = sum(rubric.weights)
    if len(rubric) != RUBRIC_CATEGORY_COUNT or total != RUBRIC_TOTAL_WEIGHT:
        raise ConfigurationError(
            f"Scoring rubric {rubric.version} is inconsistent: "
            f"{len(rubric)} categories, weights sum to {total}",
            config_key="rubric",
        )


DEFAULT_RUBRIC = build_rubric("1", [
    ("Hard Skills", 40,
     "Technical skills, programming languages, frameworks, tools. "
     "Check Skills, Projects, and Work Experience sections."),
    ("Experience & Seniority", 25,
     "Years of experience, role level match (Junior/Mid/Senior)."),
    ("Domain Knowledge", 20,
     "Industry expertise, specific responsibilities matching JD requirements."),
    ("Education & Certifications", 10,
     "Required degrees, mandatory certifications."),
    ("Soft Skills & Culture", 5,
     "Behavioral traits, teamwork, leadership."),
])
