from enum import Enum

import numpy as np

from cvmatch.models.match import MatchResult
from cvmatch.models.rubric import RUBRIC_TOTAL_WEIGHT, ScoringRubric
from cvmatch.utils.exceptions import ConfigurationError
from cvmatch.utils.logging_config import get_logger

logger = get_logger(__name__)


class MatchBand(str, Enum):
    EXCELLENT = "excellent"
    PARTIAL = "partial"
    NEEDS_IMPROVEMENT = "needs_improvement"


def score_band(score: int, excellent_min: int = 80, partial_min: int = 50) -> MatchBand:
    if score >= excellent_min:
        return MatchBand.EXCELLENT
    if score >= partial_min:
        return MatchBand.PARTIAL
    return MatchBand.NEEDS_IMPROVEMENT


def weighted_overall(scores, weights) -> int:
    """round(sum(score * weight) / 100), halves rounded up, in integer arithmetic"""
    total = int(np.dot(np.asarray(scores, dtype=np.int64), np.asarray(weights, dtype=np.int64)))
    return (total + RUBRIC_TOTAL_WEIGHT // 2) // RUBRIC_TOTAL_WEIGHT


def reconcile(result: MatchResult, rubric: ScoringRubric, tolerance: int = 1) -> MatchResult:
    """Recompute overallScore from category scores and the rubric's weights.

    The recomputed value always wins; drift beyond `tolerance` is logged.
    """
    if len(result.categories) != len(rubric):
        raise ConfigurationError(
            f"Rubric {rubric.version} has {len(rubric)} categories but the result has {len(result.categories)}",
            config_key="rubric",
        )

    scores = [c.score for c in result.categories]
    overall = weighted_overall(scores, rubric.weights)

    drift = abs(result.overall_score - overall)
    if drift > tolerance:
        logger.warning(
            f"Oracle overallScore drift: declared {result.overall_score}, recomputed {overall} "
            f"(tolerance {tolerance})"
        )
    elif drift:
        logger.debug(f"Oracle overallScore {result.overall_score} adjusted to {overall}")

    categories = [
        c.model_copy(update={"weight": rc.weight})
        for c, rc in zip(result.categories, rubric.categories)
    ]
    reconciled = result.model_copy(update={"overall_score": overall, "categories": categories})
    logger.info(f"Match reconciled: overallScore={overall} ({score_band(overall).value})")
    return reconciled
