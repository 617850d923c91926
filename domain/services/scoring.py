from typing import Dict, Mapping, Optional, Union

from domain.errors import LLMParseError
from domain.schemas import ProjectEvaluationPayload, ProjectRubric, Rubric

Number = Union[int, float]
MIN_SCORE = 1
MAX_SCORE = 5


def weighted_score(scores: Mapping[str, Number], rubric: Rubric) -> float:
    weights = rubric.weights()
    missing = [name for name in weights if name not in scores]
    if missing:
        raise ValueError(f"missing scores for: {', '.join(missing)}")
    return sum(float(scores[name]) * weight for name, weight in weights.items())


def cv_match_rate(scores: Mapping[str, Number], rubric: Rubric) -> float:
    # weights sum to 1, so the weighted 1..5 score divided by 5 lands in [0.2, 1.0]
    return min(weighted_score(scores, rubric) / MAX_SCORE, 1.0)


def project_score(scores: Mapping[str, Number], rubric: Rubric) -> float:
    # left on the 1..5 scale, unlike cv_match_rate
    return min(weighted_score(scores, rubric), float(MAX_SCORE))


def _whole_score(name: str, value: Number) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise LLMParseError(f"Project score {name}={value} must be a whole number from 1 to 5")
    score = int(value)
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise LLMParseError(f"Project score {name}={value} is outside 1..5")
    return score


def relevant_project_scores(evaluation: ProjectEvaluationPayload) -> Optional[Dict[str, int]]:
    """Detailed project scores, or None when the report must score zero.

    None is returned when the model judged the document irrelevant or left
    any of the five score fields absent or non-numeric. A numeric score that
    is fractional or outside 1..5 raises LLMParseError.
    """
    if not evaluation.is_relevant:
        return None
    scores: Dict[str, int] = {}
    for name in ProjectRubric.parameter_names():
        value = getattr(evaluation, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        scores[name] = _whole_score(name, value)
    return scores
