import json
import logging
from typing import Dict, Optional, Type

from domain.errors import LLMParseError
from domain.schemas import (
    CV_TARGET_WEIGHTS,
    PROJECT_TARGET_WEIGHTS,
    CvRubric,
    DocumentType,
    ProjectRubric,
    StandardizedRubric,
)
from infra.llm.parsing import parse_llm_response
from infra.llm.prompts import RUBRIC_STANDARDIZATION_PROMPT

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.01

_LABELS = {
    "technical_skills": "Technical Skills Match",
    "experience_level": "Experience Level",
    "achievements": "Relevant Achievements",
    "cultural_fit": "Cultural/Collaboration Fit",
    "correctness": "Correctness (Prompt & Chaining)",
    "code_quality": "Code Quality & Structure",
    "resilience": "Resilience & Error Handling",
    "documentation": "Documentation & Explanation",
    "creativity": "Creativity / Bonus",
}

_MODELS: Dict[DocumentType, Type[StandardizedRubric]] = {
    DocumentType.CV_RUBRIC: CvRubric,
    DocumentType.PROJECT_RUBRIC: ProjectRubric,
}


def _targets(rubric_type: DocumentType) -> Dict[str, float]:
    return CV_TARGET_WEIGHTS if rubric_type is DocumentType.CV_RUBRIC else PROJECT_TARGET_WEIGHTS


def build_prompt(raw_text: str, rubric_type: DocumentType, context_text: Optional[str] = None) -> str:
    targets = _targets(rubric_type)
    parameter_lines = "\n".join(
        f"   - {name} ({_LABELS[name]}): weight {weight}" for name, weight in targets.items()
    )
    template = {
        name: {
            "weight": weight,
            "criteria": f"<what {_LABELS[name]} evaluates>",
            "scale": {str(i): f"<description of score {i}>" for i in range(1, 6)},
        }
        for name, weight in targets.items()
    }
    context_section = f"CONTEXT:\n{context_text}\n\n" if context_text else ""
    return RUBRIC_STANDARDIZATION_PROMPT.format(
        context_section=context_section,
        rubric_text=raw_text,
        rubric_type="CV Evaluation" if rubric_type is DocumentType.CV_RUBRIC else "Project Evaluation",
        parameter_lines=parameter_lines,
        response_format=json.dumps(template, indent=2),
    )


def check_weights(rubric: StandardizedRubric) -> StandardizedRubric:
    total = rubric.weight_total()
    if total <= 0:
        raise LLMParseError("Standardized rubric weights sum to zero")
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        logger.warning("Rubric weights sum to %.3f; renormalizing to 1.0", total)
        return rubric.renormalized()
    return rubric


class RubricStandardizer:
    def __init__(self, llm):
        self.llm = llm

    async def standardize(
        self, raw_text: str, rubric_type: DocumentType, context_text: Optional[str] = None
    ) -> StandardizedRubric:
        if rubric_type not in _MODELS:
            raise ValueError(f"Not a rubric document type: {rubric_type}")
        prompt = build_prompt(raw_text, rubric_type, context_text)
        raw = await self.llm.complete(prompt)
        rubric = parse_llm_response(raw, _MODELS[rubric_type]).unwrap()
        rubric = check_weights(rubric)
        logger.info("Standardized %s with weights %s", rubric_type.value, rubric.weights())
        return rubric
