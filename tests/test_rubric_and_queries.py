import json

import pytest

from conftest import ScriptedLLM, rubric_json
from domain.errors import LLMParseError
from domain.schemas import CV_TARGET_WEIGHTS, PROJECT_TARGET_WEIGHTS, DocumentType, JobType
from domain.services.query_generator import QueryGenerator
from domain.services.rubric_standardizer import RubricStandardizer


@pytest.mark.asyncio
async def test_standardize_cv_rubric_includes_context_and_targets():
    llm = ScriptedLLM()
    rubric = await RubricStandardizer(llm).standardize(
        "strong in python", DocumentType.CV_RUBRIC, context_text="Backend role")
    assert rubric.weights() == CV_TARGET_WEIGHTS
    prompt = llm.prompts[0]
    assert "CONTEXT:\nBackend role" in prompt
    assert "technical_skills (Technical Skills Match): weight 0.4" in prompt


@pytest.mark.asyncio
async def test_standardize_project_rubric_from_fenced_reply():
    rubric = await RubricStandardizer(ScriptedLLM()).standardize("anything", DocumentType.PROJECT_RUBRIC)
    assert rubric.weights() == PROJECT_TARGET_WEIGHTS
    assert rubric.weight_total() == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_weights_off_by_more_than_tolerance_are_renormalized(caplog):
    llm = ScriptedLLM()
    llm.overrides["cv_rubric"] = rubric_json({name: w * 2 for name, w in CV_TARGET_WEIGHTS.items()})
    rubric = await RubricStandardizer(llm).standardize("x", DocumentType.CV_RUBRIC)
    assert rubric.weight_total() == pytest.approx(1.0)
    assert rubric.weights()["technical_skills"] == pytest.approx(0.4)
    assert "renormalizing" in caplog.text


@pytest.mark.asyncio
async def test_zero_weights_are_rejected():
    llm = ScriptedLLM()
    llm.overrides["cv_rubric"] = rubric_json({name: 0.0 for name in CV_TARGET_WEIGHTS})
    with pytest.raises(LLMParseError):
        await RubricStandardizer(llm).standardize("x", DocumentType.CV_RUBRIC)


@pytest.mark.asyncio
async def test_missing_parameter_is_a_schema_error():
    llm = ScriptedLLM()
    weights = dict(CV_TARGET_WEIGHTS)
    weights.pop("cultural_fit")
    llm.overrides["cv_rubric"] = rubric_json(weights)
    with pytest.raises(LLMParseError):
        await RubricStandardizer(llm).standardize("x", DocumentType.CV_RUBRIC)


@pytest.mark.asyncio
async def test_queries_cleaned_and_capped():
    llm = ScriptedLLM()
    llm.overrides["queries"] = json.dumps({
        "cvEvaluationQueries": ["  a  ", "", "b", "   ", "c", "d", "e", "f"],
        "projectEvaluationQueries": ["p1", "p2"],
    })
    docs = {DocumentType.JOB_DESCRIPTION: "jd", DocumentType.CV_RUBRIC: "rubric"}
    queries = await QueryGenerator(llm).generate_queries(docs, JobType.CV_ONLY)
    assert queries.cv_queries == ["a", "b", "c", "d", "e"]
    assert queries.project_queries is None
    assert "projectEvaluationQueries" not in llm.prompts[0]


@pytest.mark.asyncio
async def test_project_queries_kept_for_cv_with_test():
    llm = ScriptedLLM()
    docs = {
        DocumentType.JOB_DESCRIPTION: "jd",
        DocumentType.CV_RUBRIC: "rubric",
        DocumentType.CASE_STUDY_BRIEF: "brief",
        DocumentType.PROJECT_RUBRIC: "project rubric",
    }
    queries = await QueryGenerator(llm).generate_queries(docs, JobType.CV_WITH_TEST)
    assert queries.project_queries == ["retrieval pipeline correctness", "error handling and retries"]
    assert "=== CASE STUDY BRIEF ===\nbrief" in llm.prompts[0]


@pytest.mark.asyncio
async def test_queries_that_are_all_blank_fail():
    llm = ScriptedLLM()
    llm.overrides["queries"] = json.dumps({"cvEvaluationQueries": [" ", ""]})
    with pytest.raises(LLMParseError):
        await QueryGenerator(llm).generate_queries({DocumentType.JOB_DESCRIPTION: "jd"}, JobType.CV_ONLY)
