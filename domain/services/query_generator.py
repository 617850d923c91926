import json
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from domain.errors import LLMParseError
from domain.schemas import DocumentType, EvaluationQueries, JobType
from infra.llm.parsing import parse_llm_response
from infra.llm.prompts import PROJECT_QUERY_INSTRUCTION, QUERY_GENERATION_PROMPT

logger = logging.getLogger(__name__)

MAX_QUERIES = 5

_TITLES = {
    DocumentType.JOB_DESCRIPTION: "JOB DESCRIPTION",
    DocumentType.CV_RUBRIC: "CV RUBRIC",
    DocumentType.CASE_STUDY_BRIEF: "CASE STUDY BRIEF",
    DocumentType.PROJECT_RUBRIC: "PROJECT RUBRIC",
}


class _QueryPayload(BaseModel):
    cvEvaluationQueries: List[str] = Field(..., min_length=1)
    projectEvaluationQueries: Optional[List[str]] = None


def _clean(queries: Optional[List[str]]) -> List[str]:
    return [q.strip() for q in (queries or []) if isinstance(q, str) and q.strip()][:MAX_QUERIES]


def build_prompt(document_texts: Dict[DocumentType, str], job_type: JobType) -> str:
    sections = [
        f"=== {_TITLES[doc_type]} ===\n{text}"
        for doc_type, text in document_texts.items()
        if text
    ]
    with_project = job_type is JobType.CV_WITH_TEST
    response_format = {"cvEvaluationQueries": ["query1", "query2", "query3"]}
    if with_project:
        response_format["projectEvaluationQueries"] = ["query1", "query2", "query3"]
    return QUERY_GENERATION_PROMPT.format(
        documents="\n\n".join(sections),
        job_type=job_type.value,
        project_instruction=PROJECT_QUERY_INSTRUCTION if with_project else "",
        response_format=json.dumps(response_format, indent=2),
    )


class QueryGenerator:
    def __init__(self, llm):
        self.llm = llm

    async def generate_queries(self, document_texts: Dict[DocumentType, str], job_type: JobType) -> EvaluationQueries:
        raw = await self.llm.complete(build_prompt(document_texts, job_type))
        payload = parse_llm_response(raw, _QueryPayload).unwrap()
        cv_queries = _clean(payload.cvEvaluationQueries)
        if not cv_queries:
            raise LLMParseError("Query generation returned no usable CV queries")
        project_queries = None
        if job_type is JobType.CV_WITH_TEST:
            project_queries = _clean(payload.projectEvaluationQueries) or None
        logger.info("Generated %d CV queries, %d project queries",
                    len(cv_queries), len(project_queries or []))
        return EvaluationQueries(cv_queries=cv_queries, project_queries=project_queries)
