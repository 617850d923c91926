import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from domain.errors import EvaluatorError, ExtractionError, InvalidRequestError, NotFoundError, VacancyNotActiveError
from domain.schemas import (
    CVEvaluationPayload,
    CvRubric,
    EvaluationResult,
    JobType,
    ProjectEvaluationPayload,
    ProjectRubric,
    RetrievedChunk,
    SubmissionStatus,
    SummaryPayload,
    VacancyStatus,
)
from domain.services import scoring
from infra.llm.parsing import parse_llm_response
from infra.llm.prompts import (
    CV_EVAL_PROMPT,
    FINAL_SUMMARY_PROMPT,
    PROJECT_EVAL_PROMPT,
    PROJECT_NOT_APPLICABLE,
    PROJECT_SUMMARY_SECTION,
)
from infra.rag.vector_index import CASE_STUDIES, CV_RUBRICS, JOB_DOCUMENTS, PROJECT_RUBRICS

logger = logging.getLogger(__name__)

CV_PARTITIONS = [CV_RUBRICS, JOB_DOCUMENTS]
PROJECT_PARTITIONS = [PROJECT_RUBRICS, CASE_STUDIES]
PROJECT_FALLBACK_QUERY = "project implementation requirements, code quality, scoring rubric, weights"


def format_context(chunks: List[RetrievedChunk]) -> str:
    return "\n\n".join(f"[Context {i}]\n{c.text}" for i, c in enumerate(chunks, start=1))


def _na(scores: Optional[Dict[str, Any]], name: str) -> Any:
    if not scores or scores.get(name) is None:
        return "N/A"
    return scores[name]


def build_summary_prompt(
    cv_match_rate: float,
    cv_scores: Dict[str, Any],
    cv_feedback: str,
    project: Optional[Tuple[float, Optional[Dict[str, Any]], str]],
) -> str:
    if project is None:
        project_section = PROJECT_NOT_APPLICABLE
    else:
        score, detailed, feedback = project
        project_section = PROJECT_SUMMARY_SECTION.format(
            project_score=score,
            correctness=_na(detailed, "correctness"),
            code_quality=_na(detailed, "code_quality"),
            resilience=_na(detailed, "resilience"),
            documentation=_na(detailed, "documentation"),
            creativity=_na(detailed, "creativity"),
            project_feedback=feedback,
        )
    return FINAL_SUMMARY_PROMPT.format(
        project_clause="" if project is None else " and project evaluation",
        cv_match_rate=cv_match_rate,
        technical_skills=_na(cv_scores, "technical_skills"),
        experience_level=_na(cv_scores, "experience_level"),
        achievements=_na(cv_scores, "achievements"),
        cultural_fit=_na(cv_scores, "cultural_fit"),
        cv_feedback=cv_feedback,
        project_section=project_section,
    )


class EvaluationPipeline:
    """Scores one submission: CV stage, optional project stage, then a summary.

    The submission moves processing -> completed|failed; on failure the error
    is stored and the exception re-raised so the queue can retry.
    """

    def __init__(
        self,
        *,
        submissions,
        vacancies,
        files,
        extract_text: Callable[[str], str],
        index,
        llm,
        top_k: int = 10,
    ):
        self.submissions = submissions
        self.vacancies = vacancies
        self.files = files
        self.extract_text = extract_text
        self.index = index
        self.llm = llm
        self.top_k = top_k

    async def handle(self, job_id: str, payload: Dict[str, Any]) -> None:
        await self.run(payload.get("submission_id", job_id))

    def _read(self, file_id: str, label: str) -> str:
        text = self.extract_text(self.files.resolve(file_id))
        if not text or not text.strip():
            raise ExtractionError(f"No text could be extracted from the {label} ({file_id})")
        logger.info("%s text length: %d chars", label, len(text))
        return text

    async def _retrieve(self, query: str, partitions: List[str], vacancy_id: str) -> List[RetrievedChunk]:
        hits = await self.index.query_with_similarity(query, partitions, self.top_k, vacancy_id)
        logger.info("Retrieved %d context chunks from %s", len(hits), partitions)
        for i, h in enumerate(hits, start=1):
            logger.info(
                "  [%d] similarity=%.4f source=%s chunk=%s",
                i, h.similarity or 0.0, h.metadata.get("source") or "unknown", h.metadata.get("chunk_index", "N/A"),
            )
        # similarity is diagnostic only and never reaches the prompt
        return [RetrievedChunk(text=h.text, metadata=h.metadata) for h in hits]

    async def evaluate_cv(self, vacancy: Dict[str, Any], cv_text: str) -> Tuple[CVEvaluationPayload, float]:
        rubric = CvRubric.model_validate(vacancy["standardized_cv_rubric"])
        queries = vacancy.get("cv_queries") or []
        query = queries[0] if queries else cv_text
        context = await self._retrieve(query, CV_PARTITIONS, vacancy["id"])

        raw = await self.llm.complete(CV_EVAL_PROMPT.format(context=format_context(context), cv_text=cv_text))
        evaluation = parse_llm_response(raw, CVEvaluationPayload).unwrap()
        match_rate = scoring.cv_match_rate(evaluation.scores(), rubric)
        logger.info("CV scores=%s match_rate=%.3f", evaluation.scores(), match_rate)
        return evaluation, match_rate

    async def evaluate_project(
        self, vacancy: Dict[str, Any], report_text: str
    ) -> Tuple[float, Optional[Dict[str, Any]], str]:
        rubric = ProjectRubric.model_validate(vacancy["standardized_project_rubric"])
        queries = vacancy.get("project_queries") or []
        query = queries[0] if queries else PROJECT_FALLBACK_QUERY
        context = await self.index.query(query, PROJECT_PARTITIONS, self.top_k, vacancy["id"])
        logger.info("Retrieved %d project context chunks from %s", len(context), PROJECT_PARTITIONS)

        raw = await self.llm.complete(
            PROJECT_EVAL_PROMPT.format(context=format_context(context), report_text=report_text)
        )
        evaluation = parse_llm_response(raw, ProjectEvaluationPayload).unwrap()

        detailed = scoring.relevant_project_scores(evaluation)
        if detailed is None:
            logger.warning("Project report judged not relevant or incomplete (is_relevant=%s); score 0",
                           evaluation.is_relevant)
            return 0.0, None, evaluation.feedback
        score = scoring.project_score(detailed, rubric)
        logger.info("Project scores=%s project_score=%.3f", detailed, score)
        return score, detailed, evaluation.feedback

    async def summarize(self, prompt: str) -> str:
        raw = await self.llm.complete(prompt, system="Return only valid JSON.")
        return parse_llm_response(raw, SummaryPayload).unwrap().overall_summary

    def _load_vacancy(self, vacancy_id: str) -> Dict[str, Any]:
        vacancy = self.vacancies.get(vacancy_id)
        if not vacancy:
            raise NotFoundError(f"Job vacancy with ID {vacancy_id} not found")
        if vacancy["status"] != VacancyStatus.ACTIVE.value:
            raise VacancyNotActiveError(vacancy_id, vacancy["status"])
        if not vacancy.get("standardized_cv_rubric"):
            raise EvaluatorError(f"Job vacancy {vacancy_id} has no standardized CV rubric")
        return vacancy

    async def run(self, submission_id: str) -> Optional[Dict[str, Any]]:
        submission = self.submissions.get(submission_id)
        if not submission:
            raise NotFoundError(f"Submission with ID {submission_id} not found")
        if submission["status"] == SubmissionStatus.COMPLETED.value:
            logger.info("Submission %s already completed; skipping re-delivery", submission_id)
            return submission["result"]

        logger.info("=== Starting evaluation %s (attempt %d) ===", submission_id, submission["attempts"] + 1)
        self.submissions.transition(submission_id, SubmissionStatus.PROCESSING, error=None)
        try:
            vacancy = self._load_vacancy(submission["vacancy_id"])
            logger.info("Vacancy %s (%s, %s)", vacancy["id"], vacancy["title"], vacancy["type"])

            cv_text = self._read(submission["cv_file_id"], "CV")
            cv_eval, match_rate = await self.evaluate_cv(vacancy, cv_text)

            project = None
            if vacancy["type"] == JobType.CV_WITH_TEST.value:
                if not submission.get("report_file_id"):
                    raise InvalidRequestError("Project report is required for cv_with_test evaluations")
                if not vacancy.get("standardized_project_rubric"):
                    raise EvaluatorError(f"Job vacancy {vacancy['id']} has no standardized project rubric")
                report_text = self._read(submission["report_file_id"], "Report")
                project = await self.evaluate_project(vacancy, report_text)

            summary = await self.summarize(
                build_summary_prompt(match_rate, cv_eval.scores(), cv_eval.feedback, project)
            )

            result = EvaluationResult(
                cv_match_rate=match_rate,
                cv_feedback=cv_eval.feedback,
                cv_detailed_scores=cv_eval.scores(),
                project_score=project[0] if project else None,
                project_detailed_scores=project[1] if project else None,
                project_feedback=project[2] if project else None,
                overall_summary=summary,
            ).to_document()
        except Exception as exc:
            logger.exception("Evaluation %s failed", submission_id)
            self.submissions.transition(submission_id, SubmissionStatus.FAILED, error=str(exc))
            raise

        self.submissions.transition(submission_id, SubmissionStatus.COMPLETED, result=result, error=None)
        logger.info("Final combined result:\n%s", json.dumps(result, indent=2))
        logger.info("=== Evaluation %s completed ===", submission_id)
        return result
