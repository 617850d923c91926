import logging
from typing import Any, Callable, Dict, List, Optional

from domain.errors import InvalidRequestError, InvalidTransitionError, NotFoundError, VacancyNotActiveError
from domain.schemas import (
    REQUIRED_DOCUMENTS,
    DocumentType,
    JobStatusResponse,
    JobType,
    SubmissionStatus,
    VacancyCreated,
    VacancyStatus,
    VacancyView,
)
from domain.services.ingestion_pipeline import FILE_COLUMNS

logger = logging.getLogger(__name__)


def _parse_job_type(value: Any) -> JobType:
    try:
        return JobType(value)
    except ValueError:
        raise InvalidRequestError("type must be either 'cv_only' or 'cv_with_test'") from None


class JobService:
    """Synchronous front of the system: validates, persists, enqueues, reports status."""

    def __init__(
        self,
        *,
        vacancies,
        submissions,
        files,
        ingestion_queue,
        evaluation_queue,
        extract_raw_text: Optional[Callable[[str], str]] = None,
        format_document: Optional[Callable[[str], str]] = None,
    ):
        self.vacancies = vacancies
        self.submissions = submissions
        self.files = files
        self.ingestion_queue = ingestion_queue
        self.evaluation_queue = evaluation_queue
        self.extract_raw_text = extract_raw_text
        self.format_document = format_document

    # ---- vacancies --------------------------------------------------------

    async def create_vacancy(
        self,
        title: str,
        job_type: Any,
        documents: Dict[DocumentType, Optional[str]],
        description: Optional[str] = None,
    ) -> VacancyCreated:
        if not title or not title.strip():
            raise InvalidRequestError("title is required")
        if not job_type:
            raise InvalidRequestError("type is required")
        jt = _parse_job_type(job_type)

        for doc_type in REQUIRED_DOCUMENTS[jt]:
            if not documents.get(doc_type):
                raise InvalidRequestError(f"{doc_type.value} is required for {jt.value} job vacancies")
        for doc_type in REQUIRED_DOCUMENTS[jt]:
            file_id = documents[doc_type]
            if not self.files.exists(file_id):
                raise InvalidRequestError(f"{doc_type.value} file {file_id} not found")

        vacancy_id = self.vacancies.create(
            title=title.strip(),
            job_type=jt.value,
            description=description,
            **{FILE_COLUMNS[d]: documents.get(d) for d in REQUIRED_DOCUMENTS[jt]},
        )
        await self.ingestion_queue.enqueue(vacancy_id, {"vacancy_id": vacancy_id})
        logger.info("Created vacancy %s (%s) and queued ingestion", vacancy_id, jt.value)
        return VacancyCreated(vacancy_id=vacancy_id, status=VacancyStatus.PENDING)

    def _document_text(self, file_id: Optional[str]) -> Optional[str]:
        if not file_id or not self.extract_raw_text:
            return None
        try:
            text = self.extract_raw_text(self.files.resolve(file_id))
        except Exception:
            logger.exception("Could not read document %s", file_id)
            return None
        return self.format_document(text) if self.format_document else text

    def _view(self, vacancy: Dict[str, Any], include_documents: bool = False) -> VacancyView:
        documents = None
        if include_documents:
            documents = {
                doc_type.value: self._document_text(vacancy.get(column))
                for doc_type, column in FILE_COLUMNS.items()
                if vacancy.get(column)
            }
        return VacancyView(
            id=vacancy["id"],
            title=vacancy["title"],
            description=vacancy.get("description"),
            type=vacancy["type"],
            status=vacancy["status"],
            error=vacancy.get("error"),
            has_standardized_cv_rubric=bool(vacancy.get("standardized_cv_rubric")),
            has_standardized_project_rubric=bool(vacancy.get("standardized_project_rubric")),
            documents=documents,
            created_at=vacancy.get("created_at"),
            updated_at=vacancy.get("updated_at"),
        )

    def get_vacancy(self, vacancy_id: str, include_documents: bool = False) -> VacancyView:
        vacancy = self.vacancies.get(vacancy_id)
        if not vacancy:
            raise NotFoundError(f"Job vacancy with ID {vacancy_id} not found")
        return self._view(vacancy, include_documents)

    def list_vacancies(self, status: Optional[str] = None, job_type: Optional[str] = None) -> List[VacancyView]:
        if status is not None:
            try:
                VacancyStatus(status)
            except ValueError:
                raise InvalidRequestError(f"Unknown status: {status}") from None
        if job_type is not None:
            _parse_job_type(job_type)
        return [self._view(v) for v in self.vacancies.list(status=status, job_type=job_type)]

    def set_vacancy_status(self, vacancy_id: str, status: Any) -> VacancyView:
        if status not in ("active", "inactive"):
            raise InvalidRequestError("status must be either 'active' or 'inactive'")
        target = VacancyStatus(status)
        vacancy = self.vacancies.get(vacancy_id)
        if not vacancy:
            raise NotFoundError(f"Job vacancy with ID {vacancy_id} not found")
        if vacancy["status"] == target.value:
            return self._view(vacancy)
        # only a finished ingestion can be toggled
        if vacancy["status"] not in (VacancyStatus.ACTIVE.value, VacancyStatus.INACTIVE.value):
            raise InvalidRequestError(
                f"Job vacancy {vacancy_id} cannot become {target.value} while {vacancy['status']}"
            )
        try:
            updated = self.vacancies.transition(vacancy_id, target)
        except InvalidTransitionError as exc:
            raise InvalidRequestError(
                f"Job vacancy {vacancy_id} cannot become {target.value} while {vacancy['status']}"
            ) from exc
        logger.info("Vacancy %s is now %s", vacancy_id, target.value)
        return self._view(updated)

    # ---- submissions ------------------------------------------------------

    async def create_submission(
        self, vacancy_id: str, cv_id: str, report_id: Optional[str] = None
    ) -> JobStatusResponse:
        vacancy = self.vacancies.get(vacancy_id)
        if not vacancy:
            raise NotFoundError(f"Job vacancy with ID {vacancy_id} not found")
        if vacancy["status"] != VacancyStatus.ACTIVE.value:
            raise VacancyNotActiveError(vacancy_id, vacancy["status"])
        if not cv_id or not self.files.exists(cv_id):
            raise InvalidRequestError(f"CV file {cv_id} not found")
        if report_id and not self.files.exists(report_id):
            raise InvalidRequestError(f"Report file {report_id} not found")
        if vacancy["type"] == JobType.CV_WITH_TEST.value and not report_id:
            raise InvalidRequestError("report_id is required for cv_with_test job vacancies")

        submission_id = self.submissions.create(vacancy_id, cv_id, report_id or None)
        await self.evaluation_queue.enqueue(submission_id, {"submission_id": submission_id})
        logger.info("Created submission %s for vacancy %s", submission_id, vacancy_id)
        return JobStatusResponse(id=submission_id, status=SubmissionStatus.QUEUED)

    def get_submission(self, submission_id: str) -> JobStatusResponse:
        submission = self.submissions.get(submission_id)
        if not submission:
            raise NotFoundError(f"Submission with ID {submission_id} not found")
        status = SubmissionStatus(submission["status"])
        return JobStatusResponse(
            id=submission["id"],
            status=status,
            result=submission.get("result") if status is SubmissionStatus.COMPLETED else None,
            error=submission.get("error") if status is SubmissionStatus.FAILED else None,
        )
