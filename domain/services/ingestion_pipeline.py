import logging
from typing import Any, Callable, Dict, List, Optional

from domain.errors import EvaluatorError, ExtractionError, NotFoundError
from domain.schemas import REQUIRED_DOCUMENTS, Chunk, DocumentType, JobType, VacancyStatus
from domain.services.chunker import chunk_text
from infra.rag.vector_index import PARTITION_FOR

logger = logging.getLogger(__name__)

FILE_COLUMNS = {
    DocumentType.JOB_DESCRIPTION: "job_description_file_id",
    DocumentType.CV_RUBRIC: "cv_rubric_file_id",
    DocumentType.CASE_STUDY_BRIEF: "case_study_brief_file_id",
    DocumentType.PROJECT_RUBRIC: "project_rubric_file_id",
}


class IngestionPipeline:
    """Turns a pending vacancy into an active one.

    Steps: extract and index every document, generate retrieval queries,
    standardize the rubric(s). Queries and rubrics are persisted together
    with the `active` status, so a failure anywhere leaves none of them.
    Chunks already written to the index before a failure are kept.
    """

    def __init__(
        self,
        *,
        vacancies,
        files,
        extract_text: Callable[[str], str],
        index,
        query_generator,
        standardizer,
        chunk_size: int = 1000,
        overlap_sentences: int = 2,
    ):
        self.vacancies = vacancies
        self.files = files
        self.extract_text = extract_text
        self.index = index
        self.query_generator = query_generator
        self.standardizer = standardizer
        self.chunk_size = chunk_size
        self.overlap_sentences = overlap_sentences

    async def handle(self, job_id: str, payload: Dict[str, Any]) -> None:
        await self.run(payload.get("vacancy_id", job_id))

    def _document_files(self, vacancy: Dict[str, Any]) -> Dict[DocumentType, str]:
        job_type = JobType(vacancy["type"])
        out: Dict[DocumentType, str] = {}
        for doc_type in REQUIRED_DOCUMENTS[job_type]:
            file_id = vacancy.get(FILE_COLUMNS[doc_type])
            if not file_id:
                raise EvaluatorError(f"Vacancy {vacancy['id']} is missing its {doc_type.value} document")
            out[doc_type] = file_id
        return out

    async def index_document(self, vacancy_id: str, doc_type: DocumentType, file_id: str) -> str:
        partition = PARTITION_FOR.get(doc_type)
        if partition is None:
            raise EvaluatorError(f"Unknown document type: {doc_type}")
        text = self.extract_text(self.files.resolve(file_id))
        if not text or not text.strip():
            raise ExtractionError(f"No text could be extracted from {doc_type.value} ({file_id})")

        meta = self.files.get(file_id) or {}
        pieces = chunk_text(text, self.chunk_size, self.overlap_sentences)
        chunks: List[Chunk] = [
            Chunk(
                text=piece,
                source_document_id=file_id,
                index=i,
                total_chunks=len(pieces),
                vacancy_id=vacancy_id,
                document_type=doc_type,
                source=meta.get("name", ""),
            )
            for i, piece in enumerate(pieces)
        ]
        await self.index.upsert(partition, chunks)
        logger.info("Indexed %s: %d chars -> %d chunks in %s", doc_type.value, len(text), len(chunks), partition)
        return text

    async def run(self, vacancy_id: str) -> Optional[Dict[str, Any]]:
        vacancy = self.vacancies.get(vacancy_id)
        if not vacancy:
            raise NotFoundError(f"Job vacancy with ID {vacancy_id} not found")
        if vacancy["status"] in (VacancyStatus.ACTIVE.value, VacancyStatus.INACTIVE.value):
            logger.info("Vacancy %s already ingested (%s); skipping re-delivery", vacancy_id, vacancy["status"])
            return vacancy

        logger.info("=== Starting ingestion of vacancy %s (%s) ===", vacancy_id, vacancy["title"])
        self.vacancies.transition(vacancy_id, VacancyStatus.PROCESSING, error=None)
        try:
            job_type = JobType(vacancy["type"])
            texts: Dict[DocumentType, str] = {}
            for doc_type, file_id in self._document_files(vacancy).items():
                texts[doc_type] = await self.index_document(vacancy_id, doc_type, file_id)

            queries = await self.query_generator.generate_queries(texts, job_type)

            cv_rubric = await self.standardizer.standardize(
                texts[DocumentType.CV_RUBRIC], DocumentType.CV_RUBRIC,
                context_text=texts[DocumentType.JOB_DESCRIPTION],
            )
            project_rubric = None
            if job_type is JobType.CV_WITH_TEST:
                project_rubric = await self.standardizer.standardize(
                    texts[DocumentType.PROJECT_RUBRIC], DocumentType.PROJECT_RUBRIC,
                    context_text=texts[DocumentType.CASE_STUDY_BRIEF],
                )
        except Exception as exc:
            logger.exception("Ingestion of vacancy %s failed", vacancy_id)
            self.vacancies.transition(vacancy_id, VacancyStatus.FAILED, error=str(exc))
            raise

        updated = self.vacancies.transition(
            vacancy_id,
            VacancyStatus.ACTIVE,
            cv_queries=queries.cv_queries,
            project_queries=queries.project_queries,
            standardized_cv_rubric=cv_rubric.model_dump(),
            standardized_project_rubric=project_rubric.model_dump() if project_rubric else None,
            error=None,
        )
        logger.info("=== Vacancy %s is active ===", vacancy_id)
        return updated
