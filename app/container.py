import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from qdrant_client import QdrantClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.settings import Settings
from domain.services.evaluation_pipeline import EvaluationPipeline
from domain.services.ingestion_pipeline import IngestionPipeline
from domain.services.job_service import JobService
from domain.services.query_generator import QueryGenerator
from domain.services.rubric_standardizer import RubricStandardizer
from infra.db.session import create_session_factory, init_db, make_engine
from infra.llm.client import LLMClient
from infra.pdf.parser import extract_raw_text as pdf_raw_text
from infra.pdf.parser import extract_text as pdf_text
from infra.pdf.parser import format_for_markdown
from infra.queue.base import EVALUATION_QUEUE, INGESTION_QUEUE, JobQueue, RetryPolicy, WorkerLimits
from infra.queue.local import InProcessQueue
from infra.rag.embeddings import EmbeddingClient
from infra.rag.vector_index import VectorIndex
from infra.repositories.files_repository import FilesRepository
from infra.repositories.submissions_repository import SubmissionsRepository
from infra.repositories.vacancies_repository import VacanciesRepository

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    files: FilesRepository
    vacancies: VacanciesRepository
    submissions: SubmissionsRepository
    index: VectorIndex
    ingestion: IngestionPipeline
    evaluation: EvaluationPipeline
    job_service: JobService
    queues: Dict[str, JobQueue] = field(default_factory=dict)


def make_qdrant_client(settings: Settings) -> QdrantClient:
    if settings.QDRANT_URL == ":memory:":
        return QdrantClient(location=":memory:")
    return QdrantClient(url=settings.QDRANT_URL, api_key=settings.QDRANT_API_KEY)


def make_queues(settings: Settings) -> Dict[str, JobQueue]:
    retry = RetryPolicy(attempts=settings.QUEUE_ATTEMPTS, backoff_seconds=settings.QUEUE_BACKOFF_SECONDS)
    limits = {
        INGESTION_QUEUE: WorkerLimits(settings.INGESTION_CONCURRENCY, settings.INGESTION_RATE_PER_SECOND),
        EVALUATION_QUEUE: WorkerLimits(settings.EVALUATION_CONCURRENCY, settings.EVALUATION_RATE_PER_SECOND),
    }
    if settings.QUEUE_BACKEND == "redis":
        from redis import Redis
        from infra.queue.redis_queue import RedisJobQueue

        redis = Redis.from_url(settings.REDIS_URL)
        return {name: RedisJobQueue(name, lim, retry, redis) for name, lim in limits.items()}
    if settings.QUEUE_BACKEND != "local":
        raise ValueError(f"Unknown QUEUE_BACKEND: {settings.QUEUE_BACKEND}")
    return {name: InProcessQueue(name, lim, retry) for name, lim in limits.items()}


def build_container(
    settings: Settings,
    *,
    qdrant_client: Optional[QdrantClient] = None,
    embedder=None,
    llm=None,
    extract_text: Optional[Callable[[str], str]] = None,
    extract_raw_text: Optional[Callable[[str], str]] = None,
    queues: Optional[Dict[str, JobQueue]] = None,
) -> Container:
    """Wire every collaborator explicitly; any of them can be swapped by keyword."""
    engine = make_engine(settings.SQLITE_PATH)
    init_db(engine)
    session_factory = create_session_factory(engine)

    files = FilesRepository(session_factory, settings.STORAGE_DIR)
    vacancies = VacanciesRepository(session_factory)
    submissions = SubmissionsRepository(session_factory)

    embedder = embedder or EmbeddingClient.from_settings(settings)
    llm = llm or LLMClient.from_settings(settings)
    extract_text = extract_text or pdf_text
    extract_raw_text = extract_raw_text or pdf_raw_text

    index = VectorIndex(qdrant_client or make_qdrant_client(settings), embedder, settings.EMBEDDING_VECTOR_SIZE)
    index.ensure_partitions()

    ingestion = IngestionPipeline(
        vacancies=vacancies,
        files=files,
        extract_text=extract_text,
        index=index,
        query_generator=QueryGenerator(llm),
        standardizer=RubricStandardizer(llm),
        chunk_size=settings.CHUNK_SIZE,
        overlap_sentences=settings.CHUNK_OVERLAP_SENTENCES,
    )
    evaluation = EvaluationPipeline(
        submissions=submissions,
        vacancies=vacancies,
        files=files,
        extract_text=extract_text,
        index=index,
        llm=llm,
        top_k=settings.RETRIEVAL_TOP_K,
    )

    queues = queues if queues is not None else make_queues(settings)
    queues[INGESTION_QUEUE].on_job(ingestion.handle)
    queues[EVALUATION_QUEUE].on_job(evaluation.handle)

    job_service = JobService(
        vacancies=vacancies,
        submissions=submissions,
        files=files,
        ingestion_queue=queues[INGESTION_QUEUE],
        evaluation_queue=queues[EVALUATION_QUEUE],
        extract_raw_text=extract_raw_text,
        format_document=format_for_markdown,
    )
    logger.info("Container ready (queue backend=%s, qdrant=%s)", settings.QUEUE_BACKEND, settings.QDRANT_URL)
    return Container(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        files=files,
        vacancies=vacancies,
        submissions=submissions,
        index=index,
        ingestion=ingestion,
        evaluation=evaluation,
        job_service=job_service,
        queues=queues,
    )
