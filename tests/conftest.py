"""
Pytest fixtures: fakes for the embedding provider, the LLM and PDF extraction.

Nothing here touches the network. Qdrant runs in local ":memory:" mode and
SQLite lives under tmp_path.
"""

import hashlib
import json
import math
import re
from pathlib import Path
from typing import Dict, List

import pytest
from qdrant_client import QdrantClient

from app.container import build_container
from app.settings import Settings
from domain.schemas import CV_TARGET_WEIGHTS, PROJECT_TARGET_WEIGHTS, DocumentType, FileCategory, VacancyStatus
from infra.queue.base import EVALUATION_QUEUE, INGESTION_QUEUE, JobQueue, RetryPolicy, WorkerLimits

DIM = 64


class FakeEmbedder:
    """Hashed bag-of-words vectors: texts sharing words land close together."""

    def __init__(self, dim: int = DIM):
        self.dim = dim
        self.calls: List[List[str]] = []

    def vector(self, text: str) -> List[float]:
        vec = [0.0] * self.dim
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dim
            vec[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        if not norm:
            vec[0] = 1.0
            return vec
        return [v / norm for v in vec]

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [self.vector(t) for t in texts]


def rubric_json(weights: Dict[str, float]) -> str:
    return json.dumps({
        name: {
            "weight": weight,
            "criteria": f"How well the candidate does on {name}",
            "scale": {str(i): f"level {i}" for i in range(1, 6)},
        }
        for name, weight in weights.items()
    })


class ScriptedLLM:
    """Answers each prompt kind with a canned JSON reply.

    Set `overrides[kind]` to a raw string or an exception instance to change
    one reply. Kinds: cv_rubric, project_rubric, queries, cv_eval,
    project_eval, summary.
    """

    def __init__(self):
        self.prompts: List[str] = []
        self.kinds: List[str] = []
        self.overrides: Dict[str, object] = {}
        self.cv_scores = {"technical_skills": 4, "experience_level": 3, "achievements": 4, "cultural_fit": 5}
        self.project_reply = {
            "is_relevant": True,
            "correctness": 4,
            "code_quality": 4,
            "resilience": 3,
            "documentation": 5,
            "creativity": 2,
            "feedback": "Solid RAG pipeline with clear documentation.",
        }

    @staticmethod
    def classify(prompt: str) -> str:
        if prompt.startswith("You are an expert at creating standardized evaluation rubrics"):
            return "cv_rubric" if "RUBRIC TYPE: CV Evaluation" in prompt else "project_rubric"
        if prompt.startswith("You are an expert at creating semantic search queries"):
            return "queries"
        if prompt.startswith("You are an expert CV evaluator"):
            return "cv_eval"
        if prompt.startswith("You are an expert project evaluator"):
            return "project_eval"
        if prompt.startswith("You are a hiring manager"):
            return "summary"
        raise AssertionError(f"unexpected prompt: {prompt[:80]}")

    def count(self, kind: str) -> int:
        return self.kinds.count(kind)

    async def complete(self, prompt: str, *, system: str = "") -> str:
        kind = self.classify(prompt)
        self.prompts.append(prompt)
        self.kinds.append(kind)
        if kind in self.overrides:
            value = self.overrides[kind]
            if isinstance(value, Exception):
                raise value
            return value
        if kind == "cv_rubric":
            return rubric_json(CV_TARGET_WEIGHTS)
        if kind == "project_rubric":
            return "```json\n" + rubric_json(PROJECT_TARGET_WEIGHTS) + "\n```"
        if kind == "queries":
            return json.dumps({
                "cvEvaluationQueries": ["python backend engineering skills", "vector database experience"],
                "projectEvaluationQueries": ["retrieval pipeline correctness", "error handling and retries"],
            })
        if kind == "cv_eval":
            return json.dumps({**self.cv_scores, "feedback": "Strong Python background."})
        if kind == "project_eval":
            return "Here is my evaluation:\n" + json.dumps(self.project_reply)
        return json.dumps({"overall_summary": "Good fit overall; recommend an interview."})


def read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


JOB_DESCRIPTION = (
    "We are hiring a backend engineer. Strong Python and FastAPI skills are required. "
    "Experience with vector databases and retrieval pipelines is a plus. "
    "You will collaborate with product and data teams."
)
CV_RUBRIC = (
    "Technical skills matter most. Experience level comes second. "
    "Achievements and cultural fit also count."
)
CASE_STUDY_BRIEF = (
    "Build a retrieval augmented evaluation service. It must chain prompts, handle failures with retries, "
    "and document its design decisions."
)
PROJECT_RUBRIC = (
    "Correctness of prompt chaining is key. Code quality and resilience follow. "
    "Documentation and creativity are rewarded."
)
CV_TEXT = "Jane Doe. Senior Python engineer with six years building FastAPI services and Qdrant search."
REPORT_TEXT = "Project report. I built a RAG pipeline with retries, structured prompts and a design document."


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        STORAGE_DIR=str(tmp_path / "storage"),
        SQLITE_PATH=str(tmp_path / "test.sqlite3"),
        QDRANT_URL=":memory:",
        EMBEDDING_VECTOR_SIZE=DIM,
        QUEUE_BACKEND="local",
        QUEUE_ATTEMPTS=3,
        QUEUE_BACKOFF_SECONDS=0,
        INGESTION_RATE_PER_SECOND=1000,
        EVALUATION_RATE_PER_SECOND=1000,
    )


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def container(settings, embedder, llm):
    return build_container(
        settings,
        qdrant_client=QdrantClient(location=":memory:"),
        embedder=embedder,
        llm=llm,
        extract_text=read_text,
        extract_raw_text=read_text,
    )


def save_text(container, text: str, category: FileCategory, name: str) -> str:
    return container.files.save(text.encode("utf-8"), category.value, name)


def make_documents(container, with_project: bool = False) -> Dict[DocumentType, str]:
    docs = {
        DocumentType.JOB_DESCRIPTION: save_text(container, JOB_DESCRIPTION, FileCategory.JOB_DESCRIPTION, "jd.pdf"),
        DocumentType.CV_RUBRIC: save_text(container, CV_RUBRIC, FileCategory.CV_RUBRIC, "cv_rubric.pdf"),
    }
    if with_project:
        docs[DocumentType.CASE_STUDY_BRIEF] = save_text(
            container, CASE_STUDY_BRIEF, FileCategory.CASE_STUDY_BRIEF, "brief.pdf")
        docs[DocumentType.PROJECT_RUBRIC] = save_text(
            container, PROJECT_RUBRIC, FileCategory.PROJECT_RUBRIC, "project_rubric.pdf")
    return docs


@pytest.fixture
def vacancy_documents(container):
    """Factory: stored document file ids for a job type."""
    return lambda with_project=False: make_documents(container, with_project)


class RecordingQueue(JobQueue):
    """Stores enqueued jobs without running them."""

    def __init__(self, name):
        super().__init__(name, WorkerLimits(1, 1), RetryPolicy())
        self.jobs = []

    async def enqueue(self, job_id, payload):
        self.jobs.append((job_id, payload))
        return True


@pytest.fixture
def recorded(settings, embedder, llm):
    queues = {INGESTION_QUEUE: RecordingQueue(INGESTION_QUEUE), EVALUATION_QUEUE: RecordingQueue(EVALUATION_QUEUE)}
    return build_container(
        settings,
        qdrant_client=QdrantClient(location=":memory:"),
        embedder=embedder,
        llm=llm,
        extract_text=read_text,
        extract_raw_text=read_text,
        queues=queues,
    )


def activate(container, vacancy_id):
    """Skip ingestion: mark a pending vacancy active with a ready CV rubric."""
    rubric = {
        name: {"weight": w, "criteria": name, "scale": {str(i): str(i) for i in range(1, 6)}}
        for name, w in CV_TARGET_WEIGHTS.items()
    }
    container.vacancies.transition(vacancy_id, VacancyStatus.PROCESSING)
    container.vacancies.transition(vacancy_id, VacancyStatus.ACTIVE, standardized_cv_rubric=rubric,
                                   cv_queries=["q"])
