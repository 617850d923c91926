import os
from pydantic import BaseModel
from functools import lru_cache
from dotenv import load_dotenv
load_dotenv()


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Settings(BaseModel):
    APP_NAME: str = os.getenv("APP_NAME", "CV Vacancy Evaluator")
    ENV: str = os.getenv("ENV", "development")
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "storage")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", "app.sqlite3")

    QDRANT_URL: str = os.getenv("QDRANT_URL", "http://localhost:6333")
    QDRANT_API_KEY: str | None = os.getenv("QDRANT_API_KEY") or None

    PREFERRED_AI_SERVICE: str | None = os.getenv("PREFERRED_AI_SERVICE") or None
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_EMBEDDING_MODEL: str = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    OPENROUTER_API_KEY: str | None = os.getenv("OPENROUTER_API_KEY") or None
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
    OPENROUTER_EMBEDDING_MODEL: str = os.getenv("OPENROUTER_EMBEDDING_MODEL", "openai/text-embedding-3-small")
    EMBEDDING_VECTOR_SIZE: int = _int("EMBEDDING_VECTOR_SIZE", 1536)

    CHUNK_SIZE: int = _int("CHUNK_SIZE", 1000)
    CHUNK_OVERLAP_SENTENCES: int = _int("CHUNK_OVERLAP_SENTENCES", 2)
    RETRIEVAL_TOP_K: int = _int("RETRIEVAL_TOP_K", 10)

    QUEUE_BACKEND: str = os.getenv("QUEUE_BACKEND", "local")   # local | redis
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    QUEUE_ATTEMPTS: int = _int("QUEUE_ATTEMPTS", 3)
    QUEUE_BACKOFF_SECONDS: float = _float("QUEUE_BACKOFF_SECONDS", 2.0)
    INGESTION_CONCURRENCY: int = _int("INGESTION_CONCURRENCY", 3)
    INGESTION_RATE_PER_SECOND: float = _float("INGESTION_RATE_PER_SECOND", 5)
    EVALUATION_CONCURRENCY: int = _int("EVALUATION_CONCURRENCY", 5)
    EVALUATION_RATE_PER_SECOND: float = _float("EVALUATION_RATE_PER_SECOND", 10)


@lru_cache
def get_settings() -> Settings:
    return Settings()
