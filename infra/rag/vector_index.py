import logging
import uuid
from typing import Dict, Iterable, List, Optional, Sequence

from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from domain.schemas import Chunk, DocumentType, RetrievedChunk

logger = logging.getLogger(__name__)

JOB_DOCUMENTS = "job_documents"
CV_RUBRICS = "cv_rubrics"
PROJECT_RUBRICS = "project_rubrics"
CASE_STUDIES = "case_studies"

PARTITIONS = (JOB_DOCUMENTS, CV_RUBRICS, PROJECT_RUBRICS, CASE_STUDIES)

PARTITION_FOR: Dict[DocumentType, str] = {
    DocumentType.JOB_DESCRIPTION: JOB_DOCUMENTS,
    DocumentType.CV_RUBRIC: CV_RUBRICS,
    DocumentType.PROJECT_RUBRIC: PROJECT_RUBRICS,
    DocumentType.CASE_STUDY_BRIEF: CASE_STUDIES,
}

_PAYLOAD_INDEXES = [
    ("vacancy_id", PayloadSchemaType.KEYWORD),
    ("document_type", PayloadSchemaType.KEYWORD),
    ("source", PayloadSchemaType.KEYWORD),
    ("chunk_index", PayloadSchemaType.INTEGER),
]

# Fixed namespace so point ids are stable across processes.
_POINT_NAMESPACE = uuid.UUID("6f1c1c55-2a43-4b8e-9d6e-3c1f5b7a9e21")


def chunk_key(chunk: Chunk) -> str:
    return f"{chunk.vacancy_id}_{chunk.document_type.value}_{chunk.source_document_id}_chunk_{chunk.index}"


def make_point_id(chunk: Chunk) -> str:
    raw = f"{chunk.vacancy_id}|{chunk.document_type.value}|{chunk.source_document_id}|{chunk.index}"
    return str(uuid.uuid5(_POINT_NAMESPACE, raw))


def score_to_similarity(score: float, distance: Distance) -> float:
    """Qdrant reports similarity for cosine/dot and raw distance for euclid/manhattan."""
    if distance in (Distance.COSINE, Distance.DOT):
        return float(score)
    return 1.0 - float(score)


class VectorIndex:
    """Partitioned nearest-neighbour store over Qdrant collections.

    Every partition is a cosine collection shared by all vacancies; queries
    are always filtered on `vacancy_id`.
    """

    def __init__(self, client: QdrantClient, embedder, vector_size: int, distance: Distance = Distance.COSINE):
        self.client = client
        self.embedder = embedder
        self.vector_size = vector_size
        self.distance = distance

    def ensure_partitions(self, names: Iterable[str] = PARTITIONS) -> None:
        existing = {c.name for c in self.client.get_collections().collections}
        for name in names:
            if name not in existing:
                self.client.create_collection(
                    collection_name=name,
                    vectors_config=VectorParams(size=self.vector_size, distance=self.distance),
                )
                logger.info("Created collection %s (size=%d)", name, self.vector_size)
            for field, schema in _PAYLOAD_INDEXES:
                self.client.create_payload_index(collection_name=name, field_name=field, field_schema=schema)

    async def upsert(self, partition: str, chunks: Sequence[Chunk]) -> int:
        if not chunks:
            return 0
        vectors = await self.embedder.embed([c.text for c in chunks])
        points = [
            PointStruct(
                id=make_point_id(c),
                vector=v,
                payload={
                    "text": c.text,
                    "chunk_id": chunk_key(c),
                    "vacancy_id": c.vacancy_id,
                    "document_type": c.document_type.value,
                    "source": c.source,
                    "source_document_id": c.source_document_id,
                    "chunk_index": c.index,
                    "total_chunks": c.total_chunks,
                },
            )
            for c, v in zip(chunks, vectors)
        ]
        self.client.upsert(collection_name=partition, points=points)
        logger.info("Upserted %d chunks into %s", len(points), partition)
        return len(points)

    def _search(self, partition: str, vector: List[float], k: int, vacancy_id: str) -> List[RetrievedChunk]:
        flt = Filter(must=[FieldCondition(key="vacancy_id", match=MatchValue(value=vacancy_id))])
        hits = self.client.query_points(
            collection_name=partition,
            query=vector,
            limit=k,
            query_filter=flt,
            with_payload=True,
        ).points
        out = []
        for h in hits:
            payload = dict(h.payload or {})
            text = payload.pop("text", "")
            payload["partition"] = partition
            out.append(RetrievedChunk(
                text=text,
                metadata=payload,
                similarity=score_to_similarity(h.score, self.distance),
            ))
        return out

    async def _collect(
        self, query_text: str, partitions: Sequence[str], k: int, vacancy_id: str
    ) -> List[RetrievedChunk]:
        if k <= 0 or not partitions:
            return []
        [vector] = await self.embedder.embed([query_text])
        merged: List[RetrievedChunk] = []
        for partition in partitions:
            try:
                merged.extend(self._search(partition, vector, k, vacancy_id))
            except Exception:
                logger.exception("Query against partition %s failed; skipping", partition)
        merged.sort(key=lambda c: c.similarity if c.similarity is not None else float("-inf"), reverse=True)
        return merged[:k]

    async def query_with_similarity(
        self, query_text: str, partitions: Sequence[str], k: int, vacancy_id: str
    ) -> List[RetrievedChunk]:
        """Global top-k across partitions, highest similarity first.

        A partition that fails (missing collection, server error) is logged
        and skipped; the rest still contribute.
        """
        return await self._collect(query_text, partitions, k, vacancy_id)

    async def query(
        self, query_text: str, partitions: Sequence[str], k: int, vacancy_id: str
    ) -> List[RetrievedChunk]:
        """Same ranking as query_with_similarity, with the scores dropped."""
        hits = await self._collect(query_text, partitions, k, vacancy_id)
        return [RetrievedChunk(text=h.text, metadata=h.metadata) for h in hits]

    def list_partitions(self) -> List[str]:
        return sorted(c.name for c in self.client.get_collections().collections)

    def collection_info(self, partition: str) -> Optional[Dict]:
        if partition not in self.list_partitions():
            return None
        count = self.client.count(collection_name=partition, exact=True).count
        return {"name": partition, "points_count": count}
