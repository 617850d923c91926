from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_container
from app.container import Container

router = APIRouter()


@router.get("/vector-db/health")
def vector_db_health(container: Container = Depends(get_container)):
    try:
        names = container.index.list_partitions()
        collections = [container.index.collection_info(name) for name in names]
    except Exception as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return {
        "status": "ok",
        "collections": collections,
        "collection_count": len(collections),
    }
