from fastapi import APIRouter, Depends

from api.deps import get_job_service
from domain.schemas import JobStatusResponse
from domain.services.job_service import JobService

router = APIRouter()


@router.get("/result/{job_id}", response_model=JobStatusResponse, response_model_exclude_none=True)
def get_result(job_id: str, service: JobService = Depends(get_job_service)) -> JobStatusResponse:
    return service.get_submission(job_id)
