from fastapi import APIRouter, Depends

from api.deps import get_job_service
from domain.schemas import EvaluateRequest, JobStatusResponse
from domain.services.job_service import JobService

router = APIRouter()


@router.post("/evaluate", response_model=JobStatusResponse, response_model_exclude_none=True)
async def evaluate(body: EvaluateRequest, service: JobService = Depends(get_job_service)) -> JobStatusResponse:
    return await service.create_submission(body.vacancy_id, body.cv_id, body.report_id)
