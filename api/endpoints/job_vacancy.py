from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.deps import get_container
from api.endpoints.upload import ensure_pdf, save_upload
from app.container import Container
from domain.errors import InvalidRequestError
from domain.schemas import (
    REQUIRED_DOCUMENTS,
    DocumentType,
    FileCategory,
    JobType,
    VacancyCreated,
    VacancyStatusUpdate,
    VacancyView,
)

router = APIRouter(prefix="/job-vacancies")


@router.post("", response_model=VacancyCreated, status_code=201)
async def create_job_vacancy(
    title: str = Form(default=""),
    type: str = Form(default=""),
    description: Optional[str] = Form(default=None),
    jobDescription: Optional[UploadFile] = File(default=None),
    cvRubric: Optional[UploadFile] = File(default=None),
    caseStudyBrief: Optional[UploadFile] = File(default=None),
    projectRubric: Optional[UploadFile] = File(default=None),
    container: Container = Depends(get_container),
) -> VacancyCreated:
    if not title.strip():
        raise InvalidRequestError("title is required")
    if type not in (JobType.CV_ONLY.value, JobType.CV_WITH_TEST.value):
        raise InvalidRequestError("type must be either 'cv_only' or 'cv_with_test'")

    uploads = {
        DocumentType.JOB_DESCRIPTION: jobDescription,
        DocumentType.CV_RUBRIC: cvRubric,
        DocumentType.CASE_STUDY_BRIEF: caseStudyBrief,
        DocumentType.PROJECT_RUBRIC: projectRubric,
    }
    required = REQUIRED_DOCUMENTS[JobType(type)]
    for doc_type in required:
        f = uploads[doc_type]
        if not f:
            raise InvalidRequestError(f"{doc_type.value} is required for {type} job vacancies")
        ensure_pdf(f, doc_type.value)

    file_ids = {
        doc_type: await save_upload(container, uploads[doc_type], FileCategory(doc_type.value))
        for doc_type in required
    }
    return await container.job_service.create_vacancy(title, type, file_ids, description=description)


@router.get("", response_model=List[VacancyView], response_model_exclude_none=True)
def list_job_vacancies(status: Optional[str] = None, type: Optional[str] = None,
                       container: Container = Depends(get_container)) -> List[VacancyView]:
    return container.job_service.list_vacancies(status=status, job_type=type)


@router.get("/{vacancy_id}", response_model=VacancyView, response_model_exclude_none=True)
def get_job_vacancy(vacancy_id: str, include_documents: bool = False,
                    container: Container = Depends(get_container)) -> VacancyView:
    return container.job_service.get_vacancy(vacancy_id, include_documents=include_documents)


@router.patch("/{vacancy_id}", response_model=VacancyView, response_model_exclude_none=True)
def update_job_vacancy(vacancy_id: str, body: VacancyStatusUpdate,
                       container: Container = Depends(get_container)) -> VacancyView:
    return container.job_service.set_vacancy_status(vacancy_id, body.status)
