from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from api.deps import get_container
from app.container import Container
from domain.errors import InvalidRequestError
from domain.schemas import FileCategory, UploadResponse

router = APIRouter()

PDF_MIME = "application/pdf"


def ensure_pdf(f: UploadFile, field: str) -> None:
    name = (f.filename or "").lower()
    if f.content_type != PDF_MIME and not name.endswith(".pdf"):
        raise InvalidRequestError(f"'{field}' must be a PDF file")


async def save_upload(container: Container, f: UploadFile, category: FileCategory) -> str:
    content = await f.read()
    if not content:
        raise InvalidRequestError(f"'{category.value}' is empty")
    return container.files.save(content, category.value, f.filename or f"{category.value}.pdf", PDF_MIME)


@router.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
async def upload(cv: Optional[UploadFile] = File(default=None),
                 report: Optional[UploadFile] = File(default=None),
                 container: Container = Depends(get_container)) -> UploadResponse:
    if not cv and not report:
        raise InvalidRequestError("Upload at least one file: 'cv' or 'report'")
    for f, field in ((cv, "cv"), (report, "report")):
        if f:
            ensure_pdf(f, field)

    resp = UploadResponse()
    if cv:
        resp.cv_id = await save_upload(container, cv, FileCategory.CV)
    if report:
        resp.report_id = await save_upload(container, report, FileCategory.REPORT)
    return resp
