import pytest

from conftest import CV_TEXT, activate, make_documents, save_text
from domain.errors import InvalidRequestError, NotFoundError, VacancyNotActiveError
from domain.schemas import DocumentType, FileCategory, SubmissionStatus, VacancyStatus
from infra.queue.base import EVALUATION_QUEUE, INGESTION_QUEUE


@pytest.mark.asyncio
async def test_create_vacancy_persists_pending_and_enqueues(recorded):
    created = await recorded.job_service.create_vacancy("Engineer", "cv_only", make_documents(recorded),
                                                        description="Backend")
    assert created.status is VacancyStatus.PENDING
    assert recorded.queues[INGESTION_QUEUE].jobs == [(created.vacancy_id, {"vacancy_id": created.vacancy_id})]
    view = recorded.job_service.get_vacancy(created.vacancy_id)
    assert (view.title, view.description, view.status) == ("Engineer", "Backend", VacancyStatus.PENDING)
    assert not view.has_standardized_cv_rubric


@pytest.mark.asyncio
@pytest.mark.parametrize("title,job_type,message", [
    ("", "cv_only", "title"),
    ("Engineer", "", "type is required"),
    ("Engineer", "internship", "cv_only"),
])
async def test_create_vacancy_rejects_bad_fields(recorded, title, job_type, message):
    with pytest.raises(InvalidRequestError, match=message):
        await recorded.job_service.create_vacancy(title, job_type, make_documents(recorded))
    assert recorded.queues[INGESTION_QUEUE].jobs == []


@pytest.mark.asyncio
async def test_cv_with_test_requires_project_documents(recorded):
    with pytest.raises(InvalidRequestError, match="case_study_brief"):
        await recorded.job_service.create_vacancy("Engineer", "cv_with_test", make_documents(recorded))
    assert recorded.vacancies.list() == []


@pytest.mark.asyncio
async def test_unknown_document_file_is_rejected(recorded):
    docs = make_documents(recorded)
    docs[DocumentType.CV_RUBRIC] = "file_missing"
    with pytest.raises(InvalidRequestError, match="not found"):
        await recorded.job_service.create_vacancy("Engineer", "cv_only", docs)


@pytest.mark.asyncio
async def test_submission_validation(recorded):
    service = recorded.job_service
    cv_id = save_text(recorded, CV_TEXT, FileCategory.CV, "cv.pdf")

    with pytest.raises(NotFoundError):
        await service.create_submission("vacancy_unknown", cv_id)

    created = await service.create_vacancy("Engineer", "cv_with_test", make_documents(recorded, with_project=True))
    with pytest.raises(VacancyNotActiveError):
        await service.create_submission(created.vacancy_id, cv_id)

    activate(recorded, created.vacancy_id)
    with pytest.raises(InvalidRequestError, match="CV file"):
        await service.create_submission(created.vacancy_id, "file_missing")
    with pytest.raises(InvalidRequestError, match="Report file"):
        await service.create_submission(created.vacancy_id, cv_id, "file_missing")
    with pytest.raises(InvalidRequestError, match="report_id is required"):
        await service.create_submission(created.vacancy_id, cv_id)
    assert recorded.queues[EVALUATION_QUEUE].jobs == []

    report_id = save_text(recorded, "report", FileCategory.REPORT, "report.pdf")
    queued = await service.create_submission(created.vacancy_id, cv_id, report_id)
    assert queued.status is SubmissionStatus.QUEUED
    assert recorded.queues[EVALUATION_QUEUE].jobs == [(queued.id, {"submission_id": queued.id})]
    assert service.get_submission(queued.id).status is SubmissionStatus.QUEUED


@pytest.mark.asyncio
async def test_status_toggle(recorded):
    service = recorded.job_service
    created = await service.create_vacancy("Engineer", "cv_only", make_documents(recorded))

    with pytest.raises(InvalidRequestError):
        service.set_vacancy_status(created.vacancy_id, "active")
    with pytest.raises(InvalidRequestError, match="either 'active' or 'inactive'"):
        service.set_vacancy_status(created.vacancy_id, "failed")
    with pytest.raises(NotFoundError):
        service.set_vacancy_status("vacancy_unknown", "inactive")

    recorded.vacancies.transition(created.vacancy_id, VacancyStatus.PROCESSING)
    with pytest.raises(InvalidRequestError, match="while processing"):
        service.set_vacancy_status(created.vacancy_id, "active")
    assert recorded.vacancies.get(created.vacancy_id)["status"] == VacancyStatus.PROCESSING.value

    activate(recorded, created.vacancy_id)
    assert service.set_vacancy_status(created.vacancy_id, "inactive").status is VacancyStatus.INACTIVE
    assert service.set_vacancy_status(created.vacancy_id, "inactive").status is VacancyStatus.INACTIVE
    assert service.set_vacancy_status(created.vacancy_id, "active").status is VacancyStatus.ACTIVE


@pytest.mark.asyncio
async def test_list_and_document_view(recorded):
    service = recorded.job_service
    first = await service.create_vacancy("One", "cv_only", make_documents(recorded))
    await service.create_vacancy("Two", "cv_with_test", make_documents(recorded, with_project=True))
    activate(recorded, first.vacancy_id)

    assert {v.title for v in service.list_vacancies()} == {"One", "Two"}
    assert [v.title for v in service.list_vacancies(status="active")] == ["One"]
    assert [v.title for v in service.list_vacancies(job_type="cv_with_test")] == ["Two"]
    with pytest.raises(InvalidRequestError):
        service.list_vacancies(status="bogus")

    view = service.get_vacancy(first.vacancy_id, include_documents=True)
    assert view.has_standardized_cv_rubric
    assert set(view.documents) == {"job_description", "cv_rubric"}
    assert view.documents["job_description"].startswith("We are hiring")


def test_unknown_ids_are_not_found(recorded):
    with pytest.raises(NotFoundError):
        recorded.job_service.get_vacancy("vacancy_unknown")
    with pytest.raises(NotFoundError):
        recorded.job_service.get_submission("submission_unknown")
