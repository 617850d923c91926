from fastapi import Request

from app.container import Container
from domain.services.job_service import JobService


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_job_service(request: Request) -> JobService:
    return request.app.state.container.job_service
