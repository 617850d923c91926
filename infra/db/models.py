from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from infra.db.session import Base


class FileRecord(Base):
    __tablename__ = "files"
    id = Column(String, primary_key=True)
    category = Column(String, nullable=False)   # FileCategory value
    path = Column(String, nullable=False)
    name = Column(String, nullable=False)
    mime_type = Column(String, nullable=False, default="application/pdf")
    size = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())


class VacancyRecord(Base):
    __tablename__ = "job_vacancies"
    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=False)       # JobType value
    status = Column(String, nullable=False, default="pending")
    job_description_file_id = Column(String, ForeignKey("files.id"), nullable=False)
    cv_rubric_file_id = Column(String, ForeignKey("files.id"), nullable=False)
    case_study_brief_file_id = Column(String, ForeignKey("files.id"), nullable=True)
    project_rubric_file_id = Column(String, ForeignKey("files.id"), nullable=True)
    standardized_cv_rubric = Column(JSON, nullable=True)
    standardized_project_rubric = Column(JSON, nullable=True)
    cv_queries = Column(JSON, nullable=False, default=list)
    project_queries = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class SubmissionRecord(Base):
    __tablename__ = "submissions"
    id = Column(String, primary_key=True)
    vacancy_id = Column(String, ForeignKey("job_vacancies.id"), nullable=False)
    cv_file_id = Column(String, ForeignKey("files.id"), nullable=False)
    report_file_id = Column(String, ForeignKey("files.id"), nullable=True)
    status = Column(String, nullable=False, default="queued")
    result = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
