import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from domain.errors import NotFoundError
from domain.schemas import VacancyStatus
from domain.state_machine import ensure_vacancy_transition
from infra.db.models import VacancyRecord

_COLUMNS = [c.name for c in VacancyRecord.__table__.columns]


def _to_dict(rec: VacancyRecord) -> Dict[str, Any]:
    return {name: getattr(rec, name) for name in _COLUMNS}


class VacanciesRepository:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def create(
        self,
        *,
        title: str,
        job_type: str,
        job_description_file_id: str,
        cv_rubric_file_id: str,
        case_study_brief_file_id: Optional[str] = None,
        project_rubric_file_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> str:
        vid = f"vacancy_{uuid.uuid4().hex}"
        with self._sessions() as s:
            s.add(VacancyRecord(
                id=vid,
                title=title,
                description=description,
                type=job_type,
                status=VacancyStatus.PENDING.value,
                job_description_file_id=job_description_file_id,
                cv_rubric_file_id=cv_rubric_file_id,
                case_study_brief_file_id=case_study_brief_file_id,
                project_rubric_file_id=project_rubric_file_id,
                cv_queries=[],
            ))
            s.commit()
        return vid

    def get(self, vacancy_id: str) -> Optional[Dict[str, Any]]:
        with self._sessions() as s:
            rec = s.get(VacancyRecord, vacancy_id)
            return _to_dict(rec) if rec else None

    def list(self, status: Optional[str] = None, job_type: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(VacancyRecord).order_by(VacancyRecord.created_at.desc())
        if status:
            stmt = stmt.where(VacancyRecord.status == status)
        if job_type:
            stmt = stmt.where(VacancyRecord.type == job_type)
        with self._sessions() as s:
            return [_to_dict(r) for r in s.scalars(stmt)]

    def update(self, vacancy_id: str, **fields: Any) -> None:
        with self._sessions() as s:
            rec = s.get(VacancyRecord, vacancy_id)
            if not rec:
                raise NotFoundError(f"Job vacancy with ID {vacancy_id} not found")
            for key, value in fields.items():
                setattr(rec, key, value)
            s.commit()

    def transition(self, vacancy_id: str, target: VacancyStatus, **fields: Any) -> Dict[str, Any]:
        """Move to `target` and write `fields` in one commit; illegal moves raise."""
        with self._sessions() as s:
            rec = s.get(VacancyRecord, vacancy_id)
            if not rec:
                raise NotFoundError(f"Job vacancy with ID {vacancy_id} not found")
            ensure_vacancy_transition(VacancyStatus(rec.status), target)
            rec.status = target.value
            for key, value in fields.items():
                setattr(rec, key, value)
            s.commit()
            return _to_dict(rec)
