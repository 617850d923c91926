import uuid
from typing import Any, Dict, Optional

from sqlalchemy.orm import sessionmaker

from domain.errors import NotFoundError
from domain.schemas import SubmissionStatus
from domain.state_machine import ensure_submission_transition
from infra.db.models import SubmissionRecord

_COLUMNS = [c.name for c in SubmissionRecord.__table__.columns]


def _to_dict(rec: SubmissionRecord) -> Dict[str, Any]:
    return {name: getattr(rec, name) for name in _COLUMNS}


class SubmissionsRepository:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def create(self, vacancy_id: str, cv_file_id: str, report_file_id: Optional[str] = None) -> str:
        sid = f"submission_{uuid.uuid4().hex}"
        with self._sessions() as s:
            s.add(SubmissionRecord(
                id=sid,
                vacancy_id=vacancy_id,
                cv_file_id=cv_file_id,
                report_file_id=report_file_id,
                status=SubmissionStatus.QUEUED.value,
                attempts=0,
            ))
            s.commit()
        return sid

    def get(self, submission_id: str) -> Optional[Dict[str, Any]]:
        with self._sessions() as s:
            rec = s.get(SubmissionRecord, submission_id)
            return _to_dict(rec) if rec else None

    def transition(self, submission_id: str, target: SubmissionStatus, **fields: Any) -> Dict[str, Any]:
        """Move to `target` and write `fields` in one commit; illegal moves raise.

        Entering `processing` counts as a new attempt.
        """
        with self._sessions() as s:
            rec = s.get(SubmissionRecord, submission_id)
            if not rec:
                raise NotFoundError(f"Submission with ID {submission_id} not found")
            ensure_submission_transition(SubmissionStatus(rec.status), target)
            rec.status = target.value
            if target is SubmissionStatus.PROCESSING:
                rec.attempts = (rec.attempts or 0) + 1
            for key, value in fields.items():
                setattr(rec, key, value)
            s.commit()
            return _to_dict(rec)
