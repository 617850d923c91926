import uuid
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy.orm import sessionmaker

from domain.errors import NotFoundError
from infra.db.models import FileRecord


def _to_dict(rec: FileRecord) -> Dict:
    return {
        "id": rec.id,
        "category": rec.category,
        "path": rec.path,
        "name": rec.name,
        "mime_type": rec.mime_type,
        "size": rec.size,
        "created_at": rec.created_at,
    }


class FilesRepository:
    """Uploaded files on disk under `storage_dir/<category>/`, indexed in SQLite."""

    def __init__(self, session_factory: sessionmaker, storage_dir: str):
        self._sessions = session_factory
        self.storage_dir = Path(storage_dir)

    def save(self, content: bytes, category: str, name: str, mime_type: str = "application/pdf") -> str:
        fid = f"file_{uuid.uuid4().hex}"
        suffix = Path(name).suffix or ".pdf"
        target_dir = self.storage_dir / category
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"{fid}{suffix}"
        path.write_bytes(content)
        with self._sessions() as s:
            s.add(FileRecord(id=fid, category=category, path=str(path), name=name,
                             mime_type=mime_type, size=len(content)))
            s.commit()
        return fid

    def exists(self, file_id: str) -> bool:
        with self._sessions() as s:
            return s.get(FileRecord, file_id) is not None

    def get(self, file_id: str) -> Optional[Dict]:
        with self._sessions() as s:
            rec = s.get(FileRecord, file_id)
            return _to_dict(rec) if rec else None

    def resolve(self, file_id: str) -> str:
        with self._sessions() as s:
            rec = s.get(FileRecord, file_id)
            if not rec:
                raise NotFoundError(f"File with ID {file_id} not found")
            return rec.path
