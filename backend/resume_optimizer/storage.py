import itertools
from datetime import datetime, timezone
from typing import Dict, Optional

from .schemas import ResumeIn, ResumeOut

class ResumeStore:
    """Uploaded resumes kept in process memory, keyed by integer id."""

    def __init__(self):
        self._resumes: Dict[int, ResumeOut] = {}
        self._ids = itertools.count(1)

    def add(self, body: ResumeIn) -> ResumeOut:
        resume = ResumeOut(
            id=next(self._ids),
            filename=body.filename,
            content=body.content,
            created_at=datetime.now(timezone.utc),
        )
        self._resumes[resume.id] = resume
        return resume

    def get(self, resume_id: int) -> Optional[ResumeOut]:
        return self._resumes.get(resume_id)

    def clear(self):
        self._resumes.clear()
        self._ids = itertools.count(1)

RESUME_STORE = ResumeStore()
