"""
In-memory, append-only store of processed lectures
"""
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from .models import LectureResult


@dataclass(frozen=True)
class StoredLecture:
    id: int
    file_name: str
    result: LectureResult
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())


class LectureStore:
    """Keeps every result under an auto-incrementing id, starting at 1"""

    def __init__(self):
        self._lectures: Dict[int, StoredLecture] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, file_name: str, result: LectureResult) -> StoredLecture:
        with self._lock:
            stored = StoredLecture(id=self._next_id, file_name=file_name, result=result)
            self._lectures[stored.id] = stored
            self._next_id += 1
        return stored

    def get(self, lecture_id: int) -> Optional[StoredLecture]:
        return self._lectures.get(lecture_id)

    def __len__(self) -> int:
        return len(self._lectures)
