"""
Data structures passed between pipeline stages
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_MODE, LECTURE_MODES, MARKS_SETTINGS


class LectureMode(str, Enum):
    THEORY = "theory"
    NUMERICAL = "numerical"


@dataclass
class AudioChunk:
    """A bounded slice of the recording, WAV encoded."""
    index: int
    data: bytes
    format: str = "wav"


@dataclass
class TranscriptChunk:
    index: int
    text: str

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(frozen=True)
class StructuredNote:
    heading: str
    points: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"heading": self.heading, "points": list(self.points)}


@dataclass(frozen=True)
class QAPair:
    question: str
    answer: str
    marks: int

    def to_dict(self) -> Dict[str, Any]:
        return {"question": self.question, "answer": self.answer, "marks": self.marks}


@dataclass
class PartialSummary:
    """Summary fragment and notes produced by one model call."""
    summary: str
    structured_notes: List[StructuredNote] = field(default_factory=list)

    @classmethod
    def merge(cls, parts: Iterable[Optional["PartialSummary"]]) -> Optional["PartialSummary"]:
        """
        Concatenate partial results in the order given.

        Summaries are joined with a single space, note lists are appended.
        ``None`` entries contribute nothing; if every entry is ``None`` the
        result is ``None``.
        """
        summaries: List[str] = []
        notes: List[StructuredNote] = []
        seen = False
        for part in parts:
            if part is None:
                continue
            seen = True
            if part.summary.strip():
                summaries.append(part.summary.strip())
            notes.extend(part.structured_notes)
        if not seen:
            return None
        return cls(summary=" ".join(summaries), structured_notes=notes)


@dataclass(frozen=True)
class MarksRequest:
    """The set of question weights a caller asked for."""
    values: Tuple[int, ...]

    def __post_init__(self):
        if not self.values:
            raise ValueError("MarksRequest must contain at least one value")

    def __contains__(self, marks: object) -> bool:
        return marks in self.values

    def __iter__(self):
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class LectureResult:
    transcription: str
    summary: str
    structured_notes: Tuple[StructuredNote, ...] = ()
    qa_pairs: Tuple[QAPair, ...] = ()
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Response body for ``POST /api/process-audio``."""
        return {
            "transcription": self.transcription,
            "summary": self.summary,
            "structuredNotes": [note.to_dict() for note in self.structured_notes],
            "qaPairs": [pair.to_dict() for pair in self.qa_pairs],
        }


def coerce_marks(value: Any) -> Optional[int]:
    """
    Integer marks from an int, an int-valued float or a numeric string.

    Anything else, including digit-like characters such as ``"²"`` that
    ``int()`` refuses, gives ``None``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_marks_list(
    raw: Any,
    default: Sequence[int] = MARKS_SETTINGS["default"],
    marks_range: Tuple[int, int] = (MARKS_SETTINGS["min"], MARKS_SETTINGS["max"]),
    max_entries: int = MARKS_SETTINGS["max_entries"],
) -> MarksRequest:
    """
    Turn the ``marksList`` form value into a MarksRequest.

    Accepts a JSON-encoded array or an already decoded list. Values outside
    ``marks_range``, duplicates and non-integers are dropped, then the list
    is truncated to ``max_entries``. Falls back to ``default`` when nothing
    valid remains.
    """
    values = raw
    if isinstance(raw, (str, bytes)):
        try:
            values = json.loads(raw)
        except (ValueError, TypeError):
            values = None

    low, high = marks_range
    selected: List[int] = []
    if isinstance(values, (list, tuple)):
        for item in values:
            marks = coerce_marks(item)
            if marks is None or marks < low or marks > high or marks in selected:
                continue
            selected.append(marks)

    selected = selected[:max_entries]
    if not selected:
        selected = list(default)
    return MarksRequest(tuple(selected))


def parse_mode(raw: Optional[str]) -> LectureMode:
    """Map the ``mode`` form value to a LectureMode, defaulting to theory."""
    if raw and raw.strip().lower() in LECTURE_MODES:
        return LectureMode(raw.strip().lower())
    return LectureMode(DEFAULT_MODE)
