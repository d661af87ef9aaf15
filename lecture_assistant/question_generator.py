"""
Exam question generation constrained to the requested marks
"""
from typing import Any, Iterable, List

from .config import MODE_INSTRUCTIONS, QUESTION_PROMPT
from .errors import LLMRequestError, ModelParseError, QuestionGenerationError
from .json_utils import extract_json_object
from .llm_client import ChatClient
from .logger import setup_logger
from .models import LectureMode, MarksRequest, QAPair, coerce_marks

logger = setup_logger(__name__)


def filter_by_marks(pairs: Iterable[QAPair], marks: MarksRequest) -> List[QAPair]:
    """Drop every pair whose marks were not requested."""
    return [pair for pair in pairs if pair.marks in marks]


def parse_qa_pairs(payload: Any) -> List[QAPair]:
    """
    Convert the decoded ``qaPairs`` list into QAPair objects.

    Entries without a question, an answer, or an integer marks value are
    skipped.

    Raises:
        QuestionGenerationError: if the payload has no ``qaPairs`` list
    """
    raw_pairs = payload.get("qaPairs") if isinstance(payload, dict) else None
    if not isinstance(raw_pairs, list):
        raise QuestionGenerationError("Model response has no qaPairs list")

    pairs: List[QAPair] = []
    for item in raw_pairs:
        if not isinstance(item, dict):
            continue
        question = item.get("question")
        answer = item.get("answer")
        marks = coerce_marks(item.get("marks"))
        if not isinstance(question, str) or not question.strip():
            continue
        if not isinstance(answer, str) or not answer.strip():
            continue
        if marks is None:
            continue
        pairs.append(QAPair(question=question.strip(), answer=answer.strip(), marks=marks))

    return pairs


class QuestionGenerator:
    """Generate exam-style question/answer pairs from a lecture summary"""

    def __init__(self, chat_client: ChatClient):
        self.chat_client = chat_client

    def build_prompt(self, summary: str, marks: MarksRequest, mode: LectureMode = LectureMode.THEORY) -> str:
        return QUESTION_PROMPT.format(
            focus=MODE_INSTRUCTIONS[LectureMode(mode).value]["focus"],
            summary=summary,
            marks_lines="\n".join(f"- {value} marks" for value in marks),
            marks_values=", ".join(str(value) for value in marks),
        )

    def generate(
        self,
        summary: str,
        marks: MarksRequest,
        mode: LectureMode = LectureMode.THEORY
    ) -> List[QAPair]:
        """
        Generate question/answer pairs using only the requested marks.

        The model is not trusted to follow the prompt: pairs with any other
        marks value are removed afterwards. Failures never propagate.

        Args:
            summary: Consolidated lecture summary
            marks: Allowed marks values
            mode: Lecture mode selecting the prompt focus

        Returns:
            list: QAPair objects, possibly empty
        """
        logger.info(f"Generating exam questions for marks {list(marks)}")

        try:
            content = self.chat_client.complete(self.build_prompt(summary, marks, mode))
            pairs = parse_qa_pairs(extract_json_object(content))
        except (LLMRequestError, ModelParseError, QuestionGenerationError) as e:
            error = e if isinstance(e, QuestionGenerationError) else QuestionGenerationError(e.message)
            logger.warning(f"Question generation failed: {error.message}")
            return []

        allowed = filter_by_marks(pairs, marks)
        dropped = len(pairs) - len(allowed)
        if dropped:
            logger.warning(f"Dropped {dropped} question(s) with marks outside {list(marks)}")

        logger.info(f"Generated {len(allowed)} exam question(s)")
        return allowed
