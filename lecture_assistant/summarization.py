"""
Summary and structured-note generation for lecture transcripts
"""
from typing import Any, Dict, List, Optional, Sequence

from .batching import run_in_batches
from .config import LANGUAGE_RULES, MODE_INSTRUCTIONS, SUMMARY_PROMPTS, PipelineSettings
from .errors import LLMRequestError, ModelParseError
from .json_utils import extract_json_object
from .llm_client import ChatClient
from .logger import setup_logger
from .models import LectureMode, PartialSummary, StructuredNote, TranscriptChunk
from .text_chunker import split_into_chunks

logger = setup_logger(__name__)


def parse_structured_notes(raw_notes: Any) -> List[StructuredNote]:
    """Keep only well-formed ``{heading, points}`` entries."""
    notes: List[StructuredNote] = []
    if not isinstance(raw_notes, list):
        return notes

    for item in raw_notes:
        if not isinstance(item, dict):
            continue
        heading = item.get("heading")
        if not isinstance(heading, str) or not heading.strip():
            continue
        points = item.get("points") or []
        if isinstance(points, str):
            points = [points]
        if not isinstance(points, list):
            continue
        clean_points = tuple(str(point).strip() for point in points if str(point).strip())
        notes.append(StructuredNote(heading=heading.strip(), points=clean_points))

    return notes


def parse_partial_summary(payload: Dict[str, Any]) -> PartialSummary:
    """
    Build a PartialSummary from a decoded model response.

    Raises:
        ModelParseError: if the payload has no summary text; notes alone
            are not enough to build on
    """
    summary = payload.get("summary")
    summary = summary.strip() if isinstance(summary, str) else ""
    notes = parse_structured_notes(payload.get("structuredNotes"))

    if not summary:
        raise ModelParseError("Model response has no summary")

    return PartialSummary(summary=summary, structured_notes=notes)


class LectureSummarizer:
    """Summarize transcripts directly or through per-chunk mini-summaries"""

    def __init__(self, chat_client: ChatClient, settings: Optional[PipelineSettings] = None):
        self.chat_client = chat_client
        self.settings = settings or PipelineSettings()

    def summarize(self, transcript: str, mode: LectureMode = LectureMode.THEORY) -> Optional[PartialSummary]:
        """
        Produce a summary and structured notes for a transcript.

        Short transcripts are summarized in one call. Longer ones are split
        into sentence-aligned chunks, each chunk is condensed to a
        mini-summary, and the ordered mini-summaries are consolidated in a
        final call. If that final call fails the merged mini-summaries are
        returned as they are.

        Args:
            transcript: Full merged transcript
            mode: Lecture mode selecting the prompt wording

        Returns:
            PartialSummary, or None when no call produced anything usable
        """
        word_count = len(transcript.split())
        if word_count == 0:
            return None

        if word_count <= self.settings.long_transcript_words:
            logger.info(f"Summarizing short transcript ({word_count} words) in one call")
            return self._request_summary("structure", transcript, mode)

        chunks = split_into_chunks(transcript, self.settings.text_chunk_words)
        logger.info(f"Summarizing long transcript ({word_count} words) in {len(chunks)} chunks")

        merged = PartialSummary.merge(self.summarize_chunks(chunks, mode))
        if merged is None:
            logger.error("Every chunk summary failed")
            return None

        consolidated = self._request_summary("consolidate", merged.summary, mode)
        if consolidated is None:
            logger.warning("Consolidation failed, using merged chunk summaries")
            return merged
        return consolidated

    def summarize_chunks(
        self,
        chunks: Sequence[TranscriptChunk],
        mode: LectureMode = LectureMode.THEORY
    ) -> List[Optional[PartialSummary]]:
        """Mini-summaries for each chunk, in chunk order; failures are None."""
        results = run_in_batches(
            chunks,
            lambda chunk: self._request_summary("mini_summary", chunk.text, mode),
            batch_size=self.settings.batch_size,
            delay_seconds=self.settings.batch_delay_seconds,
            timeout_seconds=self.settings.batch_timeout_seconds,
            label="text chunk",
        )
        return [result.value if result.ok else None for result in results]

    def build_prompt(self, kind: str, text: str, mode: LectureMode) -> str:
        instructions = MODE_INSTRUCTIONS[LectureMode(mode).value]
        return SUMMARY_PROMPTS[kind].format(
            role=instructions["role"],
            language_rules=LANGUAGE_RULES,
            focus=instructions["focus"],
            heading=instructions["heading"],
            transcript=text,
        )

    def _request_summary(self, kind: str, text: str, mode: LectureMode) -> Optional[PartialSummary]:
        prompt = self.build_prompt(kind, text, mode)
        try:
            content = self.chat_client.complete(prompt)
            return parse_partial_summary(extract_json_object(content))
        except (LLMRequestError, ModelParseError) as e:
            logger.warning(f"{kind} call contributed nothing: {e.message}")
            return None
