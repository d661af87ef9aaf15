"""
Sentence-aligned splitting of long transcripts
"""
import re
from typing import List

from .config import TEXT_CHUNK_WORD_RANGE
from .models import TranscriptChunk

# A sentence runs up to terminal punctuation (plus closing quotes/brackets)
# followed by whitespace, or to the end of the text
_SENTENCE_RE = re.compile(r".+?(?:[.!?][\"')\]]*(?=\s|$)|$)", re.DOTALL)


def split_sentences(text: str) -> List[str]:
    """
    Break text into sentences at terminal punctuation.

    Whitespace is normalised first. Text with no terminal punctuation is
    returned as a single sentence.
    """
    normalized = " ".join(text.split())
    if not normalized:
        return []
    sentences = [match.group(0).strip() for match in _SENTENCE_RE.finditer(normalized)]
    return [sentence for sentence in sentences if sentence]


def split_into_chunks(text: str, target_words: int = 600) -> List[TranscriptChunk]:
    """
    Group sentences into chunks of roughly ``target_words`` words.

    A chunk is closed when adding the next sentence would push it over the
    target and it already holds at least one sentence, so a single sentence
    longer than the target becomes a chunk of its own.

    Args:
        text: Full transcript
        target_words: Desired words per chunk

    Returns:
        list: Non-empty TranscriptChunk objects in order
    """
    low, high = TEXT_CHUNK_WORD_RANGE
    if not low <= target_words <= high:
        raise ValueError(f"target_words must be between {low} and {high}, got {target_words}")

    chunks: List[TranscriptChunk] = []
    current: List[str] = []
    current_words = 0

    for sentence in split_sentences(text):
        sentence_words = len(sentence.split())
        if current and current_words + sentence_words > target_words:
            chunks.append(TranscriptChunk(index=len(chunks), text=" ".join(current)))
            current = []
            current_words = 0
        current.append(sentence)
        current_words += sentence_words

    if current:
        chunks.append(TranscriptChunk(index=len(chunks), text=" ".join(current)))

    return chunks
