import re
from typing import List

_SENTENCE_END = re.compile(r"[.!?]+(?=\s|$)")
_TERMINAL = re.compile(r"[.!?]$")


def split_sentences(text: str) -> List[str]:
    """Split text on `.`, `!` or `?` followed by whitespace or end of text.

    Whitespace is collapsed first. A trailing fragment without terminal
    punctuation is kept as the last sentence.
    """
    normalized = re.sub(r"\s+", " ", text or "").strip()
    if not normalized:
        return []

    sentences: List[str] = []
    last = 0
    for match in _SENTENCE_END.finditer(normalized):
        end = match.end()
        sentence = normalized[last:end].strip()
        if sentence:
            sentences.append(sentence)
        last = end
    tail = normalized[last:].strip()
    if tail:
        sentences.append(tail)
    return sentences or [normalized]


def _joined_length(sentences: List[str]) -> int:
    if not sentences:
        return 0
    return sum(len(s) for s in sentences) + len(sentences) - 1


def _terminate(chunk: str) -> str:
    chunk = chunk.strip()
    return chunk if _TERMINAL.search(chunk) else chunk + "."


def chunk_text(text: str, size: int = 1000, overlap: int = 2) -> List[str]:
    """Greedy sentence-bounded chunking with sentence-level overlap.

    Sentences are never split, so a chunk holding a single long sentence can
    exceed `size`. When a chunk closes, the next one starts with the last
    `overlap` sentences of the closed chunk.
    """
    sentences = split_sentences(text)
    if not sentences:
        return []
    if _joined_length(sentences) <= size:
        return [_terminate(" ".join(sentences))]

    chunks: List[str] = []
    current: List[str] = []
    current_len = 0
    for sentence in sentences:
        added = len(sentence) + (1 if current else 0)
        if current and current_len + added > size:
            chunks.append(" ".join(current))
            current = current[-overlap:] if overlap > 0 else []
            current_len = _joined_length(current)
            added = len(sentence) + (1 if current else 0)
        current.append(sentence)
        current_len += added
    if current:
        chunks.append(" ".join(current))

    return [_terminate(c) for c in chunks if c.strip()]
