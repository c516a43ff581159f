import re

from lanlearner.domain.constants import (
    EXAMPLE_CONTEXT_AFTER,
    EXAMPLE_CONTEXT_BEFORE,
    EXAMPLE_MAX_LENGTH,
)

WESTERN_TERMINATORS = ".!?"
CJK_TERMINATORS = "。！？"
TERMINATORS = WESTERN_TERMINATORS + CJK_TERMINATORS

# A sentence runs up to a terminator. Western terminators only end a sentence
# when followed by whitespace or the end, so "3.14" does not split.
_SENTENCE_RE = re.compile(
    rf"[^{TERMINATORS}\s]"
    rf"(?:[^{TERMINATORS}]|[{WESTERN_TERMINATORS}](?!\s|$))*"
    rf"[{TERMINATORS}]?"
)
_TERMINATOR_RE = re.compile(rf"([{TERMINATORS}])")


# ---------- Sentences ----------


def split_sentences(text: str) -> list[str]:
    sentences = [s.strip() for s in _SENTENCE_RE.findall(text)]
    sentences = [s for s in sentences if s]
    if sentences or len(text) <= 50:
        return sentences

    # Fallback: plain split on terminators
    out: list[str] = []
    current = ""
    for part in _TERMINATOR_RE.split(text):
        current += part
        if _TERMINATOR_RE.fullmatch(part) and current.strip():
            out.append(current.strip())
            current = ""
    if current.strip():
        out.append(current.strip())
    return out


def _clip_around(sentence: str, index: int, word_length: int) -> str:
    start = max(0, index - EXAMPLE_CONTEXT_BEFORE)
    end = min(len(sentence), index + EXAMPLE_CONTEXT_AFTER + word_length)
    snippet = sentence[start:end]
    if start > 0 and sentence[start - 1] not in TERMINATORS:
        snippet = "..." + snippet
    if end < len(sentence) and sentence[end - 1] not in TERMINATORS:
        snippet = snippet + "..."
    return snippet.strip()


def find_example_sentences(word: str, text: str) -> list[str]:
    """
    Find sentences in ``text`` that contain ``word`` (case-insensitive).

    Sentences at or over the maximum example length are clipped to a window
    around the first hit, with ellipses marking the cut. Duplicates are
    dropped, first occurrence order kept.
    """
    if not word or not text:
        return []

    needle = word.lower()
    found: list[str] = []
    for sentence in split_sentences(text):
        lowered = sentence.lower()
        index = lowered.find(needle)
        if index == -1:
            continue
        if len(sentence) < EXAMPLE_MAX_LENGTH:
            found.append(sentence)
        else:
            found.append(_clip_around(sentence, index, len(needle)))
    return list(dict.fromkeys(found))


# ---------- Display ----------


def truncate(text: str | None, max_length: int, ellipsis: str = "...") -> str:
    if not text or len(text) <= max_length:
        return text or ""
    return text[: max_length - len(ellipsis)] + ellipsis


def non_blank_lines(text: str | None) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]
