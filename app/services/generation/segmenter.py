"""
Story Segmenter

Splits a generated story into three ordered scene excerpts
(beginning, middle, end) that drive the three illustrations.
Pure and deterministic: no I/O, no randomness.
"""

import re
from dataclasses import dataclass

# A sentence runs up to one or more terminal marks followed by whitespace or end of text.
SENTENCE_PATTERN = re.compile(r"\S.*?[.!?]+(?=\s|$)", re.DOTALL)

MIN_SENTENCES = 3


@dataclass(frozen=True)
class StorySegments:
    beginning: str
    middle: str
    end: str


def split_sentences(text: str) -> list[str]:
    """
    Terminal-punctuation sentence split.

    A trailing fragment without terminal punctuation is not a sentence of its
    own: it is appended to the last complete sentence (or dropped from the
    count entirely when there is none).
    """
    sentences: list[str] = []
    consumed = 0

    for match in SENTENCE_PATTERN.finditer(text):
        sentences.append(match.group().strip())
        consumed = match.end()

    tail = text[consumed:].strip()
    if tail and sentences:
        sentences[-1] = f"{sentences[-1]} {tail}"

    return sentences


def segment(story: str) -> StorySegments:
    """
    Divide story into thirds by sentence count.

    Fewer than 3 sentences: the original text is used verbatim for all three
    scenes. Otherwise k = n // 3; beginning gets [0, k), middle [k, 2k) and
    end the remainder [2k, n), so end may hold more than k sentences.
    """
    sentences = split_sentences(story)
    total = len(sentences)

    if total < MIN_SENTENCES:
        return StorySegments(beginning=story, middle=story, end=story)

    k = total // 3
    return StorySegments(
        beginning=" ".join(sentences[:k]).strip(),
        middle=" ".join(sentences[k:2 * k]).strip(),
        end=" ".join(sentences[2 * k:]).strip(),
    )
