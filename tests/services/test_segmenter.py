"""Tests for the three-scene story segmenter."""
import pytest

from app.services.generation.segmenter import segment, split_sentences


def _story(n: int) -> str:
    return " ".join(f"Sentence number {i} happens here." for i in range(1, n + 1))


# ============================================================================
# Sentence splitting
# ============================================================================

def test_split_sentences_on_terminal_punctuation():
    text = "The moon rose. Did it sing? It did! Then silence."
    assert split_sentences(text) == ["The moon rose.", "Did it sing?", "It did!", "Then silence."]


def test_split_requires_whitespace_after_punctuation():
    """Dots inside a token (3.5, e.g) do not end a sentence."""
    assert split_sentences("It was 3.5 meters tall. Huge!") == ["It was 3.5 meters tall.", "Huge!"]


def test_repeated_terminal_marks_stay_with_sentence():
    assert split_sentences("Wait... What?! Oh.") == ["Wait...", "What?!", "Oh."]


def test_trailing_fragment_is_absorbed_into_last_sentence():
    sentences = split_sentences("One. Two. and then nothing")
    assert sentences == ["One.", "Two. and then nothing"]


def test_text_without_terminal_punctuation_has_no_sentences():
    assert split_sentences("just a fragment") == []


# ============================================================================
# Segmentation
# ============================================================================

@pytest.mark.parametrize("text", [
    "",
    "A lonely fragment without an ending",
    "Only one sentence.",
    "Two sentences here. And one more fragment",
    "First. Second!",
])
def test_fewer_than_three_sentences_returns_original_text_everywhere(text):
    result = segment(text)
    assert result.beginning == text
    assert result.middle == text
    assert result.end == text


def test_nine_sentences_split_evenly():
    result = segment(_story(9))

    assert len(split_sentences(result.beginning)) == 3
    assert len(split_sentences(result.middle)) == 3
    assert len(split_sentences(result.end)) == 3
    assert result.beginning.startswith("Sentence number 1 ")
    assert result.middle.startswith("Sentence number 4 ")
    assert result.end.startswith("Sentence number 7 ")


def test_ten_sentences_gives_remainder_to_end():
    result = segment(_story(10))

    assert len(split_sentences(result.beginning)) == 3
    assert len(split_sentences(result.middle)) == 3
    assert len(split_sentences(result.end)) == 4
    assert result.end.endswith("Sentence number 10 happens here.")


def test_segments_are_single_space_joined_and_trimmed():
    result = segment("  One.\n\nTwo.   Three.  ")
    assert (result.beginning, result.middle, result.end) == ("One.", "Two.", "Three.")


def test_segmentation_is_deterministic():
    story = _story(7)
    assert segment(story) == segment(story)
