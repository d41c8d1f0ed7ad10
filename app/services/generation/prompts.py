"""
Generation Prompt Templates

Prompt builders for every provider-backed dream operation:
- Title: short fairy tale title
- Story: tone- and length-driven fairy tale
- Images: three scene prompts built from the segmented story
- Analysis: reflective, non-clinical dream interpretation

Kept apart from the orchestrator so wording can change without touching call logic.
"""

from dataclasses import dataclass

from app.models.database.dreams import SceneLabel
from app.services.generation.segmenter import StorySegments

# ─────────────────────────────────────────────────────────────
# Title
# ─────────────────────────────────────────────────────────────

TITLE_SYSTEM_PROMPT = (
    "You are a creative title generator. Create a short, engaging title (3-6 words) "
    "for a fairy tale based on the dream description provided. The title should be "
    "magical, whimsical, and capture the essence of the dream. Do not use quotation marks."
)


def build_title_user_prompt(dream_text: str) -> str:
    return f'Create a fairy tale title for this dream: "{dream_text}"'


# ─────────────────────────────────────────────────────────────
# Story
# ─────────────────────────────────────────────────────────────

DEFAULT_TONE = "whimsical"
DEFAULT_LENGTH = "medium"

TONE_INSTRUCTIONS = {
    "whimsical": (
        "Transform this dream into a whimsical, playful fairy tale with magical creatures, "
        "rainbow colors, and joyful adventures. Make it feel like a Disney story with wonder and delight."
    ),
    "mystical": (
        "Transform this dream into a mystical, magical fairy tale with ancient wisdom, ethereal beings, "
        "and spiritual undertones. Include elements of wonder, mystery, and enlightenment."
    ),
    "adventurous": (
        "Transform this dream into an adventurous, bold fairy tale with brave heroes, epic quests, "
        "and thrilling challenges. Make it exciting and action-packed with courage and triumph."
    ),
    "gentle": (
        "Transform this dream into a gentle, soothing fairy tale with kind characters, peaceful settings, "
        "and heartwarming moments. Make it comforting, tender, and full of love."
    ),
    "mysterious": (
        "Transform this dream into a mysterious, dark fairy tale with shadows, secrets, and intriguing "
        "plot twists. Keep it atmospheric and engaging but not too scary."
    ),
    "comedy": (
        "Transform this dream into a mysterious, dark fairy tale with sarcastic humor, dramatic secrets, "
        "and absurd plot twists. Keep it atmospheric and intriguing, but make it funny, more spooky "
        "comedy than actual horror."
    ),
}


@dataclass(frozen=True)
class LengthBand:
    words: str
    max_tokens: int


LENGTH_BANDS = {
    "short": LengthBand(words="150-250 words", max_tokens=400),
    "medium": LengthBand(words="300-500 words", max_tokens=800),
    "long": LengthBand(words="600-800 words", max_tokens=1200),
}


def resolve_tone(tone: str | None) -> str:
    """Unknown or missing tones fall back to whimsical."""
    return tone if tone in TONE_INSTRUCTIONS else DEFAULT_TONE


def resolve_length(length: str | None) -> LengthBand:
    return LENGTH_BANDS.get(length or DEFAULT_LENGTH, LENGTH_BANDS[DEFAULT_LENGTH])


def build_story_system_prompt(tone: str | None, length: str | None) -> str:
    """
    System instruction for story generation.

    Args:
        tone: Tone selector (unknown → whimsical)
        length: Length selector (unknown → medium)

    Returns:
        Formatted system prompt with tone style and target word band
    """
    instruction = TONE_INSTRUCTIONS[resolve_tone(tone)]
    band = resolve_length(length)

    return f"""You are a master storyteller who specializes in transforming dreams into captivating fairy tales. {instruction}

Guidelines:
- Create a complete, well-structured fairy tale with a clear beginning, middle, and end
- Length: {band.words}
- Include vivid descriptions and engaging dialogue
- Make it appropriate for all ages
- Incorporate classic fairy tale elements (magic, transformation, resolution)
- Use the dream as core inspiration but expand creatively
- Structure the story with clear scene transitions that can be illustrated"""


def build_story_user_prompt(dream_text: str) -> str:
    return f'Transform this dream into a fairy tale: "{dream_text}"'


# ─────────────────────────────────────────────────────────────
# Images
# ─────────────────────────────────────────────────────────────

VISUAL_STYLES = {
    "whimsical": "whimsical fairy tale illustration, bright vibrant colors, Disney-style animation, magical and playful, soft lighting",
    "mystical": "mystical fairy tale artwork, ethereal lighting, fantasy art style, magical realism, dreamy atmosphere",
    "adventurous": "epic fantasy illustration, adventure book art style, dynamic composition, heroic and bold",
    "gentle": "soft watercolor fairy tale illustration, pastel colors, gentle and peaceful, children's book style",
    "mysterious": "gothic fairy tale illustration, dramatic shadows, mysterious atmosphere, dark fantasy art",
    "comedy": "whimsical spooky comedy illustration, Tim Burton style, quirky characters, humorous dark fantasy",
}

NO_TEXT_STYLE = "no text, no words, no letters, no writing, text-free illustration"
NO_TEXT_INSTRUCTION = "IMPORTANT: Do not include any text, words, letters, or writing in the image."


@dataclass(frozen=True)
class ScenePrompt:
    scene: SceneLabel
    description: str
    prompt: str


def build_visual_style(tone: str | None) -> str:
    base = VISUAL_STYLES[resolve_tone(tone)]
    return (
        f"{base}, high quality, detailed artwork, storybook illustration, "
        f"beautiful composition, {NO_TEXT_STYLE}"
    )


def build_scene_prompts(segments: StorySegments, tone: str | None) -> list[ScenePrompt]:
    """
    Three ordered scene prompts: segment text + per-scene composition + tone style.

    Every prompt forbids rendered text twice (style string and closing instruction).
    """
    style = build_visual_style(tone)

    return [
        ScenePrompt(
            scene=SceneLabel.SCENE_1,
            description="Beginning of the story",
            prompt=(
                f"Illustrate this scene: {segments.beginning} | Make it feel like the start of a fairy tale: "
                f"introduce the main character(s) and setting clearly. | Style: {style} | "
                f"Composition: wide establishing shot, cinematic lighting, detailed storybook artwork. "
                f"{NO_TEXT_INSTRUCTION}"
            ),
        ),
        ScenePrompt(
            scene=SceneLabel.SCENE_2,
            description="Middle of the story",
            prompt=(
                f"Illustrate this scene: {segments.middle} | Focus on the main action or conflict: "
                f"show drama, movement, and emotions. | Style: {style} | "
                f"Composition: mid-shot or dynamic angle, detailed character expressions, "
                f"high-quality fairy tale illustration. {NO_TEXT_INSTRUCTION}"
            ),
        ),
        ScenePrompt(
            scene=SceneLabel.SCENE_3,
            description="End of the story",
            prompt=(
                f"Illustrate this scene: {segments.end} | Show the resolution or magical transformation: "
                f"make it feel satisfying and final. | Style: {style} | "
                f"Composition: full scene, warm and complete storybook atmosphere, polished illustration. "
                f"{NO_TEXT_INSTRUCTION}"
            ),
        ),
    ]


# ─────────────────────────────────────────────────────────────
# Analysis
# ─────────────────────────────────────────────────────────────

ANALYSIS_SYSTEM_PROMPT = """You are a compassionate dream analyst with expertise in psychology and symbolism. Analyze the provided dream and offer insights into its potential meanings, symbols, and emotional significance.

Guidelines:
- Provide a thoughtful, empathetic analysis (200-300 words)
- Identify key symbols and their possible meanings
- Discuss potential emotional themes or life situations it might reflect
- Offer constructive insights without being prescriptive
- Use accessible language, avoiding excessive jargon
- Be supportive and encouraging
- Remember this is for self-reflection, not clinical diagnosis"""


def build_analysis_user_prompt(dream_text: str) -> str:
    return f'Please analyze this dream: "{dream_text}"'
