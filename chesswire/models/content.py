"""
Data models for analysis requests.

These models represent what a caller hands to the pipeline: the content
items themselves and the per-request analysis configuration.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Content type names accepted on input besides the canonical values.
CONTENT_TYPE_ALIASES: dict[str, str] = {
    "pgn": "notation",
    "voice": "audio",
}


class ContentType(str, Enum):
    """Kinds of content the pipeline can analyze."""

    NOTATION = "notation"
    ARTICLE = "article"
    VIDEO = "video"
    AUDIO = "audio"

    @classmethod
    def normalize(cls, value: Any) -> Any:
        """Map accepted aliases ('pgn', 'voice') and casing onto canonical values."""
        if isinstance(value, str):
            lowered = value.strip().lower()
            return CONTENT_TYPE_ALIASES.get(lowered, lowered)
        return value

    @property
    def is_notation(self) -> bool:
        """Check if this content is a move-notation game."""
        return self is ContentType.NOTATION


class VoiceMode(str, Enum):
    """Narration voice modes understood by the voice rendering service."""

    CALM = "calm"
    EXPRESSIVE = "expressive"
    DRAMATIC = "dramatic"
    POETIC = "poetic"
    PHILOSOPHICAL = "philosophical"
    ENTHUSIASTIC = "enthusiastic"
    ENCOURAGING = "encouraging"
    WHISPER = "whisper"


class Tone(str, Enum):
    """Emotional tone attached to a narration template."""

    DRAMATIC = "dramatic"
    THOUGHTFUL = "thoughtful"
    ENERGETIC = "energetic"
    CALM = "calm"
    MYSTERIOUS = "mysterious"
    INSPIRING = "inspiring"
    WHISPER = "whisper"


class TargetAudience(str, Enum):
    """Audience that narration and snippets are written for."""

    CASUAL = "casual"
    COMPETITIVE = "competitive"
    EDUCATIONAL = "educational"


class ContentItem(BaseModel):
    """
    A single piece of content submitted for analysis.

    Size and emptiness limits are enforced by the pipeline, so that a
    violation is always reported the same way regardless of entry point.
    """

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Raw content: notation, article text or transcript")
    type: ContentType = Field(description="Kind of content")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        """Accept aliases such as 'pgn' for notation."""
        return ContentType.normalize(v)

    @property
    def byte_length(self) -> int:
        """UTF-8 size of the content."""
        return len(self.content.encode("utf-8"))


class AnalysisConfig(BaseModel):
    """
    Per-request analysis configuration.

    Field names are snake_case in Python and camelCase on the wire
    (``includeEmotionalAnalysis``); both spellings are accepted.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    include_emotional_analysis: bool = Field(
        default=True,
        description="Run the emotion classifier and produce a heatmap",
    )
    generate_narrative_adaptations: bool = Field(
        default=True,
        description="Select narration templates for decision points",
    )
    extract_key_moments: bool = Field(
        default=True,
        description="Select key moments from the heatmap",
    )
    generate_social_snippets: bool = Field(
        default=True,
        description="Derive social excerpts from key moments",
    )
    include_quality_scoring: bool = Field(
        default=True,
        description="Score content quality and extract content metadata",
    )
    include_recommendations: bool = Field(
        default=True,
        description="Suggest voice, pacing, style and distribution choices",
    )
    voice_analysis: bool = Field(
        default=True,
        description="Include voice-mode and pacing recommendations",
    )
    social_optimization: bool = Field(
        default=True,
        description="Include social distribution recommendations",
    )
    voice_mode: VoiceMode = Field(
        default=VoiceMode.DRAMATIC,
        description="Narration voice mode when no rule overrides it",
    )
    target_audience: TargetAudience = Field(
        default=TargetAudience.COMPETITIVE,
        description="Tunes narration verbosity and snippet wording",
    )
    max_key_moments: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Maximum number of key moments",
    )
    min_moment_gap: int = Field(
        default=3,
        ge=0,
        description="Minimum ply distance between key moments",
    )
    snippet_char_budget: int = Field(
        default=280,
        ge=20,
        le=2000,
        description="Maximum characters per social snippet",
    )

    @field_validator("voice_mode", "target_audience", mode="before")
    @classmethod
    def lowercase_enum(cls, v: Any) -> Any:
        """Enum values are matched case-insensitively."""
        return v.strip().lower() if isinstance(v, str) else v
