"""
Data models for analysis results.

These models represent the output of the content analysis pipeline:
the emotional heatmap, key moments, narration, social snippets and the
per-item and per-batch result envelopes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from chesswire.models.content import ContentType, Tone, VoiceMode
from chesswire.models.game import GamePhase, MoveQuality

_RESULT_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class Emotion(str, Enum):
    """Emotional categories a ply or text segment can carry."""

    TENSE = "tense"
    BRILLIANT = "brilliant"
    BLUNDER = "blunder"
    BLUNDER_RECOVERY = "blunder-recovery"
    CALM = "calm"
    DRAMATIC = "dramatic"
    MYSTERIOUS = "mysterious"
    TRIUMPHANT = "triumphant"


class HeatmapEntry(BaseModel):
    """
    Emotion and intensity for one ply (or one text segment).
    """

    model_config = _RESULT_CONFIG

    ply_index: int = Field(ge=1, description="Ply (or segment) this entry describes")
    emotion: Emotion
    intensity: float = Field(ge=0.0, le=1.0, description="Normalized intensity")
    label: str = Field(description="Move label or the text trigger")
    move_quality: Optional[MoveQuality] = None
    evaluation: Optional[float] = None
    phase: Optional[GamePhase] = None
    context: Optional[str] = Field(
        default=None,
        description="Annotation text or surrounding excerpt for quoting",
    )


class KeyMoment(BaseModel):
    """
    A heatmap entry selected as narratively significant.
    """

    model_config = _RESULT_CONFIG

    ply_index: int = Field(ge=1)
    emotion: Emotion
    intensity: float = Field(ge=0.0, le=1.0)
    rationale: str = Field(description="Why this moment was selected")
    label: str
    move_quality: Optional[MoveQuality] = None
    evaluation: Optional[float] = None
    context: Optional[str] = None


class NarrationTemplate(BaseModel):
    """
    A reusable narration skeleton tagged with a voice mode and tone.

    Text carries inline markers: *emphasis*, ~soft emphasis~, _whisper_
    and <break time='NNNms'/> pauses.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    text: str
    voice_mode: VoiceMode
    tone: Tone


class NarrativeAdaptation(BaseModel):
    """Narration text chosen for one decision point."""

    model_config = _RESULT_CONFIG

    ply_index: Optional[int] = Field(
        default=None,
        description="Ply the narration belongs to; None for whole-content narration",
    )
    rule: str = Field(description="Name of the selection rule that matched")
    template_name: str
    text: str
    voice_mode: VoiceMode
    tone: Tone


class SocialSnippet(BaseModel):
    """A short captioned excerpt derived from a key moment."""

    model_config = _RESULT_CONFIG

    source_ply_index: int = Field(ge=1)
    excerpt_text: str
    suggested_hashtags: list[str] = Field(default_factory=list)
    char_budget: int = Field(ge=1, description="Maximum characters for the post")

    @computed_field
    @property
    def post_text(self) -> str:
        """Excerpt followed by as many hashtags as fit the budget, in order."""
        text = self.excerpt_text
        for tag in self.suggested_hashtags:
            candidate = f"{text} {tag}"
            if len(candidate) > self.char_budget:
                break
            text = candidate
        return text


class ComplexityTier(str, Enum):
    """How much chess background the content assumes."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class RecommendationType(str, Enum):
    """Aspect of production a recommendation is about."""

    VOICE_MODE = "voice_mode"
    NARRATIVE_STYLE = "narrative_style"
    PACING = "pacing"
    SOCIAL_OPTIMIZATION = "social_optimization"


class Recommendation(BaseModel):
    """A production suggestion with the evidence behind it."""

    model_config = _RESULT_CONFIG

    type: RecommendationType
    suggestion: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str
    voice_mode: Optional[VoiceMode] = Field(
        default=None,
        description="Voice mode the suggestion refers to, for voice_mode recommendations",
    )


class ContentMetadata(BaseModel):
    """Descriptive statistics of the raw content."""

    model_config = _RESULT_CONFIG

    word_count: int = Field(ge=0)
    duration_seconds: int = Field(ge=0, description="Narration length at 150 words per minute")
    complexity: ComplexityTier
    topics: list[str] = Field(default_factory=list)
    key_phrases: list[str] = Field(
        default_factory=list,
        description="Phrases that flag notable moments, at most five",
    )
    viral_potential: float = Field(ge=0.0, le=1.0)


class AnalysisResult(BaseModel):
    """
    Complete analysis of one content item.

    Stages that were disabled, or could not run because an upstream stage
    was disabled, leave their field as None.
    """

    model_config = _RESULT_CONFIG

    content_type: ContentType
    heatmap: Optional[list[HeatmapEntry]] = None
    key_moments: Optional[list[KeyMoment]] = None
    narrative_adaptations: Optional[list[NarrativeAdaptation]] = None
    social_snippets: Optional[list[SocialSnippet]] = None
    dominant_emotion: Optional[Emotion] = None
    overall_intensity: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    game_phase: Optional[GamePhase] = Field(
        default=None,
        description="Phase reached by the final ply (notation only)",
    )
    ply_count: Optional[int] = Field(
        default=None,
        ge=0,
        description="Number of plies (notation) or segments (text)",
    )
    sentiment_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    engagement_prediction: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    quality_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    recommendations: Optional[list[Recommendation]] = None
    metadata: Optional[ContentMetadata] = None
    processing_time_ms: int = Field(default=0, ge=0)


class ErrorEntry(BaseModel):
    """Serializable description of a failed item."""

    model_config = _RESULT_CONFIG

    error_type: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: Exception) -> "ErrorEntry":
        """Build an entry from any exception, keeping ChessWire error details."""
        to_dict = getattr(exc, "to_dict", None)
        if callable(to_dict):
            data = to_dict()
            return cls(
                error_type=data["error_type"],
                message=data["message"],
                details=data.get("details") or {},
            )
        return cls(error_type=type(exc).__name__, message=str(exc))


class BatchEntry(BaseModel):
    """Outcome of one item in a batch: a result or an error, never both."""

    model_config = _RESULT_CONFIG

    index: int = Field(ge=0, description="Position of the item in the request")
    result: Optional[AnalysisResult] = None
    error: Optional[ErrorEntry] = None

    @model_validator(mode="after")
    def check_exclusive(self) -> "BatchEntry":
        """Exactly one of result and error must be set."""
        if (self.result is None) == (self.error is None):
            raise ValueError("batch entry needs exactly one of result or error")
        return self

    @property
    def ok(self) -> bool:
        """Check if the item was analyzed successfully."""
        return self.result is not None


class BatchResult(BaseModel):
    """Per-item outcomes of a batch, in request order."""

    model_config = _RESULT_CONFIG

    entries: list[BatchEntry] = Field(default_factory=list)

    @computed_field
    @property
    def succeeded(self) -> int:
        """Number of items analyzed successfully."""
        return sum(1 for entry in self.entries if entry.ok)

    @computed_field
    @property
    def failed(self) -> int:
        """Number of items that failed."""
        return len(self.entries) - self.succeeded

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> BatchEntry:
        return self.entries[index]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisResponse(BaseModel):
    """Wire response for a single analysis."""

    model_config = _RESULT_CONFIG

    success: bool
    result: Optional[AnalysisResult] = None
    processing_time_ms: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=_utc_now)


class BatchResponse(BaseModel):
    """Wire response for a batch analysis."""

    model_config = _RESULT_CONFIG

    success: bool
    results: list[BatchEntry] = Field(default_factory=list)
    total_processed: int = Field(ge=0, description="Items analyzed successfully")
    total_failed: int = Field(ge=0, description="Items reported with an error")
    processing_time: int = Field(ge=0, description="Wall time for the batch in ms")
    timestamp: datetime = Field(default_factory=_utc_now)
