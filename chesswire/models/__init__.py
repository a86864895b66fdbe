"""
Data models for the ChessWire content analysis pipeline.

This package contains Pydantic models for:
- content: analysis requests (content items, configuration)
- game: parsed and evaluated plies, game-state snapshots
- analysis: heatmaps, key moments, narration, snippets and results
"""

from chesswire.models.content import (
    AnalysisConfig,
    ContentItem,
    ContentType,
    TargetAudience,
    Tone,
    VoiceMode,
)
from chesswire.models.game import (
    EvaluatedPly,
    GamePhase,
    GameStateSnapshot,
    MoveQuality,
    ParsedGame,
    Ply,
    Side,
)
from chesswire.models.analysis import (
    AnalysisResponse,
    AnalysisResult,
    BatchEntry,
    BatchResponse,
    BatchResult,
    ComplexityTier,
    ContentMetadata,
    Emotion,
    ErrorEntry,
    HeatmapEntry,
    KeyMoment,
    NarrationTemplate,
    NarrativeAdaptation,
    Recommendation,
    RecommendationType,
    SocialSnippet,
)

__all__ = [
    # Content models
    "AnalysisConfig",
    "ContentItem",
    "ContentType",
    "TargetAudience",
    "Tone",
    "VoiceMode",
    # Game models
    "EvaluatedPly",
    "GamePhase",
    "GameStateSnapshot",
    "MoveQuality",
    "ParsedGame",
    "Ply",
    "Side",
    # Analysis models
    "AnalysisResponse",
    "AnalysisResult",
    "BatchEntry",
    "BatchResponse",
    "BatchResult",
    "ComplexityTier",
    "ContentMetadata",
    "Emotion",
    "ErrorEntry",
    "HeatmapEntry",
    "KeyMoment",
    "NarrationTemplate",
    "NarrativeAdaptation",
    "Recommendation",
    "RecommendationType",
    "SocialSnippet",
]
