"""
Analysis stages for the ChessWire content analysis pipeline.

This package contains:
- notation: move-notation parser
- evaluation: position evaluators and the evaluation tracker
- emotion: emotion classifier and heatmap summaries
- text_heuristics: keyword heuristics for prose and transcripts
- key_moments: key-moment extractor
- narrative: rule-based narration template selector
- snippets: social snippet generator
- content_metrics: quality score, recommendations and content metadata
"""

from chesswire.analysis.notation import parse, parse_game
from chesswire.analysis.evaluation import (
    EngineEvaluator,
    EvaluationTracker,
    MaterialMobilityEvaluator,
    PositionEvaluator,
    classify_loss,
    evaluator_from_settings,
)
from chesswire.analysis.emotion import (
    EmotionClassifier,
    dominant_emotion,
    game_phase,
    overall_intensity,
)
from chesswire.analysis.content_metrics import (
    ContentMetricsAnalyzer,
    engagement_prediction,
    sentiment_score,
)
from chesswire.analysis.snippets import SnippetGenerator, truncate_text
from chesswire.analysis.text_heuristics import TextEmotionAnalyzer
from chesswire.analysis.key_moments import KeyMomentExtractor
from chesswire.analysis.narrative import (
    NARRATION_RULES,
    RULESET_VERSION,
    TEMPLATE_CATALOG,
    NarrativeSelector,
)

__all__ = [
    "parse",
    "parse_game",
    "EngineEvaluator",
    "EvaluationTracker",
    "MaterialMobilityEvaluator",
    "PositionEvaluator",
    "classify_loss",
    "evaluator_from_settings",
    "EmotionClassifier",
    "dominant_emotion",
    "game_phase",
    "overall_intensity",
    "SnippetGenerator",
    "truncate_text",
    "TextEmotionAnalyzer",
    "KeyMomentExtractor",
    "NARRATION_RULES",
    "RULESET_VERSION",
    "TEMPLATE_CATALOG",
    "NarrativeSelector",
    "ContentMetricsAnalyzer",
    "engagement_prediction",
    "sentiment_score",
]
