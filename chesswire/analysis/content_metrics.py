"""
Content-level metrics for analyzed items.

Scores the raw content on quality, suggests production choices (voice
mode, pacing, narrative style, social distribution), and extracts
descriptive metadata. Two emotional summaries, sentiment and predicted
engagement, are derived from the heatmap the emotion stage produced.

All scores are in [0, 1] and depend only on the content and heatmap, so
the same input always yields the same metrics.
"""

import logging
import re
from typing import Sequence

from chesswire.analysis.emotion import dominant_emotion, overall_intensity
from chesswire.models.analysis import (
    ComplexityTier,
    ContentMetadata,
    Emotion,
    HeatmapEntry,
    Recommendation,
    RecommendationType,
)
from chesswire.models.content import AnalysisConfig, ContentType, VoiceMode

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 150
MAX_KEY_PHRASES = 5
KEY_PHRASES_PER_PATTERN = 3

# Sentiment of each emotion on a 0 (negative) to 1 (positive) scale
EMOTION_SENTIMENT: dict[Emotion, float] = {
    Emotion.BRILLIANT: 0.8,
    Emotion.TRIUMPHANT: 0.9,
    Emotion.MYSTERIOUS: 0.7,
    Emotion.CALM: 0.5,
    Emotion.BLUNDER_RECOVERY: 0.5,
    Emotion.TENSE: 0.3,
    Emotion.DRAMATIC: 0.3,
    Emotion.BLUNDER: 0.1,
}

EMOTION_ENGAGEMENT: dict[Emotion, float] = {
    Emotion.BRILLIANT: 1.3,
    Emotion.TRIUMPHANT: 1.2,
    Emotion.TENSE: 1.4,
    Emotion.DRAMATIC: 1.4,
    Emotion.MYSTERIOUS: 1.1,
    Emotion.BLUNDER_RECOVERY: 1.0,
    Emotion.BLUNDER: 0.9,
    Emotion.CALM: 0.8,
}

TOPIC_PATTERNS: dict[str, str] = {
    "Opening Theory": r"opening|debut|theory|preparation",
    "Tactics": r"tactic|combination|fork|pin|skewer",
    "Strategy": r"strategy|plan|structure|weakness",
    "Endgame": r"endgame|ending|king and pawn",
    "Psychology": r"psychology|pressure|confidence|mental",
}

SENTENCE_SPLIT_REGEX = re.compile(r"[.!?]+")


def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def sentiment_score(heatmap: Sequence[HeatmapEntry]) -> float:
    """
    Intensity-weighted sentiment of the heatmap.

    Each entry contributes its emotion's sentiment scaled by its intensity;
    the result is the mean contribution, or 0.0 for an empty heatmap.
    """
    if not heatmap:
        return 0.0
    total = sum(EMOTION_SENTIMENT[entry.emotion] * entry.intensity for entry in heatmap)
    return round(total / len(heatmap), 4)


def engagement_prediction(heatmap: Sequence[HeatmapEntry]) -> float:
    """
    Predict audience engagement from the heatmap.

    Mean intensity scaled by how engaging the dominant emotion is, plus a
    bonus of 0.05 per non-calm entry (capped at 0.3) for emotional variety.
    """
    emotion = dominant_emotion(heatmap)
    if emotion is None:
        return 0.0
    intensity = overall_intensity(heatmap) or 0.0
    eventful = sum(1 for entry in heatmap if entry.emotion is not Emotion.CALM)
    variety_bonus = min(eventful * 0.05, 0.3)
    return round(min(intensity * 0.6 * EMOTION_ENGAGEMENT[emotion] + variety_bonus, 1.0), 4)


def _average_sentence_length(content: str) -> float:
    sentences = [s for s in SENTENCE_SPLIT_REGEX.split(content) if s.strip()]
    if not sentences:
        return 0.0
    return sum(len(s.split()) for s in sentences) / len(sentences)


class ContentMetricsAnalyzer:
    """
    Scores content quality and derives recommendations and metadata.

    Quality starts at 0.5 and adds:
    - Length (up to 0.2): 100-2000 words scores best
    - Chess vocabulary (up to 0.15 per family): strategy, phase and tactic terms
    - Notation quality (up to 0.3): moves, glyphs and comments present
    - Readability (0.1): average sentence length of 10-25 words
    """

    def __init__(self) -> None:
        self._complexity_indicators = [
            _compile(r"strategy|tactic|position|evaluation"),
            _compile(r"opening|middlegame|endgame"),
            _compile(r"sacrifice|combination|pattern"),
        ]
        self._notation_move = re.compile(r"\d+\.\s*[KQRBN]?[a-h]?[1-8]?x?[a-h][1-8]")
        self._notation_glyph = re.compile(r"[!?]+")
        self._notation_comment = re.compile(r"\{[^}]+\}")

        # Voice cues
        self._tension = _compile(r"critical|pressure|decisive|sharp|dangerous")
        self._wonder = _compile(r"beautiful|elegant|artistic|poetic|magical")

        self._viral_indicators = [
            _compile(r"shocking|unbelievable|incredible|never seen"),
            _compile(r"genius|brilliant|masterpiece|legendary"),
            _compile(r"blunder|mistake|disaster|collapse"),
        ]
        self._viral_triggers = _compile(r"shocking|unbelievable|never seen|incredible|genius|disaster")
        self._viral_emotion_words = _compile(r"amazing|brilliant|terrible|stunning|magnificent")

        self._tactical = _compile(r"sacrifice|combination|tactic")
        self._endgame = _compile(r"endgame|king and pawn|rook endgame")

        self._technical_terms = _compile(r"zugzwang|zwischenzug|fianchetto|en passant|castling")
        self._advanced_concepts = _compile(r"pawn structure|weak squares|piece coordination|initiative")

        self._topics = {topic: _compile(pattern) for topic, pattern in TOPIC_PATTERNS.items()}
        self._key_phrases = [
            _compile(r"(?:brilliant|genius|masterful|stunning)\s+(?:move|sacrifice|combination)"),
            _compile(r"(?:critical|decisive|turning)\s+(?:moment|point|move)"),
            _compile(r"(?:blunder|mistake|error)\s+(?:that|which|leading)"),
        ]

    def quality_score(self, content: str, content_type: ContentType) -> float:
        """
        Score how well-suited the content is for narration.

        Args:
            content: Raw content
            content_type: Kind of content

        Returns:
            Quality in [0, 1]
        """
        score = 0.5

        word_count = len(content.split())
        if 100 <= word_count <= 2000:
            score += 0.2
        elif word_count > 50:
            score += 0.1

        for pattern in self._complexity_indicators:
            matches = len(pattern.findall(content))
            score += min(matches * 0.05, 0.15)

        if content_type.is_notation:
            score += self._notation_quality(content) * 0.3

        if 10 <= _average_sentence_length(content) <= 25:
            score += 0.1

        score = round(min(max(score, 0.0), 1.0), 4)
        logger.debug("Quality score %.2f for %d words of %s", score, word_count, content_type.value)
        return score

    def _notation_quality(self, content: str) -> float:
        quality = 0.5
        if self._notation_move.search(content):
            quality += 0.2
        if self._notation_glyph.search(content):
            quality += 0.15
        if self._notation_comment.search(content):
            quality += 0.15
        return min(quality, 1.0)

    def recommendations(
        self,
        content: str,
        content_type: ContentType,
        config: AnalysisConfig,
    ) -> list[Recommendation]:
        """
        Suggest production choices for the content.

        Voice and pacing suggestions need config.voice_analysis, distribution
        suggestions need config.social_optimization; style suggestions for
        notation and articles are always considered.

        Returns:
            Recommendations ordered by confidence, highest first
        """
        found: list[Recommendation] = []
        if config.voice_analysis:
            found.extend(self._voice_recommendations(content))
        if config.social_optimization:
            found.extend(self._social_recommendations(content, content_type))

        if content_type.is_notation:
            found.extend(self._notation_recommendations(content))
        elif content_type is ContentType.ARTICLE:
            found.extend(self._article_recommendations(content))

        # Stable sort keeps discovery order among equal confidences
        return sorted(found, key=lambda rec: -rec.confidence)

    def _voice_recommendations(self, content: str) -> list[Recommendation]:
        found = []
        tension = min(len(self._tension.findall(content)) * 0.2, 1.0)
        wonder = min(len(self._wonder.findall(content)) * 0.2, 1.0)

        if tension > 0.6:
            found.append(Recommendation(
                type=RecommendationType.VOICE_MODE,
                suggestion="Use the dramatic voice for high-tension moments",
                confidence=0.85,
                reasoning="High tension in the content calls for dramatic delivery",
                voice_mode=VoiceMode.DRAMATIC,
            ))
        if wonder > 0.5:
            found.append(Recommendation(
                type=RecommendationType.VOICE_MODE,
                suggestion="Use the poetic voice for beautiful positions",
                confidence=0.8,
                reasoning="Aesthetic language benefits from poetic narration",
                voice_mode=VoiceMode.POETIC,
            ))
        if len(content.split()) > 500:
            found.append(Recommendation(
                type=RecommendationType.PACING,
                suggestion="Add pauses every 100-150 words",
                confidence=0.75,
                reasoning="Long content needs pacing breaks to stay easy to follow",
            ))
        return found

    def _social_recommendations(
        self,
        content: str,
        content_type: ContentType,
    ) -> list[Recommendation]:
        found = []
        viral_hits = sum(len(pattern.findall(content)) for pattern in self._viral_indicators)
        if viral_hits > 3:
            found.append(Recommendation(
                type=RecommendationType.SOCIAL_OPTIMIZATION,
                suggestion="High viral potential, prioritize for social distribution",
                confidence=0.9,
                reasoning=f"{viral_hits} viral trigger words detected",
            ))
        if content_type.is_notation and len(content) < 1000:
            found.append(Recommendation(
                type=RecommendationType.SOCIAL_OPTIMIZATION,
                suggestion="Fits short vertical video formats",
                confidence=0.8,
                reasoning="Short games perform well on vertical video platforms",
            ))
        return found

    def _notation_recommendations(self, content: str) -> list[Recommendation]:
        found = []
        if self._tactical.search(content):
            found.append(Recommendation(
                type=RecommendationType.NARRATIVE_STYLE,
                suggestion="Emphasize tactical brilliance with dramatic pauses",
                confidence=0.85,
                reasoning="Tactical content benefits from suspenseful narration",
            ))
        if self._endgame.search(content):
            found.append(Recommendation(
                type=RecommendationType.VOICE_MODE,
                suggestion="Use the philosophical voice for endgame analysis",
                confidence=0.8,
                reasoning="Endgame content suits a contemplative, educational tone",
                voice_mode=VoiceMode.PHILOSOPHICAL,
            ))
        return found

    def _article_recommendations(self, content: str) -> list[Recommendation]:
        if _average_sentence_length(content) <= 30:
            return []
        return [Recommendation(
            type=RecommendationType.NARRATIVE_STYLE,
            suggestion="Break up long sentences for better voice flow",
            confidence=0.75,
            reasoning="Long sentences are hard to narrate naturally",
        )]

    def metadata(self, content: str, content_type: ContentType) -> ContentMetadata:
        """
        Describe the content: size, narration length, complexity and topics.

        Args:
            content: Raw content
            content_type: Kind of content

        Returns:
            ContentMetadata for the content
        """
        word_count = len(content.split())
        return ContentMetadata(
            word_count=word_count,
            duration_seconds=round(word_count / WORDS_PER_MINUTE * 60),
            complexity=self._complexity_tier(content),
            topics=[topic for topic, pattern in self._topics.items() if pattern.search(content)],
            key_phrases=self._extract_key_phrases(content),
            viral_potential=self._viral_potential(content, content_type),
        )

    def _complexity_tier(self, content: str) -> ComplexityTier:
        score = len(self._technical_terms.findall(content)) * 0.1
        score += len(self._advanced_concepts.findall(content)) * 0.15
        score = min(score, 1.0)

        if score < 0.3:
            return ComplexityTier.BEGINNER
        if score < 0.6:
            return ComplexityTier.INTERMEDIATE
        if score < 0.8:
            return ComplexityTier.ADVANCED
        return ComplexityTier.EXPERT

    def _extract_key_phrases(self, content: str) -> list[str]:
        phrases: list[str] = []
        for pattern in self._key_phrases:
            matches = [m.group(0) for m in pattern.finditer(content)]
            phrases.extend(matches[:KEY_PHRASES_PER_PATTERN])
        return phrases[:MAX_KEY_PHRASES]

    def _viral_potential(self, content: str, content_type: ContentType) -> float:
        potential = 0.3
        potential += len(self._viral_triggers.findall(content)) * 0.1
        potential += len(self._viral_emotion_words.findall(content)) * 0.05
        if content_type.is_notation and len(content) < 500:
            potential += 0.2
        return round(min(potential, 1.0), 4)
