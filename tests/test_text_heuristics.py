"""
Tests for the text emotion heuristics.
"""

import pytest

from chesswire.analysis.text_heuristics import TextEmotionAnalyzer
from chesswire.models.analysis import Emotion
from chesswire.models.content import ContentType


ARTICLE = (
    "The game started slowly. Both players developed their pieces. "
    "Nobody took any risks. Then came a stunning sacrifice on g7. "
    "It was an incredible idea. The crowd gasped. "
    "Sadly, a blunder on move 30 ended it."
)

VIDEO_TRANSCRIPT = (
    "[00:05] The position is quiet and solid. "
    "[01:10] Under time pressure, a sharp line appears. "
    "[02:30] Checkmate! A masterful victory."
)


@pytest.fixture
def analyzer() -> TextEmotionAnalyzer:
    return TextEmotionAnalyzer()


class TestArticleHeatmap:
    """Test suite for sentence-chunked articles."""

    def test_segments_of_three_sentences(self, analyzer: TextEmotionAnalyzer) -> None:
        """Test seven sentences make three segments."""
        heatmap = analyzer.build_heatmap(ARTICLE, ContentType.ARTICLE)
        assert [e.ply_index for e in heatmap] == [1, 2, 3]

    def test_emotions_and_intensities(self, analyzer: TextEmotionAnalyzer) -> None:
        """Test the family with most matches wins and intensities normalize."""
        heatmap = analyzer.build_heatmap(ARTICLE, ContentType.ARTICLE)

        assert heatmap[0].emotion == Emotion.CALM
        assert heatmap[0].intensity == 0.0
        assert heatmap[1].emotion == Emotion.DRAMATIC
        assert heatmap[1].intensity == 1.0
        assert heatmap[2].emotion == Emotion.BLUNDER
        assert 0.0 < heatmap[2].intensity < 1.0

    def test_label_is_first_trigger(self, analyzer: TextEmotionAnalyzer) -> None:
        heatmap = analyzer.build_heatmap(ARTICLE, ContentType.ARTICLE)
        assert heatmap[1].label == "stunning"

    def test_unmatched_segment_label_is_text(self, analyzer: TextEmotionAnalyzer) -> None:
        heatmap = analyzer.build_heatmap(ARTICLE, ContentType.ARTICLE)
        assert heatmap[0].label.startswith("The game started")
        assert len(heatmap[0].label) <= 40

    def test_context_is_excerpt(self, analyzer: TextEmotionAnalyzer) -> None:
        heatmap = analyzer.build_heatmap(ARTICLE, ContentType.ARTICLE)
        assert heatmap[2].context == "Sadly, a blunder on move 30 ended it."

    def test_case_insensitive(self, analyzer: TextEmotionAnalyzer) -> None:
        heatmap = analyzer.build_heatmap("A BLUNDER. Calm.", ContentType.ARTICLE)
        assert heatmap[0].emotion == Emotion.BLUNDER

    def test_blank_content(self, analyzer: TextEmotionAnalyzer) -> None:
        assert analyzer.build_heatmap("   \n ", ContentType.ARTICLE) == []

    def test_deterministic(self, analyzer: TextEmotionAnalyzer) -> None:
        first = analyzer.build_heatmap(ARTICLE, ContentType.ARTICLE)
        second = analyzer.build_heatmap(ARTICLE, ContentType.ARTICLE)
        assert first == second


class TestTranscriptHeatmap:
    """Test suite for timestamped transcripts."""

    @pytest.mark.parametrize("content_type", [ContentType.VIDEO, ContentType.AUDIO])
    def test_split_on_cues(self, analyzer: TextEmotionAnalyzer, content_type: ContentType) -> None:
        """Test one segment per timestamp cue."""
        heatmap = analyzer.build_heatmap(VIDEO_TRANSCRIPT, content_type)

        assert [e.emotion for e in heatmap] == [
            Emotion.CALM,
            Emotion.TENSE,
            Emotion.TRIUMPHANT,
        ]
        assert heatmap[0].intensity == 0.0
        assert heatmap[2].intensity == 1.0

    def test_context_carries_cue(self, analyzer: TextEmotionAnalyzer) -> None:
        heatmap = analyzer.build_heatmap(VIDEO_TRANSCRIPT, ContentType.VIDEO)
        assert heatmap[1].context.startswith("[01:10] Under time pressure")

    def test_preamble_is_own_segment(self, analyzer: TextEmotionAnalyzer) -> None:
        """Test text before the first cue is kept without a cue."""
        heatmap = analyzer.build_heatmap(
            "Welcome back to the channel. " + VIDEO_TRANSCRIPT,
            ContentType.VIDEO,
        )

        assert len(heatmap) == 4
        assert heatmap[0].context == "Welcome back to the channel."

    def test_transcript_without_cues_falls_back(self, analyzer: TextEmotionAnalyzer) -> None:
        heatmap = analyzer.build_heatmap(ARTICLE, ContentType.AUDIO)
        assert len(heatmap) == 3

    def test_articles_ignore_cues(self, analyzer: TextEmotionAnalyzer) -> None:
        """Test articles are always chunked by sentences."""
        segments = analyzer.segment(VIDEO_TRANSCRIPT, ContentType.ARTICLE)
        assert all(segment.cue is None for segment in segments)
