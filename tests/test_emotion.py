"""
Tests for the emotion classifier.
"""

import pytest

from chesswire.analysis.emotion import (
    EmotionClassifier,
    dominant_emotion,
    game_phase,
    normalize_magnitudes,
    overall_intensity,
)
from chesswire.analysis.evaluation import EvaluationTracker
from chesswire.analysis.notation import parse
from chesswire.models.analysis import Emotion
from chesswire.models.game import GamePhase, GameStateSnapshot, MoveQuality
from chesswire.utils.exceptions import ClassificationError

from conftest import SCHOLARS_MATE, make_evaluated_ply, make_heatmap_entry


class TestGamePhase:
    """Test suite for phase detection."""

    @pytest.mark.parametrize(
        "move_number,piece_count,expected",
        [
            (5, 32, GamePhase.OPENING),
            (12, 21, GamePhase.OPENING),
            (12, 20, GamePhase.MIDDLEGAME),
            (13, 30, GamePhase.MIDDLEGAME),
            (25, 15, GamePhase.MIDDLEGAME),
            (30, 14, GamePhase.ENDGAME),
            (8, 12, GamePhase.ENDGAME),
        ],
    )
    def test_phases(self, move_number: int, piece_count: int, expected: GamePhase) -> None:
        """Test phase boundaries on move number and material."""
        assert game_phase(move_number, piece_count) == expected


class TestNormalizeMagnitudes:
    """Test suite for min-max normalization."""

    def test_min_max(self) -> None:
        """Test magnitudes are scaled between min and max."""
        assert normalize_magnitudes([0.5, -1.5, 1.0]) == [0.0, 1.0, 0.5]

    def test_all_equal_non_zero(self) -> None:
        """Test equal non-zero magnitudes all normalize to 1."""
        assert normalize_magnitudes([0.4, -0.4, 0.4]) == [1.0, 1.0, 1.0]

    def test_all_zero(self) -> None:
        """Test all-zero magnitudes normalize to 0."""
        assert normalize_magnitudes([0.0, 0.0]) == [0.0, 0.0]

    def test_empty(self) -> None:
        assert normalize_magnitudes([]) == []


class TestEmotionClassifier:
    """Test suite for EmotionClassifier."""

    @pytest.fixture
    def classifier(self) -> EmotionClassifier:
        return EmotionClassifier()

    def test_one_entry_per_ply(self, classifier: EmotionClassifier) -> None:
        """Test the heatmap mirrors the plies."""
        plies = [make_evaluated_ply(i, delta=0.1 * i) for i in range(1, 6)]
        heatmap = classifier.classify(plies)

        assert [e.ply_index for e in heatmap] == [1, 2, 3, 4, 5]
        assert heatmap[0].label == plies[0].label

    def test_empty_input(self, classifier: EmotionClassifier) -> None:
        assert classifier.classify([]) == []

    def test_intensities_in_unit_range_and_peak_is_one(self, classifier: EmotionClassifier) -> None:
        """Test every intensity is in [0, 1] and the largest swing gets 1.0."""
        deltas = [0.1, -0.3, 2.5, -4.0, 0.2, 1.1]
        qualities = [
            MoveQuality.GOOD,
            MoveQuality.INACCURACY,
            MoveQuality.BLUNDER,
            MoveQuality.BLUNDER,
            MoveQuality.FORCED,
            MoveQuality.MISTAKE,
        ]
        plies = [
            make_evaluated_ply(i, delta=d, quality=q, piece_count=8, clock_seconds=5.0)
            for i, (d, q) in enumerate(zip(deltas, qualities), 1)
        ]
        heatmap = classifier.classify(plies)

        assert all(0.0 <= e.intensity <= 1.0 for e in heatmap)
        assert heatmap[3].intensity == 1.0

    def test_intensity_formula(self, classifier: EmotionClassifier) -> None:
        """Test intensity = n + (1 - n) * bias for middlegame plies."""
        plies = [
            make_evaluated_ply(1, delta=0.1),
            make_evaluated_ply(2, delta=0.5),
            make_evaluated_ply(3, delta=-1.0),
        ]
        heatmap = classifier.classify(plies)

        assert heatmap[0].intensity == pytest.approx(0.05)
        assert heatmap[1].intensity == pytest.approx(0.472222)
        assert heatmap[2].intensity == 1.0
        assert heatmap[0].phase == GamePhase.MIDDLEGAME

    def test_bias_is_capped(self, classifier: EmotionClassifier) -> None:
        """Test stacked biases never exceed 0.6."""
        plies = [
            make_evaluated_ply(
                1,
                delta=0.0,
                quality=MoveQuality.BLUNDER,
                piece_count=6,
                clock_seconds=5.0,
            ),
            make_evaluated_ply(2, delta=3.0),
        ]
        heatmap = classifier.classify(plies)
        assert heatmap[0].intensity == pytest.approx(0.6)

    def test_all_zero_deltas_use_bias_only(self, classifier: EmotionClassifier) -> None:
        """Test a flat game scores only its bias."""
        plies = [make_evaluated_ply(i, delta=0.0) for i in range(1, 4)]
        heatmap = classifier.classify(plies)
        assert [e.intensity for e in heatmap] == [0.05, 0.05, 0.05]

    def test_unknown_clock_adds_no_time_bias(self, classifier: EmotionClassifier) -> None:
        """Test missing clock data never counts as time pressure."""
        with_clock = classifier.classify(
            [make_evaluated_ply(1, delta=0.0, clock_seconds=30.0)]
        )
        without_clock = classifier.classify([make_evaluated_ply(1, delta=0.0)])

        assert with_clock[0].intensity == pytest.approx(0.2)
        assert without_clock[0].intensity == pytest.approx(0.05)

    def test_deterministic(self, classifier: EmotionClassifier) -> None:
        """Test identical input gives identical intensities."""
        plies = EvaluationTracker().evaluate(parse(SCHOLARS_MATE))
        first = [e.intensity for e in classifier.classify(plies)]
        second = [e.intensity for e in classifier.classify(plies)]
        assert first == second

    def test_mismatched_snapshots(self, classifier: EmotionClassifier) -> None:
        """Test snapshots must line up with plies."""
        plies = [make_evaluated_ply(1, delta=0.1), make_evaluated_ply(2, delta=0.2)]
        with pytest.raises(ClassificationError):
            classifier.classify(plies, snapshots=[GameStateSnapshot()])

    def test_explicit_snapshots_drive_context(self, classifier: EmotionClassifier) -> None:
        """Test caller snapshots replace the ply-derived ones."""
        plies = [make_evaluated_ply(1, delta=0.0)]
        heatmap = classifier.classify(plies, snapshots=[GameStateSnapshot(time_left_seconds=20)])
        assert heatmap[0].emotion == Emotion.TENSE


class TestEmotionRules:
    """Test suite for emotion precedence."""

    @pytest.fixture
    def classifier(self) -> EmotionClassifier:
        return EmotionClassifier()

    def _classify_last(self, classifier: EmotionClassifier, ply, *, previous=None):
        # A large swing elsewhere keeps the tested ply below the dramatic threshold
        anchor = make_evaluated_ply(1, delta=10.0)
        plies = [anchor]
        if previous is not None:
            plies.append(previous)
        plies.append(ply)
        return classifier.classify(plies)[-1]

    def test_brilliant_beats_checkmate(self, classifier: EmotionClassifier) -> None:
        ply = make_evaluated_ply(3, delta=0.1, quality=MoveQuality.BRILLIANT, is_checkmate=True)
        assert self._classify_last(classifier, ply).emotion == Emotion.BRILLIANT

    def test_checkmate_is_triumphant(self, classifier: EmotionClassifier) -> None:
        ply = make_evaluated_ply(3, delta=0.1, is_checkmate=True, is_check=True)
        assert self._classify_last(classifier, ply).emotion == Emotion.TRIUMPHANT

    def test_blunder(self, classifier: EmotionClassifier) -> None:
        ply = make_evaluated_ply(3, delta=0.1, quality=MoveQuality.MISTAKE)
        assert self._classify_last(classifier, ply).emotion == Emotion.BLUNDER

    def test_blunder_recovery(self, classifier: EmotionClassifier) -> None:
        previous = make_evaluated_ply(2, delta=0.1, quality=MoveQuality.BLUNDER)
        ply = make_evaluated_ply(3, delta=0.1)
        entry = self._classify_last(classifier, ply, previous=previous)
        assert entry.emotion == Emotion.BLUNDER_RECOVERY

    def test_dramatic_swing(self, classifier: EmotionClassifier) -> None:
        plies = [make_evaluated_ply(1, delta=0.1), make_evaluated_ply(2, delta=3.0)]
        assert classifier.classify(plies)[1].emotion == Emotion.DRAMATIC

    def test_check_is_tense(self, classifier: EmotionClassifier) -> None:
        ply = make_evaluated_ply(3, delta=0.1, is_check=True)
        assert self._classify_last(classifier, ply).emotion == Emotion.TENSE

    def test_capture_is_tense(self, classifier: EmotionClassifier) -> None:
        ply = make_evaluated_ply(3, delta=0.1, is_capture=True)
        assert self._classify_last(classifier, ply).emotion == Emotion.TENSE

    def test_quiet_endgame_is_mysterious(self, classifier: EmotionClassifier) -> None:
        ply = make_evaluated_ply(3, delta=0.1, evaluation=0.4, piece_count=8)
        assert self._classify_last(classifier, ply).emotion == Emotion.MYSTERIOUS

    def test_decided_endgame_is_calm(self, classifier: EmotionClassifier) -> None:
        ply = make_evaluated_ply(3, delta=0.1, evaluation=4.0, piece_count=8)
        assert self._classify_last(classifier, ply).emotion == Emotion.CALM

    def test_scholars_mate_ends_triumphant(self, classifier: EmotionClassifier) -> None:
        """Test the mating move of a real game."""
        heatmap = classifier.classify(EvaluationTracker().evaluate(parse(SCHOLARS_MATE)))
        assert heatmap[-1].emotion == Emotion.TRIUMPHANT
        assert heatmap[-1].intensity == 1.0


class TestHeatmapSummaries:
    """Test suite for dominant emotion and overall intensity."""

    def test_dominant_is_intensity_weighted(self) -> None:
        """Test a single intense entry can outweigh several calm ones."""
        heatmap = [
            make_heatmap_entry(1, 0.1),
            make_heatmap_entry(2, 0.1),
            make_heatmap_entry(3, 0.9, Emotion.DRAMATIC),
        ]
        assert dominant_emotion(heatmap) == Emotion.DRAMATIC

    def test_dominant_tie_breaks_on_enum_order(self) -> None:
        """Test equal weight and count falls back to declaration order."""
        heatmap = [
            make_heatmap_entry(1, 0.5, Emotion.CALM),
            make_heatmap_entry(2, 0.5, Emotion.TENSE),
        ]
        assert dominant_emotion(heatmap) == Emotion.TENSE

    def test_overall_intensity(self) -> None:
        heatmap = [make_heatmap_entry(1, 0.2), make_heatmap_entry(2, 0.5)]
        assert overall_intensity(heatmap) == 0.35

    def test_empty_summaries(self) -> None:
        assert dominant_emotion([]) is None
        assert overall_intensity([]) is None
