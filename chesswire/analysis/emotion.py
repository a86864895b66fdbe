"""
Emotion classifier for evaluated games.

Turns evaluation swings into a per-ply emotional heatmap. Intensity is the
ply's normalized swing, lifted toward 1.0 by a bias for move quality, game
phase and clock or material context.
"""

import logging
import math
from collections import defaultdict
from typing import Optional, Sequence

from chesswire.models.analysis import Emotion, HeatmapEntry
from chesswire.models.game import EvaluatedPly, GamePhase, GameStateSnapshot, MoveQuality
from chesswire.utils.exceptions import ClassificationError

logger = logging.getLogger(__name__)

QUALITY_BIAS: dict[MoveQuality, float] = {
    MoveQuality.BLUNDER: 0.35,
    MoveQuality.BRILLIANT: 0.35,
    MoveQuality.MISTAKE: 0.2,
    MoveQuality.INACCURACY: 0.1,
    MoveQuality.FORCED: 0.05,
}

PHASE_BIAS: dict[GamePhase, float] = {
    GamePhase.MIDDLEGAME: 0.05,
    GamePhase.ENDGAME: 0.1,
}

MAX_BIAS = 0.6
DRAMATIC_THRESHOLD = 0.6

TIME_PRESSURE_SECONDS = 60
SEVERE_TIME_PRESSURE_SECONDS = 10
TIME_PRESSURE_BIAS = 0.15
SEVERE_TIME_PRESSURE_BIAS = 0.25
LOW_MATERIAL_PIECES = 10
LOW_MATERIAL_BIAS = 0.05

OPENING_MAX_MOVE = 12
OPENING_MIN_PIECES = 20
ENDGAME_MAX_PIECES = 14
QUIET_ENDGAME_EVAL = 1.0


def game_phase(move_number: int, piece_count: int) -> GamePhase:
    """Phase of the game from move number and material on the board."""
    if piece_count <= ENDGAME_MAX_PIECES:
        return GamePhase.ENDGAME
    if move_number <= OPENING_MAX_MOVE and piece_count > OPENING_MIN_PIECES:
        return GamePhase.OPENING
    return GamePhase.MIDDLEGAME


def normalize_magnitudes(values: Sequence[float]) -> list[float]:
    """
    Min-max normalize absolute values into [0, 1].

    All-equal non-zero magnitudes normalize to 1.0; all-zero to 0.0.
    """
    magnitudes = [abs(v) for v in values]
    if not magnitudes:
        return []
    low, high = min(magnitudes), max(magnitudes)
    if high == low:
        fill = 1.0 if high > 0 else 0.0
        return [fill] * len(magnitudes)
    span = high - low
    return [(m - low) / span for m in magnitudes]


def in_time_pressure(snapshot: Optional[GameStateSnapshot]) -> bool:
    """Unknown clock time never counts as time pressure."""
    return (
        snapshot is not None
        and snapshot.time_left_seconds is not None
        and snapshot.time_left_seconds < TIME_PRESSURE_SECONDS
    )


class EmotionClassifier:
    """
    Builds the emotional heatmap for an evaluated game.

    Pure: the same plies and snapshots always produce identical entries.
    """

    def classify(
        self,
        evaluated_plies: Sequence[EvaluatedPly],
        snapshots: Optional[Sequence[GameStateSnapshot]] = None,
    ) -> list[HeatmapEntry]:
        """
        Classify every ply.

        Args:
            evaluated_plies: Output of the evaluation tracker
            snapshots: Optional per-ply game-state snapshots; derived from
                       the plies when omitted

        Returns:
            One HeatmapEntry per ply, in ply order

        Raises:
            ClassificationError: On mismatched snapshots or non-finite deltas
        """
        if not evaluated_plies:
            return []

        if snapshots is None:
            snapshots = [GameStateSnapshot.from_ply(ply) for ply in evaluated_plies]
        elif len(snapshots) != len(evaluated_plies):
            raise ClassificationError(
                f"Got {len(snapshots)} snapshots for {len(evaluated_plies)} plies",
                stage="emotion",
            )

        for ply in evaluated_plies:
            if not math.isfinite(ply.evaluation_delta):
                raise ClassificationError(
                    "Non-finite evaluation delta",
                    stage="emotion",
                    ply_index=ply.index,
                )

        normalized = normalize_magnitudes([p.evaluation_delta for p in evaluated_plies])

        heatmap: list[HeatmapEntry] = []
        previous_quality: Optional[MoveQuality] = None
        for ply, snapshot, n in zip(evaluated_plies, snapshots, normalized):
            phase = game_phase(ply.move_number, ply.piece_count)
            bias = self._bias(ply.move_quality, phase, snapshot)
            intensity = round(n + (1 - n) * bias, 6)
            emotion = self._emotion(ply, n, phase, snapshot, previous_quality)

            heatmap.append(
                HeatmapEntry(
                    ply_index=ply.index,
                    emotion=emotion,
                    intensity=intensity,
                    label=ply.label,
                    move_quality=ply.move_quality,
                    evaluation=ply.evaluation,
                    phase=phase,
                    context=ply.annotation_text,
                )
            )
            previous_quality = ply.move_quality

        logger.debug("Classified %d plies", len(heatmap))
        return heatmap

    @staticmethod
    def _bias(
        quality: MoveQuality,
        phase: GamePhase,
        snapshot: GameStateSnapshot,
    ) -> float:
        bias = QUALITY_BIAS.get(quality, 0.0) + PHASE_BIAS.get(phase, 0.0)

        time_left = snapshot.time_left_seconds
        if time_left is not None:
            if time_left < SEVERE_TIME_PRESSURE_SECONDS:
                bias += SEVERE_TIME_PRESSURE_BIAS
            elif time_left < TIME_PRESSURE_SECONDS:
                bias += TIME_PRESSURE_BIAS
        if snapshot.piece_count < LOW_MATERIAL_PIECES:
            bias += LOW_MATERIAL_BIAS

        return min(bias, MAX_BIAS)

    @staticmethod
    def _emotion(
        ply: EvaluatedPly,
        normalized: float,
        phase: GamePhase,
        snapshot: GameStateSnapshot,
        previous_quality: Optional[MoveQuality],
    ) -> Emotion:
        """First matching rule wins."""
        if ply.move_quality is MoveQuality.BRILLIANT:
            return Emotion.BRILLIANT
        if ply.is_checkmate:
            return Emotion.TRIUMPHANT
        if ply.move_quality.is_error:
            return Emotion.BLUNDER
        if previous_quality is not None and previous_quality.is_error:
            return Emotion.BLUNDER_RECOVERY
        if normalized >= DRAMATIC_THRESHOLD:
            return Emotion.DRAMATIC
        if in_time_pressure(snapshot) or ply.is_check or ply.is_capture:
            return Emotion.TENSE
        if phase is GamePhase.ENDGAME and abs(ply.evaluation) < QUIET_ENDGAME_EVAL:
            return Emotion.MYSTERIOUS
        return Emotion.CALM


def dominant_emotion(heatmap: Sequence[HeatmapEntry]) -> Optional[Emotion]:
    """
    Emotion carrying the most total intensity.

    Ties go to the more frequent emotion, then to enum declaration order.
    """
    if not heatmap:
        return None

    weights: dict[Emotion, float] = defaultdict(float)
    counts: dict[Emotion, int] = defaultdict(int)
    for entry in heatmap:
        weights[entry.emotion] += entry.intensity
        counts[entry.emotion] += 1

    order = {emotion: i for i, emotion in enumerate(Emotion)}
    return max(
        weights,
        key=lambda e: (round(weights[e], 6), counts[e], -order[e]),
    )


def overall_intensity(heatmap: Sequence[HeatmapEntry]) -> Optional[float]:
    """Mean intensity over the heatmap, two decimals."""
    if not heatmap:
        return None
    return round(sum(entry.intensity for entry in heatmap) / len(heatmap), 2)
