"""
Key-moment extraction from an emotional heatmap.
"""

import logging
from typing import Sequence

from chesswire.models.analysis import Emotion, HeatmapEntry, KeyMoment
from chesswire.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_MAX_MOMENTS = 8
DEFAULT_MIN_GAP = 3

RATIONALE_LEADS: dict[Emotion, str] = {
    Emotion.BRILLIANT: "Brilliant resource",
    Emotion.TRIUMPHANT: "Game-ending blow",
    Emotion.BLUNDER: "Decisive error",
    Emotion.BLUNDER_RECOVERY: "Punishing an error",
    Emotion.DRAMATIC: "Major evaluation swing",
    Emotion.TENSE: "Peak of tension",
    Emotion.MYSTERIOUS: "Quiet turning point",
    Emotion.CALM: "Calm before the storm",
}


class KeyMomentExtractor:
    """
    Selects the most intense, well-spaced entries of a heatmap.

    Candidates are taken greedily by intensity (ties to the earlier ply),
    skipping any within min_gap - 1 plies of one already taken. Short
    heatmaps that cannot fill the quota at the requested spacing are
    retried with a tighter gap.
    """

    def extract(
        self,
        heatmap: Sequence[HeatmapEntry],
        max_moments: int = DEFAULT_MAX_MOMENTS,
        min_gap: int = DEFAULT_MIN_GAP,
    ) -> list[KeyMoment]:
        """
        Extract key moments.

        Args:
            heatmap: Heatmap entries in ply order
            max_moments: Upper bound on moments returned
            min_gap: Minimum ply distance between two moments

        Returns:
            Key moments in ply order

        Raises:
            ValidationError: If max_moments < 1 or min_gap < 0
        """
        if max_moments < 1:
            raise ValidationError(
                "max_moments must be at least 1",
                field="max_moments",
                value=max_moments,
            )
        if min_gap < 0:
            raise ValidationError(
                "min_gap cannot be negative",
                field="min_gap",
                value=min_gap,
            )
        if not heatmap:
            return []

        ranked = sorted(heatmap, key=lambda e: (-e.intensity, e.ply_index))
        target = min(len(heatmap), max_moments)

        gap = min_gap
        selected = self._select(ranked, target, gap)
        while (
            len(selected) < target
            and len(heatmap) < min_gap * max_moments
            and gap > 1
        ):
            gap -= 1
            logger.debug("Relaxing key-moment gap to %d (have %d/%d)", gap, len(selected), target)
            selected = self._select(ranked, target, gap)

        ranks = {entry.ply_index: rank for rank, entry in enumerate(selected, 1)}
        moments = [
            self._to_moment(entry, ranks[entry.ply_index], len(selected))
            for entry in sorted(selected, key=lambda e: e.ply_index)
        ]
        logger.debug("Extracted %d key moments from %d entries", len(moments), len(heatmap))
        return moments

    @staticmethod
    def _select(
        ranked: Sequence[HeatmapEntry],
        target: int,
        gap: int,
    ) -> list[HeatmapEntry]:
        """Greedy pass in rank order; keeps selection order = rank order."""
        selected: list[HeatmapEntry] = []
        for entry in ranked:
            if len(selected) >= target:
                break
            if all(abs(entry.ply_index - s.ply_index) >= gap for s in selected):
                selected.append(entry)
        return selected

    @staticmethod
    def _to_moment(entry: HeatmapEntry, rank: int, total: int) -> KeyMoment:
        lead = RATIONALE_LEADS[entry.emotion]
        parts = [f"{lead} at {entry.label}"]
        if entry.move_quality is not None and entry.evaluation is not None:
            parts.append(
                f"{entry.move_quality.value} move leaving the evaluation at {entry.evaluation:+.2f}"
            )
        parts.append(f"intensity {entry.intensity:.2f}, rank {rank} of {total}")

        return KeyMoment(
            ply_index=entry.ply_index,
            emotion=entry.emotion,
            intensity=entry.intensity,
            rationale="; ".join(parts),
            label=entry.label,
            move_quality=entry.move_quality,
            evaluation=entry.evaluation,
            context=entry.context,
        )
