"""
Social snippet generation from key moments.
"""

import logging
from typing import Optional, Sequence

from chesswire.models.analysis import Emotion, KeyMoment, SocialSnippet
from chesswire.models.content import TargetAudience

logger = logging.getLogger(__name__)

ELLIPSIS = "…"
DEFAULT_CHAR_BUDGET = 280

EMOTION_HEADLINES: dict[Emotion, str] = {
    Emotion.BRILLIANT: "A brilliant stroke",
    Emotion.TRIUMPHANT: "The decisive finish",
    Emotion.BLUNDER: "A costly slip",
    Emotion.BLUNDER_RECOVERY: "The punishment arrives",
    Emotion.DRAMATIC: "The game turns",
    Emotion.TENSE: "Nerves on edge",
    Emotion.MYSTERIOUS: "A quiet mystery",
    Emotion.CALM: "A calm interlude",
}

AUDIENCE_HASHTAGS: dict[TargetAudience, str] = {
    TargetAudience.CASUAL: "#chesslife",
    TargetAudience.COMPETITIVE: "#chesstournament",
    TargetAudience.EDUCATIONAL: "#learnchess",
}


def truncate_text(text: str, limit: int) -> str:
    """
    Shorten text to at most `limit` characters.

    Whitespace is collapsed first. When shortening is needed the result
    ends with a single-character ellipsis, and the cut falls on a word
    boundary if one lies in the second half of the window.

    Args:
        text: Text to shorten
        limit: Maximum length of the result

    Returns:
        Text of length <= limit
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    if limit == 1:
        return ELLIPSIS

    window = text[:limit - 1]
    cut = window.rfind(" ")
    if cut > 0 and cut >= len(window) // 2:
        window = window[:cut]
    return window.rstrip(" ,;:-") + ELLIPSIS


class SnippetGenerator:
    """
    Builds one social snippet per key moment.

    Casual wording stays short, competitive adds the evaluation and the
    quoted context, educational adds the selection rationale.
    """

    def __init__(self, char_budget: int = DEFAULT_CHAR_BUDGET) -> None:
        self.char_budget = char_budget

    def summarize(
        self,
        key_moments: Sequence[KeyMoment],
        target_audience: TargetAudience = TargetAudience.COMPETITIVE,
        char_budget: Optional[int] = None,
    ) -> list[SocialSnippet]:
        """
        Generate snippets for key moments.

        Args:
            key_moments: Key moments in ply order
            target_audience: Audience the wording is tuned for
            char_budget: Maximum characters per post (defaults to the
                         generator's budget)

        Returns:
            SocialSnippet per key moment, same order
        """
        budget = char_budget or self.char_budget
        snippets = []
        for moment in key_moments:
            body = self._compose(moment, target_audience)
            snippets.append(
                SocialSnippet(
                    source_ply_index=moment.ply_index,
                    excerpt_text=truncate_text(body, budget),
                    suggested_hashtags=self._hashtags(moment, target_audience),
                    char_budget=budget,
                )
            )
        logger.debug("Generated %d snippets for %s audience", len(snippets), target_audience.value)
        return snippets

    @staticmethod
    def _compose(moment: KeyMoment, audience: TargetAudience) -> str:
        headline = f"{EMOTION_HEADLINES[moment.emotion]}: {moment.label}"
        if audience is TargetAudience.CASUAL:
            return f"{headline}!"

        parts = [f"{headline}."]
        if audience is TargetAudience.COMPETITIVE:
            if moment.evaluation is not None:
                parts.append(f"Eval {moment.evaluation:+.2f}.")
        else:
            parts.append(f"Why it matters: {moment.rationale}.")
        if moment.context:
            parts.append(f'"{moment.context}"')
        return " ".join(parts)

    @staticmethod
    def _hashtags(moment: KeyMoment, audience: TargetAudience) -> list[str]:
        candidates = ["#chess", f"#{moment.emotion.value.replace('-', '')}"]
        if moment.move_quality is not None:
            candidates.append(f"#{moment.move_quality.value}")
        candidates.append(AUDIENCE_HASHTAGS[audience])

        # Ordered dedup
        return list(dict.fromkeys(candidates))
