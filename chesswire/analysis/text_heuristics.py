"""
Keyword heuristics for prose and transcript content.

Articles are chunked by sentences; video and audio transcripts are split
on timestamp cues. Each segment is scored against emotion keyword
families and the scores are normalized into a heatmap with the same shape
as the notation path produces.
"""

import logging
import re
from typing import NamedTuple, Optional

from chesswire.analysis.emotion import normalize_magnitudes
from chesswire.analysis.snippets import truncate_text
from chesswire.models.analysis import Emotion, HeatmapEntry
from chesswire.models.content import ContentType

logger = logging.getLogger(__name__)


# Keyword families per emotion, in tie-break order
EMOTION_PATTERNS: dict[Emotion, list[str]] = {
    Emotion.DRAMATIC: [
        r"\b(brilliant|amazing|incredible|stunning|magnificent|sensational)\b",
        r"\b(sacrifice[sd]?|thunderbolt|bombshell)\b",
    ],
    Emotion.TENSE: [
        r"\b(critical|pressure|decisive|sharp|dangerous|tense)\b",
        r"\b(time trouble|zeitnot|flag(?:ged)?|scramble)\b",
    ],
    Emotion.TRIUMPHANT: [
        r"\b(victory|triumph|success|genius|masterful|perfect)\b",
        r"\b(checkmate|resign(?:s|ed)?|wins|won)\b",
    ],
    Emotion.BLUNDER: [
        r"\b(blunder(?:s|ed)?|mistakes?|errors?|disaster|collapsed?|oversight)\b",
    ],
    Emotion.MYSTERIOUS: [
        r"\b(beautiful|elegant|artistic|poetic|magical|mysterious|enigmatic)\b",
    ],
    Emotion.CALM: [
        r"\b(calm|steady|solid|patient|balanced|quiet)\b",
    ],
}

# How strongly a match of each family moves the intensity
EMOTION_WEIGHTS: dict[Emotion, float] = {
    Emotion.DRAMATIC: 1.3,
    Emotion.TENSE: 1.4,
    Emotion.TRIUMPHANT: 1.2,
    Emotion.BLUNDER: 0.9,
    Emotion.MYSTERIOUS: 1.1,
    Emotion.CALM: 0.2,
}

TIMESTAMP_REGEX = re.compile(r"\[?\b((?:\d{1,2}:)?\d{1,2}:\d{2})\b\]?")
SENTENCE_SPLIT_REGEX = re.compile(r"(?<=[.!?])\s+")

SENTENCES_PER_SEGMENT = 3
CONTEXT_CHARS = 200
LABEL_CHARS = 40


class _Segment(NamedTuple):
    text: str
    cue: Optional[str]


class _SegmentScore(NamedTuple):
    emotion: Emotion
    score: float
    trigger: Optional[str]


class TextEmotionAnalyzer:
    """
    Builds an emotional heatmap from prose or transcript text.

    Uses rule-based keyword families; no model is loaded.
    """

    def __init__(self) -> None:
        self._compiled: dict[Emotion, list[re.Pattern]] = {
            emotion: [re.compile(p, re.IGNORECASE) for p in patterns]
            for emotion, patterns in EMOTION_PATTERNS.items()
        }

    def build_heatmap(self, content: str, content_type: ContentType) -> list[HeatmapEntry]:
        """
        Segment the content and score each segment.

        Args:
            content: Article text or transcript
            content_type: ARTICLE, VIDEO or AUDIO

        Returns:
            One HeatmapEntry per segment, in reading order
        """
        segments = self.segment(content, content_type)
        if not segments:
            logger.warning("No text segments found in %s content", content_type.value)
            return []

        scores = [self._score(segment.text) for segment in segments]
        normalized = normalize_magnitudes([s.score for s in scores])

        heatmap = []
        for i, (segment, score, intensity) in enumerate(zip(segments, scores, normalized), 1):
            excerpt = truncate_text(segment.text, CONTEXT_CHARS)
            context = f"[{segment.cue}] {excerpt}" if segment.cue else excerpt
            heatmap.append(
                HeatmapEntry(
                    ply_index=i,
                    emotion=score.emotion,
                    intensity=round(intensity, 6),
                    label=score.trigger or truncate_text(segment.text, LABEL_CHARS),
                    context=context,
                )
            )

        logger.debug("Scored %d %s segments", len(heatmap), content_type.value)
        return heatmap

    def segment(self, content: str, content_type: ContentType) -> list[_Segment]:
        """Split content into scoring segments."""
        if content_type in (ContentType.VIDEO, ContentType.AUDIO):
            segments = self._split_on_timestamps(content)
            if segments:
                return segments
        return self._split_on_sentences(content)

    @staticmethod
    def _split_on_timestamps(content: str) -> list[_Segment]:
        cues = list(TIMESTAMP_REGEX.finditer(content))
        if not cues:
            return []

        segments = []
        preamble = content[:cues[0].start()].strip()
        if preamble:
            segments.append(_Segment(" ".join(preamble.split()), None))

        for i, cue in enumerate(cues):
            end = cues[i + 1].start() if i + 1 < len(cues) else len(content)
            text = " ".join(content[cue.end():end].split())
            if text:
                segments.append(_Segment(text, cue.group(1)))
        return segments

    @staticmethod
    def _split_on_sentences(content: str) -> list[_Segment]:
        sentences = [
            " ".join(s.split())
            for s in SENTENCE_SPLIT_REGEX.split(content)
            if s.strip()
        ]
        return [
            _Segment(" ".join(sentences[i:i + SENTENCES_PER_SEGMENT]), None)
            for i in range(0, len(sentences), SENTENCES_PER_SEGMENT)
        ]

    def _score(self, text: str) -> _SegmentScore:
        """Pick the family with the most matches and weigh all matches."""
        best: Optional[Emotion] = None
        best_count = 0
        trigger = None
        score = 0.0

        for emotion, patterns in self._compiled.items():
            matches = [m for pattern in patterns for m in pattern.finditer(text)]
            if not matches:
                continue
            score += EMOTION_WEIGHTS[emotion] * len(matches)
            if len(matches) > best_count:
                best, best_count = emotion, len(matches)
                trigger = min(matches, key=lambda m: m.start()).group(0)

        if best is None:
            return _SegmentScore(Emotion.CALM, 0.0, None)
        return _SegmentScore(best, round(score, 6), trigger)
