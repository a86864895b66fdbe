"""
Narrative selector: maps game state to a narration template.

Selection is an ordered decision list; the first rule whose predicate
matches wins and later rules are never consulted. The order is part of
the public behavior and is versioned by RULESET_VERSION.

The template catalog is immutable reference data built once at import.
Selection returns filled copies and never touches catalog entries.
"""

import logging
from types import MappingProxyType
from typing import Callable, Mapping, NamedTuple, Optional, Sequence

from chesswire.models.analysis import NarrationTemplate, NarrativeAdaptation
from chesswire.models.content import TargetAudience, Tone, VoiceMode
from chesswire.models.game import GameStateSnapshot, MoveQuality

logger = logging.getLogger(__name__)

# Bump when rules are added, removed or reordered
RULESET_VERSION = "1.0"

CRITICAL_EVALUATION = 3.0
CRITICAL_MIN_MOVE = 15
TIME_PRESSURE_SECONDS = 60
ENDGAME_PIECES = 10
BALANCED_EVALUATION = 0.3


_TEMPLATES = (
    NarrationTemplate(
        name="before_critical_move",
        text=(
            "Move {move_number}, and the board is ~whispering~ something... "
            "<break time='700ms'/> Listen closely. *This* is the moment "
            "{leader} has been building toward."
        ),
        voice_mode=VoiceMode.POETIC,
        tone=Tone.DRAMATIC,
    ),
    NarrationTemplate(
        name="time_scramble",
        text=(
            "*The clock is running out!* Every second now counts double... "
            "<break time='300ms'/> ~Instinct takes the wheel~, and move "
            "{move_number} is where preparation meets *nerve*."
        ),
        voice_mode=VoiceMode.ENTHUSIASTIC,
        tone=Tone.ENERGETIC,
    ),
    NarrationTemplate(
        name="endgame_arrival",
        text=(
            "The smoke clears from the battlefield... <break time='700ms'/> "
            "Only a handful of pieces remain, ~echoes of the fight~. "
            "*Now* the real test begins."
        ),
        voice_mode=VoiceMode.POETIC,
        tone=Tone.MYSTERIOUS,
    ),
    NarrationTemplate(
        name="after_blunder",
        text=(
            "Everyone stumbles... <break time='500ms'/> "
            "Yet _the position is still alive_. "
            "~Recovery has its own beauty~ for whoever dares to look for it."
        ),
        voice_mode=VoiceMode.ENCOURAGING,
        tone=Tone.CALM,
    ),
    NarrationTemplate(
        name="deep_reflection",
        text=(
            "Here the game holds up a mirror... "
            "<break time='600ms'/> *Safety or courage*? "
            "~Which road would you choose?~"
        ),
        voice_mode=VoiceMode.PHILOSOPHICAL,
        tone=Tone.THOUGHTFUL,
    ),
)

TEMPLATE_CATALOG: Mapping[str, NarrationTemplate] = MappingProxyType(
    {template.name: template for template in _TEMPLATES}
)


def is_critical_moment(snapshot: GameStateSnapshot) -> bool:
    return abs(snapshot.evaluation) > CRITICAL_EVALUATION and snapshot.move_number > CRITICAL_MIN_MOVE


def is_time_pressure(snapshot: GameStateSnapshot) -> bool:
    # Unknown clock time never matches
    return snapshot.time_left_seconds is not None and snapshot.time_left_seconds < TIME_PRESSURE_SECONDS


def is_endgame_arrival(snapshot: GameStateSnapshot) -> bool:
    return snapshot.piece_count < ENDGAME_PIECES


def follows_error(snapshot: GameStateSnapshot) -> bool:
    return snapshot.last_move_quality in (MoveQuality.MISTAKE, MoveQuality.BLUNDER)


def always(snapshot: GameStateSnapshot) -> bool:
    return True


class NarrationRule(NamedTuple):
    """One entry of the decision list."""

    name: str
    predicate: Callable[[GameStateSnapshot], bool]
    template_name: str
    uses_configured_voice: bool = False


NARRATION_RULES: tuple[NarrationRule, ...] = (
    NarrationRule("critical_moment", is_critical_moment, "before_critical_move"),
    NarrationRule("time_pressure", is_time_pressure, "time_scramble"),
    NarrationRule("endgame_arrival", is_endgame_arrival, "endgame_arrival"),
    NarrationRule("after_blunder", follows_error, "after_blunder"),
    NarrationRule("deep_reflection", always, "deep_reflection", uses_configured_voice=True),
)


def leader_phrase(evaluation: float) -> str:
    """Who is better, in words."""
    if evaluation > BALANCED_EVALUATION:
        return "White"
    if evaluation < -BALANCED_EVALUATION:
        return "Black"
    return "neither side"


class NarrativeSelector:
    """
    Picks and fills narration templates for game-state snapshots.

    Holds only configuration; safe to share between threads.
    """

    def __init__(
        self,
        voice_mode: VoiceMode = VoiceMode.DRAMATIC,
        target_audience: TargetAudience = TargetAudience.COMPETITIVE,
        rules: Sequence[NarrationRule] = NARRATION_RULES,
        catalog: Mapping[str, NarrationTemplate] = TEMPLATE_CATALOG,
    ) -> None:
        """
        Initialize the selector.

        Args:
            voice_mode: Voice mode for the default rule
            target_audience: Audience the narration is written for
            rules: Ordered decision list; the last rule should always match
            catalog: Template catalog the rules refer to
        """
        self.voice_mode = voice_mode
        self.target_audience = target_audience
        self.rules = tuple(rules)
        self.catalog = catalog

    def match(self, snapshot: GameStateSnapshot) -> NarrationRule:
        """Return the first rule whose predicate holds."""
        for rule in self.rules:
            if rule.predicate(snapshot):
                return rule
        raise LookupError(f"No narration rule matched (ruleset {RULESET_VERSION})")

    def select(self, snapshot: GameStateSnapshot) -> NarrationTemplate:
        """
        Select and fill a template for a snapshot.

        Args:
            snapshot: Game state at the decision point

        Returns:
            A new NarrationTemplate with placeholders interpolated
        """
        rule = self.match(snapshot)
        template = self.catalog[rule.template_name]

        update = {"text": self._fill(template.text, snapshot)}
        if rule.uses_configured_voice:
            update["voice_mode"] = self.voice_mode
        return template.model_copy(update=update)

    def adapt(
        self,
        decision_points: Sequence[tuple[Optional[int], GameStateSnapshot]],
    ) -> list[NarrativeAdaptation]:
        """
        Produce narration for each decision point.

        Args:
            decision_points: (ply_index, snapshot) pairs; ply_index may be
                             None for whole-content narration

        Returns:
            One NarrativeAdaptation per decision point, same order
        """
        adaptations = []
        for ply_index, snapshot in decision_points:
            rule = self.match(snapshot)
            template = self.select(snapshot)
            adaptations.append(
                NarrativeAdaptation(
                    ply_index=ply_index,
                    rule=rule.name,
                    template_name=template.name,
                    text=template.text,
                    voice_mode=template.voice_mode,
                    tone=template.tone,
                )
            )
            logger.debug("Ply %s narrated with rule %s", ply_index, rule.name)
        return adaptations

    def _fill(self, text: str, snapshot: GameStateSnapshot) -> str:
        leader = leader_phrase(snapshot.evaluation)
        filled = text.format_map(
            {
                "move_number": snapshot.move_number,
                "leader": leader,
                "evaluation": f"{snapshot.evaluation:+.2f}",
            }
        )

        if self.target_audience is TargetAudience.EDUCATIONAL:
            if leader == "neither side":
                filled += f" The evaluation stands at {snapshot.evaluation:+.2f}, roughly level."
            else:
                filled += (
                    f" The evaluation stands at {snapshot.evaluation:+.2f}, "
                    f"in {leader}'s favor."
                )
        return filled
