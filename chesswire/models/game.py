"""
Data models for parsed and evaluated games.

Plies are produced by the notation parser, enriched with evaluations by
the evaluation tracker and summarized into snapshots for narration.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Side(str, Enum):
    """Side making a move."""

    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Side":
        """The other side."""
        return Side.BLACK if self is Side.WHITE else Side.WHITE


class GamePhase(str, Enum):
    """Broad phase of a game at a given ply."""

    OPENING = "opening"
    MIDDLEGAME = "middlegame"
    ENDGAME = "endgame"


class MoveQuality(str, Enum):
    """Quality tag assigned to every evaluated ply."""

    BRILLIANT = "brilliant"
    GOOD = "good"
    INACCURACY = "inaccuracy"
    MISTAKE = "mistake"
    BLUNDER = "blunder"
    FORCED = "forced"

    @property
    def is_error(self) -> bool:
        """Mistakes and blunders."""
        return self in (MoveQuality.MISTAKE, MoveQuality.BLUNDER)


class Ply(BaseModel):
    """
    One half-move with a snapshot of the board around it.

    Immutable once produced by the parser.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    index: int = Field(ge=1, description="1-based position in the game")
    move_number: int = Field(ge=1, description="Full-move number the ply belongs to")
    san: str = Field(description="Move in standard algebraic notation")
    uci: str = Field(description="Move in UCI coordinates")
    side_to_move: Side = Field(description="Side making this ply")
    board_state_hash: str = Field(description="Zobrist hash of the resulting position")
    fen_before: str = Field(description="Position before the move")
    fen_after: str = Field(description="Position after the move")
    piece_count: int = Field(ge=0, le=32, description="Pieces on the board after the move")
    legal_move_count: int = Field(ge=1, description="Legal moves available to the mover")
    is_capture: bool = False
    is_check: bool = False
    is_checkmate: bool = False
    glyph: Optional[str] = Field(
        default=None,
        description="Annotation glyph such as '!!' or '?'",
    )
    annotation_text: Optional[str] = Field(
        default=None,
        description="Comment text attached to the move, kept for quoting",
    )
    clock_seconds: Optional[float] = Field(
        default=None,
        ge=0,
        description="Mover's remaining clock time after the move",
    )

    @property
    def label(self) -> str:
        """Move as it reads in a score sheet: '12. Nf3' or '12... Nc6'."""
        dots = "." if self.side_to_move is Side.WHITE else "..."
        return f"{self.move_number}{dots} {self.san}"


class EvaluatedPly(Ply):
    """A ply with its position evaluation and move quality."""

    evaluation: float = Field(
        description="Evaluation in pawns after the move, positive favors White"
    )
    evaluation_delta: float = Field(
        description="This evaluation minus the previous ply's evaluation"
    )
    move_quality: MoveQuality = Field(description="Quality of the move for the mover")

    @property
    def mover_loss(self) -> float:
        """How much the move worsened the mover's position (negative = improved)."""
        if self.side_to_move is Side.WHITE:
            return -self.evaluation_delta
        return self.evaluation_delta


class ParsedGame(BaseModel):
    """A fully parsed notation game."""

    model_config = ConfigDict(frozen=True)

    plies: list[Ply] = Field(default_factory=list)
    headers: dict[str, str] = Field(default_factory=dict)
    starting_fen: str = Field(description="Position the game started from")
    result: Optional[str] = Field(
        default=None,
        description="Result token if present ('1-0', '0-1', '1/2-1/2', '*')",
    )
    termination: Optional[str] = Field(
        default=None,
        description="How the final position ended the game, if it did",
    )


class GameStateSnapshot(BaseModel):
    """
    Game state at a narration decision point.

    Built per decision point and never stored.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    move_number: int = Field(default=0, ge=0)
    evaluation: float = Field(default=0.0, description="Pawns, positive favors White")
    time_left_seconds: Optional[float] = Field(
        default=None,
        ge=0,
        description="Mover's remaining time; None when unknown",
    )
    piece_count: int = Field(default=32, ge=0, le=32)
    last_move_quality: Optional[MoveQuality] = None

    @classmethod
    def from_ply(cls, ply: EvaluatedPly) -> "GameStateSnapshot":
        """Snapshot of the position right after an evaluated ply."""
        return cls(
            move_number=ply.move_number,
            evaluation=ply.evaluation,
            time_left_seconds=ply.clock_seconds,
            piece_count=ply.piece_count,
            last_move_quality=ply.move_quality,
        )
