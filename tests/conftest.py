"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import Optional

import chess
import pytest

from chesswire.analysis.evaluation import MaterialMobilityEvaluator
from chesswire.models.analysis import Emotion, HeatmapEntry, KeyMoment
from chesswire.models.game import EvaluatedPly, MoveQuality, Side
from chesswire.pipeline import ContentAnalysisPipeline
from chesswire.utils.config import PipelineSettings, Settings


# =============================================================================
# Notation Samples
# =============================================================================

SCHOLARS_MATE = "1. e4 e5 2. Bc4 Nc6 3. Qh5 Nf6?? 4. Qxf7# 1-0"
FOOLS_MATE = "1. f3 e5 2. g4 Qh4# 0-1"
ILLEGAL_AT_PLY_5 = "1. e4 e5 2. Nf3 Nf6 3. Qxf7"
RUY_LOPEZ = "1. e4 e5 2. Nf3 Nc6 3. Bb5 a6"

ANNOTATED_GAME = """[Event "Club Championship"]
[White "Alpha"]
[Black "Beta"]
[Result "*"]

{Opening} 1. e4 {King's pawn} e5 $2 2. Nf3! (2. f4 exf4 3. Nf3) Nc6 ; solid
3. Bb5 *
"""

CLOCKED_GAME = "1. e4 { [%clk 0:02:59] } e5 { [%clk 0:00:45.5] Hurry } 2. Nf3 { [%clk 0:00:08] } *"


class ScriptedEvaluator:
    """
    Deterministic stub evaluator.

    Scores a position by its ply count (board.ply()), so every position
    reached after the same number of half-moves gets the same score.
    """

    def __init__(self, scores: dict[int, float], default: float = 0.0) -> None:
        self.scores = scores
        self.default = default
        self.calls = 0

    def evaluate(self, board: chess.Board) -> float:
        self.calls += 1
        return self.scores.get(board.ply(), self.default)


def make_evaluated_ply(
    index: int,
    delta: float,
    evaluation: float = 0.0,
    quality: MoveQuality = MoveQuality.GOOD,
    move_number: Optional[int] = None,
    piece_count: int = 30,
    is_capture: bool = False,
    is_check: bool = False,
    is_checkmate: bool = False,
    clock_seconds: Optional[float] = None,
) -> EvaluatedPly:
    """Build an EvaluatedPly without going through the parser."""
    return EvaluatedPly(
        index=index,
        move_number=move_number or 20 + (index + 1) // 2,
        san=f"Move{index}",
        uci="e2e4",
        side_to_move=Side.WHITE if index % 2 else Side.BLACK,
        board_state_hash="0" * 16,
        fen_before=chess.STARTING_FEN,
        fen_after=chess.STARTING_FEN,
        piece_count=piece_count,
        legal_move_count=20,
        is_capture=is_capture,
        is_check=is_check,
        is_checkmate=is_checkmate,
        clock_seconds=clock_seconds,
        evaluation=evaluation,
        evaluation_delta=delta,
        move_quality=quality,
    )


def make_heatmap_entry(
    ply_index: int,
    intensity: float,
    emotion: Emotion = Emotion.CALM,
) -> HeatmapEntry:
    return HeatmapEntry(
        ply_index=ply_index,
        emotion=emotion,
        intensity=intensity,
        label=f"{ply_index}. e4",
    )


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_key_moment() -> KeyMoment:
    """Create a sample key moment for a blunder."""
    return KeyMoment(
        ply_index=12,
        emotion=Emotion.BLUNDER,
        intensity=1.0,
        rationale="Decisive error at 6... Nf6",
        label="6... Nf6",
        move_quality=MoveQuality.BLUNDER,
        evaluation=3.4,
        context="Black misses the threat on f7",
    )


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables."""
    env_vars = {
        "VOICE_API_KEY": "test_voice_key",
        "VOICE_API_URL": "https://voice.test/v1",
        "PIPELINE_MAX_CONCURRENCY": "4",
        "PIPELINE_ITEM_TIMEOUT_SECONDS": "12.5",
        "LOG_LEVEL": "debug",
        "ENVIRONMENT": "development",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings() -> Settings:
    """Settings with default pipeline limits."""
    return Settings(pipeline=PipelineSettings())


# =============================================================================
# Pipeline Fixtures
# =============================================================================


@pytest.fixture
def pipeline(settings: Settings) -> ContentAnalysisPipeline:
    """Pipeline with the built-in heuristic evaluator."""
    return ContentAnalysisPipeline(
        evaluator=MaterialMobilityEvaluator(),
        settings=settings,
    )
