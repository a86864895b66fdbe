"""
Evaluation tracker for parsed games.

Scores every position a game passes through, derives per-ply evaluation
deltas and tags each move with a quality class. Scoring sits behind the
PositionEvaluator protocol so the heuristic evaluator, a UCI engine or a
test stub can be swapped in freely.
"""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union

import chess
import chess.engine

from chesswire.models.game import EvaluatedPly, MoveQuality, Ply, Side
from chesswire.utils.exceptions import ClassificationError, ConfigurationError

logger = logging.getLogger(__name__)

PIECE_VALUES: dict[int, int] = {
    chess.PAWN: 1,
    chess.KNIGHT: 3,
    chess.BISHOP: 3,
    chess.ROOK: 5,
    chess.QUEEN: 9,
    chess.KING: 0,
}

MATE_SCORE = 20.0
MOBILITY_WEIGHT = 0.05

# Mover-loss thresholds in pawns; a class applies only strictly above its value
INACCURACY_THRESHOLD = 0.5
MISTAKE_THRESHOLD = 1.0
BLUNDER_THRESHOLD = 2.0

LOSING_THRESHOLD = -2.0
SACRIFICE_MIN_VALUE = 3
SACRIFICE_CONFIRM_GAIN = 1.0
RECOVERY_CONFIRM_FLOOR = -0.5


class PositionEvaluator(Protocol):
    """Scores a position in pawns from White's point of view."""

    def evaluate(self, board: chess.Board) -> float:
        ...


def _terminal_score(board: chess.Board) -> Optional[float]:
    """Score for positions that end the game, None otherwise."""
    if board.is_checkmate():
        return -MATE_SCORE if board.turn == chess.WHITE else MATE_SCORE
    if board.is_stalemate() or board.is_insufficient_material():
        return 0.0
    return None


class MaterialMobilityEvaluator:
    """
    Deterministic material plus mobility evaluator.

    Material uses the classic 1/3/3/5/9 scale. Mobility adds 0.05 pawns per
    move of difference between the two sides; the side not to move is
    counted with pseudo-legal moves on a copy of the board with the turn
    flipped.
    """

    def __init__(self, mobility_weight: float = MOBILITY_WEIGHT) -> None:
        self.mobility_weight = mobility_weight

    def evaluate(self, board: chess.Board) -> float:
        terminal = _terminal_score(board)
        if terminal is not None:
            return terminal

        material = 0
        for piece_type, value in PIECE_VALUES.items():
            white = len(board.pieces(piece_type, chess.WHITE))
            black = len(board.pieces(piece_type, chess.BLACK))
            material += value * (white - black)

        return round(material + self.mobility_weight * self._mobility(board), 2)

    @staticmethod
    def _mobility(board: chess.Board) -> int:
        """White's move count minus Black's."""
        own = board.legal_moves.count()
        flipped = board.copy(stack=False)
        flipped.turn = not board.turn
        flipped.ep_square = None
        other = flipped.pseudo_legal_moves.count()
        if board.turn == chess.WHITE:
            return own - other
        return other - own


class EngineEvaluator:
    """
    Evaluator backed by a UCI engine through python-chess.

    The engine process is started lazily on first use, searches to a fixed
    depth only (never a time limit) with a single thread, and is shared by
    callers under a lock. A search that overruns timeout_seconds kills the
    process and the next evaluation starts a fresh one.
    Call close() (or use as a context manager) to stop the process.
    """

    def __init__(
        self,
        engine_path: Union[str, Path],
        depth: int = 12,
        timeout_seconds: float = 10.0,
    ) -> None:
        """
        Initialize the engine evaluator.

        Args:
            engine_path: Path to the UCI engine binary
            depth: Fixed search depth per position
            timeout_seconds: Engine startup timeout, and the wall-clock
                             limit on each depth-bounded search
        """
        self.engine_path = Path(engine_path)
        self.depth = depth
        self.timeout_seconds = timeout_seconds
        self._engine: Optional[chess.engine.SimpleEngine] = None
        self._lock = threading.Lock()
        self._search_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="chesswire-engine"
        )

    @property
    def engine(self) -> chess.engine.SimpleEngine:
        """Lazy start the engine process."""
        if self._engine is None:
            self._engine = self._start_engine()
        return self._engine

    def _start_engine(self) -> chess.engine.SimpleEngine:
        try:
            logger.info("Starting UCI engine: %s (depth=%d)", self.engine_path, self.depth)
            engine = chess.engine.SimpleEngine.popen_uci(
                str(self.engine_path),
                timeout=self.timeout_seconds,
            )
        except (OSError, chess.engine.EngineError, TimeoutError) as e:
            logger.error("Failed to start engine %s: %s", self.engine_path, e)
            raise ConfigurationError(
                f"Could not start UCI engine at {self.engine_path}",
                invalid_keys={"EVAL_ENGINE_PATH": str(e)},
                cause=e,
            ) from e

        if "Threads" in engine.options:
            engine.configure({"Threads": 1})
        return engine

    def evaluate(self, board: chess.Board) -> float:
        terminal = _terminal_score(board)
        if terminal is not None:
            return terminal

        # Search depth only; the wall-clock timeout wraps the call
        limit = chess.engine.Limit(depth=self.depth)
        try:
            with self._lock:
                future = self._search_executor.submit(self.engine.analyse, board, limit)
                try:
                    info = future.result(timeout=self.timeout_seconds)
                except FutureTimeoutError as e:
                    logger.warning(
                        "Engine search exceeded %.1fs at depth %d, restarting engine",
                        self.timeout_seconds,
                        self.depth,
                    )
                    self._kill_engine()
                    raise ClassificationError(
                        f"Engine search exceeded {self.timeout_seconds}s",
                        stage="evaluation",
                        details={"fen": board.fen(), "depth": self.depth},
                        cause=e,
                    ) from e
        except (chess.engine.EngineError, chess.engine.EngineTerminatedError) as e:
            raise ClassificationError(
                "Engine failed to analyse position",
                stage="evaluation",
                details={"fen": board.fen()},
                cause=e,
            ) from e

        score = info["score"].white()
        if score.is_mate():
            return MATE_SCORE if score.mate() > 0 else -MATE_SCORE
        pawns = score.score() / 100
        return round(max(-MATE_SCORE, min(MATE_SCORE, pawns)), 2)

    def _kill_engine(self) -> None:
        """Terminate a stuck engine; the next evaluation starts a fresh one."""
        if self._engine is not None:
            self._engine.close()
            self._engine = None

    def close(self) -> None:
        """Stop the engine process if it was started."""
        if self._engine is not None:
            try:
                self._engine.quit()
            except chess.engine.EngineTerminatedError:
                logger.debug("Engine already terminated")
            self._engine = None
        self._search_executor.shutdown(wait=False)

    def __enter__(self) -> "EngineEvaluator":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def classify_loss(loss: float) -> MoveQuality:
    """
    Map a mover's loss in pawns onto a quality class.

    A value exactly on a threshold falls into the less severe class, so a
    loss of 2.0 is a mistake and 2.01 a blunder.

    Args:
        loss: Evaluation lost by the mover (negative when the move improved)

    Returns:
        BLUNDER, MISTAKE or INACCURACY, or GOOD when the loss is small
    """
    loss = round(loss, 2)
    if loss > BLUNDER_THRESHOLD:
        return MoveQuality.BLUNDER
    if loss > MISTAKE_THRESHOLD:
        return MoveQuality.MISTAKE
    if loss > INACCURACY_THRESHOLD:
        return MoveQuality.INACCURACY
    return MoveQuality.GOOD


def is_sacrifice(board: chess.Board, move: chess.Move) -> bool:
    """
    Check if a move offers material.

    True when a piece worth at least a minor piece lands on a square that a
    cheaper enemy piece attacks, or that is attacked and undefended, without
    capturing equal value.
    """
    piece = board.piece_at(move.from_square)
    if piece is None:
        return False
    piece_type = move.promotion or piece.piece_type
    value = PIECE_VALUES[piece_type]
    if value < SACRIFICE_MIN_VALUE:
        return False

    if board.is_en_passant(move):
        captured_value = PIECE_VALUES[chess.PAWN]
    else:
        captured = board.piece_at(move.to_square)
        captured_value = PIECE_VALUES[captured.piece_type] if captured else 0
    if captured_value >= value:
        return False

    after = board.copy(stack=False)
    after.push(move)
    attackers = after.attackers(not piece.color, move.to_square)
    if not attackers:
        return False

    attacker_values = [
        PIECE_VALUES[after.piece_type_at(square)]
        for square in attackers
        if after.piece_type_at(square) != chess.KING
    ]
    cheaper_attacker = any(v < value for v in attacker_values)
    defended = bool(after.attackers(piece.color, move.to_square))
    return cheaper_attacker or not defended


class EvaluationTracker:
    """
    Attaches evaluations, deltas and move quality to parsed plies.

    Holds no per-game state; evaluate() can be called concurrently as long
    as the evaluator itself is safe to share.
    """

    def __init__(self, evaluator: Optional[PositionEvaluator] = None) -> None:
        """
        Initialize the tracker.

        Args:
            evaluator: Position evaluator (defaults to MaterialMobilityEvaluator)
        """
        self.evaluator = evaluator or MaterialMobilityEvaluator()

    def evaluate(self, plies: Sequence[Ply]) -> list[EvaluatedPly]:
        """
        Evaluate every ply of a game.

        Args:
            plies: Plies in game order, as produced by the notation parser

        Returns:
            EvaluatedPly per input ply, same order

        Raises:
            ClassificationError: If the evaluator returns a non-finite score
        """
        if not plies:
            return []

        previous = self._score(chess.Board(plies[0].fen_before), plies[0].index)
        evaluated: list[EvaluatedPly] = []

        for ply in plies:
            board_before = chess.Board(ply.fen_before)
            board_after = chess.Board(ply.fen_after)
            evaluation = self._score(board_after, ply.index)
            delta = round(evaluation - previous, 2)

            quality = self._classify(
                ply,
                board_before,
                board_after,
                before=previous,
                delta=delta,
            )
            logger.debug(
                "Ply %d %s: eval=%.2f delta=%+.2f quality=%s",
                ply.index,
                ply.san,
                evaluation,
                delta,
                quality.value,
            )

            evaluated.append(
                EvaluatedPly(
                    **ply.model_dump(),
                    evaluation=evaluation,
                    evaluation_delta=delta,
                    move_quality=quality,
                )
            )
            previous = evaluation

        return evaluated

    def _score(self, board: chess.Board, ply_index: int) -> float:
        """Evaluate a position and reject non-finite scores."""
        value = float(self.evaluator.evaluate(board))
        if not math.isfinite(value):
            raise ClassificationError(
                f"Evaluator returned a non-finite score: {value}",
                stage="evaluation",
                ply_index=ply_index,
            )
        return round(value, 2)

    def _classify(
        self,
        ply: Ply,
        board_before: chess.Board,
        board_after: chess.Board,
        before: float,
        delta: float,
    ) -> MoveQuality:
        """Assign move quality; forced, then loss classes, then brilliant."""
        if ply.legal_move_count == 1:
            return MoveQuality.FORCED

        sign = 1 if ply.side_to_move is Side.WHITE else -1
        loss = round(-delta * sign, 2)
        quality = classify_loss(loss)
        if quality is not MoveQuality.GOOD:
            return quality

        mover_before = before * sign
        move = chess.Move.from_uci(ply.uci)
        sacrifice = is_sacrifice(board_before, move)
        recovery = mover_before <= LOSING_THRESHOLD
        if not (sacrifice or recovery):
            return MoveQuality.GOOD

        mover_after_reply = self._best_reply_score(board_after, ply.index) * sign
        if sacrifice and mover_after_reply >= mover_before + SACRIFICE_CONFIRM_GAIN:
            return MoveQuality.BRILLIANT
        if recovery and mover_after_reply >= RECOVERY_CONFIRM_FLOOR:
            return MoveQuality.BRILLIANT
        return MoveQuality.GOOD

    def _best_reply_score(self, board: chess.Board, ply_index: int) -> float:
        """White-view score after the opponent's best single reply."""
        if board.is_game_over():
            return self._score(board, ply_index)

        white_replies = board.turn == chess.WHITE
        best: Optional[float] = None
        for reply in list(board.legal_moves):
            board.push(reply)
            score = self._score(board, ply_index)
            board.pop()
            if best is None or (score > best if white_replies else score < best):
                best = score
        return best


def evaluator_from_settings(settings) -> PositionEvaluator:
    """
    Build the evaluator configured in settings.

    Args:
        settings: Application Settings

    Returns:
        EngineEvaluator when EVAL_ENGINE_PATH is set, else MaterialMobilityEvaluator
    """
    evaluation = settings.evaluation
    if evaluation.use_engine:
        return EngineEvaluator(
            evaluation.engine_path,
            depth=evaluation.engine_depth,
            timeout_seconds=evaluation.engine_timeout_seconds,
        )
    return MaterialMobilityEvaluator()
