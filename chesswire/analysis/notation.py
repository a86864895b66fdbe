"""
Move-notation parser.

Decodes a PGN-style game into an ordered list of plies on top of
python-chess's PGN reader. The reader is lenient by default (it skips
tokens it cannot read and logs illegal moves), so parsing here runs it
with a strict visitor: every move must be a legal continuation of the
position left by the moves before it, and the first failure aborts
parsing with the offending ply index.

Before the movetext reaches the reader it is scanned once for the
problems the reader would silently skip over: unreadable tokens,
figurine notation, unclosed comments and variations, and dangling or
out-of-sequence move numbers. The scan also rewrites `;` comments as
brace comments so their text reaches the game tree.
"""

import io
import logging
import re
from typing import NamedTuple, Optional

import chess
import chess.pgn
import chess.polyglot

from chesswire.models.game import ParsedGame, Ply, Side
from chesswire.utils.exceptions import ParseError

logger = logging.getLogger(__name__)

# Brace comments, rest-of-line comments and variation parentheses
MOVETEXT_SPLIT_REGEX = re.compile(r"(\{[^}]*\}|;[^\n]*|[()])")
ESCAPE_LINE_REGEX = re.compile(r"^%[^\n]*$", re.MULTILINE)
MOVE_NUMBER_REGEX = re.compile(r"^(\d+\.+)(.*)$")
MOVE_SUFFIX_REGEX = re.compile(r"[+#]?[!?]{0,2}$")
NAG_REGEX = re.compile(r"^\$\d+$")
GLYPH_REGEX = re.compile(r"^[!?]{1,2}$")

# Coordinate and long algebraic forms: e2e4, e7e8q, e2-e4, Ng1-f3, e4xd5
UCI_REGEX = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")
LONG_ALGEBRAIC_REGEX = re.compile(r"^[KQRBN]?[a-h][1-8][-x:][a-h][1-8]")
FIGURINE_REGEX = re.compile(r"[♔-♟]")
NULL_MOVES = frozenset({"--", "Z0", "0000", "@@@@"})

COMMAND_REGEX = re.compile(r"\[%[^\]]*\]")

RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "*"})

NAG_GLYPHS: dict[int, str] = {
    chess.pgn.NAG_GOOD_MOVE: "!",
    chess.pgn.NAG_MISTAKE: "?",
    chess.pgn.NAG_BRILLIANT_MOVE: "!!",
    chess.pgn.NAG_BLUNDER: "??",
    chess.pgn.NAG_SPECULATIVE_MOVE: "!?",
    chess.pgn.NAG_DUBIOUS_MOVE: "?!",
}

SUPPORTED_VARIANTS = frozenset({
    "",
    "standard",
    "chess",
    "chess960",
    "chess 960",
    "fischerandom",
    "fischerrandom",
    "fischer random",
})


class _Movetext(NamedTuple):
    """Movetext ready for the PGN reader, plus what the reader cannot see."""

    text: str
    move_numbers: dict[int, str]
    problem: Optional[ParseError]


def _split_sections(content: str) -> tuple[str, str]:
    """Separate the leading tag-pair section from the movetext."""
    lines = content.splitlines()
    body_start = 0
    for i, line in enumerate(lines):
        stripped = line.strip()
        if stripped and not stripped.startswith(("[", "%")):
            break
        body_start = i + 1

    header_lines = [line.strip() for line in lines[:body_start] if line.strip()]
    headers = "".join(f"{line}\n" for line in header_lines)
    return headers, "\n".join(lines[body_start:])


def _scan_movetext(movetext: str) -> _Movetext:
    """
    Check mainline structure and normalize the movetext.

    The returned text stops at the first problem found, so the reader
    still validates every move before it. Move numbers are keyed by the
    1-based mainline ply they introduce.
    """
    parts: list[str] = []
    move_numbers: dict[int, str] = {}
    plies = 0
    depth = 0
    pending_number: Optional[str] = None

    def problem(message: str, token: Optional[str] = None) -> _Movetext:
        error = ParseError(message, ply_index=plies + 1, token=token)
        return _Movetext(" ".join(parts), move_numbers, error)

    movetext = ESCAPE_LINE_REGEX.sub("", movetext)
    for piece in MOVETEXT_SPLIT_REGEX.split(movetext):
        if not piece:
            continue
        if piece.startswith("{"):
            parts.append(piece)
            continue
        if piece.startswith(";"):
            parts.append("{" + piece[1:].replace("}", "") + "}")
            continue
        if piece == "(":
            depth += 1
            parts.append(piece)
            continue
        if piece == ")":
            if depth == 0:
                return problem("Unbalanced ')' closes a variation that was never opened", ")")
            depth -= 1
            parts.append(piece)
            continue

        # Variation moves are left to the reader
        if depth > 0:
            parts.append(" ".join(piece.split()))
            continue

        head, brace, tail = piece.partition("{")
        for word in head.split():
            number_match = MOVE_NUMBER_REGEX.match(word)
            if number_match:
                if pending_number is not None:
                    return problem(
                        f"Unterminated game: move number '{pending_number}' has no move",
                        pending_number,
                    )
                pending_number, word = number_match.groups()
                parts.append(pending_number)
                if not word:
                    continue

            if word in RESULT_TOKENS:
                if pending_number is not None:
                    return problem(
                        f"Unterminated game: move number '{pending_number}' has no move",
                        pending_number,
                    )
                parts.append(word)
                continue
            if NAG_REGEX.match(word) or GLYPH_REGEX.match(word):
                parts.append(word)
                continue
            if FIGURINE_REGEX.search(word):
                return problem("Unsupported notation dialect: figurine notation is not supported", word)

            core = MOVE_SUFFIX_REGEX.sub("", word)
            move_match = chess.pgn.MOVETEXT_REGEX.fullmatch(core)
            if move_match is None or move_match.group(1) is None:
                return problem(f"Unexpected token '{word}' in movetext", word)

            plies += 1
            if pending_number is not None:
                move_numbers[plies] = pending_number
                pending_number = None
            parts.append(word)

        if brace:
            return problem("Unterminated game: comment is never closed", (brace + tail)[:20])

    if depth > 0:
        return problem("Unterminated game: variation is never closed")
    if pending_number is not None:
        return problem(
            f"Unterminated game: move number '{pending_number}' has no move",
            pending_number,
        )
    return _Movetext(" ".join(parts), move_numbers, None)


def _check_dialect(san: str, ply_index: int) -> None:
    """Reject notation dialects other than standard algebraic."""
    reason = None
    if san in NULL_MOVES:
        reason = "null moves are not supported"
    elif UCI_REGEX.match(san) or LONG_ALGEBRAIC_REGEX.match(san):
        reason = "coordinate or long algebraic notation is not supported"

    if reason:
        raise ParseError(
            f"Unsupported notation dialect: {reason}",
            ply_index=ply_index,
            token=san,
        )


def _termination(board: chess.Board) -> Optional[str]:
    """Describe how the position ends the game, or None if play continues."""
    outcome = board.outcome()
    if outcome is None:
        return None
    return outcome.termination.name.lower().replace("_", " ")


class StrictGameBuilder(chess.pgn.GameBuilder):
    """
    Game builder that raises ParseError instead of collecting errors.

    Besides legality it enforces what the PGN reader leaves alone: move
    numbers must match the board, no move may follow the result token or
    the end of the game, and non-SAN dialects are refused. Tag pairs that
    actually appear in the input are kept in `tags`, apart from the
    default roster python-chess fills in.
    """

    def __init__(self, movetext: _Movetext) -> None:
        super().__init__()
        self.movetext = movetext
        self.tags: dict[str, str] = {}
        self.movetext_result: Optional[str] = None
        self._variation_depth = 0

    def visit_header(self, tagname: str, tagvalue: str) -> None:
        super().visit_header(tagname, tagvalue)
        self.tags[tagname] = tagvalue

    def end_headers(self) -> None:
        variant = self.tags.get("Variant", "")
        if variant.strip().lower() not in SUPPORTED_VARIANTS:
            raise ParseError(
                f"Unsupported notation dialect: variant '{variant}'",
                token=variant,
            )

    def begin_variation(self) -> None:
        self._variation_depth += 1
        super().begin_variation()

    def end_variation(self) -> None:
        self._variation_depth -= 1
        super().end_variation()

    def visit_result(self, result: str) -> None:
        super().visit_result(result)
        self.movetext_result = result

    def parse_san(self, board: chess.Board, san: str) -> chess.Move:
        ply_index = len(board.move_stack) + 1

        if self._variation_depth == 0:
            if self.movetext_result is not None:
                raise ParseError(
                    f"Move found after the game result '{self.movetext_result}'",
                    ply_index=ply_index,
                    token=san,
                )
            self._check_move_number(board, ply_index)

        outcome = _termination(board)
        if outcome is not None:
            raise ParseError(
                f"Move found after the game ended by {outcome}",
                ply_index=ply_index,
                token=san,
            )

        _check_dialect(san, ply_index)
        try:
            return super().parse_san(board, san)
        except ValueError as e:
            raise ParseError(
                f"Illegal or invalid move '{san}'",
                ply_index=ply_index,
                token=san,
                cause=e,
            ) from e

    def _check_move_number(self, board: chess.Board, ply_index: int) -> None:
        token = self.movetext.move_numbers.get(ply_index)
        if token is None:
            return
        number = int(token.rstrip("."))
        expects_black = token.count(".") > 1
        if number != board.fullmove_number or expects_black != (board.turn == chess.BLACK):
            raise ParseError(
                f"Move number '{token}' is out of sequence",
                ply_index=ply_index,
                token=token,
            )

    def end_game(self) -> None:
        super().end_game()
        if self.movetext.problem is not None:
            raise self.movetext.problem

    def handle_error(self, error: Exception) -> None:
        fen = self.tags.get("FEN")
        if fen is not None and not self.game.variations:
            raise ParseError("Invalid FEN tag", token=fen, cause=error) from error
        raise ParseError(f"Unreadable notation: {error}", cause=error) from error


def _annotation(comment: str) -> Optional[str]:
    """Comment text with [%...] commands removed, or None when nothing is left."""
    text = " ".join(COMMAND_REGEX.sub("", comment).split())
    return text or None


def _glyph(nags: set[int]) -> Optional[str]:
    for nag in sorted(nags):
        if nag in NAG_GLYPHS:
            return NAG_GLYPHS[nag]
    return None


def _attach_comment(ply: Ply, comment: str) -> Ply:
    """Return a copy of the ply with extra comment text appended."""
    text = _annotation(comment)
    if text is None:
        return ply
    if ply.annotation_text:
        text = f"{ply.annotation_text} {text}"
    return ply.model_copy(update={"annotation_text": text})


def parse_game(content: str) -> ParsedGame:
    """
    Parse a notation game into plies plus headers and result.

    Args:
        content: PGN-style game text

    Returns:
        ParsedGame with one Ply per half-move, in game order

    Raises:
        ParseError: On an illegal move, an unterminated game or an
                    unsupported notation dialect
    """
    if not content or not content.strip():
        raise ParseError("No notation to parse")

    headers, movetext = _split_sections(content.lstrip("\ufeff"))
    scanned = _scan_movetext(movetext)
    builder = StrictGameBuilder(scanned)
    game = chess.pgn.read_game(
        io.StringIO(f"{headers}\n{scanned.text}\n"),
        Visitor=lambda: builder,
    )
    if game is None and scanned.problem is not None:
        raise scanned.problem
    if game is None or game.next() is None:
        raise ParseError("No moves found in notation")

    board = game.board()
    starting_fen = board.fen()

    plies: list[Ply] = []
    for node in game.mainline():
        move = node.move
        if node.starting_comment and plies:
            plies[-1] = _attach_comment(plies[-1], node.starting_comment)

        mover = Side.WHITE if board.turn == chess.WHITE else Side.BLACK
        move_number = board.fullmove_number
        legal_move_count = board.legal_moves.count()
        fen_before = board.fen()
        san = board.san(move)
        is_capture = board.is_capture(move)
        board.push(move)

        comment = node.comment
        if not plies and game.comment:
            comment = f"{game.comment} {comment}"

        plies.append(Ply(
            index=len(plies) + 1,
            move_number=move_number,
            san=san,
            uci=move.uci(),
            side_to_move=mover,
            board_state_hash=f"{chess.polyglot.zobrist_hash(board):016x}",
            fen_before=fen_before,
            fen_after=board.fen(),
            piece_count=len(board.piece_map()),
            legal_move_count=legal_move_count,
            is_capture=is_capture,
            is_check=board.is_check(),
            is_checkmate=board.is_checkmate(),
            glyph=_glyph(node.nags),
            annotation_text=_annotation(comment),
            clock_seconds=node.clock(),
        ))

    termination = _termination(board)
    logger.debug(
        "Parsed %d plies (result=%s, termination=%s)",
        len(plies),
        builder.movetext_result,
        termination,
    )

    return ParsedGame(
        plies=plies,
        headers=builder.tags,
        starting_fen=starting_fen,
        result=builder.movetext_result,
        termination=termination,
    )


def parse(content: str) -> list[Ply]:
    """
    Parse a notation game into its ordered plies.

    Args:
        content: PGN-style game text

    Returns:
        List of Ply objects in game order

    Raises:
        ParseError: See parse_game
    """
    return parse_game(content).plies
