"""
Tests for the move-notation parser.
"""

import pytest

from chesswire.analysis.notation import parse, parse_game
from chesswire.models.game import Side
from chesswire.utils.exceptions import ParseError

from conftest import (
    ANNOTATED_GAME,
    CLOCKED_GAME,
    FOOLS_MATE,
    ILLEGAL_AT_PLY_5,
    SCHOLARS_MATE,
)


class TestParse:
    """Test suite for parsing legal games."""

    def test_parse_scholars_mate(self) -> None:
        """Test a complete game parses into one ply per half-move."""
        plies = parse(SCHOLARS_MATE)

        assert len(plies) == 7
        assert [p.index for p in plies] == list(range(1, 8))
        assert [p.san for p in plies] == ["e4", "e5", "Bc4", "Nc6", "Qh5", "Nf6", "Qxf7#"]

    def test_sides_and_move_numbers(self) -> None:
        """Test side to move and move numbers follow game order."""
        plies = parse(SCHOLARS_MATE)

        assert plies[0].side_to_move == Side.WHITE
        assert plies[1].side_to_move == Side.BLACK
        assert plies[0].move_number == 1
        assert plies[1].move_number == 1
        assert plies[6].move_number == 4
        assert plies[5].label == "3... Nf6"
        assert plies[6].label == "4. Qxf7#"

    def test_final_ply_flags(self) -> None:
        """Test capture, check and checkmate flags on the mating move."""
        last = parse(SCHOLARS_MATE)[-1]

        assert last.is_capture
        assert last.is_check
        assert last.is_checkmate
        assert last.piece_count == 31

    def test_glyph_is_split_from_san(self) -> None:
        """Test suffix glyphs are kept on the ply, not in the SAN."""
        plies = parse(SCHOLARS_MATE)
        assert plies[5].san == "Nf6"
        assert plies[5].glyph == "??"

    def test_board_state_hash_is_zobrist(self) -> None:
        """Test the hash is the polyglot key of the resulting position."""
        ply = parse("1. e4")[0]
        assert ply.board_state_hash == "823c9b50fd114196"

    def test_parse_is_deterministic(self) -> None:
        """Test identical input yields identical plies."""
        assert parse(SCHOLARS_MATE) == parse(SCHOLARS_MATE)

    def test_fen_chain(self) -> None:
        """Test each ply starts from the position the previous one left."""
        plies = parse(FOOLS_MATE)
        for previous, current in zip(plies, plies[1:]):
            assert current.fen_before == previous.fen_after

    def test_without_move_numbers(self) -> None:
        """Test bare SAN sequences are accepted."""
        plies = parse("e4 e5 Nf3")
        assert len(plies) == 3

    def test_compact_move_numbers(self) -> None:
        """Test move numbers glued to the move."""
        plies = parse("1.e4 e5 2.Nf3")
        assert [p.san for p in plies] == ["e4", "e5", "Nf3"]

    def test_castling_with_zeros(self) -> None:
        """Test castling written with zeros is normalized."""
        plies = parse("1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5 4. 0-0")
        assert plies[-1].san == "O-O"

    def test_legal_move_count(self) -> None:
        """Test the mover's legal move count is recorded."""
        assert parse("1. e4")[0].legal_move_count == 20

    def test_escape_lines_are_ignored(self) -> None:
        """Test '%' escape lines before and inside the movetext."""
        assert [p.san for p in parse("%escaped line\n1. e4 e5")] == ["e4", "e5"]
        assert [p.san for p in parse("1. e4 e5\n%engine note\n2. Nf3")] == ["e4", "e5", "Nf3"]

    def test_movetext_may_span_blank_lines(self) -> None:
        """Test a blank line inside the movetext does not end the game early."""
        plies = parse("1. e4 e5\n\n2. Nf3 Nc6")
        assert len(plies) == 4

    def test_numeric_nags_map_to_glyphs(self) -> None:
        """Test $1..$6 become glyphs and other NAGs are ignored."""
        plies = parse("1. e4 $1 $14 e5 $6")
        assert plies[0].glyph == "!"
        assert plies[1].glyph == "?!"


class TestParseGame:
    """Test suite for headers, annotations and game metadata."""

    def test_headers_and_result(self) -> None:
        """Test tag pairs are collected and the result recorded."""
        game = parse_game(ANNOTATED_GAME)

        assert game.headers["Event"] == "Club Championship"
        assert game.headers["White"] == "Alpha"
        assert game.result == "*"
        assert len(game.plies) == 5

    def test_comments_and_nags_attach_to_plies(self) -> None:
        """Test comments, NAGs and glyphs stay on the ply they follow."""
        plies = parse_game(ANNOTATED_GAME).plies

        assert plies[0].annotation_text == "Opening King's pawn"
        assert plies[1].glyph == "?"
        assert plies[2].san == "Nf3"
        assert plies[2].glyph == "!"
        assert plies[3].annotation_text == "solid"

    def test_variations_are_skipped(self) -> None:
        """Test moves inside parentheses never become plies."""
        plies = parse_game(ANNOTATED_GAME).plies
        assert "f4" not in [p.san for p in plies]
        assert plies[3].san == "Nc6"

    def test_clock_comments(self) -> None:
        """Test [%clk] commands populate clock time and are stripped."""
        plies = parse(CLOCKED_GAME)

        assert plies[0].clock_seconds == 179.0
        assert plies[0].annotation_text is None
        assert plies[1].clock_seconds == 45.5
        assert plies[1].annotation_text == "Hurry"
        assert plies[2].clock_seconds == 8.0

    def test_checkmate_termination(self) -> None:
        """Test a mating game reports its termination."""
        game = parse_game(SCHOLARS_MATE)
        assert game.result == "1-0"
        assert game.termination == "checkmate"

    def test_unfinished_game_has_no_termination(self) -> None:
        """Test a game still in progress has no termination."""
        game = parse_game("1. e4 e5")
        assert game.result is None
        assert game.termination is None

    def test_fen_tag_sets_start_position(self) -> None:
        """Test a [FEN] tag is used as the starting position."""
        fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
        game = parse_game(f'[FEN "{fen}"]\n\n1. e4 Kd7')

        assert game.starting_fen == fen
        assert game.plies[0].fen_before == fen
        assert game.plies[0].piece_count == 3

    def test_black_to_move_from_fen(self) -> None:
        """Test a game starting with Black uses the '1...' indicator."""
        fen = "4k3/8/8/8/8/8/4P3/4K3 b - - 0 1"
        plies = parse(f'[FEN "{fen}"]\n\n1... Kd7 2. e4')

        assert plies[0].side_to_move == Side.BLACK
        assert plies[1].move_number == 2


class TestParseErrors:
    """Test suite for notation that must be rejected."""

    def test_illegal_move_reports_ply_index(self) -> None:
        """Test the first illegal move fails with its 1-based index."""
        with pytest.raises(ParseError) as exc_info:
            parse(ILLEGAL_AT_PLY_5)

        assert exc_info.value.ply_index == 5
        assert exc_info.value.token == "Qxf7"
        assert exc_info.value.details["ply_index"] == 5

    def test_garbage_token(self) -> None:
        """Test a token that is not a move at all."""
        with pytest.raises(ParseError) as exc_info:
            parse("1. e4 hello")
        assert exc_info.value.ply_index == 2

    @pytest.mark.parametrize(
        "notation,ply_index",
        [
            ("1. e2e4 e7e5", 1),
            ("1. e2-e4", 1),
            ("1. e4 e5 2. Ng1-f3", 3),
            ("1. e4 e5 2. ♘f3", 3),
            ("1. e4 --", 2),
            ("1. e4 Z0", 2),
        ],
    )
    def test_unsupported_dialects(self, notation: str, ply_index: int) -> None:
        """Test coordinate, figurine and null-move notation is rejected."""
        with pytest.raises(ParseError) as exc_info:
            parse(notation)

        assert "Unsupported notation dialect" in exc_info.value.message
        assert exc_info.value.ply_index == ply_index

    @pytest.mark.parametrize(
        "notation",
        [
            "1. e4 { unclosed comment e5",
            "1. e4 e5 (2. f4 exf4",
            "1. e4 e5 ) 2. Nf3",
            "1. e4 e5 2.",
            "1. e4 e5 1-0 2. Nf3",
        ],
    )
    def test_unterminated_games(self, notation: str) -> None:
        """Test broken game structure is rejected, never truncated."""
        with pytest.raises(ParseError):
            parse(notation)

    def test_move_after_result(self) -> None:
        """Test moves after the result token point at the next ply."""
        with pytest.raises(ParseError) as exc_info:
            parse("1. e4 e5 1-0 2. Nf3")
        assert exc_info.value.ply_index == 3

    def test_move_after_checkmate(self) -> None:
        """Test a move after mate is rejected."""
        with pytest.raises(ParseError) as exc_info:
            parse("1. f3 e5 2. g4 Qh4# 3. a3")
        assert exc_info.value.ply_index == 5

    def test_move_number_out_of_sequence(self) -> None:
        """Test a move number that disagrees with the board."""
        with pytest.raises(ParseError) as exc_info:
            parse("1. e4 e5 3. Nf3")
        assert exc_info.value.ply_index == 3

    def test_illegal_move_inside_variation(self) -> None:
        """Test variation moves are validated even though they never become plies."""
        with pytest.raises(ParseError) as exc_info:
            parse("1. e4 e5 2. Nf3 (2. Qxf7) Nc6")
        assert exc_info.value.token == "Qxf7"

    def test_earlier_illegal_move_reported_before_later_garbage(self) -> None:
        """Test the first failing ply wins when the input has several problems."""
        with pytest.raises(ParseError) as exc_info:
            parse("1. e4 e5 2. Ke3 Nc6 3. hello")
        assert exc_info.value.ply_index == 3
        assert exc_info.value.token == "Ke3"

    @pytest.mark.parametrize("notation", ["", "   ", "[Event \"x\"]\n\n*"])
    def test_no_moves(self, notation: str) -> None:
        """Test input without any moves."""
        with pytest.raises(ParseError):
            parse(notation)

    def test_invalid_fen_tag(self) -> None:
        """Test a broken [FEN] tag."""
        with pytest.raises(ParseError):
            parse('[FEN "not a fen"]\n\n1. e4')

    def test_unsupported_variant(self) -> None:
        """Test variants other than standard chess are rejected."""
        with pytest.raises(ParseError):
            parse('[Variant "Atomic"]\n\n1. e4')

    def test_parse_error_is_client_error(self) -> None:
        """Test parse errors are attributed to the caller."""
        with pytest.raises(ParseError) as exc_info:
            parse(ILLEGAL_AT_PLY_5)
        assert exc_info.value.is_client_error
