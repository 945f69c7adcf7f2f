"""Tests for board rules and state encoding."""

import itertools

import pytest

from qtictactoe.board import (
    EMPTY,
    PLAYER_A,
    PLAYER_B,
    WIN_LINES,
    Outcome,
    apply_action,
    legal_actions,
    new_board,
    render,
    winner,
)
from qtictactoe.codec import encode_state
from qtictactoe.exceptions import IllegalMoveError

X, O, _ = PLAYER_A, PLAYER_B, EMPTY


class TestWinner:
    """Test terminal-state detection."""

    def test_empty_board_is_not_terminal(self) -> None:
        """Test that the starting board has no winner."""
        board = new_board()
        assert winner(board) is Outcome.NONE
        assert not winner(board).is_terminal

    @pytest.mark.parametrize("line", WIN_LINES)
    def test_every_line_wins_for_x(self, line) -> None:
        """Test that each of the 8 lines is detected for X."""
        cells = [EMPTY] * 9
        for i in line:
            cells[i] = X
        assert winner(tuple(cells)) is Outcome.PLAYER_A

    @pytest.mark.parametrize("line", WIN_LINES)
    def test_every_line_wins_for_o(self, line) -> None:
        """Test that each of the 8 lines is detected for O."""
        cells = [EMPTY] * 9
        for i in line:
            cells[i] = O
        assert winner(tuple(cells)) is Outcome.PLAYER_B

    def test_full_board_without_line_is_draw(self) -> None:
        """Test draw detection."""
        board = (
            X, O, X,
            X, O, O,
            O, X, X,
        )
        assert winner(board) is Outcome.DRAW
        assert winner(board).is_terminal

    def test_win_on_full_board_beats_draw(self) -> None:
        """Test that a completed line on the last move is a win, not a draw."""
        board = (
            X, O, X,
            O, X, O,
            O, X, X,
        )
        assert winner(board) is Outcome.PLAYER_A

    def test_two_in_a_row_is_not_a_win(self) -> None:
        """Test that incomplete lines are ignored."""
        board = (X, X, _, O, O, _, _, _, _)
        assert winner(board) is Outcome.NONE

    def test_winner_only_when_line_complete(self) -> None:
        """Test winner against a brute-force check on a sample of boards."""
        for cells in itertools.islice(itertools.product((_, X, O), repeat=9), 0, 19683, 7):
            result = winner(cells)
            x_line = any(all(cells[i] == X for i in line) for line in WIN_LINES)
            o_line = any(all(cells[i] == O for i in line) for line in WIN_LINES)
            if result is Outcome.PLAYER_A:
                assert x_line
            elif result is Outcome.PLAYER_B:
                assert o_line
            elif result is Outcome.DRAW:
                assert not x_line and not o_line and EMPTY not in cells
            else:
                assert not x_line and not o_line and EMPTY in cells


class TestLegalActions:
    """Test legal move enumeration."""

    def test_all_cells_legal_on_empty_board(self) -> None:
        """Test that every cell is free at the start."""
        assert legal_actions(new_board()) == list(range(9))

    def test_only_empty_cells_in_ascending_order(self) -> None:
        """Test that occupied cells are excluded."""
        board = (X, _, O, _, X, _, _, _, O)
        assert legal_actions(board) == [1, 3, 5, 6, 7]

    def test_full_board_has_no_actions(self) -> None:
        """Test that a full board offers nothing."""
        board = (X, O, X, X, O, O, O, X, X)
        assert legal_actions(board) == []


class TestApplyAction:
    """Test move application."""

    def test_returns_new_board(self) -> None:
        """Test that the input board is left untouched."""
        board = new_board()
        after = apply_action(board, 4, X)

        assert board == new_board()
        assert after[4] == X
        assert after.count(EMPTY) == 8

    def test_occupied_cell_raises(self) -> None:
        """Test that placing on an occupied cell fails."""
        board = apply_action(new_board(), 0, X)
        with pytest.raises(IllegalMoveError, match="occupied"):
            apply_action(board, 0, O)

    @pytest.mark.parametrize("index", [-1, 9, 42])
    def test_out_of_range_raises(self, index: int) -> None:
        """Test that out-of-range cells fail."""
        with pytest.raises(IllegalMoveError, match="out of range"):
            apply_action(new_board(), index, X)

    def test_unknown_mark_raises(self) -> None:
        """Test that only X and O can be placed."""
        with pytest.raises(IllegalMoveError):
            apply_action(new_board(), 0, EMPTY)


class TestEncodeState:
    """Test board -> key encoding."""

    def test_empty_board_key(self) -> None:
        """Test encoding of the starting board."""
        assert encode_state(new_board()) == "_________"

    def test_marks_in_row_major_order(self) -> None:
        """Test that each cell maps to one symbol in board order."""
        board = (X, _, O, _, X, _, _, _, O)
        assert encode_state(board) == "X_O_X___O"

    def test_distinct_boards_distinct_keys(self) -> None:
        """Test that the encoding separates every raw configuration."""
        boards = list(itertools.product((_, X, O), repeat=9))
        keys = {encode_state(b) for b in boards}
        assert len(keys) == len(boards) == 3 ** 9

    def test_no_symmetry_reduction(self) -> None:
        """Test that rotated positions keep separate keys."""
        corner = apply_action(new_board(), 0, X)
        other_corner = apply_action(new_board(), 2, X)
        assert encode_state(corner) != encode_state(other_corner)

    def test_equal_boards_equal_keys(self) -> None:
        """Test determinism."""
        a = apply_action(apply_action(new_board(), 4, X), 0, O)
        b = apply_action(apply_action(new_board(), 4, X), 0, O)
        assert encode_state(a) == encode_state(b)


def test_render() -> None:
    """Test the text rendering of a board."""
    board = (X, _, O, _, X, _, _, _, O)
    assert render(board) == "  0 1 2\n0 X . O\n1 . X .\n2 . . O"
