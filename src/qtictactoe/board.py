"""Tic-Tac-Toe board representation and game rules.

Boards are immutable 9-tuples in row-major order::

    0 1 2
    3 4 5
    6 7 8

Cells hold ``EMPTY`` (0), ``PLAYER_A`` (1, "X") or ``PLAYER_B`` (-1, "O").
Every move returns a new board; the input is never modified.
"""

from enum import Enum
from typing import List, Tuple

from qtictactoe.exceptions import IllegalMoveError

EMPTY = 0
PLAYER_A = 1  # X: the human / random opponent, always moves first
PLAYER_B = -1  # O: the learning agent

BOARD_SIZE = 9

Board = Tuple[int, ...]

WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # Rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # Columns
    (0, 4, 8), (2, 4, 6),              # Diagonals
)

SYMBOLS = {EMPTY: ".", PLAYER_A: "X", PLAYER_B: "O"}


class Outcome(Enum):
    """Verdict for a board position."""

    NONE = "none"
    PLAYER_A = "player_a"
    PLAYER_B = "player_b"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        """True once the game is won or drawn."""
        return self is not Outcome.NONE


def new_board() -> Board:
    """Return the empty starting board."""
    return (EMPTY,) * BOARD_SIZE


def winner(board: Board) -> Outcome:
    """
    Determine the state of the game.

    Args:
        board: Board to inspect

    Returns:
        The player owning a completed line, DRAW if the board is full with
        no completed line, NONE otherwise
    """
    for a, b, c in WIN_LINES:
        if board[a] != EMPTY and board[a] == board[b] == board[c]:
            return Outcome.PLAYER_A if board[a] == PLAYER_A else Outcome.PLAYER_B

    if EMPTY not in board:
        return Outcome.DRAW
    return Outcome.NONE


def legal_actions(board: Board) -> List[int]:
    """Indices of empty cells, ascending."""
    return [i for i, cell in enumerate(board) if cell == EMPTY]


def apply_action(board: Board, index: int, mark: int) -> Board:
    """
    Place ``mark`` on cell ``index``.

    Args:
        board: Current board (left untouched)
        index: Cell to fill (0-8)
        mark: PLAYER_A or PLAYER_B

    Returns:
        A new board with the cell set

    Raises:
        IllegalMoveError: If the cell is out of range or already occupied
    """
    if not 0 <= index < BOARD_SIZE:
        raise IllegalMoveError(f"Cell {index} is out of range")
    if board[index] != EMPTY:
        raise IllegalMoveError(f"Cell {index} is already occupied")
    if mark not in (PLAYER_A, PLAYER_B):
        raise IllegalMoveError(f"Unknown mark {mark!r}")

    cells = list(board)
    cells[index] = mark
    return tuple(cells)


def render(board: Board) -> str:
    """
    Render the board as a string.

    Returns:
        String representation with row/column indices
    """
    lines = ["  0 1 2"]
    for row in range(3):
        cells = board[row * 3:row * 3 + 3]
        lines.append(f"{row} " + " ".join(SYMBOLS[cell] for cell in cells))
    return "\n".join(lines)
