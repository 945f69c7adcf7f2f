"""State encoding for value-table keys."""

from typing import Dict

from qtictactoe.board import EMPTY, PLAYER_A, PLAYER_B, Board

# One symbol per cell; "_" keeps empty cells distinct from both marks.
KEY_SYMBOLS: Dict[int, str] = {EMPTY: "_", PLAYER_A: "X", PLAYER_B: "O"}


def encode_state(board: Board) -> str:
    """
    Convert a board to a hashable key for the value table.

    No symmetry reduction is applied: every raw configuration gets its own key.

    Args:
        board: Board to encode

    Returns:
        9-character string, one symbol per cell in row-major order
    """
    return "".join(KEY_SYMBOLS[cell] for cell in board)
