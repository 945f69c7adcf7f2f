"""Evaluation of a trained value table against the random opponent."""

from typing import Any, Dict, Optional, Tuple

import numpy as np

from qtictactoe.board import PLAYER_A, PLAYER_B, Outcome, apply_action, legal_actions, new_board, winner
from qtictactoe.codec import encode_state
from qtictactoe.policy import random_action, select_action
from qtictactoe.value_table import ValueTable


def play_game(
    table: ValueTable,
    epsilon: float,
    rng: np.random.Generator,
) -> Tuple[Outcome, int]:
    """
    Play a single game: random opponent as X, policy as O.

    The table is only read, never updated.

    Returns:
        Tuple of (outcome, num_moves)
    """
    board = new_board()
    num_moves = 0
    outcome = Outcome.NONE
    turn = PLAYER_A

    while not outcome.is_terminal:
        actions = legal_actions(board)
        if turn == PLAYER_A:
            action = random_action(actions, rng)
        else:
            action = select_action(table, encode_state(board), actions, epsilon, rng)
        board = apply_action(board, action, turn)
        num_moves += 1
        outcome = winner(board)
        turn = PLAYER_B if turn == PLAYER_A else PLAYER_A

    return outcome, num_moves


def evaluate_policy(
    table: ValueTable,
    num_games: int = 100,
    epsilon: float = 0.0,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Measure how the policy fares against the random opponent.

    Args:
        table: Trained value table
        num_games: Number of games to play
        epsilon: Exploration rate of the policy (0 = greedy)
        seed: Random seed

    Returns:
        Dictionary with evaluation results
    """
    if num_games < 1:
        raise ValueError("num_games must be at least 1")

    rng = np.random.default_rng(seed)

    agent_wins = 0
    opponent_wins = 0
    draws = 0
    total_moves = 0

    for _ in range(num_games):
        outcome, moves = play_game(table, epsilon, rng)
        total_moves += moves

        if outcome is Outcome.PLAYER_B:
            agent_wins += 1
        elif outcome is Outcome.PLAYER_A:
            opponent_wins += 1
        else:
            draws += 1

    return {
        "num_games": num_games,
        "epsilon": epsilon,
        "agent_wins": agent_wins,
        "opponent_wins": opponent_wins,
        "draws": draws,
        "agent_win_rate": agent_wins / num_games,
        "opponent_win_rate": opponent_wins / num_games,
        "draw_rate": draws / num_games,
        "avg_moves_per_game": total_moves / num_games,
    }
