"""Epsilon-greedy action selection over a value table."""

from typing import Sequence

import numpy as np

from qtictactoe.exceptions import NoLegalActionsError
from qtictactoe.value_table import ValueTable


def random_action(legal_actions: Sequence[int], rng: np.random.Generator) -> int:
    """Pick a legal action uniformly at random."""
    if not legal_actions:
        raise NoLegalActionsError("No legal actions available")
    return int(legal_actions[int(rng.integers(len(legal_actions)))])


def greedy_action(table: ValueTable, state_key: str, legal_actions: Sequence[int]) -> int:
    """
    Legal action with the highest value.

    Ties go to the first action in ``legal_actions`` order. Unseen states are
    read as all zeros and are not inserted into the table.
    """
    if not legal_actions:
        raise NoLegalActionsError("No legal actions available")

    values = table.peek(state_key)
    best_action = legal_actions[0]
    best_value = float("-inf")
    for action in legal_actions:
        value = values[action]
        if value > best_value:
            best_value = value
            best_action = action
    return int(best_action)


def select_action(
    table: ValueTable,
    state_key: str,
    legal_actions: Sequence[int],
    epsilon: float,
    rng: np.random.Generator,
) -> int:
    """
    Select an action using an epsilon-greedy policy.

    Args:
        table: Value table to consult
        state_key: Encoded current state
        legal_actions: Empty cells, ascending
        epsilon: Probability of exploring with a uniformly random action
        rng: Random generator

    Returns:
        Selected action

    Raises:
        NoLegalActionsError: If ``legal_actions`` is empty
    """
    if not legal_actions:
        raise NoLegalActionsError("No legal actions available")

    if rng.random() < epsilon:
        return random_action(legal_actions, rng)
    return greedy_action(table, state_key, legal_actions)
