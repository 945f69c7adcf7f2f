"""Tests for epsilon-greedy action selection."""

from collections import Counter

import numpy as np
import pytest

from qtictactoe.exceptions import NoLegalActionsError
from qtictactoe.policy import greedy_action, random_action, select_action
from qtictactoe.value_table import ValueTable

STATE = "X___O____"


def _table_with(values) -> ValueTable:
    return ValueTable({STATE: values})


class TestGreedySelection:
    """Test epsilon = 0 behaviour."""

    def test_picks_highest_legal_value(self) -> None:
        """Test that the best legal action wins."""
        table = _table_with([0.0, 0.1, 0.9, 0.0, 0.0, 0.3, 0.0, 0.0, 0.0])
        rng = np.random.default_rng(0)
        assert select_action(table, STATE, [1, 2, 3, 5], 0.0, rng) == 2

    def test_ignores_illegal_actions(self) -> None:
        """Test that high values on occupied cells are never chosen."""
        table = _table_with([5.0, 0.1, 0.0, 0.0, 5.0, 0.2, 0.0, 0.0, 0.0])
        rng = np.random.default_rng(0)
        assert select_action(table, STATE, [1, 2, 5], 0.0, rng) == 5

    def test_ties_go_to_first_legal_action(self) -> None:
        """Test deterministic first-match tie-break."""
        table = _table_with([0.0, 0.0, 0.4, 0.0, 0.0, 0.4, 0.0, 0.4, 0.0])
        rng = np.random.default_rng(0)
        assert select_action(table, STATE, [1, 2, 5, 7], 0.0, rng) == 2

    def test_unseen_state_picks_first_action(self) -> None:
        """Test that an unknown state reads as all zeros."""
        table = ValueTable()
        rng = np.random.default_rng(0)
        assert select_action(table, "_________", [3, 4, 8], 0.0, rng) == 3
        assert len(table) == 0

    def test_negative_values_still_choose_max(self) -> None:
        """Test that all-negative vectors pick the least bad action."""
        table = _table_with([-1.0, -0.5, -0.2, -0.9, 0.0, -0.3, -1.0, -1.0, -1.0])
        assert greedy_action(table, STATE, [0, 1, 2, 3]) == 2

    def test_repeated_calls_are_deterministic(self) -> None:
        """Test that greedy selection never varies."""
        table = _table_with([0.0, 0.2, 0.0, 0.2, 0.0, 0.0, 0.0, 0.0, 0.0])
        rng = np.random.default_rng(123)
        actions = {select_action(table, STATE, [1, 3, 6], 0.0, rng) for _ in range(100)}
        assert actions == {1}


class TestExploration:
    """Test epsilon > 0 behaviour."""

    def test_full_exploration_stays_legal(self) -> None:
        """Test that random picks come only from legal actions."""
        table = _table_with([9.0] * 9)
        rng = np.random.default_rng(42)
        legal = [1, 3, 5, 6, 7]

        for _ in range(200):
            assert select_action(table, STATE, legal, 1.0, rng) in legal

    def test_full_exploration_is_roughly_uniform(self) -> None:
        """Test that epsilon = 1 ignores values and spreads picks evenly."""
        table = _table_with([0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0])
        rng = np.random.default_rng(7)
        legal = [0, 2, 4, 8]

        counts = Counter(select_action(table, STATE, legal, 1.0, rng) for _ in range(4000))

        assert set(counts) == set(legal)
        for action in legal:
            assert 800 < counts[action] < 1200

    def test_partial_exploration_mixes(self) -> None:
        """Test that intermediate epsilon mostly exploits."""
        table = _table_with([0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0])
        rng = np.random.default_rng(3)
        legal = [0, 2, 4, 8]

        picks = [select_action(table, STATE, legal, 0.25, rng) for _ in range(2000)]
        greedy_share = picks.count(2) / len(picks)

        # 0.75 greedy + 0.25 * 1/4 random hits on the greedy cell
        assert 0.75 < greedy_share < 0.90
        assert len(set(picks)) > 1


class TestPreconditions:
    """Test caller errors."""

    def test_empty_actions_raise(self) -> None:
        """Test that no legal action is a caller error."""
        rng = np.random.default_rng(0)
        with pytest.raises(NoLegalActionsError):
            select_action(ValueTable(), STATE, [], 0.0, rng)
        with pytest.raises(NoLegalActionsError):
            select_action(ValueTable(), STATE, [], 1.0, rng)

    def test_random_action_empty_raises(self) -> None:
        """Test the opponent's sampler precondition."""
        with pytest.raises(NoLegalActionsError):
            random_action([], np.random.default_rng(0))
