"""Interactive game session: a human (X) against the trained bot (O)."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from qtictactoe.board import (
    PLAYER_A,
    PLAYER_B,
    Board,
    Outcome,
    apply_action,
    legal_actions,
    new_board,
    winner,
)
from qtictactoe.codec import encode_state
from qtictactoe.config import AppConfig, Difficulty
from qtictactoe.exceptions import GameOverError, TrainingInProgressError
from qtictactoe.policy import select_action
from qtictactoe.storage import KeyValueBackend, ValueTableStore
from qtictactoe.train import ProgressCallback, StopCheck, TrainingMetrics, train_in_chunks
from qtictactoe.value_table import ValueTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveReport:
    """What the presentation layer needs after a human move."""

    board: Board
    human_action: int
    bot_action: Optional[int]
    outcome: Outcome


def bot_move(
    table: ValueTable, board: Board, epsilon: float, rng: np.random.Generator
) -> Tuple[Board, Optional[int]]:
    """
    Let the bot (O) answer on ``board``.

    Returns:
        Tuple of (new board, chosen action); the board is returned unchanged
        with action None when no cell is empty
    """
    actions = legal_actions(board)
    if not actions:
        return board, None
    action = select_action(table, encode_state(board), actions, epsilon, rng)
    return apply_action(board, action, PLAYER_B), action


class GameSession:
    """
    Owns the board and one value table per difficulty.

    Training and play never overlap: while :meth:`train` runs, moves are
    refused with :class:`TrainingInProgressError`.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        config: Optional[AppConfig] = None,
        difficulty: Difficulty = Difficulty.HARD,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.backend = backend
        self.config = config or AppConfig()
        self.difficulty = difficulty
        self.rng = rng if rng is not None else np.random.default_rng()
        self.board: Board = new_board()
        self._tables: Dict[Difficulty, ValueTable] = {}
        self._training = False

    @property
    def store(self) -> ValueTableStore:
        return ValueTableStore(self.backend, self.config.storage_key(self.difficulty))

    @property
    def table(self) -> ValueTable:
        """Value table of the current difficulty, loaded on first use."""
        if self.difficulty not in self._tables:
            self._tables[self.difficulty] = self.store.load()
        return self._tables[self.difficulty]

    @property
    def state_count(self) -> int:
        return len(self.table)

    @property
    def outcome(self) -> Outcome:
        return winner(self.board)

    @property
    def is_training(self) -> bool:
        return self._training

    def set_difficulty(self, difficulty: Difficulty) -> None:
        self.difficulty = difficulty

    def reset(self) -> None:
        """Start a new game."""
        self.board = new_board()

    def human_move(self, index: int) -> MoveReport:
        """
        Play X on ``index`` and let the bot answer if the game goes on.

        Raises:
            TrainingInProgressError: If training is running
            GameOverError: If the game has already finished
            IllegalMoveError: If the cell is occupied or out of range
        """
        if self._training:
            raise TrainingInProgressError("Wait for training to finish before playing")
        if self.outcome.is_terminal:
            raise GameOverError("The game is over; reset to play again")

        self.board = apply_action(self.board, index, PLAYER_A)
        outcome = winner(self.board)
        if outcome.is_terminal:
            return MoveReport(self.board, index, None, outcome)

        epsilon = self.config.play_epsilon(self.difficulty)
        self.board, action = bot_move(self.table, self.board, epsilon, self.rng)
        return MoveReport(self.board, index, action, winner(self.board))

    def train(
        self,
        episodes: Optional[int] = None,
        progress: Optional[ProgressCallback] = None,
        should_stop: Optional[StopCheck] = None,
    ) -> TrainingMetrics:
        """
        Train the current difficulty's table with its preset.

        Args:
            episodes: Override the preset's episode count
            progress: Called with (episodes completed, episodes total)
            should_stop: Returns True to stop between chunks

        Returns:
            Training metrics
        """
        if self._training:
            raise TrainingInProgressError("Training is already running")

        config = self.config.training_config(self.difficulty, episodes)
        self._training = True
        try:
            metrics = train_in_chunks(
                self.store,
                config,
                self.rng,
                report_every=self.config.training.report_every,
                progress=progress,
                should_stop=should_stop,
            )
        finally:
            self._training = False

        self._tables[self.difficulty] = self.store.load()
        return metrics

    def save(self) -> None:
        """Persist the in-memory table of the current difficulty."""
        self.store.save(self.table)

    def clear(self) -> None:
        """Drop the current difficulty's table, in memory and in the store."""
        self.store.clear()
        self._tables[self.difficulty] = ValueTable()
        logger.info("Cleared value table for %s", self.difficulty.value)
