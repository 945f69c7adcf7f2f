"""Tabular Q-learning tic-tac-toe."""

from qtictactoe.board import EMPTY, PLAYER_A, PLAYER_B, Board, Outcome
from qtictactoe.codec import encode_state
from qtictactoe.config import AppConfig, Difficulty, TrainingConfig
from qtictactoe.policy import select_action
from qtictactoe.storage import ValueTableStore
from qtictactoe.train import td_update, train_episodes
from qtictactoe.value_table import ValueTable

__version__ = "0.1.0"

__all__ = [
    "EMPTY",
    "PLAYER_A",
    "PLAYER_B",
    "Board",
    "Outcome",
    "encode_state",
    "AppConfig",
    "Difficulty",
    "TrainingConfig",
    "select_action",
    "ValueTableStore",
    "td_update",
    "train_episodes",
    "ValueTable",
]
