"""Q-learning training against a uniformly random opponent.

The opponent plays X and moves first; the learning agent plays O. After each
agent move the value table receives one TD(0) update:

    Q[s][a] <- Q[s][a] + alpha * (r + gamma * max Q[s'] - Q[s][a])
"""

import logging
from typing import Callable, Dict, List, Optional

import numpy as np

from qtictactoe.board import (
    PLAYER_A,
    PLAYER_B,
    Outcome,
    apply_action,
    legal_actions,
    new_board,
    winner,
)
from qtictactoe.codec import encode_state
from qtictactoe.config import TrainingConfig
from qtictactoe.policy import random_action, select_action
from qtictactoe.storage import ValueTableStore
from qtictactoe.value_table import ValueTable

logger = logging.getLogger(__name__)

DEFAULT_REPORT_EVERY = 200
MIN_CHUNK_SIZE = 100
CHUNKS_PER_RUN = 40

ProgressCallback = Callable[[int, int], None]
StopCheck = Callable[[], bool]


class TrainingMetrics:
    """Track training metrics over batches of episodes."""

    def __init__(self) -> None:
        """Initialize metrics tracking."""
        self.episodes: List[int] = []
        self.wins: List[int] = []
        self.losses: List[int] = []
        self.draws: List[int] = []
        self.win_rates: List[float] = []
        self.loss_rates: List[float] = []
        self.draw_rates: List[float] = []
        self.epsilons: List[float] = []
        self.q_table_sizes: List[int] = []
        # Cumulative episode count at the end of each chunked invocation
        self.chunk_ends: List[int] = []

    def record(
        self,
        episode: int,
        wins: int,
        losses: int,
        draws: int,
        epsilon: float,
        q_table_size: int,
    ) -> None:
        """Record outcome counts of the batch ending at ``episode``."""
        total = wins + losses + draws

        self.episodes.append(episode)
        self.wins.append(wins)
        self.losses.append(losses)
        self.draws.append(draws)
        self.win_rates.append(wins / total if total > 0 else 0.0)
        self.loss_rates.append(losses / total if total > 0 else 0.0)
        self.draw_rates.append(draws / total if total > 0 else 0.0)
        self.epsilons.append(epsilon)
        self.q_table_sizes.append(q_table_size)

    @property
    def total_episodes(self) -> int:
        return sum(self.wins) + sum(self.losses) + sum(self.draws)

    def to_dict(self) -> Dict[str, List]:
        """Convert metrics to dictionary."""
        return {
            "episodes": self.episodes,
            "wins": self.wins,
            "losses": self.losses,
            "draws": self.draws,
            "win_rates": self.win_rates,
            "loss_rates": self.loss_rates,
            "draw_rates": self.draw_rates,
            "epsilons": self.epsilons,
            "q_table_sizes": self.q_table_sizes,
            "chunk_ends": self.chunk_ends,
        }


def epsilon_at(episode: int, total: int, start: float, end: float) -> float:
    """
    Linearly annealed exploration rate.

    Episode 0 gets ``start`` and episode ``total - 1`` gets ``end``.
    """
    return start + (end - start) * (episode / max(1, total - 1))


def td_update(
    table: ValueTable,
    state_before: str,
    action: int,
    reward: float,
    state_after: str,
    alpha: float,
    gamma: float,
) -> float:
    """
    Apply one TD(0) update in place.

    Both states are materialized as zero vectors if unseen. A terminal
    ``state_after`` is bootstrapped from its own vector like any other state;
    nothing is ever written to a terminal state, so that vector stays zero.

    Returns:
        The updated value of ``Q[state_before][action]``
    """
    q_before = table.get_or_init(state_before)
    max_next = table.max_value(state_after)

    q_before[action] += alpha * (reward + gamma * max_next - q_before[action])
    return float(q_before[action])


def reward_for(outcome: Outcome) -> float:
    """Reward seen by the agent (O) after its own move."""
    if outcome is Outcome.PLAYER_B:
        return 1.0
    if outcome is Outcome.PLAYER_A:
        return -1.0
    return 0.0


def play_training_episode(
    table: ValueTable,
    config: TrainingConfig,
    epsilon: float,
    rng: np.random.Generator,
) -> Outcome:
    """
    Simulate one game and update ``table`` after every agent move.

    Args:
        table: Value table to train
        config: Learning rate and discount
        epsilon: Agent exploration rate for this episode
        rng: Random generator shared by agent and opponent

    Returns:
        Final outcome of the game
    """
    board = new_board()
    turn = PLAYER_A
    outcome = Outcome.NONE

    while not outcome.is_terminal:
        actions = legal_actions(board)

        if turn == PLAYER_A:
            # Opponent moves are not learned from
            board = apply_action(board, random_action(actions, rng), PLAYER_A)
            outcome = winner(board)
            turn = PLAYER_B
            continue

        state_before = encode_state(board)
        action = select_action(table, state_before, actions, epsilon, rng)
        board = apply_action(board, action, PLAYER_B)
        outcome = winner(board)

        td_update(
            table,
            state_before,
            action,
            reward_for(outcome),
            encode_state(board),
            config.learning_rate,
            config.discount,
        )
        turn = PLAYER_A

    return outcome


def train_episodes(
    table: ValueTable,
    config: TrainingConfig,
    rng: Optional[np.random.Generator] = None,
    *,
    episode_offset: int = 0,
    report_every: int = DEFAULT_REPORT_EVERY,
    progress: Optional[ProgressCallback] = None,
    should_stop: Optional[StopCheck] = None,
    metrics: Optional[TrainingMetrics] = None,
) -> TrainingMetrics:
    """
    Run ``config.episode_count`` episodes against one shared table.

    Episodes run in batches of ``report_every``. After each batch the
    metrics are recorded, ``progress(done, total)`` is called and
    ``should_stop()`` is consulted; a run is never interrupted mid-batch.

    Args:
        table: Value table to train in place
        config: Training parameters
        rng: Random generator (a fresh unseeded one if omitted)
        episode_offset: Added to episode numbers recorded in the metrics
        report_every: Episodes per batch
        progress: Called with (episodes completed, episodes total)
        should_stop: Returns True to end the run at the next batch boundary
        metrics: Existing metrics to append to

    Returns:
        Training metrics with one record per batch
    """
    if report_every < 1:
        raise ValueError("report_every must be at least 1")

    rng = rng if rng is not None else np.random.default_rng()
    metrics = metrics if metrics is not None else TrainingMetrics()
    total = config.episode_count

    wins = losses = draws = 0
    epsilon = config.epsilon_start

    for done in range(1, total + 1):
        epsilon = epsilon_at(done - 1, total, config.epsilon_start, config.epsilon_end)
        outcome = play_training_episode(table, config, epsilon, rng)

        if outcome is Outcome.PLAYER_B:
            wins += 1
        elif outcome is Outcome.PLAYER_A:
            losses += 1
        else:
            draws += 1

        if done % report_every == 0 or done == total:
            metrics.record(episode_offset + done, wins, losses, draws, epsilon, len(table))
            logger.debug(
                "Episode %d/%d: wins=%d losses=%d draws=%d epsilon=%.3f states=%d",
                done, total, wins, losses, draws, epsilon, len(table),
            )
            wins = losses = draws = 0

            if progress is not None:
                progress(done, total)
            if done < total and should_stop is not None and should_stop():
                logger.info("Training stopped after %d/%d episodes", done, total)
                break

    return metrics


def train_from_store(
    store: ValueTableStore,
    config: TrainingConfig,
    rng: Optional[np.random.Generator] = None,
    **kwargs,
) -> ValueTable:
    """
    One training invocation: load the table, train it, save it once.

    Extra keyword arguments are passed to :func:`train_episodes`.

    Returns:
        The trained table (already persisted)
    """
    table = store.load()
    logger.info(
        "Training %d episodes from %d known states (epsilon %.2f -> %.2f)",
        config.episode_count, len(table), config.epsilon_start, config.epsilon_end,
    )
    train_episodes(table, config, rng, **kwargs)
    store.save(table)
    logger.info("Training finished with %d states", len(table))
    return table


def chunk_size_for(episodes: int) -> int:
    """Episodes per chunk for a run of ``episodes``."""
    return max(MIN_CHUNK_SIZE, episodes // CHUNKS_PER_RUN)


def train_in_chunks(
    store: ValueTableStore,
    config: TrainingConfig,
    rng: Optional[np.random.Generator] = None,
    *,
    chunk_size: Optional[int] = None,
    report_every: int = DEFAULT_REPORT_EVERY,
    progress: Optional[ProgressCallback] = None,
    should_stop: Optional[StopCheck] = None,
) -> TrainingMetrics:
    """
    Train as a sequence of load -> train -> save invocations.

    Each chunk finishes and persists before the next one loads, so the store
    always holds a complete table between chunks. Every chunk is its own
    invocation and anneals epsilon from start to end over its own episodes.

    Args:
        store: Store holding the table
        config: Training parameters for the whole run
        rng: Random generator shared across chunks
        chunk_size: Episodes per chunk (default: max(100, episodes // 40))
        report_every: Episodes per metrics batch inside a chunk
        progress: Called with cumulative (episodes completed, episodes total)
            after each chunk
        should_stop: Returns True to stop before the next chunk

    Returns:
        Metrics accumulated over all chunks
    """
    rng = rng if rng is not None else np.random.default_rng()
    total = config.episode_count
    size = chunk_size if chunk_size is not None else chunk_size_for(total)
    if size < 1:
        raise ValueError("chunk_size must be at least 1")

    metrics = TrainingMetrics()
    done = 0

    while done < total:
        take = min(size, total - done)
        chunk_config = config.model_copy(update={"episode_count": take})
        train_from_store(
            store,
            chunk_config,
            rng,
            episode_offset=done,
            report_every=report_every,
            metrics=metrics,
        )
        done += take
        metrics.chunk_ends.append(done)

        if progress is not None:
            progress(done, total)
        if done < total and should_stop is not None and should_stop():
            logger.info("Chunked training stopped after %d/%d episodes", done, total)
            break

    return metrics
