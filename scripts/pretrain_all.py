#!/usr/bin/env python3
"""Pre-train the value tables of every difficulty and report their strength."""

import argparse
from pathlib import Path

import numpy as np

from qtictactoe.config import Difficulty, load_config
from qtictactoe.evaluate import evaluate_policy
from qtictactoe.storage import FileKeyValueBackend, ValueTableStore
from qtictactoe.train import train_in_chunks


def main() -> None:
    """Train easy, medium and hard tables one after another."""
    parser = argparse.ArgumentParser(description="Pre-train all difficulty presets")
    parser.add_argument("--config", type=Path, default=None, help="Configuration file")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Clear existing tables before training",
    )
    parser.add_argument(
        "--eval-games",
        type=int,
        default=500,
        help="Games against the random opponent after training",
    )
    args = parser.parse_args()

    config = load_config(args.config)
    backend = FileKeyValueBackend(config.storage.get_directory())
    rng = np.random.default_rng(args.seed)

    for level in Difficulty:
        store = ValueTableStore(backend, config.storage_key(level))
        if args.fresh:
            store.clear()

        training_config = config.training_config(level)
        print(
            f"{level.value}: {training_config.episode_count} episodes, "
            f"epsilon {training_config.epsilon_start} -> {training_config.epsilon_end}"
        )
        train_in_chunks(store, training_config, rng, report_every=config.training.report_every)

        table = store.load()
        results = evaluate_policy(
            table, num_games=args.eval_games, epsilon=0.0, seed=args.seed
        )
        print(
            f"  states={len(table)} "
            f"win={results['agent_win_rate']:.1%} "
            f"loss={results['opponent_win_rate']:.1%} "
            f"draw={results['draw_rate']:.1%}"
        )


if __name__ == "__main__":
    main()
