"""Command line interface for qtictactoe."""

import logging
from pathlib import Path
from typing import Optional

import click
import numpy as np
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from qtictactoe.board import Board, Outcome, legal_actions, render
from qtictactoe.config import AppConfig, Difficulty, load_config, parse_difficulty
from qtictactoe.evaluate import evaluate_policy
from qtictactoe.exceptions import QTicTacToeError
from qtictactoe.game import GameSession
from qtictactoe.storage import FileKeyValueBackend, ValueTableStore
from qtictactoe.train import TrainingMetrics

console = Console()

DIFFICULTY_CHOICE = click.Choice([d.value for d in Difficulty], case_sensitive=False)

OUTCOME_MESSAGES = {
    Outcome.PLAYER_A: "[green]You win![/green]",
    Outcome.PLAYER_B: "[red]Bot wins[/red]",
    Outcome.DRAW: "[yellow]Draw[/yellow]",
}


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _backend(config: AppConfig) -> FileKeyValueBackend:
    return FileKeyValueBackend(config.storage.get_directory())


def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Optional[Path]) -> None:
    """qttt: train and play a Q-learning tic-tac-toe bot.

    \b
    Examples:
        qttt train --difficulty hard     # Train the hard bot
        qttt play --difficulty medium    # Play against the medium bot
        qttt evaluate -d hard            # Greedy bot vs random opponent
        qttt stats                       # Known states per difficulty
        qttt clear                       # Forget everything
    """
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except QTicTacToeError as e:
        raise click.ClickException(str(e))

    _setup_logging("DEBUG" if verbose else config.logging.level)
    ctx.obj["config"] = config


@cli.command("train")
@click.option("--difficulty", "-d", type=DIFFICULTY_CHOICE, default="hard", show_default=True)
@click.option("--episodes", "-n", type=click.IntRange(min=1), help="Override preset episode count")
@click.option("--seed", type=int, default=None, help="Random seed")
@click.option(
    "--plot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Save learning curves to this image file",
)
@click.pass_context
def train_command(
    ctx: click.Context,
    difficulty: str,
    episodes: Optional[int],
    seed: Optional[int],
    plot: Optional[Path],
) -> None:
    """Train the bot for a difficulty and save its value table."""
    config: AppConfig = ctx.obj["config"]
    level = parse_difficulty(difficulty)
    session = GameSession(_backend(config), config, level, _rng(seed))
    total = episodes or config.training.presets[level].episodes

    with Progress(
        TextColumn("[bold blue]Training {task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(level.value, total=total)

        def on_progress(done: int, _total: int) -> None:
            progress.update(task, completed=done)

        try:
            metrics = session.train(episodes, progress=on_progress)
        except QTicTacToeError as e:
            raise click.ClickException(f"Training failed: {e}")

    _print_training_summary(metrics, session.state_count)

    if plot is not None:
        from qtictactoe.visualize import plot_learning_curves

        plot.parent.mkdir(parents=True, exist_ok=True)
        plot_learning_curves(
            metrics.to_dict(), str(plot), title=f"Q-Learning ({level.value})"
        )
        console.print(f"Saved plot to {plot}")


def _print_training_summary(metrics: TrainingMetrics, state_count: int) -> None:
    if not metrics.episodes:
        console.print("[yellow]No training data available.[/yellow]")
        return

    table = Table(title="Training Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Episodes", str(metrics.episodes[-1]))
    table.add_row("Final batch win rate", f"{metrics.win_rates[-1]:.1%}")
    table.add_row("Final batch loss rate", f"{metrics.loss_rates[-1]:.1%}")
    table.add_row("Final batch draw rate", f"{metrics.draw_rates[-1]:.1%}")
    table.add_row("Final epsilon", f"{metrics.epsilons[-1]:.4f}")
    table.add_row("Known states", str(state_count))
    console.print(table)


@cli.command("play")
@click.option("--difficulty", "-d", type=DIFFICULTY_CHOICE, default="hard", show_default=True)
@click.option("--seed", type=int, default=None, help="Random seed")
@click.pass_context
def play_command(ctx: click.Context, difficulty: str, seed: Optional[int]) -> None:
    """Play against the bot. You are X and move first."""
    config: AppConfig = ctx.obj["config"]
    session = GameSession(_backend(config), config, parse_difficulty(difficulty), _rng(seed))

    if session.state_count == 0:
        console.print(
            f"[yellow]The {difficulty} bot is untrained.[/yellow] "
            f"Run 'qttt train -d {difficulty}' for a stronger opponent."
        )

    while True:
        _show_board(session.board)
        while not session.outcome.is_terminal:
            answer = click.prompt("Your move (0-8, q to quit)")
            if answer.strip().lower() == "q":
                return
            try:
                report = session.human_move(int(answer))
            except ValueError:
                console.print("[red]Enter a cell number between 0 and 8[/red]")
                continue
            except QTicTacToeError as e:
                console.print(f"[red]{e}[/red]")
                continue

            if report.bot_action is not None:
                console.print(f"Bot plays {report.bot_action}")
            _show_board(report.board)

        console.print(OUTCOME_MESSAGES[session.outcome])
        if not click.confirm("Play again?", default=False):
            return
        session.reset()


def _show_board(board: Board) -> None:
    console.print(render(board), highlight=False)
    if legal_actions(board):
        console.print(f"[dim]Free cells: {' '.join(map(str, legal_actions(board)))}[/dim]")


@cli.command("evaluate")
@click.option("--difficulty", "-d", type=DIFFICULTY_CHOICE, default="hard", show_default=True)
@click.option("--games", "-g", type=click.IntRange(min=1), default=100, show_default=True)
@click.option("--seed", type=int, default=None, help="Random seed")
@click.pass_context
def evaluate_command(ctx: click.Context, difficulty: str, games: int, seed: Optional[int]) -> None:
    """Play the difficulty's bot against a random opponent."""
    config: AppConfig = ctx.obj["config"]
    level = parse_difficulty(difficulty)
    store = ValueTableStore(_backend(config), config.storage_key(level))
    results = evaluate_policy(
        store.load(), num_games=games, epsilon=config.play_epsilon(level), seed=seed
    )

    table = Table(title=f"{level.value} bot vs random ({games} games)")
    table.add_column("Result", style="cyan")
    table.add_column("Games", justify="right")
    table.add_column("Rate", justify="right")
    table.add_row("Bot wins", str(results["agent_wins"]), f"{results['agent_win_rate']:.1%}")
    table.add_row(
        "Random wins", str(results["opponent_wins"]), f"{results['opponent_win_rate']:.1%}"
    )
    table.add_row("Draws", str(results["draws"]), f"{results['draw_rate']:.1%}")
    console.print(table)
    console.print(f"Average moves per game: {results['avg_moves_per_game']:.1f}")


@cli.command("stats")
@click.pass_context
def stats_command(ctx: click.Context) -> None:
    """Show how many states each difficulty's table knows."""
    config: AppConfig = ctx.obj["config"]
    backend = _backend(config)

    table = Table(title="Value Tables")
    table.add_column("Difficulty", style="cyan")
    table.add_column("States", justify="right")
    table.add_column("Play epsilon", justify="right")
    for level in Difficulty:
        count = len(ValueTableStore(backend, config.storage_key(level)).load())
        table.add_row(level.value, str(count), f"{config.play_epsilon(level):.2f}")
    console.print(table)


@cli.command("clear")
@click.option("--difficulty", "-d", type=DIFFICULTY_CHOICE, help="Only clear this difficulty")
@click.pass_context
def clear_command(ctx: click.Context, difficulty: Optional[str]) -> None:
    """Delete persisted value tables."""
    config: AppConfig = ctx.obj["config"]
    backend = _backend(config)
    levels = [parse_difficulty(difficulty)] if difficulty else list(Difficulty)

    try:
        for level in levels:
            ValueTableStore(backend, config.storage_key(level)).clear()
    except QTicTacToeError as e:
        raise click.ClickException(str(e))

    console.print(f"[green]✓[/green] Cleared {', '.join(level.value for level in levels)}")


if __name__ == "__main__":
    cli()
