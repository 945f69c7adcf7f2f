"""Plots of a training run."""

from typing import Dict, List, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402


def split_at_chunks(
    episodes: Sequence[int], values: Sequence[float], chunk_ends: Sequence[int]
) -> List[Tuple[List[int], List[float]]]:
    """
    Split a metric series into one segment per training chunk.

    A record belongs to the first chunk whose end is at or after its episode.
    Records past the last chunk end (or all of them, without chunk ends) form
    a final segment.
    """
    segments: List[Tuple[List[int], List[float]]] = []
    xs: List[int] = []
    ys: List[float] = []
    ends = iter(chunk_ends)
    end = next(ends, None)

    for episode, value in zip(episodes, values):
        while end is not None and episode > end:
            if xs:
                segments.append((xs, ys))
                xs, ys = [], []
            end = next(ends, None)
        xs.append(episode)
        ys.append(value)

    if xs:
        segments.append((xs, ys))
    return segments


def plot_learning_curves(
    metrics: Dict[str, List],
    save_path: str,
    title: str = "Q-Learning Training Progress",
) -> None:
    """
    Save a two-panel figure of a training run.

    The top panel draws epsilon once per chunk, so a chunked run shows its
    restart at every boundary. The bottom panel stacks the agent's batch
    win/draw/loss shares with the value table size on a second axis.

    Args:
        metrics: Dictionary from TrainingMetrics.to_dict()
        save_path: Path of the image to write
        title: Figure title
    """
    episodes = metrics["episodes"]
    if not episodes:
        raise ValueError("No training data to plot")
    chunk_ends = metrics.get("chunk_ends", [])

    fig, (eps_ax, out_ax) = plt.subplots(2, 1, figsize=(10, 8), sharex=True)
    fig.suptitle(title, fontsize=14, fontweight="bold")

    for xs, ys in split_at_chunks(episodes, metrics["epsilons"], chunk_ends):
        eps_ax.plot(xs, ys, color="tab:orange", linewidth=1.5)
    for end in chunk_ends[:-1]:
        eps_ax.axvline(end, color="grey", linestyle=":", linewidth=0.8)
    eps_ax.set_ylabel("Epsilon")
    eps_ax.set_ylim([-0.05, 1.05])
    eps_ax.grid(True, alpha=0.3)

    out_ax.stackplot(
        episodes,
        metrics["win_rates"],
        metrics["draw_rates"],
        metrics["loss_rates"],
        labels=["Bot wins", "Draws", "Random wins"],
        colors=["tab:green", "tab:gray", "tab:red"],
        alpha=0.7,
    )
    out_ax.set_xlabel("Episode")
    out_ax.set_ylabel("Share of batch")
    out_ax.set_ylim([0, 1])
    out_ax.legend(loc="upper left")

    size_ax = out_ax.twinx()
    size_ax.plot(episodes, metrics["q_table_sizes"], color="black", linewidth=1.5)
    size_ax.set_ylabel("Known states")

    fig.tight_layout()
    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
