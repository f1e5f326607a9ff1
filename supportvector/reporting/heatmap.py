"""Confusion-matrix heatmap rendered with seaborn."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
import seaborn as sns

from ..evaluation.confusion import ConfusionMatrix, OutcomeKind, format_edges
from ..utils.logger import get_logger

logger = get_logger(__name__)

DPI = 150


def axis_labels(cm: ConfusionMatrix) -> list[str]:
    """Category labels for both axes; continuous buckets show their upper bound."""
    if cm.kind is OutcomeKind.CONTINUOUS:
        return format_edges(cm.breakpoints)[1:]
    return [str(c) for c in cm.categories]


def plot_confusion_heatmap(
    cm: ConfusionMatrix,
    title: str = "Support Vector Machine Confusion Matrix",
    footer: str = "",
    save_path: Optional[Path | str] = None,
    cmap: str = "Reds",
    annotate_max_rows: int = 10,
    dpi: int = DPI,
) -> plt.Figure:
    """Plot the confusion matrix with observed rows and predicted columns.

    Cell values are written in the cells only when there are at most
    *annotate_max_rows* rows.

    Returns:
        The matplotlib figure; callers own it and should close it.
    """
    labels = axis_labels(cm)
    n = len(labels)
    size = max(5.0, 0.5 * n + 3)

    fig, ax = plt.subplots(figsize=(size + 1, size))
    sns.heatmap(
        cm.to_numpy(),
        annot=n <= annotate_max_rows,
        fmt="g",
        cmap=cmap,
        xticklabels=labels,
        yticklabels=labels,
        ax=ax,
        linewidths=0.5,
    )
    ax.xaxis.tick_top()
    ax.xaxis.set_label_position("top")
    ax.set_xlabel("Predicted")
    ax.set_ylabel("Observed")
    ax.tick_params(axis="y", labelsize=8)
    ax.set_title(title, fontsize=13, fontweight="bold", pad=28)
    if footer:
        fig.text(0.01, 0.01, footer, fontsize=8, ha="left", va="bottom", wrap=True)
    fig.tight_layout(rect=(0, 0.04, 1, 1))

    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=dpi)
        logger.info(f"Saved confusion heatmap → {save_path}")
    return fig
