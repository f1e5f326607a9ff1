"""Percentage views of a confusion matrix, used for tooltips and tables."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..evaluation.confusion import ConfusionMatrix


@dataclass(frozen=True)
class Percentages:
    """Cell values as a share of the total, of their column and of their row."""

    cell: pd.DataFrame
    column: pd.DataFrame
    row: pd.DataFrame


def _share(values: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    return np.divide(
        100.0 * values,
        denominator,
        out=np.zeros_like(values, dtype=float),
        where=denominator > 0,
    )


def confusion_percentages(cm: ConfusionMatrix) -> Percentages:
    """Derive cell, column and row percentages.

    Cells whose denominator is zero are reported as 0.
    """
    values = cm.to_numpy()
    total = np.full_like(values, values.sum())
    column_sums = np.broadcast_to(values.sum(axis=0, keepdims=True), values.shape)
    row_sums = np.broadcast_to(values.sum(axis=1, keepdims=True), values.shape)

    def frame(data: np.ndarray) -> pd.DataFrame:
        return pd.DataFrame(data, index=cm.table.index, columns=cm.table.columns)

    return Percentages(
        cell=frame(_share(values, total)),
        column=frame(_share(values, column_sums)),
        row=frame(_share(values, row_sums)),
    )


def tooltip_matrices(cm: ConfusionMatrix, decimals: int = 2) -> dict[str, pd.DataFrame]:
    """Text for each cell: "% cases", "% Predicted" and "% Observed".

    The predicted and observed shares read ``"-"`` for empty cells.
    """
    pct = confusion_percentages(cm)
    empty = cm.to_numpy() == 0

    def fmt(frame: pd.DataFrame, suffix: str, blank_empty: bool) -> pd.DataFrame:
        text = frame.map(lambda v: f"{v:.{decimals}f}% {suffix}")
        if blank_empty:
            text = text.mask(empty, "-")
        return text

    return {
        "% cases": fmt(pct.cell, "of all cases", blank_empty=False),
        "% Predicted": fmt(pct.column, "of Predicted class", blank_empty=True),
        "% Observed": fmt(pct.row, "of Observed class", blank_empty=True),
    }


def percentage_table(cm: ConfusionMatrix, decimals: int = 2) -> pd.DataFrame:
    """One row per (observed, predicted) cell with its value and tooltip texts."""
    tips = tooltip_matrices(cm, decimals)
    index = pd.MultiIndex.from_product(
        [cm.table.index, cm.table.columns], names=["Observed", "Predicted"]
    )
    data = {"Count": cm.to_numpy().ravel()}
    data.update({key: frame.to_numpy().ravel() for key, frame in tips.items()})
    return pd.DataFrame(data, index=index)
