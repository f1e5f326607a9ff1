"""
SupportVectorMachine — formula in, fitted SVM plus reports out.

Stages:
  1. Prepare the estimation sample (subset, weights, missing data)
  2. Resample to reflect weights, when weights are given
  3. Fit SVC / SVR on the encoded predictors
  4. Predict every original row and build the confusion matrix on the
     rows used in estimation
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ..data.preparation import (
    Formula,
    MissingPolicy,
    PreparedData,
    adjust_data_to_reflect_weights,
    prepare_data,
)
from ..evaluation.confusion import ConfusionMatrix, ConfusionMatrixBuilder, OutcomeKind
from ..reporting.heatmap import plot_confusion_heatmap
from ..reporting.percentages import percentage_table
from ..reporting.tables import AccuracyTable, accuracy_table, detail_text
from ..utils.logger import get_logger
from .design import DesignMatrix
from .svm import SVMModel

logger = get_logger(__name__)

OUTPUTS = ("Accuracy", "Confusion Matrix", "Detail")


def resolve_output(output: str) -> str:
    """Match *output* case-insensitively against :data:`OUTPUTS`."""
    aliases = {o.lower(): o for o in OUTPUTS}
    aliases["confusion"] = "Confusion Matrix"
    key = str(output).strip().lower()
    if key not in aliases:
        raise ValueError(f"'output' must be one of {OUTPUTS}, got {output!r}.")
    return aliases[key]


class SupportVectorMachine:
    """Fit a support vector machine from a formula and a DataFrame.

    The outcome's kind decides the estimator: categorical outcomes use SVC
    with probability estimates, counts and continuous outcomes use SVR.

    Args:
        formula: ``"outcome ~ x1 + x2"``; ``.`` means every other column.
        data: Source data.
        subset: Inclusion mask, or the name of a boolean column.
        weights: Sampling weights, or the name of a numeric column. The
            estimation sample is resampled to reflect them.
        output: ``"Accuracy"``, ``"Confusion Matrix"`` or ``"Detail"``.
        missing: ``"Error if missing data"`` or
            ``"Exclude cases with missing data"``.
        cost: Positive SVM cost. Higher values fit the training data more
            closely; lower values generalise more.
        seed: Random seed for weight resampling and probability calibration.
        show_labels: Use variable labels instead of names in outputs.
        labels: Optional display labels by column name.
        **svm_params: Extra estimator parameters (``kernel``, ``gamma``,
            ``degree``, ``coef0``, ``epsilon``).

    Raises:
        ValueError: If *cost* is not positive or *output* is unknown.
    """

    def __init__(
        self,
        formula: str | Formula,
        data: pd.DataFrame,
        subset: Any = None,
        weights: Any = None,
        output: str = "Accuracy",
        missing: MissingPolicy | str = MissingPolicy.EXCLUDE,
        cost: float = 1.0,
        seed: int = 12321,
        show_labels: bool = False,
        labels: Optional[Dict[str, str]] = None,
        **svm_params: Any,
    ) -> None:
        if cost <= 0:
            raise ValueError("cost must be positive")
        self.output = resolve_output(output)
        self.missing = MissingPolicy.parse(missing)
        self.cost = cost
        self.seed = seed
        self.show_labels = show_labels

        prepared: PreparedData = prepare_data(formula, data, subset, weights, self.missing, labels)
        self.prepared = prepared
        self.formula = prepared.formula
        self.outcome_kind: OutcomeKind = prepared.outcome_kind
        self.estimation_data = prepared.estimation_data
        self.n_observations = prepared.n_observations
        self.sample_description = prepared.description

        fit_data = self.estimation_data
        if prepared.weights is not None:
            fit_data = adjust_data_to_reflect_weights(fit_data, prepared.estimation_weights, seed)

        self.design = DesignMatrix(self.formula.predictors)
        X = self.design.fit_transform(fit_data)
        y = fit_data[self.outcome_name]
        if not self.numeric_outcome:
            y = y.astype(object)

        self.model = SVMModel({**svm_params, "C": cost, "random_state": seed}, self.outcome_kind)
        logger.info(
            f"Fitting {self.model.name} ({self.outcome_kind.value} outcome) on "
            f"{len(X)} rows × {X.shape[1]} columns"
        )
        self.model.fit(X, y)

        self.observed: pd.Series = data[self.outcome_name]
        self.predicted: pd.Series = self.predict(data)
        self.subset: np.ndarray = prepared.subset
        self.weights: Optional[np.ndarray] = prepared.weights
        self.confusion: ConfusionMatrix = ConfusionMatrixBuilder(self.outcome_kind).build(
            self.observed, self.predicted, self.subset, self.weights
        )

    # ── descriptive properties ────────────────────────────────────
    @property
    def outcome_name(self) -> str:
        return self.formula.outcome

    @property
    def numeric_outcome(self) -> bool:
        return self.outcome_kind.is_numeric

    @property
    def outcome_label(self) -> str:
        if self.show_labels:
            return self.prepared.variable_labels[self.outcome_name]
        return self.outcome_name

    @property
    def predictor_labels(self) -> list[str]:
        if self.show_labels:
            return [self.prepared.variable_labels[p] for p in self.formula.predictors]
        return list(self.formula.predictors)

    # ── prediction ────────────────────────────────────────────────
    def _complete_rows(self, new_data: pd.DataFrame) -> pd.Series:
        return new_data[list(self.formula.predictors)].notna().all(axis=1)

    def predict(self, new_data: pd.DataFrame) -> pd.Series:
        """Predict every row of *new_data*; rows with missing predictors get NaN."""
        complete = self._complete_rows(new_data)
        dtype = float if self.numeric_outcome else object
        out = pd.Series(np.nan, index=new_data.index, dtype=dtype, name=self.outcome_name)
        if complete.any():
            X = self.design.transform(new_data.loc[complete])
            out.loc[complete] = self.model.predict(X)
        return out

    def predict_probabilities(self, new_data: pd.DataFrame) -> pd.DataFrame:
        """Per-class probabilities for a categorical outcome.

        Raises:
            TypeError: If the outcome is numeric.
        """
        if self.numeric_outcome:
            raise TypeError("Probabilities are only available for categorical outcomes.")
        complete = self._complete_rows(new_data)
        out = pd.DataFrame(
            np.nan, index=new_data.index, columns=[str(c) for c in self.model.classes_]
        )
        if complete.any():
            X = self.design.transform(new_data.loc[complete])
            out.loc[complete] = self.model.predict_proba(X)
        return out

    # ── outputs ───────────────────────────────────────────────────
    def accuracy_summary(self) -> AccuracyTable:
        return accuracy_table(self)

    def confusion_heatmap(self, save_path: Optional[Path | str] = None, **kwargs: Any) -> plt.Figure:
        return plot_confusion_heatmap(
            self.confusion,
            title=f"Support Vector Machine Confusion Matrix: {self.outcome_label}",
            footer=self.sample_description,
            save_path=save_path,
            **kwargs,
        )

    def confusion_percentages(self, decimals: int = 2) -> pd.DataFrame:
        """Each confusion cell with its share of all cases, of its predicted
        class and of its observed class."""
        return percentage_table(self.confusion, decimals)

    def detail(self) -> str:
        return detail_text(self)

    def render(
        self, save_dir: Optional[Path | str] = None, decimals: int = 2, **plot_kwargs: Any
    ) -> str | plt.Figure:
        """Produce the output selected by ``self.output``.

        Args:
            save_dir: When given, the output is also written there
                (``accuracy.txt``, ``detail.txt``, or ``confusion_matrix.png``
                together with ``confusion_percentages.csv``).
            decimals: Decimal places for percentages and accuracy values.
            **plot_kwargs: Passed to :func:`plot_confusion_heatmap`.

        Returns:
            Text for "Accuracy" and "Detail", a figure for "Confusion Matrix".
        """
        save_dir = Path(save_dir) if save_dir is not None else None
        if self.output == "Confusion Matrix":
            if save_dir is None:
                return self.confusion_heatmap(**plot_kwargs)
            fig = self.confusion_heatmap(save_dir / "confusion_matrix.png", **plot_kwargs)
            csv_path = save_dir / "confusion_percentages.csv"
            self.confusion_percentages(decimals).to_csv(csv_path)
            logger.info(f"Saved confusion percentages → {csv_path}")
            return fig

        if self.output == "Accuracy":
            text, filename = self.accuracy_summary().render(decimals), "accuracy.txt"
        else:
            text, filename = self.detail(), "detail.txt"
        if save_dir is not None:
            save_dir.mkdir(parents=True, exist_ok=True)
            (save_dir / filename).write_text(text, encoding="utf-8")
            logger.info(f"Saved {self.output.lower()} → {save_dir / filename}")
        return text

    def save(self, path: Path | str) -> Path:
        return self.model.save(path)

    def __repr__(self) -> str:
        return (
            f"SupportVectorMachine(formula='{self.formula}', output='{self.output}', "
            f"n={self.n_observations}, cost={self.cost})"
        )


def fit_support_vector_machine(formula: str | Formula, data: pd.DataFrame, **kwargs: Any) -> SupportVectorMachine:
    """Functional shortcut for :class:`SupportVectorMachine`."""
    return SupportVectorMachine(formula, data, **kwargs)
