"""Text outputs: accuracy tables and a model detail summary."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..evaluation.confusion import ConfusionMatrix

if TYPE_CHECKING:
    from ..models.machine import SupportVectorMachine

_DELIMITER = re.compile(r"[^0-9A-Za-z]")


@dataclass
class AccuracyTable:
    """A one-column table with a title, subtitle and footer."""

    title: str
    subtitle: str
    footer: str
    column_label: str
    values: pd.Series

    def render(self, decimals: int = 2) -> str:
        body = self.values.to_frame(self.column_label).to_string(
            float_format=lambda v: f"{v:.{decimals}f}", na_rep="NA"
        )
        rule = "─" * max(len(self.title), len(self.subtitle), 20)
        return "\n".join([self.title, self.subtitle, rule, body, rule, self.footer])

    def __str__(self) -> str:
        return self.render()


def extract_common_prefix(labels: Sequence[str]) -> Tuple[Optional[str], list[str]]:
    """Split a prefix shared by every label off at a word boundary.

    ``["Q5: Coke", "Q5: Pepsi"]`` gives ``("Q5:", ["Coke", "Pepsi"])``.
    When there is no usable prefix the labels come back unchanged with
    ``None``.
    """
    labels = [str(label) for label in labels]
    if len(labels) < 2:
        return None, labels

    prefix = os.path.commonprefix(labels)
    boundaries = [m.end() for m in _DELIMITER.finditer(prefix)]
    if not boundaries:
        return None, labels
    prefix = prefix[: boundaries[-1]]

    shortened = [label[len(prefix):].strip() for label in labels]
    if not prefix.strip() or not all(shortened):
        return None, labels
    return prefix.strip(), shortened


def per_class_accuracy(cm: ConfusionMatrix) -> pd.Series:
    """Correct predictions as a percentage of each observed class."""
    values = cm.to_numpy()
    row_sums = values.sum(axis=1)
    accuracy = np.divide(
        100.0 * np.diag(values),
        row_sums,
        out=np.full(len(values), np.nan),
        where=row_sums > 0,
    )
    return pd.Series(accuracy, index=[str(c) for c in cm.categories])


def overall_accuracy(cm: ConfusionMatrix) -> float:
    """Share of the (weighted) total that lies on the diagonal."""
    total = cm.total
    return float(cm.diagonal.sum() / total) if total > 0 else float("nan")


def fit_measures(observed: pd.Series, predicted: pd.Series, subset: np.ndarray) -> pd.Series:
    """Root mean squared error and R-squared over the estimation rows."""
    obs = np.asarray(observed, dtype=float)[subset]
    pred = np.asarray(predicted, dtype=float)[subset]
    rmse = float(np.sqrt(np.mean((pred - obs) ** 2)))
    if np.std(obs) == 0 or np.std(pred) == 0:
        rsq = float("nan")
    else:
        rsq = float(np.corrcoef(pred, obs)[0, 1] ** 2)
    return pd.Series({"Root Mean Squared Error": rmse, "R-squared": rsq})


def accuracy_table(result: "SupportVectorMachine") -> AccuracyTable:
    """Accuracy by class for categorical outcomes, fit measures otherwise."""
    title = f"Support Vector Machine: {result.outcome_label}"
    _, predictors = extract_common_prefix(result.predictor_labels)
    predictor_text = ", ".join(predictors)

    if not result.numeric_outcome:
        subtitle = f"Overall Accuracy: {100 * overall_accuracy(result.confusion):.2f}%"
        return AccuracyTable(
            title=title,
            subtitle=f"{subtitle} (Predictors: {predictor_text})",
            footer=result.sample_description,
            column_label="Accuracy by class (%)",
            values=per_class_accuracy(result.confusion),
        )

    return AccuracyTable(
        title=title,
        subtitle=f"Measure of fit (Predictors: {predictor_text})",
        footer=result.sample_description,
        column_label=" ",
        values=fit_measures(result.observed, result.predicted, result.subset),
    )


def detail_text(result: "SupportVectorMachine") -> str:
    """Summary of the fitted estimator in the style of a model print-out."""
    model = result.model
    svm = model.svm_
    svm_type = "C-classification" if model.is_classifier else "eps-regression"
    gamma = svm.gamma if isinstance(svm.gamma, str) else f"{svm.gamma:g}"
    lines = [
        f"Call: SupportVectorMachine({result.formula})",
        "",
        "Parameters:",
        f"   SVM-Type:  {svm_type}",
        f" SVM-Kernel:  {svm.kernel}",
        f"       cost:  {svm.C:g}",
        f"      gamma:  {gamma}",
    ]
    if not model.is_classifier:
        lines.append(f"    epsilon:  {svm.epsilon:g}")
    lines += ["", f"Number of Support Vectors:  {model.n_support_vectors}"]
    if model.is_classifier:
        per_class = " ".join(str(int(n)) for n in svm.n_support_)
        lines += [
            "",
            f" ( {per_class} )",
            "",
            f"Number of Classes:  {len(model.classes_)}",
            "",
            "Levels:",
            " " + " ".join(str(c) for c in model.classes_),
        ]
    return "\n".join(lines)
