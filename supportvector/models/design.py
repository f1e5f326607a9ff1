"""Design matrices: one-hot encode categorical predictors, keep numeric ones."""

from __future__ import annotations

from typing import Optional, Sequence

import pandas as pd

from ..evaluation.confusion import OutcomeKind


class DesignMatrix:
    """Encode predictor columns and keep new data aligned with training.

    Args:
        predictors: Predictor column names, in formula order.
    """

    def __init__(self, predictors: Sequence[str]) -> None:
        self.predictors = list(predictors)
        self.columns_: Optional[list[str]] = None
        self.categorical_: list[str] = []

    def fit_transform(self, data: pd.DataFrame) -> pd.DataFrame:
        self.categorical_ = [
            c for c in self.predictors if OutcomeKind.infer(data[c]) is OutcomeKind.CATEGORICAL
        ]
        X = self._encode(data)
        self.columns_ = list(X.columns)
        return X

    def transform(self, data: pd.DataFrame) -> pd.DataFrame:
        """Encode *data*, adding missing dummy columns as 0 and dropping unseen ones."""
        if self.columns_ is None:
            raise RuntimeError("DesignMatrix must be fitted before transform().")
        return self._encode(data).reindex(columns=self.columns_, fill_value=0.0)

    def _encode(self, data: pd.DataFrame) -> pd.DataFrame:
        X = data[self.predictors]
        if self.categorical_:
            X = pd.get_dummies(X, columns=self.categorical_, dtype=float)
        X.columns = [str(c) for c in X.columns]
        return X.astype(float)
