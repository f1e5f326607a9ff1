"""Support Vector Machine wrapper for categorical and numeric outcomes."""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from sklearn.compose import TransformedTargetRegressor
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC, SVR

from ..evaluation.confusion import OutcomeKind
from .base_model import BaseModel


class SVMModel(BaseModel):
    """SVC for categorical outcomes, SVR for counts and continuous outcomes.

    Predictors are standardised before fitting; for numeric outcomes the
    target is standardised too and predictions are mapped back.

    Args:
        params: Hyperparameters. ``C``, ``kernel``, ``gamma``, ``degree``,
            ``coef0`` and ``random_state`` are used for both estimators;
            ``probability`` applies to SVC and ``epsilon`` to SVR.
        outcome_kind: Kind of the outcome being modelled.
    """

    name: str = "Support Vector Machine"

    def __init__(
        self,
        params: Optional[Dict[str, Any]] = None,
        outcome_kind: OutcomeKind | str = OutcomeKind.CATEGORICAL,
    ) -> None:
        self.outcome_kind = OutcomeKind(outcome_kind)
        super().__init__(params)

    @property
    def is_classifier(self) -> bool:
        return not self.outcome_kind.is_numeric

    def _build_estimator(self) -> Pipeline | TransformedTargetRegressor:
        """Build the unfitted estimator.

        Returns:
            A scaling + SVC pipeline, or a target-scaled scaling + SVR pipeline.
        """
        kernel_params = dict(
            C=self.params.get("C", 1.0),
            kernel=self.params.get("kernel", "rbf"),
            gamma=self.params.get("gamma", "auto"),
            degree=self.params.get("degree", 3),
            coef0=self.params.get("coef0", 0.0),
        )
        if self.is_classifier:
            svc = SVC(
                **kernel_params,
                probability=self.params.get("probability", True),
                random_state=self.params.get("random_state", 12321),
            )
            return Pipeline([("scale", StandardScaler()), ("svm", svc)])

        svr = SVR(**kernel_params, epsilon=self.params.get("epsilon", 0.1))
        return TransformedTargetRegressor(
            regressor=Pipeline([("scale", StandardScaler()), ("svm", svr)]),
            transformer=StandardScaler(),
        )

    def predict_proba(self, X: pd.DataFrame | np.ndarray) -> np.ndarray:
        if not self.is_classifier:
            raise TypeError("Class probabilities are only available for categorical outcomes.")
        return super().predict_proba(X)

    @property
    def classes_(self) -> np.ndarray:
        if not self.is_classifier:
            raise TypeError("A regression model has no classes.")
        self._require_fitted()
        return self.estimator.classes_

    @property
    def svm_(self) -> SVC | SVR:
        """The fitted SVC / SVR step."""
        self._require_fitted()
        if self.is_classifier:
            return self.estimator.named_steps["svm"]
        return self.estimator.regressor_.named_steps["svm"]

    @property
    def n_support_vectors(self) -> int:
        return int(len(self.svm_.support_))
