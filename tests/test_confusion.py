"""Tests for evaluation.confusion module."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from supportvector.errors import DimensionMismatch, EmptySample, InvalidWeight
from supportvector.evaluation.confusion import (
    MAX_BUCKETS,
    ConfusionMatrix,
    ConfusionMatrixBuilder,
    OutcomeKind,
    assign_buckets,
    bucket_breakpoints,
    bucket_count,
    build_confusion_matrix,
    format_edges,
    interval_labels,
)


# ── Tests: outcome kind ──────────────────────────────────────────
class TestOutcomeKind:
    """Tests for OutcomeKind.infer()."""

    @pytest.mark.parametrize(
        "values, expected",
        [
            (["a", "b", "a"], OutcomeKind.CATEGORICAL),
            ([True, False, True], OutcomeKind.CATEGORICAL),
            (pd.Categorical([1, 2, 1]), OutcomeKind.CATEGORICAL),
            ([0, 1, 2, 5], OutcomeKind.COUNT),
            ([1.0, 2.0, np.nan], OutcomeKind.COUNT),
            ([0.5, 1.0, 2.0], OutcomeKind.CONTINUOUS),
            ([-1, 2, 3], OutcomeKind.CONTINUOUS),
        ],
    )
    def test_infer(self, values, expected: OutcomeKind) -> None:
        assert OutcomeKind.infer(values) is expected

    def test_builder_accepts_string_kind(self) -> None:
        assert ConfusionMatrixBuilder("count").kind is OutcomeKind.COUNT

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValueError):
            ConfusionMatrixBuilder("ordinal")


# ── Tests: categorical ───────────────────────────────────────────
class TestCategorical:
    """Cross-tabulation of labels."""

    def test_scenario_a(self) -> None:
        cm = build_confusion_matrix([1, 1, 2, 2], [1, 2, 1, 2], OutcomeKind.CATEGORICAL)
        assert cm.categories == [1, 2]
        assert cm.table.loc[1, 1] == 1
        assert cm.table.loc[1, 2] == 1
        assert cm.table.loc[2, 1] == 1
        assert cm.table.loc[2, 2] == 1

    def test_exact_weighted_counts(self) -> None:
        observed = ["a", "a", "b", "b", "b", "c"]
        predicted = ["a", "b", "b", "b", "c", "c"]
        weights = [1.0, 2.0, 0.5, 0.5, 3.0, 1.5]
        cm = build_confusion_matrix(observed, predicted, "categorical", weights=weights)

        for a in cm.categories:
            for b in cm.categories:
                expected = sum(
                    w for o, p, w in zip(observed, predicted, weights) if o == a and p == b
                )
                assert cm.table.loc[a, b] == pytest.approx(expected)

    def test_zero_weight_keeps_category(self) -> None:
        """Scenario D: weight-0 rows add nothing but still define categories."""
        cm = build_confusion_matrix(
            ["a", "c", "a", "b"],
            ["a", "c", "b", "b"],
            OutcomeKind.CATEGORICAL,
            weights=[2, 0, 1, 1],
        )
        assert cm.categories == ["a", "b", "c"]
        assert cm.table.loc["a", "a"] == 2
        assert cm.table.loc["a", "b"] == 1
        assert cm.table.loc["b", "b"] == 1
        assert cm.table.loc["c", "c"] == 0
        assert cm.total == 4

    def test_sorted_union_of_labels(self) -> None:
        cm = build_confusion_matrix(["b", "a"], ["c", "a"], OutcomeKind.CATEGORICAL)
        assert cm.categories == ["a", "b", "c"]
        assert list(cm.table.columns) == ["a", "b", "c"]

    def test_declared_level_order(self) -> None:
        observed = pd.Categorical(["lo", "hi", "mid"], categories=["lo", "mid", "hi"])
        cm = build_confusion_matrix(observed, ["lo", "hi", "extra"], OutcomeKind.CATEGORICAL)
        assert cm.categories == ["lo", "mid", "hi", "extra"]

    def test_missing_predictions_skipped(self) -> None:
        cm = build_confusion_matrix(["a", "b", "b"], ["a", None, "b"], OutcomeKind.CATEGORICAL)
        assert cm.total == 2


# ── Tests: count ─────────────────────────────────────────────────
class TestCount:
    """Cross-tabulation of integer outcomes."""

    def test_scenario_b_identity(self) -> None:
        observed = [0, 1, 2, 3, 4, 5]
        predicted = [0.2, 0.9, 2.4, 3.0, 3.6, 5.1]
        cm = build_confusion_matrix(observed, predicted, OutcomeKind.COUNT)
        assert cm.categories == [0, 1, 2, 3, 4, 5]
        np.testing.assert_array_equal(cm.to_numpy(), np.eye(6))

    def test_rounds_half_up(self) -> None:
        cm = build_confusion_matrix([2, 3], [2.5, 2.49], OutcomeKind.COUNT)
        assert cm.table.loc[2, 3] == 1
        assert cm.table.loc[3, 2] == 1

    def test_prediction_outside_observed_range_adds_category(self) -> None:
        cm = build_confusion_matrix([0, 1, 1], [0.1, 1.2, 2.7], OutcomeKind.COUNT)
        assert cm.categories == [0, 1, 3]
        assert cm.table.loc[1, 3] == 1


# ── Tests: continuous ────────────────────────────────────────────
class TestContinuous:
    """Bucketing of continuous outcomes."""

    def test_scenario_c(self) -> None:
        observed = np.arange(27) * 30 / 27
        predicted = observed + 0.5
        cm = build_confusion_matrix(observed, predicted, OutcomeKind.CONTINUOUS)

        assert len(cm) == 3
        assert cm.table.shape == (3, 3)
        assert len(cm.breakpoints) == 4
        assert cm.breakpoints[0] == pytest.approx(0.0)
        assert cm.breakpoints[-1] == pytest.approx(predicted.max())
        steps = np.diff(cm.breakpoints)
        assert np.allclose(steps, steps[0])
        assert cm.total == 27

    def test_boundary_value_goes_to_upper_interval(self) -> None:
        values = [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 5]
        cm = build_confusion_matrix(values, values, OutcomeKind.CONTINUOUS)
        np.testing.assert_allclose(cm.breakpoints, [0, 5, 10])
        assert cm.categories == ["[0, 5)", "[5, 10]"]
        assert cm.table.iloc[0, 0] == 5
        assert cm.table.iloc[1, 1] == 7

    def test_degenerate_range(self) -> None:
        cm = build_confusion_matrix([3.5] * 5, [3.5] * 5, OutcomeKind.CONTINUOUS, weights=[1, 2, 3, 4, 5])
        assert cm.table.shape == (1, 1)
        assert cm.total == 15
        assert cm.upper_bounds == [3.5]

    def test_range_uses_included_rows_only(self) -> None:
        observed = [1.0, 2.0, 3.0, 100.0]
        predicted = [1.0, 2.0, 3.0, -50.0]
        cm = build_confusion_matrix(
            observed, predicted, OutcomeKind.CONTINUOUS, subset=[True, True, True, False]
        )
        assert cm.breakpoints[0] == 1.0
        assert cm.breakpoints[-1] == 3.0

    def test_missing_values_ignored(self) -> None:
        observed = [0.0, 1.5, np.nan, 3.0, 4.5, 6.0]
        predicted = [0.1, 1.4, 2.0, np.nan, 4.4, 6.0]
        cm = build_confusion_matrix(observed, predicted, OutcomeKind.CONTINUOUS)
        assert cm.breakpoints[0] == 0.0
        assert cm.breakpoints[-1] == 6.0
        assert cm.total == 4

    def test_rows_match_columns(self) -> None:
        rng = np.random.RandomState(0)
        observed = rng.normal(50, 10, 300)
        predicted = observed + rng.normal(0, 3, 300)
        cm = build_confusion_matrix(observed, predicted, OutcomeKind.CONTINUOUS)
        assert list(cm.table.index) == list(cm.table.columns)
        assert len(cm) == bucket_count(300)
        assert cm.total == 300

    def test_bucket_count_uses_included_rows(self) -> None:
        rng = np.random.RandomState(1)
        observed = rng.uniform(0, 100, 300)
        predicted = observed + rng.normal(0, 2, 300)
        subset = np.zeros(300, dtype=bool)
        subset[:27] = True
        cm = build_confusion_matrix(observed, predicted, OutcomeKind.CONTINUOUS, subset=subset)
        assert len(cm) == 3
        assert len(cm.breakpoints) == 4
        assert cm.total == 27

    def test_large_values_keep_distinct_labels(self) -> None:
        rng = np.random.RandomState(2)
        observed = 1_234_560 + rng.uniform(0, 5, 90)
        predicted = observed + rng.normal(0, 0.5, 90)
        cm = build_confusion_matrix(observed, predicted, OutcomeKind.CONTINUOUS)
        assert len(cm) == 5
        assert len(set(cm.categories)) == 5
        assert cm.table.index.is_unique
        assert list(cm.table.index) == list(cm.table.columns)
        assert cm.total == 90


# ── Tests: bucketing helpers ─────────────────────────────────────
class TestBucketHelpers:
    """Tests for bucket_count / bucket_breakpoints / assign_buckets."""

    @pytest.mark.parametrize(
        "n, expected",
        [(1, 1), (2, 1), (3, 1), (12, 2), (27, 3), (300, 10), (2700, 30), (100000, MAX_BUCKETS)],
    )
    def test_bucket_count(self, n: int, expected: int) -> None:
        assert bucket_count(n) == expected

    def test_breakpoints_strictly_increasing(self) -> None:
        edges = bucket_breakpoints(-2.0, 7.0, 75)
        assert len(edges) == 6
        assert np.all(np.diff(edges) > 0)

    def test_assign_out_of_range(self) -> None:
        edges = np.array([0.0, 1.0, 2.0])
        codes = assign_buckets(np.array([-0.1, 0.0, 0.99, 1.0, 2.0, 2.1, np.nan]), edges)
        assert codes.tolist() == [-1, 0, 0, 1, 1, -1, -1]

    def test_interval_labels(self) -> None:
        assert interval_labels(np.array([0.0, 2.5, 5.0])) == ["[0, 2.5)", "[2.5, 5]"]

    def test_format_edges_widens_precision(self) -> None:
        edges = np.array([1_234_560.0, 1_234_560.3, 1_234_560.6])
        assert format_edges(edges) == ["1234560", "1234560.3", "1234560.6"]

    def test_format_edges_degenerate(self) -> None:
        assert format_edges(np.array([3.5, 3.5])) == ["3.5", "3.5"]


# ── Tests: invariants and errors ─────────────────────────────────
class TestInvariants:
    """Properties that hold for every outcome kind."""

    @pytest.mark.parametrize("kind", list(OutcomeKind))
    def test_square_and_total(self, kind: OutcomeKind) -> None:
        rng = np.random.RandomState(3)
        observed = rng.randint(0, 4, 60)
        predicted = observed + rng.choice([0, 0, 1], 60)
        weights = rng.uniform(0, 2, 60)
        cm = ConfusionMatrixBuilder(kind).build(observed, predicted, weights=weights)

        assert isinstance(cm, ConfusionMatrix)
        assert list(cm.table.index) == list(cm.table.columns)
        assert cm.total == pytest.approx(weights.sum())
        assert cm.table.index.name == "Observed"
        assert cm.table.columns.name == "Predicted"

    @pytest.mark.parametrize("kind", list(OutcomeKind))
    def test_mask_respected(self, kind: OutcomeKind) -> None:
        observed = np.array([1, 2, 3, 1, 2, 3, 4, 4])
        predicted = np.array([1, 2, 3, 2, 2, 1, 4, 3])
        mask = np.array([True, True, True, True, False, False, True, True])

        masked = ConfusionMatrixBuilder(kind).build(observed, predicted, subset=mask)
        assert masked.total == mask.sum()
        if kind is not OutcomeKind.CONTINUOUS:
            filtered = ConfusionMatrixBuilder(kind).build(observed[mask], predicted[mask])
            for a in filtered.categories:
                for b in filtered.categories:
                    assert masked.table.loc[a, b] == filtered.table.loc[a, b]

    def test_inputs_not_mutated(self) -> None:
        observed = pd.Series([1.0, 2.0, 3.0, 4.0], index=[10, 11, 12, 13])
        predicted = np.array([1.1, 2.2, 2.9, 4.4])
        subset = [True, False, True, True]
        weights = np.array([1.0, 1.0, 2.0, 0.0])
        ConfusionMatrixBuilder(OutcomeKind.CONTINUOUS).build(observed, predicted, subset, weights)

        assert observed.tolist() == [1.0, 2.0, 3.0, 4.0]
        assert list(observed.index) == [10, 11, 12, 13]
        assert predicted.tolist() == [1.1, 2.2, 2.9, 4.4]
        assert subset == [True, False, True, True]
        assert weights.tolist() == [1.0, 1.0, 2.0, 0.0]

    def test_predicted_length_mismatch(self) -> None:
        with pytest.raises(DimensionMismatch):
            build_confusion_matrix([1, 2, 3], [1, 2], "categorical")

    def test_subset_length_mismatch(self) -> None:
        with pytest.raises(DimensionMismatch):
            build_confusion_matrix([1, 2, 3], [1, 2, 3], "categorical", subset=[True, False])

    def test_weights_length_mismatch(self) -> None:
        with pytest.raises(DimensionMismatch):
            build_confusion_matrix([1, 2, 3], [1, 2, 3], "count", weights=[1, 1])

    def test_empty_sample(self) -> None:
        with pytest.raises(EmptySample):
            build_confusion_matrix([1, 2], [1, 2], "continuous", subset=[False, False])

    def test_negative_weight(self) -> None:
        with pytest.raises(InvalidWeight):
            build_confusion_matrix([1, 2], [1, 2], "categorical", weights=[1, -1])

    def test_missing_weight(self) -> None:
        with pytest.raises(InvalidWeight):
            build_confusion_matrix([1, 2], [1, 2], "categorical", weights=[1, np.nan])

    def test_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            build_confusion_matrix([1], [1, 2], "categorical")
