import numpy as np
import pytest

from apslab.core.aggregate import (
    BELOW_MIN,
    DESIRABLE,
    MIN,
    OPTIMAL,
    assemble_result,
    bucket_label,
    format_limit_names,
    metric_bucket,
    safe_ratio,
    summarize_counts,
)
from apslab.core.engine import TrialCounts
from apslab.core.types import AgreementThresholds, GridPoint, ModelVariant, SimulationConfig

TH = AgreementThresholds(90.0, 95.0, 99.0)


def _counts(matches, comparisons, tp, fn, tn, fp) -> TrialCounts:
    return TrialCounts(
        comparisons=comparisons,
        matches=matches,
        tp=np.asarray(tp, dtype=np.int64),
        fn=np.asarray(fn, dtype=np.int64),
        tn=np.asarray(tn, dtype=np.int64),
        fp=np.asarray(fp, dtype=np.int64),
    )


def test_safe_ratio_empty_denominator():
    assert safe_ratio(3, 0) == 0.0
    assert safe_ratio(1, 4) == 0.25


@pytest.mark.parametrize(
    ("value", "bucket"),
    [(0.80, BELOW_MIN), (0.90, MIN), (0.949, MIN), (0.95, DESIRABLE), (0.99, OPTIMAL), (1.0, OPTIMAL)],
)
def test_metric_bucket(value, bucket):
    assert metric_bucket(value, TH) == bucket


def test_bucket_label():
    assert bucket_label(OPTIMAL, TH) == "≥99%"
    assert bucket_label(BELOW_MIN, TH) == "<90%"
    with pytest.raises(KeyError):
        bucket_label("excellent", TH)


def test_format_limit_names():
    assert format_limit_names([5, 10.5], 2) == ["5.00", "10.50"]
    assert format_limit_names([7.0], 0) == ["7"]


def test_summarize_pools_over_limits():
    counts = _counts(matches=8, comparisons=10, tp=[2, 1], fn=[0, 3], tn=[6, 5], fp=[2, 1])
    point = summarize_counts(GridPoint(mu=0.02), counts, TH)
    assert point.agreement == pytest.approx(0.8)
    assert point.sensitivity == pytest.approx(3 / 6)
    assert point.specificity == pytest.approx(11 / 14)
    assert point.sublevel_sensitivity == pytest.approx((1.0, 0.25))
    assert point.sublevel_specificity == pytest.approx((0.75, 5 / 6))
    assert point.sublevel_agreement == pytest.approx((0.8, 0.6))
    assert point.agreement_cat == BELOW_MIN


def test_summarize_degenerate_sensitivity_is_zero():
    counts = _counts(matches=4, comparisons=4, tp=[0], fn=[0], tn=[4], fp=[0])
    point = summarize_counts(GridPoint(mu=0.0), counts, TH)
    assert point.sensitivity == 0.0
    assert point.specificity == 1.0
    assert point.agreement == 1.0


def test_assemble_keeps_grid_order_and_labels():
    cfg = SimulationConfig(
        model=ModelVariant.MU_ANALYTICAL,
        data=(1.0, 2.0),
        decision_limits=(3.0, 7.0),
        decimal_places=1,
    )
    grid = [GridPoint(mu=0.0), GridPoint(mu=0.01), GridPoint(mu=0.02)]
    counts = [
        _counts(10 - i, 10, [1, 1], [0, 0], [1, 1], [0, 0]) for i in range(3)
    ]
    result = assemble_result(cfg, grid, counts, {"model": "mu-analytical"})
    assert [p.mu for p in result.points] == [0.0, 0.01, 0.02]
    assert [p.agreement for p in result.points] == pytest.approx([1.0, 0.9, 0.8])
    assert result.names == ("3.0", "7.0")
    assert result.categories == ("≤3.0", ">3.0 and ≤7.0", ">7.0")
    assert result.metadata["model"] == "mu-analytical"

    with pytest.raises(ValueError, match="same length"):
        assemble_result(cfg, grid, counts[:2])


def test_trial_counts_merge():
    a = _counts(3, 4, [1], [0], [2], [1])
    b = _counts(1, 4, [0], [2], [1], [1])
    merged = a + b
    assert merged.comparisons == 8
    assert merged.matches == 4
    assert merged.fn.tolist() == [2]
    assert merged.fp.tolist() == [2]
    with pytest.raises(ValueError):
        a + TrialCounts.zeros(2)
