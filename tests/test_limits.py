from __future__ import annotations

import pytest

from apslab.core.types import AgreementThresholds, SimulationPoint, SimulationResult
from apslab.limits import NOT_AVAILABLE, NOT_OBTAINABLE, aps_limits, format_limit, limits_frame

TH = AgreementThresholds(90.0, 95.0, 99.0)


def _point(mu: float, bias: float, agreement: float, sub: float | None = None) -> SimulationPoint:
    sub = agreement if sub is None else sub
    return SimulationPoint(
        mu=mu,
        bias=bias,
        agreement=agreement,
        sensitivity=agreement,
        specificity=agreement,
        agreement_cat="",
        sensitivity_cat="",
        specificity_cat="",
        sublevel_agreement=(sub,),
        sublevel_sensitivity=(sub,),
        sublevel_specificity=(sub,),
    )


def _result(points) -> SimulationResult:
    return SimulationResult(points=tuple(points), names=("5",))


def test_largest_mu_per_level():
    result = _result(
        [_point(0.0, 0.0, 1.0), _point(0.01, 0.0, 0.97), _point(0.02, 0.0, 0.92), _point(0.03, 0.0, 0.85)]
    )
    limits = aps_limits(result, TH)
    assert [lim.level for lim in limits] == ["Minimum", "Desirable", "Optimal"]
    assert [lim.mu for lim in limits] == pytest.approx([2.0, 1.0, 0.0])
    assert all(lim.obtainable for lim in limits)


def test_bias_extremes_come_from_qualifying_points():
    result = _result(
        [
            _point(0.0, -0.02, 0.96),
            _point(0.0, 0.0, 1.0),
            _point(0.0, 0.03, 0.91),
            _point(0.01, 0.01, 0.93),
            _point(0.01, -0.05, 0.50),
        ]
    )
    minimum, desirable, _ = aps_limits(result, TH)
    assert minimum.mu == pytest.approx(1.0)
    assert minimum.positive_bias == pytest.approx(3.0)
    assert minimum.negative_bias == pytest.approx(-2.0)
    assert desirable.positive_bias == pytest.approx(0.0)
    assert desirable.negative_bias == pytest.approx(-2.0)


def test_unreachable_level_is_not_obtainable():
    limits = aps_limits(_result([_point(0.0, 0.0, 0.4)]), TH)
    assert not any(lim.obtainable for lim in limits)
    assert format_limit(limits[0].mu) == NOT_OBTAINABLE


def test_sublevel_lookup_uses_level_slot():
    result = _result([_point(0.0, 0.0, 1.0, sub=1.0), _point(0.02, 0.0, 1.0, sub=0.5)])
    overall = aps_limits(result, TH)
    sub = aps_limits(result, TH, metric="sensitivity", level=0)
    assert overall[0].mu == pytest.approx(2.0)
    assert sub[0].mu == pytest.approx(0.0)


def test_format_limit():
    assert format_limit(12.34) == "12.3"
    assert format_limit(-4.0, decimals=0) == "-4"
    assert format_limit(40.0) == NOT_AVAILABLE
    assert format_limit(None) == NOT_OBTAINABLE


def test_limits_frame_columns():
    result = _result([_point(0.0, 0.0, 1.0)])
    limits = aps_limits(result, TH)
    assert list(limits_frame(limits, with_bias=False).columns) == ["level", "threshold", "mu"]
    frame = limits_frame(limits, with_bias=True)
    assert list(frame.columns) == ["level", "threshold", "mu", "positive_bias", "negative_bias"]
    assert frame["mu"].tolist() == ["0.0", "0.0", "0.0"]
