import numpy as np
import pytest

from apslab.core.classify import (
    DecisionLimitSet,
    above_limits,
    category_index,
    category_labels,
)


def test_value_equal_to_limit_is_not_above():
    limits = DecisionLimitSet.from_values([5.0])
    assert category_index(np.array([1.0, 5.0, 6.0]), limits).tolist() == [0, 0, 1]
    assert above_limits(np.array([5.0, 5.0001]), limits)[:, 0].tolist() == [False, True]


def test_category_index_over_multiple_limits():
    limits = DecisionLimitSet.from_values([3.0, 7.0])
    values = np.array([2.0, 3.0, 5.0, 7.0, 8.0])
    assert category_index(values, limits).tolist() == [0, 0, 1, 1, 2]


def test_above_limits_adds_trailing_axis():
    limits = DecisionLimitSet.from_values([3.0, 7.0])
    sim = np.array([[2.0, 5.0, 8.0], [4.0, 4.0, 4.0]])
    above = above_limits(sim, limits)
    assert above.shape == (2, 3, 2)
    assert above[0].tolist() == [[False, False], [True, False], [True, True]]


def test_limit_set_counts():
    limits = DecisionLimitSet.from_values([1.0, 2.0, 3.0])
    assert limits.n_limits == 3
    assert limits.n_categories == 4
    assert limits.as_array().dtype == float


@pytest.mark.parametrize("values", [[], [5.0, 3.0], [2.0, 2.0]])
def test_limit_set_rejects_invalid(values):
    with pytest.raises(ValueError):
        DecisionLimitSet.from_values(values)


def test_category_labels():
    assert category_labels(DecisionLimitSet.from_values([5.0]), 1) == ["≤5.0", ">5.0"]
    assert category_labels(DecisionLimitSet.from_values([3.0, 7.0]), 0) == [
        "≤3",
        ">3 and ≤7",
        ">7",
    ]
