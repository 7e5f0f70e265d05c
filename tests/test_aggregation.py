"""
Tests for aggregation utilities.
"""

from iotdash.domain.models import Aggregation
from iotdash.domain.utils.aggregation import (
    MissingDataStrategy,
    aggregate_samples,
    coerce_aggregation,
    moving_average,
)

# ============================================================================
# aggregate_samples() tests
# ============================================================================


def test_aggregate_avg_basic():
    """Test mean aggregation with simple values."""
    assert aggregate_samples([1.0, 2.0, 3.0, 4.0, 5.0], Aggregation.AVG) == 3.0


def test_aggregate_sum_max_min():
    """Test SUM, MAX and MIN."""
    values = [5.0, 2.0, 8.0, 1.0, 4.0]
    assert aggregate_samples(values, Aggregation.SUM) == 20.0
    assert aggregate_samples(values, Aggregation.MAX) == 8.0
    assert aggregate_samples(values, Aggregation.MIN) == 1.0


def test_aggregate_count_and_last():
    """COUNT counts present values; LAST takes the final one."""
    assert aggregate_samples([1.0, None, 3.0], Aggregation.COUNT) == 2.0
    assert aggregate_samples([1.0, 2.0, 7.0], Aggregation.LAST) == 7.0


def test_aggregate_empty_returns_none():
    """Nothing to aggregate is None, never zero."""
    assert aggregate_samples([], Aggregation.AVG) is None
    assert aggregate_samples([None, None], Aggregation.SUM) is None


def test_missing_values_as_zero():
    """ZERO strategy counts missing values as 0."""
    assert aggregate_samples([None, 10.0], Aggregation.AVG, MissingDataStrategy.ZERO) == 5.0


def test_coerce_aggregation_variants():
    """Strings are case-insensitive; unknown values fall back to the default."""
    assert coerce_aggregation("sum") == Aggregation.SUM
    assert coerce_aggregation(Aggregation.MAX) == Aggregation.MAX
    assert coerce_aggregation("median", Aggregation.LAST) == Aggregation.LAST
    assert coerce_aggregation(None) == Aggregation.AVG


# ============================================================================
# moving_average() tests
# ============================================================================


def test_moving_average_window_three():
    """First window-1 positions are undefined."""
    assert moving_average([1.0, 2.0, 3.0, 4.0, 5.0], 3) == [None, None, 2.0, 3.0, 4.0]


def test_moving_average_small_window_is_identity():
    """Window <= 1 returns the data unchanged."""
    assert moving_average([1.0, 2.0], 1) == [1.0, 2.0]
    assert moving_average([1.0, 2.0], 0) == [1.0, 2.0]


def test_moving_average_window_longer_than_data():
    """A window longer than the series yields only undefined points."""
    assert moving_average([1.0, 2.0], 5) == [None, None]
