"""Tests for the aggregation translator."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from healthbridge.services.connect.aggregation import (
    aggregate_by_duration,
    aggregate_planned,
    aggregate_range,
    aggregation_metric,
    metric_value,
)
from healthbridge.services.connect.buckets import plan_buckets
from healthbridge.services.connect.errors import BackendError, UnsupportedOperationError
from healthbridge.services.connect.records import (
    ActiveCaloriesBurnedRecord,
    AggregateMetric,
    AggregationResult,
    BasalMetabolicRateRecord,
    ExerciseSessionRecord,
    StepsRecord,
    to_millis,
)
from healthbridge.services.connect.registry import resolve
from healthbridge.services.connect.stores import InMemoryHealthStore
from healthbridge.services.connect.units import Energy, Power

NEW_YORK = ZoneInfo("America/New_York")
DAY1 = datetime(2024, 5, 6, tzinfo=timezone.utc)


def ms(moment: datetime) -> int:
    return to_millis(moment)


@pytest.fixture
def store():
    return InMemoryHealthStore(zone=timezone.utc)


class TestMetricValues:
    """Tests for metric lookup and zero defaults."""

    def test_weight_is_not_aggregatable(self):
        """Test that instant-only types have no aggregate metric."""
        with pytest.raises(UnsupportedOperationError, match="not recognized for aggregation weight"):
            aggregation_metric(resolve("weight"))

    def test_zero_defaults(self):
        """Test that missing metrics read as the metric's zero."""
        empty = AggregationResult()
        assert metric_value(AggregateMetric.STEPS_COUNT_TOTAL, empty) == 0
        assert metric_value(AggregateMetric.EXERCISE_DURATION_TOTAL, empty) == 0
        assert metric_value(AggregateMetric.ACTIVE_CALORIES_TOTAL, empty) == 0.0

    def test_duration_drops_sub_second_remainder(self):
        """Test that durations are whole seconds expressed in ms."""
        result = AggregationResult(
            {AggregateMetric.EXERCISE_DURATION_TOTAL: timedelta(minutes=30, milliseconds=500)}
        )
        assert metric_value(AggregateMetric.EXERCISE_DURATION_TOTAL, result) == 1_800_000


class TestAggregateRange:
    """Tests for single-value aggregates."""

    def test_steps_round_trip(self, store):
        """Test that stored steps aggregate back to the same count."""
        store.add_records([StepsRecord(start_time=DAY1, end_time=DAY1 + timedelta(hours=1), count=500)])

        bucket = aggregate_range(store, resolve("steps"), ms(DAY1), ms(DAY1 + timedelta(days=1)))

        assert bucket.value == 500
        assert bucket.unit == "count"
        assert bucket.start_date == ms(DAY1)
        assert bucket.end_date == ms(DAY1 + timedelta(days=1))

    def test_empty_range_is_zero(self, store):
        """Test that no data yields the zero value, never null."""
        bucket = aggregate_range(store, resolve("calories.active"), ms(DAY1), ms(DAY1 + timedelta(days=1)))
        assert bucket.value == 0.0
        assert bucket.unit == "kcal"

    def test_basal_calories_over_a_day(self, store):
        """Test that a 2000 kcal/day rate totals 2000 kcal over one day."""
        store.add_records(
            [BasalMetabolicRateRecord(time=DAY1, basal_metabolic_rate=Power.from_kilocalories_per_day(2000))]
        )

        bucket = aggregate_range(store, resolve("calories.basal"), ms(DAY1), ms(DAY1 + timedelta(days=1)))

        assert bucket.value == pytest.approx(2000)
        assert bucket.unit == "kcal"

    def test_activity_duration(self, store):
        """Test that activity aggregates to total duration in ms."""
        store.add_records(
            [
                ExerciseSessionRecord(
                    start_time=DAY1 + timedelta(hours=7),
                    end_time=DAY1 + timedelta(hours=7, minutes=30, milliseconds=500),
                    exercise_type=56,
                )
            ]
        )

        bucket = aggregate_range(store, resolve("activity"), ms(DAY1), ms(DAY1 + timedelta(days=1)))

        assert bucket.value == 1_800_000
        assert bucket.unit == "ms"

    def test_store_failure_is_backend_error(self):
        """Test that store exceptions surface with their message."""
        failing = MagicMock()
        failing.aggregate.side_effect = RuntimeError("remote exception")

        with pytest.raises(BackendError, match="remote exception"):
            aggregate_range(failing, resolve("steps"), 0, 1)


class TestBucketedAggregates:
    """Tests for duration and period bucketing."""

    def test_day_buckets_zero_fill(self, store):
        """Test that empty days report 0 alongside a day with data."""
        day2 = DAY1 + timedelta(days=1)
        store.add_records([StepsRecord(start_time=day2 + timedelta(hours=9), end_time=day2 + timedelta(hours=10), count=500)])
        plan = plan_buckets(ms(DAY1), ms(DAY1 + timedelta(days=3)), timezone.utc, "day")

        buckets = aggregate_planned(store, resolve("steps"), plan, timezone.utc)

        assert [b.value for b in buckets] == [0, 500, 0]
        assert [b.start_date for b in buckets] == [ms(DAY1 + timedelta(days=i)) for i in range(3)]
        assert all(b.unit == "count" for b in buckets)

    def test_hour_buckets_prorate(self, store):
        """Test that an interval spanning two hours is split by overlap."""
        store.add_records(
            [
                ActiveCaloriesBurnedRecord(
                    start_time=DAY1 + timedelta(hours=10),
                    end_time=DAY1 + timedelta(hours=12),
                    energy=Energy.from_kilocalories(300),
                )
            ]
        )
        plan = plan_buckets(ms(DAY1 + timedelta(hours=9, minutes=15)), ms(DAY1 + timedelta(hours=12)), timezone.utc, "hour")

        buckets = aggregate_by_duration(store, resolve("calories.active"), plan)

        assert [b.start_date for b in buckets] == [ms(DAY1 + timedelta(hours=h)) for h in (9, 10, 11)]
        assert [b.value for b in buckets] == [0.0, pytest.approx(150), pytest.approx(150)]

    def test_month_buckets_local_boundaries(self):
        """Test that period bounds are local midnights converted back to instants."""
        store = InMemoryHealthStore(zone=NEW_YORK)
        store.add_records(
            [
                StepsRecord(
                    start_time=datetime(2024, 3, 20, 12, tzinfo=timezone.utc),
                    end_time=datetime(2024, 3, 20, 13, tzinfo=timezone.utc),
                    count=1000,
                ),
                StepsRecord(
                    start_time=datetime(2024, 4, 1, 12, tzinfo=timezone.utc),
                    end_time=datetime(2024, 4, 1, 13, tzinfo=timezone.utc),
                    count=250,
                ),
            ]
        )
        start = ms(datetime(2024, 3, 13, 15, 30, tzinfo=timezone.utc))
        end = ms(datetime(2024, 4, 2, 12, tzinfo=timezone.utc))
        plan = plan_buckets(start, end, NEW_YORK, "month")

        buckets = aggregate_planned(store, resolve("steps"), plan, NEW_YORK)

        assert len(buckets) == 2
        # Midnight EST on March 1st and midnight EDT on April 1st
        assert buckets[0].start_date == ms(datetime(2024, 3, 1, 5, tzinfo=timezone.utc))
        assert buckets[0].end_date == ms(datetime(2024, 4, 1, 4, tzinfo=timezone.utc))
        assert buckets[1].end_date == end
        assert [b.value for b in buckets] == [1000, 250]

    def test_period_preferred_over_duration(self):
        """Test that calendar plans use the period grouping call."""
        store = MagicMock()
        store.aggregate_group_by_period.return_value = []
        plan = plan_buckets(ms(DAY1), ms(DAY1 + timedelta(days=2)), timezone.utc, "day")

        assert aggregate_planned(store, resolve("steps"), plan, timezone.utc) == []
        store.aggregate_group_by_period.assert_called_once()
        store.aggregate_group_by_duration.assert_not_called()
