"""Tests for the in-memory health store."""

from datetime import datetime, timedelta, timezone

import pytest
from dateutil.relativedelta import relativedelta

from healthbridge.services.connect.records import (
    AggregateMetric,
    BasalMetabolicRateRecord,
    DataOrigin,
    Metadata,
    RecordKind,
    StepsRecord,
    TimeRangeFilter,
    WeightRecord,
)
from healthbridge.services.connect.stores import InMemoryHealthStore, SdkStatus
from healthbridge.services.connect.units import Mass, Power

T0 = datetime(2024, 5, 6, 8, tzinfo=timezone.utc)


def steps(offset_hours: int, count: int, hours: int = 1) -> StepsRecord:
    start = T0 + timedelta(hours=offset_hours)
    return StepsRecord(start_time=start, end_time=start + timedelta(hours=hours), count=count)


@pytest.fixture
def store():
    return InMemoryHealthStore()


class TestPermissions:
    """Tests for the permission set."""

    def test_auto_grant(self, store):
        """Test that requests are granted when auto-grant is on."""
        granted = store.request_permissions({RecordKind.STEPS.read_permission})
        assert granted == {RecordKind.STEPS.read_permission}
        assert store.get_granted_permissions() == granted

    def test_decline(self):
        """Test that requests return nothing when auto-grant is off."""
        store = InMemoryHealthStore(auto_grant=False)
        assert store.request_permissions({RecordKind.STEPS.read_permission}) == set()

    def test_grant_and_revoke(self, store):
        """Test the direct grant helpers."""
        store.grant("a", "b")
        store.revoke("a")
        assert store.get_granted_permissions() == {"b"}

    def test_sdk_status(self):
        """Test that the configured status is reported."""
        store = InMemoryHealthStore(status=SdkStatus.PROVIDER_UPDATE_REQUIRED)
        assert store.sdk_status() is SdkStatus.PROVIDER_UPDATE_REQUIRED


class TestReadWrite:
    """Tests for inserting, reading and deleting records."""

    def test_insert_assigns_ids_and_origin(self, store):
        """Test that inserted records get ids and the store's origin."""
        [record_id] = store.insert_records([steps(0, 100)])

        stored = store.get_record(record_id)

        assert stored.metadata.id == record_id
        assert stored.metadata.data_origin == DataOrigin("org.healthbridge")

    def test_insert_keeps_existing_origin(self, store):
        """Test that a record's own data origin is preserved."""
        record = WeightRecord(
            time=T0,
            weight=Mass.from_kilograms(70),
            metadata=Metadata(data_origin=DataOrigin("com.example.scale")),
        )
        [record_id] = store.insert_records([record])
        assert store.get_record(record_id).metadata.data_origin.package_name == "com.example.scale"

    def test_read_filters_by_kind_and_overlap(self, store):
        """Test that reads return overlapping records of the requested kind."""
        store.add_records([steps(0, 10), steps(5, 20), WeightRecord(time=T0, weight=Mass.from_kilograms(70))])

        records = store.read_records(
            RecordKind.STEPS, TimeRangeFilter(T0, T0 + timedelta(hours=2)), limit=10, ascending=True
        )

        assert [r.count for r in records] == [10]

    def test_read_order_and_limit(self, store):
        """Test sort order by start time and the record limit."""
        store.add_records([steps(0, 1), steps(2, 2), steps(4, 3)])
        time_range = TimeRangeFilter(T0, T0 + timedelta(days=1))

        assert [r.count for r in store.read_records(RecordKind.STEPS, time_range, 10, False)] == [3, 2, 1]
        assert [r.count for r in store.read_records(RecordKind.STEPS, time_range, 2, True)] == [1, 2]

    def test_instant_range_is_half_open(self, store):
        """Test that an instant at the range end is excluded."""
        store.add_records([WeightRecord(time=T0, weight=Mass.from_kilograms(70))])

        before = TimeRangeFilter(T0 - timedelta(hours=1), T0)
        exact = TimeRangeFilter(T0, T0)

        assert store.read_records(RecordKind.WEIGHT, before, 10, True) == []
        assert len(store.read_records(RecordKind.WEIGHT, exact, 10, True)) == 1

    def test_delete_by_id_checks_kind(self, store):
        """Test that delete by id only removes records of the given kind."""
        [record_id] = store.insert_records([steps(0, 100)])

        store.delete_records_by_id(RecordKind.WEIGHT, [record_id])
        assert store.get_record(record_id) is not None

        store.delete_records_by_id(RecordKind.STEPS, [record_id])
        assert store.get_record(record_id) is None

    def test_delete_by_range(self, store):
        """Test that delete by range removes only overlapping records."""
        store.add_records([steps(0, 10), steps(5, 20)])

        store.delete_records_by_range(RecordKind.STEPS, TimeRangeFilter(T0, T0 + timedelta(hours=2)))

        remaining = store.read_records(RecordKind.STEPS, TimeRangeFilter(T0, T0 + timedelta(days=1)), 10, True)
        assert [r.count for r in remaining] == [20]


class TestAggregation:
    """Tests for aggregate computation."""

    def test_missing_metric_when_no_data(self, store):
        """Test that metrics without contributions are absent."""
        result = store.aggregate({AggregateMetric.STEPS_COUNT_TOTAL}, TimeRangeFilter(T0, T0 + timedelta(hours=1)))
        assert AggregateMetric.STEPS_COUNT_TOTAL not in result

    def test_steps_prorated(self, store):
        """Test that partially overlapping intervals contribute proportionally."""
        store.add_records([steps(0, 120, hours=2)])

        result = store.aggregate({AggregateMetric.STEPS_COUNT_TOTAL}, TimeRangeFilter(T0, T0 + timedelta(hours=1)))

        assert result.get(AggregateMetric.STEPS_COUNT_TOTAL) == 60

    def test_basal_rate_carries_until_next_sample(self, store):
        """Test that each rate applies until the next sample."""
        day = datetime(2024, 5, 6, tzinfo=timezone.utc)
        store.add_records(
            [
                BasalMetabolicRateRecord(time=day - timedelta(days=1), basal_metabolic_rate=Power.from_kilocalories_per_day(1600)),
                BasalMetabolicRateRecord(time=day + timedelta(hours=12), basal_metabolic_rate=Power.from_kilocalories_per_day(2400)),
            ]
        )

        result = store.aggregate({AggregateMetric.BASAL_CALORIES_TOTAL}, TimeRangeFilter(day, day + timedelta(days=1)))

        assert result.get(AggregateMetric.BASAL_CALORIES_TOTAL).kilocalories == pytest.approx(800 + 1200)

    def test_duration_windows_clip_last(self, store):
        """Test that the last duration window ends at the range end."""
        groups = store.aggregate_group_by_duration(
            {AggregateMetric.STEPS_COUNT_TOTAL},
            TimeRangeFilter(T0, T0 + timedelta(minutes=150)),
            timedelta(hours=1),
        )

        assert len(groups) == 3
        assert groups[-1].end_time == T0 + timedelta(minutes=150)

    def test_period_windows_are_local(self, store):
        """Test that period grouping works on naive local bounds."""
        groups = store.aggregate_group_by_period(
            {AggregateMetric.STEPS_COUNT_TOTAL},
            TimeRangeFilter(datetime(2024, 1, 31), datetime(2024, 4, 15)),
            relativedelta(months=1),
        )

        assert [g.start_time for g in groups] == [
            datetime(2024, 1, 31),
            datetime(2024, 2, 29),
            datetime(2024, 3, 31),
        ]
        assert groups[-1].end_time == datetime(2024, 4, 15)

    def test_period_requires_local_range(self, store):
        """Test that instant ranges are rejected for period grouping."""
        with pytest.raises(ValueError):
            store.aggregate_group_by_period(
                {AggregateMetric.STEPS_COUNT_TOTAL},
                TimeRangeFilter(T0, T0 + timedelta(days=2)),
                relativedelta(days=1),
            )
