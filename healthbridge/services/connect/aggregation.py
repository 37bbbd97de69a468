"""Translate canonical aggregate requests into store aggregate queries."""

from collections.abc import Callable
from datetime import datetime, timedelta, tzinfo
from typing import Any

from healthbridge.core.logging import get_logger
from healthbridge.schemas.records import AggregationBucket
from healthbridge.services.connect.buckets import BucketPlan
from healthbridge.services.connect.errors import UnsupportedOperationError
from healthbridge.services.connect.records import (
    AggregateMetric,
    AggregationResult,
    TimeRangeFilter,
    from_millis,
    to_millis,
)
from healthbridge.services.connect.registry import DataTypeDescriptor
from healthbridge.services.connect.stores.base import HealthStore, store_errors

logger = get_logger(__name__)


def _duration_millis(value: timedelta) -> int:
    # Whole seconds only, sub-second remainders are dropped
    return int(value.total_seconds()) * 1000


# Metric -> (value reader, zero value)
METRIC_VALUES: dict[AggregateMetric, tuple[Callable[[Any], int | float], int | float]] = {
    AggregateMetric.STEPS_COUNT_TOTAL: (int, 0),
    AggregateMetric.EXERCISE_DURATION_TOTAL: (_duration_millis, 0),
    AggregateMetric.ACTIVE_CALORIES_TOTAL: (lambda energy: float(energy.kilocalories), 0.0),
    AggregateMetric.BASAL_CALORIES_TOTAL: (lambda energy: float(energy.kilocalories), 0.0),
    AggregateMetric.DISTANCE_TOTAL: (lambda length: float(length.meters), 0.0),
}


def aggregation_metric(descriptor: DataTypeDescriptor) -> AggregateMetric:
    """
    Return the aggregate metric backing a data type.

    Raises:
        UnsupportedOperationError: If the data type cannot be aggregated
    """
    if descriptor.aggregate_metric is None:
        raise UnsupportedOperationError(
            f"Datatype not recognized for aggregation {descriptor.name}"
        )
    return descriptor.aggregate_metric


def metric_value(metric: AggregateMetric, result: AggregationResult) -> int | float:
    """Read one metric from a result, falling back to the metric's zero."""
    reader, zero = METRIC_VALUES[metric]
    raw = result.get(metric)
    return zero if raw is None else reader(raw)


def reshape(
    descriptor: DataTypeDescriptor,
    result: AggregationResult,
    start_millis: int,
    end_millis: int,
) -> AggregationBucket:
    """Build the canonical bucket for one aggregation result."""
    metric = aggregation_metric(descriptor)
    return AggregationBucket(
        start_date=start_millis,
        end_date=end_millis,
        value=metric_value(metric, result),
        unit=descriptor.aggregate_unit or descriptor.unit,
    )


def _local_to_millis(local: datetime, zone: tzinfo) -> int:
    return to_millis(local.replace(tzinfo=zone))


def aggregate_range(
    store: HealthStore,
    descriptor: DataTypeDescriptor,
    start_millis: int,
    end_millis: int,
) -> AggregationBucket:
    """Aggregate one value over [start, end)."""
    metric = aggregation_metric(descriptor)
    time_range = TimeRangeFilter(from_millis(start_millis), from_millis(end_millis))

    with store_errors("aggregate"):
        result = store.aggregate({metric}, time_range)

    logger.debug("Got data from query aggregated", data_type=descriptor.name)
    return reshape(descriptor, result, start_millis, end_millis)


def aggregate_by_duration(
    store: HealthStore,
    descriptor: DataTypeDescriptor,
    plan: BucketPlan,
) -> list[AggregationBucket]:
    """Aggregate into fixed-length windows; window bounds are instants."""
    metric = aggregation_metric(descriptor)

    with store_errors("aggregate_group_by_duration"):
        groups = store.aggregate_group_by_duration({metric}, plan.time_range, plan.duration)

    logger.debug("Got data from query aggregated", data_type=descriptor.name, buckets=len(groups))
    return [
        reshape(descriptor, group.result, to_millis(group.start_time), to_millis(group.end_time))
        for group in groups
    ]


def aggregate_by_period(
    store: HealthStore,
    descriptor: DataTypeDescriptor,
    plan: BucketPlan,
    zone: tzinfo,
) -> list[AggregationBucket]:
    """Aggregate into calendar windows; window bounds are local times in ``zone``."""
    metric = aggregation_metric(descriptor)

    with store_errors("aggregate_group_by_period"):
        groups = store.aggregate_group_by_period({metric}, plan.time_range, plan.period)

    logger.debug("Got data from query aggregated", data_type=descriptor.name, buckets=len(groups))
    return [
        reshape(
            descriptor,
            group.result,
            _local_to_millis(group.start_time, zone),
            _local_to_millis(group.end_time, zone),
        )
        for group in groups
    ]


def aggregate_planned(
    store: HealthStore,
    descriptor: DataTypeDescriptor,
    plan: BucketPlan,
    zone: tzinfo,
) -> list[AggregationBucket]:
    """Dispatch a bucketed aggregate; calendar periods take precedence."""
    if plan.period is not None:
        return aggregate_by_period(store, descriptor, plan, zone)
    return aggregate_by_duration(store, descriptor, plan)
