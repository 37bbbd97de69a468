"""In-memory health store with windowed aggregation."""

import threading
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import datetime, timedelta, timezone, tzinfo

from dateutil.relativedelta import relativedelta

from healthbridge.core.logging import get_logger
from healthbridge.services.connect.records import (
    AggregateMetric,
    AggregationResult,
    AggregationResultGroupedByDuration,
    AggregationResultGroupedByPeriod,
    DataOrigin,
    InstantRecord,
    IntervalRecord,
    Record,
    RecordKind,
    TimeRangeFilter,
)
from healthbridge.services.connect.units import Energy, Length
from healthbridge.services.connect.stores.base import HealthStore, SdkStatus

logger = get_logger(__name__)

DAY = timedelta(days=1)


def _overlap(start: datetime, end: datetime, window_start: datetime, window_end: datetime) -> timedelta:
    return max(timedelta(0), min(end, window_end) - max(start, window_start))


def _contains(moment: datetime, start: datetime, end: datetime) -> bool:
    if start == end:
        return moment == start
    return start <= moment < end


def _fraction(record: IntervalRecord, start: datetime, end: datetime) -> float:
    """Share of an interval record falling inside [start, end)."""
    length = record.end_time - record.start_time
    if length == timedelta(0):
        return 1.0 if _contains(record.start_time, start, end) else 0.0
    return _overlap(record.start_time, record.end_time, start, end) / length


class InMemoryHealthStore(HealthStore):
    """
    Health store kept entirely in process memory.

    Stands in for the device store: it assigns record ids, keeps a
    permission set, and computes aggregates the way the device store
    does. Interval records are prorated across windows by overlap, and a
    basal metabolic rate applies from its sample time until the next one.
    Every window of a grouped aggregate is reported, empty or not.
    """

    name = "memory"

    def __init__(
        self,
        zone: tzinfo = timezone.utc,
        auto_grant: bool = True,
        granted: Iterable[str] = (),
        status: SdkStatus = SdkStatus.AVAILABLE,
        package_name: str = "org.healthbridge",
    ) -> None:
        """
        Initialize the store.

        Args:
            zone: Zone used to interpret local wall-clock time ranges
            auto_grant: Grant every requested permission when True,
                decline every request when False
            granted: Permissions granted up front
            status: Reported SDK availability
            package_name: Data origin stamped on inserted records
        """
        self.zone = zone
        self.auto_grant = auto_grant
        self.status = status
        self.package_name = package_name
        self._granted: set[str] = set(granted)
        self._records: dict[str, Record] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Availability and permissions
    # ------------------------------------------------------------------

    def sdk_status(self) -> SdkStatus:
        return self.status

    def get_granted_permissions(self) -> set[str]:
        with self._lock:
            return set(self._granted)

    def request_permissions(self, permissions: set[str]) -> set[str]:
        if not self.auto_grant:
            logger.info("Permission request declined", requested=len(permissions))
            return set()
        with self._lock:
            self._granted |= permissions
        return set(permissions)

    def grant(self, *permissions: str) -> None:
        with self._lock:
            self._granted.update(permissions)

    def revoke(self, *permissions: str) -> None:
        with self._lock:
            self._granted.difference_update(permissions)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _instant(self, moment: datetime) -> datetime:
        """Resolve a bound to a UTC instant; naive bounds are local to the store."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=self.zone)
        return moment.astimezone(timezone.utc)

    def _instants(self, time_range: TimeRangeFilter) -> tuple[datetime, datetime]:
        return self._instant(time_range.start), self._instant(time_range.end)

    def _matching(self, kind: RecordKind, start: datetime, end: datetime) -> list[Record]:
        matches = []
        for record in self._records.values():
            if record.kind != kind:
                continue
            if isinstance(record, InstantRecord):
                if _contains(record.time, start, end):
                    matches.append(record)
            elif isinstance(record, IntervalRecord):
                if record.start_time == record.end_time:
                    if _contains(record.start_time, start, end):
                        matches.append(record)
                elif _overlap(record.start_time, record.end_time, start, end) > timedelta(0):
                    matches.append(record)
        return matches

    def read_records(
        self,
        kind: RecordKind,
        time_range: TimeRangeFilter,
        limit: int,
        ascending: bool,
    ) -> list[Record]:
        start, end = self._instants(time_range)
        with self._lock:
            records = self._matching(kind, start, end)
        records.sort(key=lambda record: record.span[0], reverse=not ascending)
        return records[:limit]

    def insert_records(self, records: Sequence[Record]) -> list[str]:
        ids = []
        with self._lock:
            for record in records:
                record_id = str(uuid.uuid4())
                metadata = replace(
                    record.metadata,
                    id=record_id,
                    data_origin=record.metadata.data_origin or DataOrigin(self.package_name),
                )
                self._records[record_id] = replace(record, metadata=metadata)
                ids.append(record_id)
        logger.debug("Records inserted", count=len(ids))
        return ids

    def add_records(self, records: Iterable[Record]) -> None:
        """Seed records as-is, assigning ids only where missing."""
        with self._lock:
            for record in records:
                record_id = record.metadata.id
                if record_id is None:
                    record_id = str(uuid.uuid4())
                    record = replace(record, metadata=replace(record.metadata, id=record_id))
                self._records[record_id] = record

    def get_record(self, record_id: str) -> Record | None:
        with self._lock:
            return self._records.get(record_id)

    def delete_records_by_id(self, kind: RecordKind, ids: Iterable[str]) -> None:
        with self._lock:
            for record_id in ids:
                record = self._records.get(record_id)
                if record is not None and record.kind == kind:
                    del self._records[record_id]

    def delete_records_by_range(self, kind: RecordKind, time_range: TimeRangeFilter) -> None:
        start, end = self._instants(time_range)
        with self._lock:
            for record in self._matching(kind, start, end):
                del self._records[record.metadata.id]

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def _total_steps(self, records: list[Record], start: datetime, end: datetime) -> int | None:
        total = None
        for record in records:
            fraction = _fraction(record, start, end)
            if fraction > 0:
                total = (total or 0.0) + record.count * fraction
        return None if total is None else round(total)

    def _total_energy(self, records: list[Record], start: datetime, end: datetime) -> Energy | None:
        total = None
        for record in records:
            fraction = _fraction(record, start, end)
            if fraction > 0:
                share = Energy.from_kilocalories(record.energy.kilocalories * fraction)
                total = share if total is None else total + share
        return total

    def _total_distance(self, records: list[Record], start: datetime, end: datetime) -> Length | None:
        total = None
        for record in records:
            fraction = _fraction(record, start, end)
            if fraction > 0:
                share = Length.from_meters(record.distance.meters * fraction)
                total = share if total is None else total + share
        return total

    def _total_exercise(self, records: list[Record], start: datetime, end: datetime) -> timedelta | None:
        overlaps = [
            _overlap(record.start_time, record.end_time, start, end) for record in records
        ]
        overlaps = [overlap for overlap in overlaps if overlap > timedelta(0)]
        return sum(overlaps, timedelta(0)) if overlaps else None

    def _total_basal(self, records: list[Record], start: datetime, end: datetime) -> Energy | None:
        samples = sorted(records, key=lambda record: record.time)
        total = None
        for index, sample in enumerate(samples):
            until = samples[index + 1].time if index + 1 < len(samples) else end
            overlap = _overlap(sample.time, until, start, end)
            if overlap > timedelta(0):
                rate = sample.basal_metabolic_rate.kilocalories_per_day
                share = Energy.from_kilocalories(rate * (overlap / DAY))
                total = share if total is None else total + share
        return total

    def _calculators(self) -> dict[AggregateMetric, Callable]:
        return {
            AggregateMetric.STEPS_COUNT_TOTAL: self._total_steps,
            AggregateMetric.ACTIVE_CALORIES_TOTAL: self._total_energy,
            AggregateMetric.DISTANCE_TOTAL: self._total_distance,
            AggregateMetric.EXERCISE_DURATION_TOTAL: self._total_exercise,
            AggregateMetric.BASAL_CALORIES_TOTAL: self._total_basal,
        }

    def _compute(self, metrics: set[AggregateMetric], start: datetime, end: datetime) -> AggregationResult:
        calculators = self._calculators()
        values = {}
        with self._lock:
            for metric in metrics:
                records = [r for r in self._records.values() if r.kind == metric.kind]
                if metric is AggregateMetric.BASAL_CALORIES_TOTAL:
                    # Earlier samples carry their rate into the window
                    records = [r for r in records if r.time < end]
                value = calculators[metric](records, start, end)
                if value is not None:
                    values[metric] = value
        return AggregationResult(values)

    def aggregate(
        self,
        metrics: set[AggregateMetric],
        time_range: TimeRangeFilter,
    ) -> AggregationResult:
        start, end = self._instants(time_range)
        return self._compute(metrics, start, end)

    def aggregate_group_by_duration(
        self,
        metrics: set[AggregateMetric],
        time_range: TimeRangeFilter,
        duration: timedelta,
    ) -> list[AggregationResultGroupedByDuration]:
        if duration <= timedelta(0):
            raise ValueError("Aggregation duration must be positive")
        start, end = self._instants(time_range)
        groups = []
        window_start = start
        while window_start < end:
            window_end = min(window_start + duration, end)
            groups.append(
                AggregationResultGroupedByDuration(
                    result=self._compute(metrics, window_start, window_end),
                    start_time=window_start,
                    end_time=window_end,
                )
            )
            window_start = window_end
        return groups

    def aggregate_group_by_period(
        self,
        metrics: set[AggregateMetric],
        time_range: TimeRangeFilter,
        period: relativedelta,
    ) -> list[AggregationResultGroupedByPeriod]:
        if not time_range.is_local:
            raise ValueError("Period aggregation requires a local time range")
        origin, local_end = time_range.start, time_range.end
        groups = []
        step = 0
        window_start = origin
        while window_start < local_end:
            step += 1
            window_end = min(origin + period * step, local_end)
            if window_end <= window_start:
                raise ValueError("Aggregation period must be positive")
            groups.append(
                AggregationResultGroupedByPeriod(
                    result=self._compute(
                        metrics, self._instant(window_start), self._instant(window_end)
                    ),
                    start_time=window_start,
                    end_time=window_end,
                )
            )
            window_start = window_end
        return groups
