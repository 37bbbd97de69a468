"""Native record types of the health store.

These mirror the typed schema of the underlying health-data store: every
record kind carries its own value fields and units, plus a uniform
``Metadata`` block. Instants are timezone-aware datetimes; local wall-clock
times (used by period aggregation) are naive datetimes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, IntEnum
from typing import Any, ClassVar

from healthbridge.services.connect.errors import RequestValidationError
from healthbridge.services.connect.units import Energy, Length, Mass, Percentage, Power

PERMISSION_PREFIX = "android.permission.health"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def from_millis(millis: int) -> datetime:
    """
    Convert epoch milliseconds to a UTC datetime.

    Raises:
        RequestValidationError: If the instant falls outside the datetime range
    """
    try:
        return EPOCH + timedelta(milliseconds=millis)
    except (OverflowError, ValueError):
        raise RequestValidationError(f"Timestamp out of range: {millis}") from None


def to_millis(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return (moment - EPOCH) // timedelta(milliseconds=1)


class RecordKind(str, Enum):
    """Record kinds understood by the health store."""

    STEPS = "Steps"
    WEIGHT = "Weight"
    BODY_FAT = "BodyFat"
    EXERCISE_SESSION = "ExerciseSession"
    ACTIVE_CALORIES_BURNED = "ActiveCaloriesBurned"
    BASAL_METABOLIC_RATE = "BasalMetabolicRate"
    DISTANCE = "Distance"
    FLOORS_CLIMBED = "FloorsClimbed"
    HEART_RATE = "HeartRate"
    OXYGEN_SATURATION = "OxygenSaturation"
    SLEEP_SESSION = "SleepSession"

    @property
    def permission_token(self) -> str:
        return _PERMISSION_TOKENS[self]

    @property
    def read_permission(self) -> str:
        return f"{PERMISSION_PREFIX}.READ_{self.permission_token}"

    @property
    def write_permission(self) -> str:
        return f"{PERMISSION_PREFIX}.WRITE_{self.permission_token}"


_PERMISSION_TOKENS: dict[RecordKind, str] = {
    RecordKind.STEPS: "STEPS",
    RecordKind.WEIGHT: "WEIGHT",
    RecordKind.BODY_FAT: "BODY_FAT",
    RecordKind.EXERCISE_SESSION: "EXERCISE",
    RecordKind.ACTIVE_CALORIES_BURNED: "ACTIVE_CALORIES_BURNED",
    RecordKind.BASAL_METABOLIC_RATE: "BASAL_METABOLIC_RATE",
    RecordKind.DISTANCE: "DISTANCE",
    RecordKind.FLOORS_CLIMBED: "FLOORS_CLIMBED",
    RecordKind.HEART_RATE: "HEART_RATE",
    RecordKind.OXYGEN_SATURATION: "OXYGEN_SATURATION",
    RecordKind.SLEEP_SESSION: "SLEEP",
}


class RecordingMethod(IntEnum):
    """How a measurement was captured."""

    UNKNOWN = 0
    ACTIVELY_RECORDED = 1
    AUTOMATICALLY_RECORDED = 2
    MANUAL_ENTRY = 3


class SleepStageType(IntEnum):
    """Sleep stage codes used inside a sleep session."""

    UNKNOWN = 0
    AWAKE = 1
    SLEEPING = 2
    OUT_OF_BED = 3
    LIGHT = 4
    DEEP = 5
    REM = 6
    AWAKE_IN_BED = 7


# ============================================================================
# Metadata
# ============================================================================


@dataclass(frozen=True)
class Device:
    """Device that produced a record."""

    manufacturer: str | None = None
    model: str | None = None


@dataclass(frozen=True)
class DataOrigin:
    """Application that wrote a record."""

    package_name: str


@dataclass(frozen=True)
class Metadata:
    """Uniform metadata attached to every native record."""

    id: str | None = None
    device: Device | None = None
    data_origin: DataOrigin | None = None
    recording_method: int = RecordingMethod.UNKNOWN


EMPTY_METADATA = Metadata()


# ============================================================================
# Records
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class Record(ABC):
    """Base class for every native record."""

    kind: ClassVar[RecordKind]

    metadata: Metadata = EMPTY_METADATA

    @property
    @abstractmethod
    def span(self) -> tuple[datetime, datetime]:
        """Time span covered by the record (start, end)."""


@dataclass(frozen=True, kw_only=True)
class IntervalRecord(Record):
    """A record covering a time interval."""

    start_time: datetime
    end_time: datetime

    def __post_init__(self) -> None:
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")

    @property
    def span(self) -> tuple[datetime, datetime]:
        return self.start_time, self.end_time


@dataclass(frozen=True, kw_only=True)
class InstantRecord(Record):
    """A record measured at a single instant."""

    time: datetime

    @property
    def span(self) -> tuple[datetime, datetime]:
        return self.time, self.time


@dataclass(frozen=True, kw_only=True)
class StepsRecord(IntervalRecord):
    kind: ClassVar[RecordKind] = RecordKind.STEPS

    count: int


@dataclass(frozen=True, kw_only=True)
class DistanceRecord(IntervalRecord):
    kind: ClassVar[RecordKind] = RecordKind.DISTANCE

    distance: Length


@dataclass(frozen=True, kw_only=True)
class FloorsClimbedRecord(IntervalRecord):
    kind: ClassVar[RecordKind] = RecordKind.FLOORS_CLIMBED

    floors: float


@dataclass(frozen=True, kw_only=True)
class ActiveCaloriesBurnedRecord(IntervalRecord):
    kind: ClassVar[RecordKind] = RecordKind.ACTIVE_CALORIES_BURNED

    energy: Energy


@dataclass(frozen=True, kw_only=True)
class ExerciseSessionRecord(IntervalRecord):
    kind: ClassVar[RecordKind] = RecordKind.EXERCISE_SESSION

    exercise_type: int
    title: str | None = None
    notes: str | None = None


@dataclass(frozen=True, kw_only=True)
class WeightRecord(InstantRecord):
    kind: ClassVar[RecordKind] = RecordKind.WEIGHT

    weight: Mass


@dataclass(frozen=True, kw_only=True)
class BodyFatRecord(InstantRecord):
    kind: ClassVar[RecordKind] = RecordKind.BODY_FAT

    percentage: Percentage


@dataclass(frozen=True, kw_only=True)
class BasalMetabolicRateRecord(InstantRecord):
    kind: ClassVar[RecordKind] = RecordKind.BASAL_METABOLIC_RATE

    basal_metabolic_rate: Power


@dataclass(frozen=True, kw_only=True)
class OxygenSaturationRecord(InstantRecord):
    kind: ClassVar[RecordKind] = RecordKind.OXYGEN_SATURATION

    percentage: Percentage


@dataclass(frozen=True)
class HeartRateSample:
    time: datetime
    beats_per_minute: int


@dataclass(frozen=True, kw_only=True)
class HeartRateRecord(IntervalRecord):
    kind: ClassVar[RecordKind] = RecordKind.HEART_RATE

    samples: tuple[HeartRateSample, ...] = ()


@dataclass(frozen=True)
class SleepStage:
    start_time: datetime
    end_time: datetime
    stage: int


@dataclass(frozen=True, kw_only=True)
class SleepSessionRecord(IntervalRecord):
    kind: ClassVar[RecordKind] = RecordKind.SLEEP_SESSION

    stages: tuple[SleepStage, ...] = ()
    title: str | None = None
    notes: str | None = None


# ============================================================================
# Queries and aggregation
# ============================================================================


@dataclass(frozen=True)
class TimeRangeFilter:
    """
    Time range for reads, deletes and aggregation.

    Either both bounds are timezone-aware instants or both are naive local
    wall-clock times; the store interprets local bounds in its own zone.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if (self.start.tzinfo is None) != (self.end.tzinfo is None):
            raise ValueError("TimeRangeFilter bounds must both be instants or both be local")

    @property
    def is_local(self) -> bool:
        return self.start.tzinfo is None


class AggregateMetric(str, Enum):
    """Aggregate metrics the store can compute, with the kind they read."""

    STEPS_COUNT_TOTAL = "Steps_count_total"
    EXERCISE_DURATION_TOTAL = "ExerciseSession_duration_total"
    ACTIVE_CALORIES_TOTAL = "ActiveCaloriesBurned_energy_total"
    BASAL_CALORIES_TOTAL = "BasalMetabolicRate_energy_total"
    DISTANCE_TOTAL = "Distance_distance_total"

    @property
    def kind(self) -> RecordKind:
        return _METRIC_KINDS[self]


_METRIC_KINDS: dict[AggregateMetric, RecordKind] = {
    AggregateMetric.STEPS_COUNT_TOTAL: RecordKind.STEPS,
    AggregateMetric.EXERCISE_DURATION_TOTAL: RecordKind.EXERCISE_SESSION,
    AggregateMetric.ACTIVE_CALORIES_TOTAL: RecordKind.ACTIVE_CALORIES_BURNED,
    AggregateMetric.BASAL_CALORIES_TOTAL: RecordKind.BASAL_METABOLIC_RATE,
    AggregateMetric.DISTANCE_TOTAL: RecordKind.DISTANCE,
}


@dataclass(frozen=True)
class AggregationResult:
    """Aggregated metric values; absent metrics had no contributing data."""

    values: dict[AggregateMetric, Any] = field(default_factory=dict)

    def get(self, metric: AggregateMetric) -> Any:
        return self.values.get(metric)

    def __contains__(self, metric: AggregateMetric) -> bool:
        return metric in self.values


@dataclass(frozen=True)
class AggregationResultGroupedByDuration:
    """One fixed-duration window; bounds are instants."""

    result: AggregationResult
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class AggregationResultGroupedByPeriod:
    """One calendar-period window; bounds are local wall-clock times."""

    result: AggregationResult
    start_time: datetime
    end_time: datetime

