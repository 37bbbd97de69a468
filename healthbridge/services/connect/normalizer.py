"""Normalize native health store records into canonical records."""

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from healthbridge.core.logging import get_logger
from healthbridge.schemas.records import CanonicalRecord, EntryMethod
from healthbridge.services.connect.activities import activity_from_exercise_type
from healthbridge.services.connect.errors import NormalizationError
from healthbridge.services.connect.records import (
    ActiveCaloriesBurnedRecord,
    BasalMetabolicRateRecord,
    BodyFatRecord,
    DistanceRecord,
    ExerciseSessionRecord,
    FloorsClimbedRecord,
    HeartRateRecord,
    Metadata,
    OxygenSaturationRecord,
    Record,
    RecordKind,
    SleepSessionRecord,
    SleepStageType,
    StepsRecord,
    WeightRecord,
    to_millis,
)

logger = get_logger(__name__)

ENTRY_METHODS: dict[int, EntryMethod] = {
    1: EntryMethod.ACTIVELY_RECORDED,
    2: EntryMethod.AUTOMATICALLY_RECORDED,
    3: EntryMethod.MANUAL_ENTRY,
}

SLEEP_STAGE_LABELS: dict[int, str] = {
    SleepStageType.UNKNOWN: "unknown",
    SleepStageType.AWAKE_IN_BED: "sleep.inBed",
    SleepStageType.AWAKE: "sleep.awake",
    SleepStageType.OUT_OF_BED: "sleep.awake",
    SleepStageType.SLEEPING: "sleep",
    SleepStageType.LIGHT: "sleep.light",
    SleepStageType.DEEP: "sleep.deep",
    SleepStageType.REM: "sleep.rem",
}


def extract_metadata(metadata: Metadata) -> dict[str, Any]:
    """Build the canonical metadata fields shared by every record kind."""
    fields: dict[str, Any] = {}

    if metadata.id is not None:
        fields["id"] = metadata.id

    device = metadata.device
    if device is not None and (device.manufacturer is not None or device.model is not None):
        parts = (device.manufacturer, device.model)
        fields["source_device"] = " ".join(part for part in parts if part is not None)

    if metadata.data_origin is not None:
        fields["source_bundle_id"] = metadata.data_origin.package_name

    fields["entry_method"] = ENTRY_METHODS.get(metadata.recording_method, EntryMethod.UNKNOWN)
    return fields


def sleep_stage_label(stage: int) -> str:
    """Map a sleep stage code to its canonical label, empty when unmapped."""
    return SLEEP_STAGE_LABELS.get(stage, "")


# ============================================================================
# Per-kind value extraction
# ============================================================================
# Each extractor returns (start, end, value, unit) tuples; single-entry kinds
# yield exactly one, heart rate and sleep yield one per sample / stage.

Entry = tuple[datetime, datetime, int | float | str, str]


def _steps(record: StepsRecord) -> list[Entry]:
    return [(record.start_time, record.end_time, int(record.count), "count")]


def _weight(record: WeightRecord) -> list[Entry]:
    return [(record.time, record.time, record.weight.kilograms, "kg")]


def _distance(record: DistanceRecord) -> list[Entry]:
    return [(record.start_time, record.end_time, record.distance.meters, "m")]


def _floors(record: FloorsClimbedRecord) -> list[Entry]:
    return [(record.start_time, record.end_time, float(record.floors), "count")]


def _body_fat(record: BodyFatRecord) -> list[Entry]:
    return [(record.time, record.time, record.percentage.value, "%")]


def _exercise(record: ExerciseSessionRecord) -> list[Entry]:
    label = activity_from_exercise_type(record.exercise_type)
    return [(record.start_time, record.end_time, label, "activityType")]


def _active_calories(record: ActiveCaloriesBurnedRecord) -> list[Entry]:
    return [(record.start_time, record.end_time, record.energy.kilocalories, "kcal")]


def _basal_rate(record: BasalMetabolicRateRecord) -> list[Entry]:
    rate = record.basal_metabolic_rate.kilocalories_per_day
    return [(record.time, record.time, rate, "kcal/day")]


def _heart_rate(record: HeartRateRecord) -> list[Entry]:
    return [
        (sample.time, sample.time, sample.beats_per_minute, "count/min")
        for sample in record.samples
    ]


def _oxygen_saturation(record: OxygenSaturationRecord) -> list[Entry]:
    return [(record.time, record.time, record.percentage.value, "percentage")]


def _sleep(record: SleepSessionRecord) -> list[Entry]:
    return [
        (stage.start_time, stage.end_time, sleep_stage_label(stage.stage), "sleepType")
        for stage in record.stages
    ]


EXTRACTORS: dict[RecordKind, Callable[[Any], list[Entry]]] = {
    RecordKind.STEPS: _steps,
    RecordKind.WEIGHT: _weight,
    RecordKind.DISTANCE: _distance,
    RecordKind.FLOORS_CLIMBED: _floors,
    RecordKind.BODY_FAT: _body_fat,
    RecordKind.EXERCISE_SESSION: _exercise,
    RecordKind.ACTIVE_CALORIES_BURNED: _active_calories,
    RecordKind.BASAL_METABOLIC_RATE: _basal_rate,
    RecordKind.HEART_RATE: _heart_rate,
    RecordKind.OXYGEN_SATURATION: _oxygen_saturation,
    RecordKind.SLEEP_SESSION: _sleep,
}


def normalize(record: Record) -> list[CanonicalRecord]:
    """
    Convert one native record into canonical records.

    Multi-entry kinds (heart rate samples, sleep stages) fan out into one
    canonical record per entry, each carrying the session's metadata.

    Raises:
        NormalizationError: If the record kind has no normalization rule
    """
    kind = getattr(record, "kind", None)
    extractor = EXTRACTORS.get(kind) if kind is not None else None
    if extractor is None:
        logger.error("Unrecognized record type", record_type=type(record).__name__)
        raise NormalizationError(f"Sample received of unknown type {type(record).__name__}")

    metadata = extract_metadata(record.metadata)
    return [
        CanonicalRecord(
            start_date=to_millis(start),
            end_date=to_millis(end),
            value=value,
            unit=unit,
            **metadata,
        )
        for start, end, value, unit in extractor(record)
    ]


def normalize_all(records: Iterable[Record]) -> list[CanonicalRecord]:
    """Normalize a batch; one unrecognized record aborts the whole batch."""
    result: list[CanonicalRecord] = []
    for record in records:
        result.extend(normalize(record))
    return result
