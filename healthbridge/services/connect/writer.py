"""Build native health store records from canonical write requests."""

import math
from collections.abc import Callable
from datetime import datetime

from healthbridge.schemas.records import StoreRequest
from healthbridge.services.connect.activities import exercise_type_from_activity
from healthbridge.services.connect.errors import (
    IntervalArithmeticError,
    RequestValidationError,
    UnsupportedOperationError,
)
from healthbridge.services.connect.records import (
    ActiveCaloriesBurnedRecord,
    BasalMetabolicRateRecord,
    BodyFatRecord,
    DistanceRecord,
    ExerciseSessionRecord,
    FloorsClimbedRecord,
    OxygenSaturationRecord,
    Record,
    RecordKind,
    StepsRecord,
    WeightRecord,
    from_millis,
)
from healthbridge.services.connect.registry import DataTypeDescriptor, resolve
from healthbridge.services.connect.units import Energy, Length, Mass, Percentage, Power

MILLIS_PER_DAY = 86_400_000


def _number(request: StoreRequest) -> float:
    value = request.value
    try:
        number = float(value)
    except (OverflowError, ValueError):
        raise RequestValidationError(
            f"Value for {request.data_type} must be numeric, got {value!r}"
        ) from None
    if not math.isfinite(number):
        raise RequestValidationError(
            f"Value for {request.data_type} must be a finite number, got {value!r}"
        )
    return number


def _percentage(request: StoreRequest) -> Percentage:
    try:
        return Percentage(_number(request))
    except ValueError as e:
        raise RequestValidationError(str(e)) from None


def basal_rate_from_total(kilocalories: float, start_millis: int, end_millis: int) -> Power:
    """
    Derive a basal metabolic rate from total energy over an interval.

    Raises:
        IntervalArithmeticError: If the interval has zero length
    """
    span = end_millis - start_millis
    if span == 0:
        raise IntervalArithmeticError(
            "Cannot derive a basal rate over a zero-length interval"
        )
    return Power.from_kilocalories_per_day(kilocalories / (span / MILLIS_PER_DAY))


def _steps(request: StoreRequest, start: datetime, end: datetime) -> Record:
    count = _number(request)
    if not count.is_integer():
        raise RequestValidationError(f"Value for steps must be a whole number, got {request.value!r}")
    return StepsRecord(start_time=start, end_time=end, count=int(count))


def _weight(request: StoreRequest, start: datetime, end: datetime) -> Record:
    return WeightRecord(time=start, weight=Mass.from_kilograms(_number(request)))


def _body_fat(request: StoreRequest, start: datetime, end: datetime) -> Record:
    return BodyFatRecord(time=start, percentage=_percentage(request))


def _exercise(request: StoreRequest, start: datetime, end: datetime) -> Record:
    if not isinstance(request.value, str):
        raise RequestValidationError("Value for activity must be an activity type label")
    return ExerciseSessionRecord(
        start_time=start,
        end_time=end,
        exercise_type=exercise_type_from_activity(request.value),
    )


def _active_calories(request: StoreRequest, start: datetime, end: datetime) -> Record:
    return ActiveCaloriesBurnedRecord(
        start_time=start,
        end_time=end,
        energy=Energy.from_kilocalories(_number(request)),
    )


def _basal_rate(request: StoreRequest, start: datetime, end: datetime) -> Record:
    rate = basal_rate_from_total(_number(request), request.start_date, request.end_date)
    return BasalMetabolicRateRecord(time=start, basal_metabolic_rate=rate)


def _distance(request: StoreRequest, start: datetime, end: datetime) -> Record:
    return DistanceRecord(
        start_time=start,
        end_time=end,
        distance=Length.from_meters(_number(request)),
    )


def _floors(request: StoreRequest, start: datetime, end: datetime) -> Record:
    return FloorsClimbedRecord(start_time=start, end_time=end, floors=_number(request))


def _oxygen_saturation(request: StoreRequest, start: datetime, end: datetime) -> Record:
    return OxygenSaturationRecord(time=start, percentage=_percentage(request))


BUILDERS: dict[RecordKind, Callable[[StoreRequest, datetime, datetime], Record]] = {
    RecordKind.STEPS: _steps,
    RecordKind.WEIGHT: _weight,
    RecordKind.BODY_FAT: _body_fat,
    RecordKind.EXERCISE_SESSION: _exercise,
    RecordKind.ACTIVE_CALORIES_BURNED: _active_calories,
    RecordKind.BASAL_METABOLIC_RATE: _basal_rate,
    RecordKind.DISTANCE: _distance,
    RecordKind.FLOORS_CLIMBED: _floors,
    RecordKind.OXYGEN_SATURATION: _oxygen_saturation,
}


def to_native_record(
    request: StoreRequest,
    descriptor: DataTypeDescriptor | None = None,
) -> Record:
    """
    Build the native record for a canonical write.

    Instant kinds use ``startDate`` as the measurement time and ignore
    ``endDate``. Basal calories are written as a total for the interval and
    stored as a kcal/day rate.

    Raises:
        UnsupportedDataTypeError: If the data type does not resolve
        UnsupportedOperationError: If the data type is read-only or the
            activity label is unknown
        RequestValidationError: If the value has the wrong shape
        IntervalArithmeticError: Basal calories over a zero-length interval
    """
    descriptor = descriptor or resolve(request.data_type)
    builder = BUILDERS.get(descriptor.kind)
    if builder is None or not descriptor.writable:
        raise UnsupportedOperationError(f"Datatype not supported for writing {descriptor.name}")

    return builder(request, from_millis(request.start_date), from_millis(request.end_date))
