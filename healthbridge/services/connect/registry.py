"""Registry of canonical data types and their record kinds."""

from pydantic import BaseModel, ConfigDict

from healthbridge.services.connect.errors import UnsupportedDataTypeError
from healthbridge.services.connect.records import AggregateMetric, RecordKind


class DataTypeDescriptor(BaseModel):
    """Static description of one canonical data type."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: RecordKind
    unit: str
    instant: bool = False
    writable: bool = True
    multi_entry: bool = False
    aggregate_metric: AggregateMetric | None = None
    aggregate_unit: str | None = None

    @property
    def supports_aggregation(self) -> bool:
        return self.aggregate_metric is not None

    @property
    def read_permission(self) -> str:
        return self.kind.read_permission

    @property
    def write_permission(self) -> str:
        return self.kind.write_permission


DATA_TYPES: dict[str, DataTypeDescriptor] = {
    "steps": DataTypeDescriptor(
        name="steps",
        kind=RecordKind.STEPS,
        unit="count",
        aggregate_metric=AggregateMetric.STEPS_COUNT_TOTAL,
        aggregate_unit="count",
    ),
    "weight": DataTypeDescriptor(
        name="weight",
        kind=RecordKind.WEIGHT,
        unit="kg",
        instant=True,
    ),
    "fat_percentage": DataTypeDescriptor(
        name="fat_percentage",
        kind=RecordKind.BODY_FAT,
        unit="%",
        instant=True,
    ),
    "activity": DataTypeDescriptor(
        name="activity",
        kind=RecordKind.EXERCISE_SESSION,
        unit="activityType",
        aggregate_metric=AggregateMetric.EXERCISE_DURATION_TOTAL,
        aggregate_unit="ms",
    ),
    "calories.active": DataTypeDescriptor(
        name="calories.active",
        kind=RecordKind.ACTIVE_CALORIES_BURNED,
        unit="kcal",
        aggregate_metric=AggregateMetric.ACTIVE_CALORIES_TOTAL,
        aggregate_unit="kcal",
    ),
    "calories.basal": DataTypeDescriptor(
        name="calories.basal",
        kind=RecordKind.BASAL_METABOLIC_RATE,
        unit="kcal/day",
        instant=True,
        aggregate_metric=AggregateMetric.BASAL_CALORIES_TOTAL,
        aggregate_unit="kcal",
    ),
    "distance": DataTypeDescriptor(
        name="distance",
        kind=RecordKind.DISTANCE,
        unit="m",
    ),
    "stairs": DataTypeDescriptor(
        name="stairs",
        kind=RecordKind.FLOORS_CLIMBED,
        unit="count",
    ),
    "heart_rate": DataTypeDescriptor(
        name="heart_rate",
        kind=RecordKind.HEART_RATE,
        unit="count/min",
        instant=True,
        writable=False,
        multi_entry=True,
    ),
    "oxygen_saturation": DataTypeDescriptor(
        name="oxygen_saturation",
        kind=RecordKind.OXYGEN_SATURATION,
        unit="percentage",
        instant=True,
    ),
    "sleep": DataTypeDescriptor(
        name="sleep",
        kind=RecordKind.SLEEP_SESSION,
        unit="sleepType",
        writable=False,
        multi_entry=True,
    ),
}

# Legacy names accepted by resolve()
DATA_TYPE_ALIASES: dict[str, str] = {
    "calories": "calories.active",
}


def resolve(name: str) -> DataTypeDescriptor:
    """
    Resolve a canonical data type name, case-insensitively.

    Args:
        name: Canonical name such as 'steps' or 'calories.basal'

    Returns:
        The matching DataTypeDescriptor

    Raises:
        UnsupportedDataTypeError: If the name is not a supported data type
    """
    key = name.lower() if isinstance(name, str) else ""
    key = DATA_TYPE_ALIASES.get(key, key)
    descriptor = DATA_TYPES.get(key)
    if descriptor is None:
        raise UnsupportedDataTypeError(str(name))
    return descriptor


def list_data_types() -> list[str]:
    """Return the supported canonical data type names."""
    return list(DATA_TYPES.keys())
