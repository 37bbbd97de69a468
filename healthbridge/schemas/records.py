"""Canonical record schemas for query, aggregate, store and delete."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Accepted epoch-millisecond range: 0002-01-01 to 9998-01-01 UTC, leaving room
# for local-zone shifts and calendar buckets without leaving datetime's range.
MIN_EPOCH_MILLIS = -62_104_060_800_000
MAX_EPOCH_MILLIS = 253_339_228_800_000


class CamelModel(BaseModel):
    """Base model exposing camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntryMethod(str, Enum):
    """How a measurement was entered."""

    UNKNOWN = "unknown"
    ACTIVELY_RECORDED = "actively_recorded"
    AUTOMATICALLY_RECORDED = "automatically_recorded"
    MANUAL_ENTRY = "manual_entry"


# ============================================================================
# Response Schemas
# ============================================================================


class CanonicalRecord(CamelModel):
    """One normalized measurement. Dates are epoch milliseconds."""

    id: str | None = None
    start_date: int
    end_date: int
    value: int | float | str
    unit: str
    source_device: str | None = None
    source_bundle_id: str | None = None
    entry_method: EntryMethod = EntryMethod.UNKNOWN

    # Activity enrichment (includeCalories / includeDistance)
    calories: float | None = None
    distance: float | None = None


class AggregationBucket(CamelModel):
    """Aggregated value over one time window."""

    start_date: int
    end_date: int
    value: int | float
    unit: str


class StoreResponse(BaseModel):
    """Identifier assigned by the health store to a written record."""

    id: str


class DeleteResponse(BaseModel):
    """Outcome of a delete request."""

    deleted: bool


# ============================================================================
# Request Schemas
# ============================================================================


class TimeRangeRequest(CamelModel):
    """Request fields shared by every time-ranged operation."""

    start_date: int = Field(
        ge=MIN_EPOCH_MILLIS, le=MAX_EPOCH_MILLIS, description="Range start, epoch milliseconds"
    )
    end_date: int = Field(
        ge=MIN_EPOCH_MILLIS, le=MAX_EPOCH_MILLIS, description="Range end, epoch milliseconds"
    )
    data_type: str

    @model_validator(mode="after")
    def _check_range(self) -> "TimeRangeRequest":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class QueryRequest(TimeRangeRequest):
    """Raw record query."""

    limit: int | None = Field(None, gt=0, description="Maximum number of native records")
    ascending: bool = False
    include_calories: bool = Field(False, description="Activity only: add active calories")
    include_distance: bool = Field(False, description="Activity only: add distance")


class AggregateRequest(TimeRangeRequest):
    """Aggregate query; without a bucket a single value covers the whole range."""

    bucket: str | None = None


class StoreRequest(TimeRangeRequest):
    """Write one measurement."""

    value: int | float | str


class DeleteRequest(CamelModel):
    """Delete by record id, or by time range when no id is given."""

    data_type: str
    id: str | None = None
    start_date: int | None = Field(None, ge=MIN_EPOCH_MILLIS, le=MAX_EPOCH_MILLIS)
    end_date: int | None = Field(None, ge=MIN_EPOCH_MILLIS, le=MAX_EPOCH_MILLIS)
