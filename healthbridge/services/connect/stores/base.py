"""Abstract base class for health store backends."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from healthbridge.core.logging import get_logger
from healthbridge.services.connect.errors import BackendError, HealthEngineError
from healthbridge.services.connect.records import (
    AggregateMetric,
    AggregationResult,
    AggregationResultGroupedByDuration,
    AggregationResultGroupedByPeriod,
    Record,
    RecordKind,
    TimeRangeFilter,
)

logger = get_logger(__name__)


class SdkStatus(str, Enum):
    """Availability of the health store on the device."""

    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    PROVIDER_UPDATE_REQUIRED = "provider_update_required"


class HealthStore(ABC):
    """
    Abstract base class for the health-data store collaborator.

    The engine talks to the store only through this interface, so a real
    device bridge and the in-memory store are interchangeable. Every call
    is blocking; implementations own their own session state.
    """

    name: str = ""
    """Unique store identifier."""

    @abstractmethod
    def sdk_status(self) -> SdkStatus:
        """Report whether the store is installed and usable."""
        pass

    @abstractmethod
    def get_granted_permissions(self) -> set[str]:
        """Return the permission identifiers currently granted."""
        pass

    @abstractmethod
    def request_permissions(self, permissions: set[str]) -> set[str]:
        """
        Ask the user to grant permissions.

        Args:
            permissions: Permission identifiers to request

        Returns:
            The permissions granted by the flow; empty when the user declined.
        """
        pass

    @abstractmethod
    def read_records(
        self,
        kind: RecordKind,
        time_range: TimeRangeFilter,
        limit: int,
        ascending: bool,
    ) -> list[Record]:
        """
        Read native records of one kind overlapping a time range.

        Args:
            kind: Record kind to read
            time_range: Instant-based range filter
            limit: Maximum number of records to return
            ascending: Sort by start time ascending when True

        Returns:
            Native records, at most ``limit`` of them.
        """
        pass

    @abstractmethod
    def aggregate(
        self,
        metrics: set[AggregateMetric],
        time_range: TimeRangeFilter,
    ) -> AggregationResult:
        """Aggregate metrics over the whole range."""
        pass

    @abstractmethod
    def aggregate_group_by_duration(
        self,
        metrics: set[AggregateMetric],
        time_range: TimeRangeFilter,
        duration: timedelta,
    ) -> list[AggregationResultGroupedByDuration]:
        """Aggregate metrics into fixed-length windows."""
        pass

    @abstractmethod
    def aggregate_group_by_period(
        self,
        metrics: set[AggregateMetric],
        time_range: TimeRangeFilter,
        period: relativedelta,
    ) -> list[AggregationResultGroupedByPeriod]:
        """Aggregate metrics into calendar-aligned windows of local time."""
        pass

    @abstractmethod
    def insert_records(self, records: Sequence[Record]) -> list[str]:
        """Insert records and return their assigned ids, in order."""
        pass

    @abstractmethod
    def delete_records_by_id(self, kind: RecordKind, ids: Iterable[str]) -> None:
        """Delete records of one kind by id."""
        pass

    @abstractmethod
    def delete_records_by_range(self, kind: RecordKind, time_range: TimeRangeFilter) -> None:
        """Delete records of one kind overlapping a time range."""
        pass


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """
    Surface any failure raised by a store call as a BackendError.

    Engine errors pass through untouched; everything else keeps the
    store's message and is chained to the original exception.
    """
    try:
        yield
    except HealthEngineError:
        raise
    except Exception as e:
        logger.error("Health store call failed", operation=operation, error=str(e))
        raise BackendError(str(e) or type(e).__name__) from e
