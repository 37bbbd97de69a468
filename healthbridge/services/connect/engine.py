"""Request/response translation between canonical requests and the health store."""

from datetime import tzinfo

from healthbridge.core.logging import get_logger
from healthbridge.schemas.authorization import AuthorizationRequest
from healthbridge.schemas.records import (
    AggregateRequest,
    AggregationBucket,
    CanonicalRecord,
    DeleteRequest,
    QueryRequest,
    StoreRequest,
)
from healthbridge.services.connect.aggregation import (
    aggregate_planned,
    aggregate_range,
    aggregation_metric,
    metric_value,
)
from healthbridge.services.connect.authorization import authorize
from healthbridge.services.connect.buckets import plan_buckets
from healthbridge.services.connect.errors import (
    BackendError,
    BackendUnavailableError,
    PermissionDeniedError,
    RequestValidationError,
)
from healthbridge.services.connect.normalizer import normalize_all
from healthbridge.services.connect.records import (
    AggregateMetric,
    TimeRangeFilter,
    from_millis,
)
from healthbridge.services.connect.registry import resolve
from healthbridge.services.connect.stores.base import HealthStore, SdkStatus, store_errors
from healthbridge.services.connect.writer import to_native_record

logger = get_logger(__name__)

DEFAULT_QUERY_LIMIT = 1000


class HealthConnectEngine:
    """
    Translate canonical health requests into health store calls.

    The engine is stateless between requests: it holds the store handle it
    was given, the local zone used for calendar bucketing, and a few
    request defaults. Every operation issues blocking store calls and
    surfaces failures as HealthEngineError subclasses.
    """

    def __init__(
        self,
        store: HealthStore | None,
        zone: tzinfo,
        default_limit: int = DEFAULT_QUERY_LIMIT,
        enforce_permissions: bool = True,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Health store session handle, owned by the caller
            zone: Local time zone for bucket boundaries
            default_limit: Record limit for queries that do not set one
            enforce_permissions: Check granted permissions before reads and writes
        """
        self._store = store
        self._zone = zone
        self._default_limit = default_limit
        self._enforce_permissions = enforce_permissions

    def _connected(self, operation: str) -> HealthStore:
        if self._store is None:
            raise BackendUnavailableError(
                f"You must call requestAuthorization() before {operation}()"
            )
        return self._store

    def _require_permission(self, store: HealthStore, permission: str) -> None:
        if not self._enforce_permissions:
            return
        with store_errors("get_granted_permissions"):
            granted = store.get_granted_permissions()
        if permission not in granted:
            logger.warning("Permission missing", permission=permission)
            raise PermissionDeniedError(
                f"Permission {permission} not granted, call requestAuthorization() first"
            )

    # ------------------------------------------------------------------
    # Availability and authorization
    # ------------------------------------------------------------------

    def availability(self) -> SdkStatus:
        """Report the store's SDK status without raising."""
        if self._store is None:
            return SdkStatus.UNAVAILABLE
        with store_errors("sdk_status"):
            return self._store.sdk_status()

    def ensure_available(self) -> None:
        """
        Raise unless the health store can be used.

        Raises:
            BackendUnavailableError: Store missing or needing an update
        """
        status = self.availability()
        if status is SdkStatus.UNAVAILABLE:
            raise BackendUnavailableError("Health store is not available")
        if status is SdkStatus.PROVIDER_UPDATE_REQUIRED:
            raise BackendUnavailableError("Health store is not installed")

    def is_authorized(self, request: AuthorizationRequest) -> bool:
        """Check permissions; never starts a grant flow."""
        store = self._connected("isAuthorized")
        return authorize(store, request.read, request.write, allow_request=False)

    def request_authorization(self, request: AuthorizationRequest) -> bool:
        """Check permissions and request every missing one in a single flow."""
        store = self._connected("requestAuthorization")
        return authorize(store, request.read, request.write, allow_request=True)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(self, request: QueryRequest) -> list[CanonicalRecord]:
        """
        Read raw records of one data type and normalize them.

        Raises:
            UnsupportedDataTypeError: Unknown data type
            PermissionDeniedError: Read permission not granted
            NormalizationError: A returned record has no normalization rule
            BackendError: The store call failed
        """
        descriptor = resolve(request.data_type)
        limit = request.limit if request.limit is not None else self._default_limit
        if limit <= 0:
            raise RequestValidationError("limit must be positive")

        store = self._connected("query")
        self._require_permission(store, descriptor.read_permission)

        time_range = TimeRangeFilter(from_millis(request.start_date), from_millis(request.end_date))
        with store_errors("read_records"):
            native = store.read_records(descriptor.kind, time_range, limit, request.ascending)

        records = normalize_all(native)
        logger.info(
            "Data query successful",
            data_type=descriptor.name,
            native_count=len(native),
            count=len(records),
        )

        if descriptor.name == "activity" and (request.include_calories or request.include_distance):
            records = [
                self._enrich_activity(store, record, request.include_calories, request.include_distance)
                for record in records
            ]
        return records

    def _enrich_activity(
        self,
        store: HealthStore,
        record: CanonicalRecord,
        include_calories: bool,
        include_distance: bool,
    ) -> CanonicalRecord:
        """Attach active calories and/or distance covered during an activity."""
        update = {}
        if include_calories:
            calories = resolve("calories.active")
            self._require_permission(store, calories.read_permission)
            bucket = aggregate_range(store, calories, record.start_date, record.end_date)
            update["calories"] = float(bucket.value)
        if include_distance:
            self._require_permission(store, resolve("distance").read_permission)
            time_range = TimeRangeFilter(from_millis(record.start_date), from_millis(record.end_date))
            with store_errors("aggregate"):
                result = store.aggregate({AggregateMetric.DISTANCE_TOTAL}, time_range)
            update["distance"] = float(metric_value(AggregateMetric.DISTANCE_TOTAL, result))
        return record.model_copy(update=update)

    # ------------------------------------------------------------------
    # Aggregate
    # ------------------------------------------------------------------

    def query_aggregated(
        self, request: AggregateRequest
    ) -> AggregationBucket | list[AggregationBucket]:
        """
        Aggregate one data type over a range, optionally in buckets.

        Without a bucket a single AggregationBucket covers the whole range.
        With 'hour' the store groups by a fixed one-hour duration; with
        day/week/month/year it groups by calendar period in the local zone.

        Raises:
            UnsupportedDataTypeError: Unknown data type
            UnsupportedOperationError: Data type cannot be aggregated
            UnrecognizedBucketError: Unknown bucket token, before any store call
            PermissionDeniedError: Read permission not granted
            BackendError: The store call failed
        """
        descriptor = resolve(request.data_type)
        aggregation_metric(descriptor)

        plan = None
        if request.bucket is not None:
            plan = plan_buckets(request.start_date, request.end_date, self._zone, request.bucket)

        store = self._connected("queryAggregated")
        self._require_permission(store, descriptor.read_permission)

        if plan is None:
            result = aggregate_range(store, descriptor, request.start_date, request.end_date)
            logger.info("Aggregated query successful", data_type=descriptor.name)
            return result

        buckets = aggregate_planned(store, descriptor, plan, self._zone)
        logger.info(
            "Aggregated query successful",
            data_type=descriptor.name,
            bucket=plan.granularity,
            count=len(buckets),
        )
        return buckets

    # ------------------------------------------------------------------
    # Store and delete
    # ------------------------------------------------------------------

    def store(self, request: StoreRequest) -> str:
        """
        Write one canonical measurement.

        Returns:
            The record id assigned by the store

        Raises:
            UnsupportedDataTypeError: Unknown data type
            UnsupportedOperationError: Read-only data type or unknown activity
            IntervalArithmeticError: Basal calories over a zero-length interval
            PermissionDeniedError: Write permission not granted
            BackendError: The store call failed
        """
        descriptor = resolve(request.data_type)
        record = to_native_record(request, descriptor)

        store = self._connected("store")
        self._require_permission(store, descriptor.write_permission)

        with store_errors("insert_records"):
            ids = store.insert_records([record])
        if not ids:
            raise BackendError("Store returned no record id")

        logger.info("Data written", data_type=descriptor.name, record_id=ids[0])
        return ids[0]

    def delete(self, request: DeleteRequest) -> None:
        """
        Delete records by id, or by time range when no id is given.

        Raises:
            UnsupportedDataTypeError: Unknown data type
            RequestValidationError: Neither an id nor a complete range
            BackendError: The store call failed
        """
        descriptor = resolve(request.data_type)

        if request.id is not None:
            store = self._connected("delete")
            with store_errors("delete_records_by_id"):
                store.delete_records_by_id(descriptor.kind, [request.id])
            logger.info("Data deleted by ID", data_type=descriptor.name, record_id=request.id)
            return

        if request.start_date is None:
            raise RequestValidationError("Missing argument startDate")
        if request.end_date is None:
            raise RequestValidationError("Missing argument endDate")
        if request.end_date < request.start_date:
            raise RequestValidationError("endDate must not be before startDate")

        store = self._connected("delete")
        time_range = TimeRangeFilter(from_millis(request.start_date), from_millis(request.end_date))
        with store_errors("delete_records_by_range"):
            store.delete_records_by_range(descriptor.kind, time_range)
        logger.info("Data deleted by time range", data_type=descriptor.name)
