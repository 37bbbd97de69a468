"""Record query, aggregate, store and delete endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from healthbridge.core.auth import verify_api_key
from healthbridge.core.logging import get_logger
from healthbridge.dependencies import EngineDep
from healthbridge.schemas.records import (
    AggregateRequest,
    AggregationBucket,
    CanonicalRecord,
    DeleteRequest,
    DeleteResponse,
    QueryRequest,
    StoreRequest,
    StoreResponse,
)
from healthbridge.services.connect.errors import HealthEngineError

logger = get_logger(__name__)

router = APIRouter(
    prefix="/records",
    tags=["records"],
    dependencies=[Depends(verify_api_key)],
)


def _http_error(e: HealthEngineError, operation: str, data_type: str) -> HTTPException:
    log = logger.error if e.status_code >= 500 else logger.warning
    log(
        "Record operation failed",
        operation=operation,
        data_type=data_type,
        error=e.message,
        error_type=type(e).__name__,
    )
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/query",
    response_model=list[CanonicalRecord],
    response_model_exclude_none=True,
    response_model_by_alias=True,
)
def query_records(request: QueryRequest, engine: EngineDep) -> list[CanonicalRecord]:
    """
    Read raw records of one data type, normalized to canonical records.

    Multi-entry types fan out: every heart-rate sample and every sleep
    stage becomes its own record. For `activity`, `includeCalories` and
    `includeDistance` add the active calories and distance covered
    during each session.
    """
    try:
        return engine.query(request)
    except HealthEngineError as e:
        raise _http_error(e, "query", request.data_type) from None


@router.post(
    "/aggregate",
    response_model=AggregationBucket | list[AggregationBucket],
    response_model_by_alias=True,
)
def aggregate_records(
    request: AggregateRequest, engine: EngineDep
) -> AggregationBucket | list[AggregationBucket]:
    """
    Aggregate one data type over a range.

    Without `bucket` a single `{startDate, endDate, value, unit}` object
    covers the range. With `bucket` (hour, day, week, month, year) a list
    of buckets is returned, anchored at the start truncated to the
    bucket in the configured time zone. Empty buckets report zero.
    """
    try:
        return engine.query_aggregated(request)
    except HealthEngineError as e:
        raise _http_error(e, "aggregate", request.data_type) from None


@router.post("/store", response_model=StoreResponse)
def store_record(request: StoreRequest, engine: EngineDep) -> StoreResponse:
    """Write one measurement and return the id assigned by the health store."""
    try:
        record_id = engine.store(request)
    except HealthEngineError as e:
        raise _http_error(e, "store", request.data_type) from None
    return StoreResponse(id=record_id)


@router.post("/delete", response_model=DeleteResponse)
def delete_records(request: DeleteRequest, engine: EngineDep) -> DeleteResponse:
    """Delete one record by `id`, or every record of the type in `[startDate, endDate]`."""
    try:
        engine.delete(request)
    except HealthEngineError as e:
        raise _http_error(e, "delete", request.data_type) from None
    return DeleteResponse(deleted=True)
