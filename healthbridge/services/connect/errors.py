"""Error taxonomy for the health data translation engine."""


class HealthEngineError(Exception):
    """Base exception for translation engine errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class RequestValidationError(HealthEngineError):
    """A required field is missing or a request field is malformed."""

    status_code = 400


class UnsupportedDataTypeError(RequestValidationError):
    """The canonical data type name does not resolve to any record kind."""

    def __init__(self, data_type: str):
        self.data_type = data_type
        super().__init__(f"Datatype {data_type} not supported")


class UnrecognizedBucketError(RequestValidationError):
    """The bucket granularity token is not one of hour/day/week/month/year."""

    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f"Bucket not recognized {bucket}")


class UnsupportedOperationError(HealthEngineError):
    """The data type resolves but does not support the requested capability."""

    status_code = 400


class PermissionDeniedError(HealthEngineError):
    """A required permission is missing and was not granted."""

    status_code = 403


class IntervalArithmeticError(HealthEngineError, ArithmeticError):
    """Derived arithmetic over a zero-length interval."""

    status_code = 400


class NormalizationError(HealthEngineError):
    """A native record has no canonical normalization rule."""

    status_code = 500


class BackendError(HealthEngineError):
    """Failure surfaced by the health store."""

    status_code = 502


class BackendUnavailableError(BackendError):
    """The health store is missing or needs an update."""

    status_code = 503
