"""
Errors and warnings.
"""

from enum import IntEnum
from http import HTTPStatus
from typing import Any, Dict, List, Optional, TypedDict

from pydantic import BaseModel


class ErrorCode(IntEnum):
    """
    Error codes.
    """

    # generic errors
    UNKNOWN_ERROR = 0
    NOT_IMPLEMENTED_ERROR = 1

    # view requests
    INVALID_LOG_TYPE = 100
    INVALID_VIEW_ID = 101
    COLUMN_COUNT_OUT_OF_BOUNDS = 102
    UNKNOWN_COLUMN = 103

    # authorization
    ACCESS_DENIED = 200

    # catalog
    INVALID_CATALOG = 300

    # infrastructure
    FOREIGN_CONNECTION_ERROR = 400
    CACHE_REGISTRY_ERROR = 401
    UNINITIALIZED_RESOURCE = 402


class LogViewErrorType(TypedDict):
    """
    Type for serialized errors.
    """

    code: int
    message: str
    debug: Optional[Dict[str, Any]]
    context: str


class LogViewError(BaseModel):
    """
    An error.
    """

    code: ErrorCode
    message: str
    debug: Optional[Dict[str, Any]] = None
    context: str = ""

    def __str__(self) -> str:
        """
        Format the error nicely.
        """
        context = f" from `{self.context}`" if self.context else ""
        return f"{self.message}{context} (error code: {self.code})"


class LogViewWarning(BaseModel):
    """
    A warning.
    """

    code: Optional[ErrorCode] = None
    message: str
    debug: Optional[Dict[str, Any]] = None


class LogViewExceptionType(TypedDict):
    """
    Type for serialized exceptions.
    """

    message: Optional[str]
    errors: List[LogViewErrorType]
    warnings: List[Dict[str, Any]]


class LogViewException(Exception):
    """
    Base class for errors.
    """

    message: str
    errors: List[LogViewError]
    warnings: List[LogViewWarning]

    # status code that should be returned when the exception reaches an API layer
    http_status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[LogViewError]] = None,
        warnings: Optional[List[LogViewWarning]] = None,
        http_status_code: Optional[int] = None,
    ):
        self.errors = errors or []
        self.warnings = warnings or []
        self.message = message or "\n".join(error.message for error in self.errors)

        if http_status_code is not None:
            self.http_status_code = http_status_code

        super().__init__(self.message)

    def to_dict(self) -> LogViewExceptionType:
        """
        Convert to dict.
        """
        return {
            "message": self.message,
            "errors": [error.model_dump() for error in self.errors],
            "warnings": [warning.model_dump() for warning in self.warnings],
        }

    def __str__(self) -> str:
        """
        Format the exception nicely.
        """
        if not self.errors:
            return self.message

        plural = "s" if len(self.errors) > 1 else ""
        combined_errors = "\n".join(f"- {error}" for error in self.errors)
        errors = f"The following error{plural} happened:\n{combined_errors}"

        return f"{self.message}\n{errors}"

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, LogViewException)
            and self.message == other.message
            and self.errors == other.errors
            and self.warnings == other.warnings
            and self.http_status_code == other.http_status_code
        )

    __hash__ = Exception.__hash__


class InvalidLogTypeException(LogViewException):
    """
    Exception raised when a requested log type is not in the catalog.
    """

    http_status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, log_type: str):
        super().__init__(
            message=f"Invalid log type: {log_type}",
            errors=[
                LogViewError(
                    code=ErrorCode.INVALID_LOG_TYPE,
                    message=f"Invalid log type: {log_type}",
                    context=log_type,
                ),
            ],
        )
        self.log_type = log_type


class AccessDeniedException(LogViewException):
    """
    Exception raised when a tenant is outside the caller's scope or cannot be resolved.
    """

    http_status_code: int = HTTPStatus.FORBIDDEN

    def __init__(self, tenant_id: int, reason: str = "Invalid access permissions"):
        super().__init__(
            message=reason,
            errors=[
                LogViewError(
                    code=ErrorCode.ACCESS_DENIED,
                    message=reason,
                    context=str(tenant_id),
                ),
            ],
        )
        self.tenant_id = tenant_id


class ColumnCountOutOfBoundsException(LogViewException):
    """
    Exception raised when a view resolves to too few or too many cache columns.
    """

    http_status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, count: int, minimum: int, maximum: int):
        message = (
            f"Log views are restricted to queries pulling between {minimum} and "
            f"{maximum} columns, got {count}"
        )
        super().__init__(
            message=message,
            errors=[
                LogViewError(
                    code=ErrorCode.COLUMN_COUNT_OUT_OF_BOUNDS,
                    message=message,
                    debug={"count": count, "min": minimum, "max": maximum},
                ),
            ],
        )
        self.count = count


class UnknownColumnException(LogViewException):
    """
    Exception raised when a resolved column is not defined for the log type.
    """

    http_status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, log_type: str, column: str):
        message = f"Unknown column for log type {log_type}: {column}"
        super().__init__(
            message=message,
            errors=[
                LogViewError(
                    code=ErrorCode.UNKNOWN_COLUMN,
                    message=message,
                    context=column,
                    debug={"log_type": log_type},
                ),
            ],
        )
        self.log_type = log_type
        self.column = column


class InvalidViewIdentifierException(LogViewException):
    """
    Exception raised when a view identifier cannot be parsed.
    """

    http_status_code: int = HTTPStatus.BAD_REQUEST

    def __init__(self, view_id: str):
        super().__init__(
            message=f"Invalid view: {view_id}",
            errors=[
                LogViewError(
                    code=ErrorCode.INVALID_VIEW_ID,
                    message=f"Invalid view: {view_id}",
                    context=view_id,
                ),
            ],
        )
        self.view_id = view_id


class CatalogValidationException(LogViewException):
    """
    Exception raised when a catalog references columns or views it does not define.
    """

    def __init__(self, problems: List[str]):
        super().__init__(
            message="Invalid catalog",
            errors=[
                LogViewError(code=ErrorCode.INVALID_CATALOG, message=problem)
                for problem in problems
            ],
        )


class ForeignConnectionException(LogViewException):
    """
    Exception raised when a foreign database connection cannot be established.
    """

    http_status_code: int = HTTPStatus.BAD_GATEWAY

    def __init__(self, connection_name: str):
        # never include the underlying error, it may contain credentials
        super().__init__(
            message=f"Connection error for {connection_name}",
            errors=[
                LogViewError(
                    code=ErrorCode.FOREIGN_CONNECTION_ERROR,
                    message=f"Connection error for {connection_name}",
                    context=connection_name,
                ),
            ],
        )
        self.connection_name = connection_name


class CacheRegistryException(LogViewException):
    """
    Exception raised when a cache record can neither be created nor read back.
    """

    http_status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR


class UninitializedResourceException(LogViewException):
    """
    Exception raised when a resource is used before it is initialized.
    """

    http_status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
