"""Application error taxonomy.

Every error raised by the live class domain is an `AppError`. The API layer
converts it into the failure envelope with `status_code` as the HTTP status.
"""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class AppErrorCode(str, Enum):
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_PARAMS = "E_INVALID_PARAMS"
    E_BAD_TOKEN = "E_BAD_TOKEN"

    E_VALIDATION = "E_VALIDATION"
    E_FORBIDDEN = "E_FORBIDDEN"
    E_NOT_FOUND = "E_NOT_FOUND"
    E_INVALID_STATE = "E_INVALID_STATE"
    E_CAPACITY_EXCEEDED = "E_CAPACITY_EXCEEDED"
    E_PROVIDER_CONFIG = "E_PROVIDER_CONFIG"

    E_LOCK_UNAVAILABLE = "E_LOCK_UNAVAILABLE"
    E_VERSION_CONFLICT = "E_VERSION_CONFLICT"
    E_CATALOG_UNAVAILABLE = "E_CATALOG_UNAVAILABLE"

    def __str__(self) -> str:
        return self.value


class AppError(Exception):
    """Base error carrying an error code, a message and the HTTP status to report."""

    default_errcode: AppErrorCode = AppErrorCode.E_INTERNAL_ERROR
    default_status_code: HttpStatusCode = HttpStatusCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        errcode: AppErrorCode | str | None = None,
        errmesg: str = "",
        status_code: HttpStatusCode | int | None = None,
    ):
        self.errcode = str(errcode or self.default_errcode)
        self.errmesg = errmesg
        self.status_code = int(status_code or self.default_status_code)
        self.erresid = uuid4().hex[:10]

        # Skip our own subclass constructors so the caller is the raising site
        stack = inspect.stack(context=0)[1:]
        caller_frame = next((f for f in stack if f.function != "__init__"), stack[0])
        module = inspect.getmodule(caller_frame.frame)
        module_name = module.__name__ if module else caller_frame.filename
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

        super().__init__(f"{self.errcode}: {errmesg}")


class _DomainError(AppError):
    def __init__(self, errmesg: str = ""):
        super().__init__(errmesg=errmesg)


class ValidationError(_DomainError):
    """Malformed or out-of-range input the caller can fix."""

    default_errcode = AppErrorCode.E_VALIDATION
    default_status_code = HttpStatusCode.BAD_REQUEST


class AuthorizationError(_DomainError):
    """Role, ownership or enrollment denial."""

    default_errcode = AppErrorCode.E_FORBIDDEN
    default_status_code = HttpStatusCode.FORBIDDEN


class NotFoundError(_DomainError):
    default_errcode = AppErrorCode.E_NOT_FOUND
    default_status_code = HttpStatusCode.NOT_FOUND


class InvalidStateError(_DomainError):
    """Operation not legal in the session's current status."""

    default_errcode = AppErrorCode.E_INVALID_STATE
    default_status_code = HttpStatusCode.CONFLICT


class CapacityExceededError(_DomainError):
    default_errcode = AppErrorCode.E_CAPACITY_EXCEEDED
    default_status_code = HttpStatusCode.CONFLICT


class ProviderConfigError(_DomainError):
    """Provider configuration missing or malformed for the selected provider."""

    default_errcode = AppErrorCode.E_PROVIDER_CONFIG
    default_status_code = HttpStatusCode.UNPROCESSABLE_ENTITY


class LockUnavailableError(_DomainError):
    default_errcode = AppErrorCode.E_LOCK_UNAVAILABLE
    default_status_code = HttpStatusCode.SERVICE_UNAVAILABLE


__all__ = [
    "AppError",
    "AppErrorCode",
    "AuthorizationError",
    "CapacityExceededError",
    "HttpStatusCode",
    "InvalidStateError",
    "LockUnavailableError",
    "NotFoundError",
    "ProviderConfigError",
    "ValidationError",
]
