"""Global exception handlers that map domain exceptions to HTTP responses."""

from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.errors import (
    DomainError,
    DomainValidationError,
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
    OtpVerificationError,
    PreconditionError,
    UnauthorizedError,
)
from app.schemas.error import ErrorResponse


def _error_response(status_code: int, exc: DomainError) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=str(exc), code=exc.code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


def duplicate_resource_error_handler(
    _request: Request, exc: DuplicateResourceError
) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, exc)


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


def forbidden_error_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error_response(status.HTTP_401_UNAUTHORIZED, exc)


def precondition_error_handler(_request: Request, exc: PreconditionError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, exc)


def otp_verification_error_handler(
    _request: Request, exc: OtpVerificationError
) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


def domain_error_handler(_request: Request, exc: DomainError) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app."""
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(DuplicateResourceError, duplicate_resource_error_handler)
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(PreconditionError, precondition_error_handler)
    app.add_exception_handler(OtpVerificationError, otp_verification_error_handler)
    app.add_exception_handler(DomainError, domain_error_handler)
