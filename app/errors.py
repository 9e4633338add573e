"""Custom domain exceptions for the application."""

# Stable, machine-readable error codes for API consumers.
NOT_FOUND = "NOT_FOUND"
DUPLICATE_RESOURCE = "DUPLICATE_RESOURCE"
VALIDATION_ERROR = "VALIDATION_ERROR"
FORBIDDEN = "FORBIDDEN"
UNAUTHORIZED = "UNAUTHORIZED"

# Workflow precondition codes
INVALID_STATUS = "INVALID_STATUS"
NOT_A_PARTY = "NOT_A_PARTY"
PARTY_ALREADY_SIGNED = "PARTY_ALREADY_SIGNED"
CONSENT_ALREADY_SIGNED = "CONSENT_ALREADY_SIGNED"
TERMINATION_REQUEST_ACTIVE = "TERMINATION_REQUEST_ACTIVE"
CONTRACT_EXTENSION_PENDING = "CONTRACT_EXTENSION_PENDING"
NO_PENDING_EXTENSION = "NO_PENDING_EXTENSION"

# OTP verification codes
OTP_INVALID = "OTP_INVALID"
OTP_EXPIRED = "OTP_EXPIRED"


class DomainError(Exception):
    """Base exception for domain/business logic errors."""

    code = VALIDATION_ERROR

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    code = NOT_FOUND


class DuplicateResourceError(DomainError):
    """Raised when attempting to create or update a resource that would violate a uniqueness constraint."""

    code = DUPLICATE_RESOURCE


class DomainValidationError(DomainError):
    """Raised when business rules or domain validation fail (e.g. invalid dates, missing required fields)."""

    code = VALIDATION_ERROR


class ForbiddenError(DomainError):
    """Raised when the current user may not act on a resource."""

    code = FORBIDDEN


class UnauthorizedError(DomainError):
    """Raised when credentials are missing or wrong."""

    code = UNAUTHORIZED


class PreconditionError(DomainError):
    """Raised when a workflow transition is not allowed from the current state.

    No state is mutated when this is raised; the caller may re-read the contract
    and retry.
    """

    code = INVALID_STATUS


class OtpVerificationError(DomainError):
    """Raised when a one-time password is missing, wrong, or expired."""

    code = OTP_INVALID
