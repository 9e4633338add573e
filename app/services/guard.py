from app.domain.contract_guards import VALIDATION, GuardResult
from app.errors import DomainValidationError, PreconditionError


def ensure(result: GuardResult) -> None:
    """Raise the domain error matching a failed guard; do nothing when it passed."""
    if result:
        return
    if result.kind == VALIDATION:
        raise DomainValidationError(result.message, code=result.code)
    raise PreconditionError(result.message, code=result.code)
