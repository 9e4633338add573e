"""Typed client for the contract workflow endpoints.

Each command validates its input locally, performs one backend call and then
re-reads the contract, so callers always get the authoritative state back,
even when the call itself failed or its outcome is unknown.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import httpx

from app.client.polling import PollTimeoutError, poll_until
from app.core.clock import Clock, SystemClock
from app.domain.contract_guards import (
    PRECONDITION,
    VALIDATION,
    GuardResult,
    can_request_extension,
    can_request_termination,
    validate_otp_format,
)
from app.domain.contract_state import ExtensionStatus, PartyRole, TerminationStatus, TerminationType
from app.domain.read_model import (
    current_user_party,
    days_until_expiry,
    has_user_signed,
    is_fully_signed,
    is_termination_pending,
)
from app.errors import OTP_EXPIRED, OTP_INVALID, VALIDATION_ERROR
from app.schemas.contract import ContractDetail
from app.schemas.extension import ExtensionRequest
from app.schemas.pagination import PaginatedResponse
from app.schemas.termination import TerminationRequest

logger = logging.getLogger(__name__)

AUTH = "auth"
TRANSIENT = "transient"

# Request outcomes a termination can settle into.
TERMINATION_OUTCOMES = frozenset(
    {TerminationStatus.COMPLETED, TerminationStatus.REJECTED, TerminationStatus.APPROVED}
)


@dataclass(frozen=True)
class WorkflowContext:
    """Who acts on which contract, and the clock used for date-derived flags."""

    contract_id: int
    acting_party_id: int | None = None
    clock: Clock = field(default_factory=SystemClock)


@dataclass(frozen=True)
class WorkflowError:
    message: str
    code: str | None = None
    kind: str = PRECONDITION


@dataclass
class CommandResult:
    ok: bool
    data: Any = None
    error: WorkflowError | None = None
    read_model: ContractDetail | None = None


@dataclass(frozen=True)
class WorkflowFlags:
    all_parties_signed: bool
    has_user_signed: bool
    days_until_expiry: int
    termination_pending: bool


def derive_flags(detail: ContractDetail, user_id: int, today: date) -> WorkflowFlags:
    """Recompute the display flags from a fresh read model."""
    return WorkflowFlags(
        all_parties_signed=is_fully_signed(detail.parties, detail.signatures),
        has_user_signed=has_user_signed(detail.parties, detail.signatures, user_id),
        days_until_expiry=days_until_expiry(detail.contract.end_date, today),
        termination_pending=is_termination_pending(detail.contract.status),
    )


def _guard_error(result: GuardResult) -> WorkflowError:
    return WorkflowError(message=result.message, code=result.code, kind=result.kind)


def _error_from_response(response: httpx.Response) -> WorkflowError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    detail = body.get("detail", response.reason_phrase)
    if isinstance(detail, list):
        # FastAPI request validation errors carry a list of problems
        detail = "; ".join(
            str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail
        )
    elif not isinstance(detail, str):
        detail = str(detail)
    code = body.get("code")

    status_code = response.status_code
    if status_code >= 500:
        kind = TRANSIENT
    elif status_code in (401, 403) or code in (OTP_INVALID, OTP_EXPIRED):
        kind = AUTH
    elif status_code == 422 or (status_code == 400 and code == VALIDATION_ERROR):
        kind = VALIDATION
    else:
        kind = PRECONDITION
    return WorkflowError(message=detail, code=code, kind=kind)


class ContractWorkflowClient:
    """
    Command functions over the contract workflow API.

    Args:
        http: An ``httpx.Client`` whose base URL points at the service.
        token: Bearer token of the acting user.
        api_prefix: Path prefix of the versioned API.
    """

    def __init__(self, http: httpx.Client, token: str | None = None, api_prefix: str = "/api/v1"):
        self.http = http
        self.token = token
        self.api_prefix = api_prefix.rstrip("/")

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _url(self, ctx: WorkflowContext, suffix: str = "") -> str:
        return f"{self.api_prefix}/contracts/{ctx.contract_id}{suffix}"

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response | WorkflowError:
        try:
            return self.http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            return WorkflowError(message=f"Network error: {e}", kind=TRANSIENT)

    def fetch_read_model(self, ctx: WorkflowContext) -> ContractDetail | None:
        """Read ``GET /contracts/{id}``; None when it cannot be read right now."""
        response = self._request("GET", self._url(ctx))
        if isinstance(response, WorkflowError) or response.status_code != 200:
            return None
        try:
            return ContractDetail.model_validate(response.json())
        except ValueError as e:
            logger.error("Unexpected contract payload for %s: %s", ctx.contract_id, e)
            return None

    def _command(
        self,
        ctx: WorkflowContext,
        method: str,
        suffix: str,
        parse: Callable[[Any], Any] | None = None,
        **kwargs,
    ) -> CommandResult:
        response = self._request(method, self._url(ctx, suffix), **kwargs)
        if isinstance(response, WorkflowError):
            return CommandResult(ok=False, error=response, read_model=self.fetch_read_model(ctx))
        if response.is_error:
            error = _error_from_response(response)
            logger.info(
                "%s %s rejected (%s): %s", method, suffix or "/", error.code, error.message
            )
            return CommandResult(ok=False, error=error, read_model=self.fetch_read_model(ctx))

        data = None
        if response.content:
            try:
                data = response.json()
                if parse is not None:
                    data = parse(data)
            except ValueError as e:
                logger.error("Unreadable response to %s %s: %s", method, suffix or "/", e)
                error = WorkflowError(
                    message=f"Unreadable response from server (HTTP {response.status_code})",
                    kind=TRANSIENT,
                )
                return CommandResult(ok=False, error=error, read_model=self.fetch_read_model(ctx))
        return CommandResult(ok=True, data=data, read_model=self.fetch_read_model(ctx))

    def _rejected(self, error: WorkflowError, read_model=None) -> CommandResult:
        return CommandResult(ok=False, error=error, read_model=read_model)

    def _require_party(self, ctx: WorkflowContext) -> WorkflowError | None:
        if ctx.acting_party_id is None:
            return WorkflowError(message="An acting party is required", kind=VALIDATION)
        return None

    # ------------------------------------------------------------------
    # Contract and signing ceremony
    # ------------------------------------------------------------------

    def send_contract(self, ctx: WorkflowContext) -> CommandResult:
        return self._command(ctx, "POST", "/send", parse=ContractDetail.model_validate)

    def request_otp(self, ctx: WorkflowContext) -> CommandResult:
        error = self._require_party(ctx)
        if error:
            return self._rejected(error)
        return self._command(ctx, "POST", "/otp", json={"party_id": ctx.acting_party_id})

    def sign_contract(self, ctx: WorkflowContext, otp: str, role: PartyRole | str) -> CommandResult:
        error = self._require_party(ctx)
        if error:
            return self._rejected(error)
        check = validate_otp_format(otp)
        if not check:
            return self._rejected(_guard_error(check))
        return self._command(
            ctx,
            "POST",
            "/sign",
            parse=ContractDetail.model_validate,
            json={"party_id": ctx.acting_party_id, "otp": otp, "role": PartyRole(role).value},
        )

    # ------------------------------------------------------------------
    # Termination consent process
    # ------------------------------------------------------------------

    def request_termination(
        self, ctx: WorkflowContext, termination_type: TerminationType | str, reason: str | None = None
    ) -> CommandResult:
        """
        Open a termination request.

        The current contract status is re-read first, so a request that would
        clash with one already in progress is refused without being sent. The
        backend still has the final say.
        """
        termination_type = TerminationType(termination_type)
        if termination_type == TerminationType.NORMAL_EXPIRE:
            reason = None
        elif not (reason or "").strip():
            return self._rejected(
                WorkflowError(message="A reason is required to terminate a contract early", kind=VALIDATION)
            )

        detail = self.fetch_read_model(ctx)
        if detail is not None:
            check = can_request_termination(
                detail.contract.status,
                has_active_request=False,
                termination_type=termination_type,
                reason=reason,
            )
            if not check:
                return self._rejected(_guard_error(check), read_model=detail)

        return self._command(
            ctx,
            "POST",
            "/termination",
            parse=TerminationRequest.model_validate,
            json={"type": termination_type.value, "reason": reason},
        )

    def get_termination(self, ctx: WorkflowContext) -> CommandResult:
        return self._command(ctx, "GET", "/termination", parse=TerminationRequest.model_validate)

    def request_termination_otp(self, ctx: WorkflowContext, request_id: int) -> CommandResult:
        error = self._require_party(ctx)
        if error:
            return self._rejected(error)
        return self._command(
            ctx, "POST", f"/termination/{request_id}/otp", json={"party_id": ctx.acting_party_id}
        )

    def submit_termination_consent(self, ctx: WorkflowContext, request_id: int, otp: str) -> CommandResult:
        error = self._require_party(ctx)
        if error:
            return self._rejected(error)
        check = validate_otp_format(otp)
        if not check:
            return self._rejected(_guard_error(check))
        return self._command(
            ctx,
            "POST",
            f"/termination/{request_id}/consent",
            parse=TerminationRequest.model_validate,
            json={"party_id": ctx.acting_party_id, "otp": otp},
        )

    def decline_termination(self, ctx: WorkflowContext, request_id: int) -> CommandResult:
        return self._command(
            ctx, "POST", f"/termination/{request_id}/decline", parse=TerminationRequest.model_validate
        )

    def wait_for_termination_outcome(
        self,
        ctx: WorkflowContext,
        *,
        max_attempts: int = 10,
        initial_delay: float = 0.5,
        backoff: float = 2.0,
        timeout: float = 60.0,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> CommandResult:
        """Re-read the termination request until it leaves SIGNING, within a bounded budget."""

        def settled(result: CommandResult) -> bool:
            return result.ok and result.data.status in TERMINATION_OUTCOMES

        try:
            return poll_until(
                lambda: self.get_termination(ctx),
                settled,
                max_attempts=max_attempts,
                initial_delay=initial_delay,
                backoff=backoff,
                timeout=timeout,
                sleep=sleep,
                monotonic=monotonic,
            )
        except PollTimeoutError as e:
            last = e.last_value
            return CommandResult(
                ok=False,
                data=last.data if last is not None else None,
                error=WorkflowError(
                    message=f"Termination still pending after {e.attempts} checks",
                    code="TIMEOUT",
                    kind=TRANSIENT,
                ),
                read_model=last.read_model if last is not None else None,
            )

    # ------------------------------------------------------------------
    # Extension negotiation
    # ------------------------------------------------------------------

    def list_extensions(self, ctx: WorkflowContext, page: int = 1, page_size: int = 10) -> CommandResult:
        return self._command(
            ctx,
            "GET",
            "/extensions",
            parse=PaginatedResponse[ExtensionRequest].model_validate,
            params={"page": page, "page_size": page_size},
        )

    def request_extension(self, ctx: WorkflowContext, new_end_date: date, note: str | None = None) -> CommandResult:
        """
        Ask for a later end date.

        A PENDING request already visible on the first page of the list is
        reported without calling the backend.
        """
        listing = self.list_extensions(ctx)
        detail = listing.read_model
        if listing.ok and detail is not None:
            has_pending = any(r.status == ExtensionStatus.PENDING for r in listing.data.items)
            check = can_request_extension(
                detail.contract.status,
                current_end_date=detail.contract.end_date,
                new_end_date=new_end_date,
                has_pending_request=has_pending,
            )
            if not check:
                return self._rejected(_guard_error(check), read_model=detail)

        return self._command(
            ctx,
            "POST",
            "/extensions",
            parse=ExtensionRequest.model_validate,
            json={"new_end_date": new_end_date.isoformat(), "note": note},
        )

    def extend_decision(self, ctx: WorkflowContext, action: str, note: str | None = None) -> CommandResult:
        if action not in ("accept", "decline"):
            return self._rejected(
                WorkflowError(message="Action must be 'accept' or 'decline'", kind=VALIDATION)
            )
        return self._command(
            ctx,
            "POST",
            "/extensions/decision",
            parse=ExtensionRequest.model_validate,
            json={"action": action, "note": note},
        )

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def flags(self, ctx: WorkflowContext, detail: ContractDetail, user_id: int) -> WorkflowFlags:
        return derive_flags(detail, user_id, ctx.clock.today())

    def acting_party_for(self, detail: ContractDetail, user_id: int):
        """The party the given user acts as on this contract, if any."""
        return current_user_party(detail.parties, user_id)
