"""Clock-driven contract transitions, run on demand or from a scheduler."""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.services.contract import activate_due_contracts
from app.services.termination import expire_stale_terminations, finalize_approved_terminations

logger = logging.getLogger(__name__)


@dataclass
class LifecycleReport:
    activated: int = 0
    expired_termination_requests: int = 0
    finalized_terminations: int = 0


def run_lifecycle(db: Session, clock: Clock) -> LifecycleReport:
    now = clock.now()
    today = clock.today()
    report = LifecycleReport(
        activated=activate_due_contracts(db, today, now),
        expired_termination_requests=expire_stale_terminations(db, now),
        finalized_terminations=finalize_approved_terminations(db, today, now),
    )
    logger.info(
        "Lifecycle run at %s: %s activated, %s termination requests expired, %s finalized",
        now.isoformat(),
        report.activated,
        report.expired_termination_requests,
        report.finalized_terminations,
    )
    return report
