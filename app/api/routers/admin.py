from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_clock, get_db, require_roles
from app.core.clock import Clock
from app.db.models.user import User
from app.schemas.lifecycle import LifecycleRunResult
from app.services.lifecycle import run_lifecycle

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/lifecycle/run", response_model=LifecycleRunResult)
def run_contract_lifecycle(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_roles("admin")),
):
    """
    Apply the date-driven transitions now:
    - activate SIGNED contracts whose start date has been reached
    - reject termination requests whose consent window closed
    - complete approved normal-expiry terminations once the end date is reached
    """
    report = run_lifecycle(db, clock)
    return LifecycleRunResult.model_validate(report)
