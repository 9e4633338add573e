from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.db.models.user import User
from app.schemas.unit import Unit, UnitCreate
from app.services.unit import create_unit, list_units

router = APIRouter(prefix="/units", tags=["units"])


@router.post("", response_model=Unit, status_code=status.HTTP_201_CREATED)
def create_new_unit(
    unit_data: UnitCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """Register a unit. The calling landlord becomes its owner."""
    unit = create_unit(
        db,
        landlord=current_user,
        code=unit_data.code,
        property_name=unit_data.property_name,
        address_line=unit_data.address_line,
    )
    return Unit.model_validate(unit)


@router.get("", response_model=list[Unit])
def get_units(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("admin", "landlord")),
):
    """
    List units.
    - Admin: all units
    - Landlord: own units
    """
    return [Unit.model_validate(unit) for unit in list_units(db, current_user)]
