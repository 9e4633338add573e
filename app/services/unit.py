from sqlalchemy.orm import Session

import app.repositories.unit as unit_repo
from app.db.models.unit import Unit as UnitModel
from app.db.models.user import User
from app.errors import DuplicateResourceError, ForbiddenError


def create_unit(
    db: Session,
    landlord: User,
    code: str,
    property_name: str,
    address_line: str | None = None,
) -> UnitModel:
    """Register a unit owned by the landlord. Codes are unique per property."""
    existing = unit_repo.get_unit_by_code(db, landlord.id, property_name, code)
    if existing:
        raise DuplicateResourceError(f"Unit {code} already exists in {property_name}")

    return unit_repo.create_unit(
        db,
        landlord_id=landlord.id,
        code=code,
        property_name=property_name,
        address_line=address_line,
    )


def list_units(db: Session, current_user: User) -> list[UnitModel]:
    """
    List units visible to the given user.

    - Admin: all units
    - Landlord: their own units
    """
    if current_user.role.name == "admin":
        return unit_repo.get_all_units(db)
    if current_user.role.name == "landlord":
        return unit_repo.get_units_by_landlord_id(db, current_user.id)
    raise ForbiddenError("Not enough permissions")
