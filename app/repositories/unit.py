from sqlalchemy.orm import Session

from app.db.models.unit import Unit as UnitModel


def get_unit_by_id(db: Session, unit_id: int) -> UnitModel | None:
    """Get a unit by ID."""
    return db.query(UnitModel).filter(UnitModel.id == unit_id).first()


def get_all_units(db: Session) -> list[UnitModel]:
    """Get all units."""
    return db.query(UnitModel).order_by(UnitModel.id).all()


def get_units_by_landlord_id(db: Session, landlord_id: int) -> list[UnitModel]:
    """Get all units owned by a landlord."""
    return (
        db.query(UnitModel)
        .filter(UnitModel.landlord_id == landlord_id)
        .order_by(UnitModel.id)
        .all()
    )


def get_unit_by_code(
    db: Session, landlord_id: int, property_name: str, code: str
) -> UnitModel | None:
    """Used to check for duplicates within one landlord's property."""
    return (
        db.query(UnitModel)
        .filter(
            UnitModel.landlord_id == landlord_id,
            UnitModel.property_name == property_name,
            UnitModel.code == code,
        )
        .first()
    )


def create_unit(
    db: Session,
    landlord_id: int,
    code: str,
    property_name: str,
    address_line: str | None = None,
) -> UnitModel:
    """Create a new unit in the database. Pure data access - no business logic."""
    db_unit = UnitModel(
        landlord_id=landlord_id,
        code=code,
        property_name=property_name,
        address_line=address_line,
    )
    db.add(db_unit)
    db.commit()
    db.refresh(db_unit)
    return db_unit
