from sqlalchemy.orm import Session

from app.db.models.role import Role as RoleModel


def get_all_roles(db: Session) -> list[RoleModel]:
    return db.query(RoleModel).order_by(RoleModel.id).all()


def get_role_by_name(db: Session, name: str) -> RoleModel | None:
    return db.query(RoleModel).filter(RoleModel.name == name).first()


def get_role_by_id(db: Session, role_id: int) -> RoleModel | None:
    return db.query(RoleModel).filter(RoleModel.id == role_id).first()
