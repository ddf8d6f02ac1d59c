# Overview: Service-layer operations for staff (admin) records.

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Admin
from ..validation import validate_email


def get_admin(admin_id: int) -> Admin:
    admin = db.session.query(Admin).filter_by(admin_id=admin_id).first()
    if admin is None:
        raise NotFoundError("Admin not found")
    return admin


def find_admin(admin_id) -> Admin | None:
    """Lenient lookup for actor attribution; malformed ids resolve to None."""
    try:
        admin_id = int(admin_id)
    except (TypeError, ValueError):
        return None
    return db.session.query(Admin).filter_by(admin_id=admin_id).first()


def list_admins() -> list[Admin]:
    return db.session.query(Admin).order_by(Admin.updated_at.desc(), Admin.admin_id.desc()).all()


def create_admin(*, first_name: str, last_name: str, email: str) -> Admin:
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    if not first_name or not last_name:
        raise ValidationError("First and last name are required")
    email = validate_email("admin_email", email)

    if db.session.query(Admin).filter_by(admin_email=email).first():
        raise ValidationError(f"Admin with email '{email}' already exists")

    admin = Admin(admin_first_name=first_name, admin_last_name=last_name, admin_email=email)
    db.session.add(admin)
    db.session.commit()
    return admin



def admin_display_name(admin: Admin) -> str:
    """Name stamped onto orders: "first last"."""
    return admin.display_name
