from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Admin(db.Model):
    """Staff member who places orders. Credentials live with the auth provider."""
    __tablename__ = "admins"
    __table_args__ = (
        db.UniqueConstraint("admin_email", name="uq_admins_email"),
        {"sqlite_autoincrement": True},
    )

    admin_id = db.Column(db.Integer, primary_key=True)
    admin_first_name = db.Column(db.String(128), nullable=False)
    admin_last_name = db.Column(db.String(128), nullable=False)
    admin_email = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def display_name(self) -> str:
        return f"{self.admin_first_name} {self.admin_last_name}"

    def to_dict(self) -> dict:
        return {
            "admin_id": self.admin_id,
            "admin_first_name": self.admin_first_name,
            "admin_last_name": self.admin_last_name,
            "admin_email": self.admin_email,
            "display_name": self.display_name,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
