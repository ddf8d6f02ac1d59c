from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class SystemLog(db.Model):
    """
    Append-only record of mutating actions.

    IMMUTABLE: Records are never updated or deleted. log_datetime comes from
    the database clock.
    """
    __tablename__ = "system_logs"
    __table_args__ = (
        db.Index("ix_system_logs_log_datetime", "log_datetime"),
        {"sqlite_autoincrement": True},
    )

    log_id = db.Column(db.Integer, primary_key=True)
    log_description = db.Column(db.Text, nullable=False)
    log_created_by = db.Column(db.String(255), nullable=False)
    log_datetime = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "log_id": self.log_id,
            "log_description": self.log_description,
            "log_created_by": self.log_created_by,
            "log_datetime": to_utc_z(self.log_datetime),
        }
