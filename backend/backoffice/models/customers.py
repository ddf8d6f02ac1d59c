from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    Created explicitly through the customer screens or inline while an order
    is being placed. Orders keep a customer_name snapshot, so deleting a
    customer leaves historical orders readable (customer_id is nulled).
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_updated_at", "updated_at"),
        {"sqlite_autoincrement": True},
    )

    customer_id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_address = db.Column(db.String(512), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_number = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_address": self.customer_address,
            "customer_email": self.customer_email,
            "customer_number": self.customer_number,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
