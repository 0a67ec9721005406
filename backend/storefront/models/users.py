from __future__ import annotations

from ..extensions import db
from ..roles import Role
from ..time_utils import to_utc_z


class User(db.Model):
    """
    Root identity for authentication.

    A user is either a customer or a supplier (closed Role enum). The
    customer/supplier profile is a separate 1:1 row created after
    registration.

    SECURITY: password_hash is a peppered bcrypt hash; it never leaves the
    service layer and is not part of to_dict().
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(
            Role,
            name="user_role",
            native_enum=False,
            values_callable=lambda roles: [r.value for r in roles],
            validate_strings=True,
        ),
        nullable=False,
    )
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role.value,
            "email_verified": self.email_verified,
            "created_at": to_utc_z(self.created_at),
        }


class Customer(db.Model):
    """Customer profile derived 1:1 from a User with role=customer."""
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    first_name = db.Column(db.String(128), nullable=False)
    last_name = db.Column(db.String(128), nullable=False)
    registration_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("customer", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "registration_date": to_utc_z(self.registration_date),
        }


class Supplier(db.Model):
    """Supplier profile derived 1:1 from a User with role=supplier."""
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False)
    contact_phone = db.Column(db.String(32), nullable=True)

    user = db.relationship("User", backref=db.backref("supplier", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "contact_phone": self.contact_phone,
        }
