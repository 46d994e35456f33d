from __future__ import annotations

from ..extensions import db
from homestore.time_utils import to_utc_z


class Customer(db.Model):
    """
    Storefront customer account.

    password_hash is bcrypt and never leaves the service layer; to_dict
    omits it.
    """
    __tablename__ = "customers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    addresses = db.relationship(
        "CustomerAddress",
        backref="customer",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "createdAt": to_utc_z(self.created_at),
        }


class CustomerAddress(db.Model):
    __tablename__ = "customer_addresses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    label = db.Column(db.String(64), nullable=False)
    full_name = db.Column(db.String(255), nullable=False, default="")
    street_address = db.Column(db.String(255), nullable=False, default="")
    address_line_2 = db.Column(db.String(255), nullable=True)
    city_island = db.Column(db.String(120), nullable=False, default="")
    zip_code = db.Column(db.String(32), nullable=True)
    mobile_no = db.Column(db.String(64), nullable=False, default="")
    full_address = db.Column(db.Text, nullable=False)
    is_default = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "label": self.label,
            "fullName": self.full_name,
            "streetAddress": self.street_address,
            "addressLine2": self.address_line_2,
            "cityIsland": self.city_island,
            "zipCode": self.zip_code,
            "mobileNo": self.mobile_no,
            "fullAddress": self.full_address,
            "isDefault": self.is_default,
            "createdAt": to_utc_z(self.created_at),
        }


class Admin(db.Model):
    __tablename__ = "admins"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Admin id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}
