# Overview: Customer, address book and admin account operations.

"""
Accounts: customers (storefront) and admins (back office).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Hashes never leave this module; models' to_dict() omits them
- No sessions or tokens are issued here; login only verifies credentials
"""

from __future__ import annotations

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Admin, Customer, CustomerAddress
from ..validation import ValidationError, ConflictError


MIN_PASSWORD_LENGTH = 6

CUSTOMER_PROFILE_FIELDS = {"name": "name", "phone": "phone", "address": "address"}
ADDRESS_FIELDS = {
    "label": "label",
    "fullName": "full_name",
    "streetAddress": "street_address",
    "addressLine2": "address_line_2",
    "cityIsland": "city_island",
    "zipCode": "zip_code",
    "mobileNo": "mobile_no",
    "fullAddress": "full_address",
    "isDefault": "is_default",
}


class AccountError(Exception):
    """Raised for account operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def _normalize_email(email) -> str:
    return str(email or "").strip().lower()


def _require(data: dict, *fields: str) -> None:
    missing = [f for f in fields if not str(data.get(f) or "").strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


# =============================================================================
# CUSTOMERS
# =============================================================================

def signup_customer(data: dict) -> Customer:
    data = data or {}
    _require(data, "name", "email", "password")

    email = _normalize_email(data["email"])
    if db.session.query(Customer).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    customer = Customer(
        name=str(data["name"]).strip(),
        email=email,
        password_hash=hash_password(data["password"]),
        phone=data.get("phone"),
        address=data.get("address"),
    )
    db.session.add(customer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already registered")
    return customer


def authenticate_customer(email, password) -> Customer | None:
    customer = db.session.query(Customer).filter_by(email=_normalize_email(email)).first()
    if customer and verify_password(password, customer.password_hash):
        return customer
    return None


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)


def update_customer(customer_id: int, data: dict) -> Customer | None:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        return None
    data = data or {}

    for wire_name, column in CUSTOMER_PROFILE_FIELDS.items():
        if wire_name in data:
            setattr(customer, column, data[wire_name])

    if data.get("password"):
        current = data.get("currentPassword")
        if not verify_password(current, customer.password_hash):
            raise AccountError("Current password is incorrect")
        customer.password_hash = hash_password(data["password"])

    db.session.commit()
    return customer


# =============================================================================
# ADDRESS BOOK
# =============================================================================

def list_addresses(customer_id: int) -> list[CustomerAddress]:
    return (
        db.session.query(CustomerAddress)
        .filter_by(customer_id=customer_id)
        .order_by(CustomerAddress.is_default.desc(), CustomerAddress.id.asc())
        .all()
    )


def _clear_default(customer_id: int) -> None:
    (
        db.session.query(CustomerAddress)
        .filter_by(customer_id=customer_id, is_default=True)
        .update({"is_default": False})
    )


def create_address(customer_id: int, data: dict) -> CustomerAddress:
    if not db.session.get(Customer, customer_id):
        raise AccountError("Customer not found")
    data = data or {}
    _require(data, "label", "fullAddress")

    fields = {column: data[wire] for wire, column in ADDRESS_FIELDS.items() if wire in data and data[wire] is not None}
    if fields.get("is_default"):
        _clear_default(customer_id)

    address = CustomerAddress(customer_id=customer_id, **fields)
    db.session.add(address)
    db.session.commit()
    return address


def update_address(address_id: int, data: dict) -> CustomerAddress | None:
    address = db.session.get(CustomerAddress, address_id)
    if not address:
        return None
    data = data or {}

    if data.get("isDefault"):
        _clear_default(address.customer_id)
    for wire_name, column in ADDRESS_FIELDS.items():
        if wire_name in data and data[wire_name] is not None:
            setattr(address, column, data[wire_name])
    db.session.commit()
    return address


def delete_address(address_id: int) -> bool:
    address = db.session.get(CustomerAddress, address_id)
    if not address:
        return False
    db.session.delete(address)
    db.session.commit()
    return True


def set_default_address(customer_id: int, address_id: int) -> bool:
    address = db.session.query(CustomerAddress).filter_by(id=address_id, customer_id=customer_id).first()
    if not address:
        return False
    _clear_default(customer_id)
    address.is_default = True
    db.session.commit()
    return True


# =============================================================================
# ADMINS
# =============================================================================

def list_admins() -> list[Admin]:
    return db.session.query(Admin).order_by(Admin.id.asc()).all()


def create_admin(data: dict) -> Admin:
    data = data or {}
    _require(data, "name", "email", "password")

    email = _normalize_email(data["email"])
    if db.session.query(Admin).filter_by(email=email).first():
        raise ConflictError("Admin email already exists")

    admin = Admin(name=str(data["name"]).strip(), email=email, password_hash=hash_password(data["password"]))
    db.session.add(admin)
    db.session.commit()
    return admin


def authenticate_admin(email, password) -> Admin | None:
    admin = db.session.query(Admin).filter_by(email=_normalize_email(email)).first()
    if admin and verify_password(password, admin.password_hash):
        return admin
    return None
