# backend/homestore/routes/accounts.py
"""
Customer and admin account routes.

Login endpoints only verify credentials and echo the account; they do not
issue tokens.
"""

from flask import Blueprint, request

from ..services import account_service
from ..services.account_service import AccountError
from ..validation import ValidationError, ConflictError


accounts_bp = Blueprint("accounts", __name__, url_prefix="/api")


# Customers

@accounts_bp.post("/customers/signup")
def customer_signup():
    payload = request.get_json(silent=True) or {}
    try:
        customer = account_service.signup_customer(payload)
    except (ValidationError, ConflictError) as e:
        return {"success": False, "message": str(e)}, 400
    return {"success": True, "customer": customer.to_dict()}, 201


@accounts_bp.post("/customers/login")
def customer_login():
    payload = request.get_json(silent=True) or {}
    customer = account_service.authenticate_customer(payload.get("email"), payload.get("password"))
    if not customer:
        return {"success": False, "message": "Invalid email or password"}, 401
    return {"success": True, "customer": customer.to_dict()}


@accounts_bp.get("/customers/<int:customer_id>")
def get_customer(customer_id: int):
    customer = account_service.get_customer(customer_id)
    if not customer:
        return {"message": "Customer not found"}, 404
    return customer.to_dict()


@accounts_bp.patch("/customers/<int:customer_id>")
def update_customer(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        customer = account_service.update_customer(customer_id, payload)
    except (ValidationError, AccountError) as e:
        return {"message": str(e)}, 400
    if not customer:
        return {"message": "Customer not found"}, 404
    return customer.to_dict()


# Address book

@accounts_bp.get("/customers/<int:customer_id>/addresses")
def list_addresses(customer_id: int):
    return [a.to_dict() for a in account_service.list_addresses(customer_id)]


@accounts_bp.post("/customers/<int:customer_id>/addresses")
def create_address(customer_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        address = account_service.create_address(customer_id, payload)
    except ValidationError as e:
        return {"message": str(e)}, 400
    except AccountError as e:
        return {"message": str(e)}, 404
    return address.to_dict(), 201


@accounts_bp.patch("/addresses/<int:address_id>")
def update_address(address_id: int):
    payload = request.get_json(silent=True) or {}
    address = account_service.update_address(address_id, payload)
    if not address:
        return {"message": "Address not found"}, 404
    return address.to_dict()


@accounts_bp.delete("/addresses/<int:address_id>")
def delete_address(address_id: int):
    if not account_service.delete_address(address_id):
        return {"message": "Address not found"}, 404
    return {"success": True}


@accounts_bp.post("/customers/<int:customer_id>/addresses/<int:address_id>/default")
def set_default_address(customer_id: int, address_id: int):
    if not account_service.set_default_address(customer_id, address_id):
        return {"message": "Address not found"}, 404
    return {"success": True}


# Admins

@accounts_bp.post("/admin/login")
def admin_login():
    payload = request.get_json(silent=True) or {}
    admin = account_service.authenticate_admin(payload.get("email"), payload.get("password"))
    if not admin:
        return {"success": False, "message": "Invalid credentials"}, 401
    return {"success": True, "admin": admin.to_dict()}


@accounts_bp.get("/admins")
def list_admins():
    return [a.to_dict() for a in account_service.list_admins()]


@accounts_bp.post("/admins")
def create_admin():
    payload = request.get_json(silent=True) or {}
    try:
        admin = account_service.create_admin(payload)
    except (ValidationError, ConflictError) as e:
        return {"message": str(e)}, 400
    return admin.to_dict(), 201
