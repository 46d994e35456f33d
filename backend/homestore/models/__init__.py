from .catalog import Category, Product
from .orders import Order, ORDER_STATUSES
from .pos import PosTransaction
from .coupons import Coupon, COUPON_TYPES, COUPON_SCOPES
from .accounts import Customer, CustomerAddress, Admin

__all__ = [
    'Category', 'Product',
    'Order', 'ORDER_STATUSES',
    'PosTransaction',
    'Coupon', 'COUPON_TYPES', 'COUPON_SCOPES',
    'Customer', 'CustomerAddress', 'Admin',
]
