from .catalog import Category, Supplier, Item
from .customers import Customer
from .staff import Admin
from .orders import Order, OrderItem, ORDER_STATUSES
from .audit import SystemLog

__all__ = [
    'Category', 'Supplier', 'Item',
    'Customer',
    'Admin',
    'Order', 'OrderItem', 'ORDER_STATUSES',
    'SystemLog',
]
