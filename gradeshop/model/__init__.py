# ------ gradeshop/model/__init__.py ------

from .product import Product
from .discount import DiscountCode, CartDiscount
from .cart import Cart, CartItem
from .order import Order, OrderItem, ORDER_STATUSES
from .payment_exception import PaymentException

__all__ = [
    "Product",
    "DiscountCode",
    "CartDiscount",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "ORDER_STATUSES",
    "PaymentException",
]
