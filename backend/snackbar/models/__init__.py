from .orders import Order, OrderItem
from .refunds import Refund, RefundItem
from .auth import User, SessionToken

__all__ = [
    'Order', 'OrderItem',
    'Refund', 'RefundItem',
    'User', 'SessionToken',
]
