from .users import User, Customer, Supplier
from .catalog import Category, Product, Discount, Review
from .orders import Order, OrderItem, Bill
from .carts import ShoppingCart, CartItem
from .addresses import AddressType, Address
from .payments import CardType, PaymentMethod
from .security import SecurityEvent

__all__ = [
    'User', 'Customer', 'Supplier',
    'Category', 'Product', 'Discount', 'Review',
    'Order', 'OrderItem', 'Bill',
    'ShoppingCart', 'CartItem',
    'AddressType', 'Address',
    'CardType', 'PaymentMethod',
    'SecurityEvent',
]
