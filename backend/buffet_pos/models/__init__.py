from .auth import Profile, SessionToken
from .catalog import Product, InventoryRecord
from .customers import Customer
from .sales import Sale, SaleItem
from .expenses import Expense
from .settings import Setting

__all__ = [
    'Profile', 'SessionToken',
    'Product', 'InventoryRecord',
    'Customer',
    'Sale', 'SaleItem',
    'Expense',
    'Setting',
]
