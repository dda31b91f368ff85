from .catalog import Book, Product
from .accounts import Account, AccountBook

__all__ = [
    'Book', 'Product',
    'Account', 'AccountBook',
]
