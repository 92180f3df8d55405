from .tenancy import Tenant, Shop
from .auth import User, ROLE_OWNER
from .customers import Customer
from .sales import HeldSale, STATUS_HELD, STATUS_RETRIEVED

__all__ = [
    'Tenant', 'Shop',
    'User', 'ROLE_OWNER',
    'Customer',
    'HeldSale', 'STATUS_HELD', 'STATUS_RETRIEVED',
]
