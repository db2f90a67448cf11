# storefront/cache/keys.py
from typing import List, Optional

from storefront.domain.schemas import Category, Order, Product, User

CURRENT_USER = ("currentUser",)
HAS_LOGGED_OUT = ("hasLoggedOut",)
PRODUCTS = ("products",)
CATEGORIES = ("categories",)
ORDERS = ("orders",)
USER_ORDERS = ("userOrders",)
USERS = ("users",)

#types used to (de)serialize each entry when the cache is persisted
QUERY_TYPES = {
    CURRENT_USER: Optional[User],
    HAS_LOGGED_OUT: bool,
    PRODUCTS: List[Product],
    CATEGORIES: List[Category],
    ORDERS: List[Order],
    USER_ORDERS: List[Order],
    USERS: List[User],
}
