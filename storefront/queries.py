# storefront/queries.py
from typing import List, Optional

from storefront.cache.keys import (
    CATEGORIES,
    CURRENT_USER,
    ORDERS,
    PRODUCTS,
    USER_ORDERS,
    USERS,
)
from storefront.cache.query_cache import QueryCache
from storefront.domain.schemas import Category, Order, Product, User
from storefront.services.admin_service import AdminService
from storefront.services.open_service import OpenService
from storefront.services.user_service import UserService


def get_current_user(cache: QueryCache) -> Optional[User]:
    """The session user is only ever set by login/logout, never fetched."""
    return cache.get_query_data(CURRENT_USER)


async def load_products(cache: QueryCache, open_service: OpenService, force: bool = False) -> List[Product]:
    def fetch():
        envelope = open_service.get_products()
        return envelope.data.products if envelope.data else []

    return await cache.fetch_query(PRODUCTS, fetch, force=force)


async def load_categories(cache: QueryCache, open_service: OpenService, force: bool = False) -> List[Category]:
    def fetch():
        envelope = open_service.get_categories()
        return envelope.data.categories if envelope.data else []

    return await cache.fetch_query(CATEGORIES, fetch, force=force)


async def load_user_orders(cache: QueryCache, users: UserService, force: bool = False) -> List[Order]:
    def fetch():
        envelope = users.get_user_orders()
        return envelope.data.orders if envelope.data else []

    return await cache.fetch_query(USER_ORDERS, fetch, force=force)


async def load_orders(cache: QueryCache, admin: AdminService, force: bool = False) -> List[Order]:
    def fetch():
        envelope = admin.get_orders()
        return envelope.data.orders if envelope.data else []

    return await cache.fetch_query(ORDERS, fetch, force=force)


async def load_users(cache: QueryCache, admin: AdminService, force: bool = False) -> List[User]:
    def fetch():
        envelope = admin.get_users()
        return envelope.data.users if envelope.data else []

    return await cache.fetch_query(USERS, fetch, force=force)
