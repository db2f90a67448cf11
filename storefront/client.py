# storefront/client.py
import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from storefront import queries
from storefront.cache.persister import RedisPersister
from storefront.cache.query_cache import QueryCache
from storefront.coordinator import account, admin, cart, favorites, orders
from storefront.coordinator.admin import NewProduct, ProductUpdate
from storefront.coordinator.transaction import OptimisticMutation
from storefront.domain.schemas import (
    Category,
    LoginIn,
    Order,
    Product,
    ProductIn,
    User,
    UserUpdateIn,
)
from storefront.services.admin_service import AdminService
from storefront.services.http_client import ApiClient
from storefront.services.open_service import OpenService
from storefront.services.user_service import UserService


@dataclass
class Mutations:
    add_to_cart: OptimisticMutation
    remove_from_cart: OptimisticMutation
    add_favorite: OptimisticMutation
    remove_favorite: OptimisticMutation
    place_order: OptimisticMutation
    update_user: OptimisticMutation
    delete_product: OptimisticMutation
    update_product: OptimisticMutation
    create_product: OptimisticMutation
    delete_category: OptimisticMutation
    ban_user: OptimisticMutation
    unban_user: OptimisticMutation
    change_user_status: OptimisticMutation
    delete_user: OptimisticMutation


class StorefrontClient:
    """
    Client tier of the storefront.
    The cache and the API client are owned here and handed to every query and
    mutation explicitly; nothing reaches for a global cache.
    """

    def __init__(
        self,
        api: ApiClient | None = None,
        cache: QueryCache | None = None,
        persister: RedisPersister | None = None,
    ):
        self.api = api or ApiClient()
        self.cache = cache or QueryCache()
        self.persister = persister

        self.open_service = OpenService(self.api)
        self.user_service = UserService(self.api)
        self.admin_service = AdminService(self.api)

        self.mutations = Mutations(
            add_to_cart=cart.add_to_cart_mutation(self.cache, self.user_service),
            remove_from_cart=cart.remove_from_cart_mutation(self.cache, self.user_service),
            add_favorite=favorites.add_favorite_mutation(self.cache, self.user_service),
            remove_favorite=favorites.remove_favorite_mutation(self.cache, self.user_service),
            place_order=orders.place_order_mutation(self.cache, self.user_service),
            update_user=account.update_user_mutation(self.cache, self.user_service),
            **admin.admin_mutations(self.cache, self.admin_service),
        )

    # persistence
    async def restore(self) -> bool:
        if self.persister is None:
            return False
        return await asyncio.to_thread(self.persister.restore, self.cache)

    async def persist(self) -> None:
        if self.persister is not None:
            await asyncio.to_thread(self.persister.persist, self.cache)

    # session
    @property
    def current_user(self) -> Optional[User]:
        return queries.get_current_user(self.cache)

    async def login(self, email: str, password: str) -> User:
        return await account.login(self.cache, self.open_service, LoginIn(email=email, password=password))

    async def logout(self) -> str:
        return await account.logout(self.cache, self.user_service)

    async def delete_account(self) -> str:
        return await account.delete_account(self.cache, self.user_service)

    async def update_user(self, payload: UserUpdateIn):
        return await self.mutations.update_user(payload)

    # queries
    async def products(self, force: bool = False) -> List[Product]:
        return await queries.load_products(self.cache, self.open_service, force)

    async def categories(self, force: bool = False) -> List[Category]:
        return await queries.load_categories(self.cache, self.open_service, force)

    async def my_orders(self, force: bool = False) -> List[Order]:
        return await queries.load_user_orders(self.cache, self.user_service, force)

    async def all_orders(self, force: bool = False) -> List[Order]:
        return await queries.load_orders(self.cache, self.admin_service, force)

    async def users(self, force: bool = False) -> List[User]:
        return await queries.load_users(self.cache, self.admin_service, force)

    # cart, favorites, orders
    async def add_to_cart(self, product_id: str):
        return await self.mutations.add_to_cart(product_id)

    async def remove_from_cart(self, product_id: str):
        return await self.mutations.remove_from_cart(product_id)

    async def add_favorite(self, product_id: str):
        return await self.mutations.add_favorite(product_id)

    async def remove_favorite(self, product_id: str):
        return await self.mutations.remove_favorite(product_id)

    async def place_order(self):
        return await self.mutations.place_order(datetime.now(timezone.utc))

    # admin
    async def create_product(self, payload: ProductIn):
        return await self.mutations.create_product(NewProduct(payload, datetime.now(timezone.utc)))

    async def update_product(self, product_id: str, payload: ProductIn):
        return await self.mutations.update_product(ProductUpdate(product_id, payload))

    async def delete_product(self, product_id: str):
        return await self.mutations.delete_product(product_id)

    async def delete_category(self, category_id: str):
        return await self.mutations.delete_category(category_id)

    async def ban_user(self, user_id: str):
        return await self.mutations.ban_user(user_id)

    async def unban_user(self, user_id: str):
        return await self.mutations.unban_user(user_id)

    async def change_user_status(self, user_id: str):
        return await self.mutations.change_user_status(user_id)

    async def delete_user(self, user_id: str):
        return await self.mutations.delete_user(user_id)
