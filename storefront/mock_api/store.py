# storefront/mock_api/store.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List

from storefront.coordinator.cart import add_item, remove_item
from storefront.coordinator.favorites import with_member, without_member
from storefront.domain.errors import AuthenticationError, BadRequestError, NotFoundError
from storefront.domain.schemas import (
    Cart,
    Category,
    Order,
    OrderItem,
    Product,
    ProductCategory,
    ProductIn,
    User,
)


def _new_id() -> str:
    return uuid.uuid4().hex[:24]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MockStore:
    """In-memory state of the dev backend, seeded with a small catalog."""

    def __init__(self):
        self.categories: Dict[str, Category] = {}
        self.products: Dict[str, Product] = {}
        self.users: Dict[str, User] = {}
        self.passwords: Dict[str, str] = {}
        self.orders: Dict[str, Order] = {}
        self.sessions: Dict[str, str] = {}
        self.seed()

    def seed(self) -> None:
        electronics = Category(id="c1", name="Electronics", slug="electronics", products=["1", "2"])
        books = Category(id="c2", name="Books", slug="books", products=["3"])
        self.categories = {c.id: c for c in (electronics, books)}

        self.products = {
            p.id: p
            for p in (
                Product(id="1", name="Keyboard", price=Decimal("19.99"), items_in_stock=10,
                        category=ProductCategory(id="c1", name="Electronics"), slug="keyboard"),
                Product(id="2", name="Mouse", price=Decimal("49.50"), items_in_stock=3,
                        category=ProductCategory(id="c1", name="Electronics"), slug="mouse"),
                Product(id="3", name="Field Guide", price=Decimal("12.00"), items_in_stock=0,
                        category=ProductCategory(id="c2", name="Books"), slug="field-guide"),
            )
        }

        self.users = {
            u.id: u
            for u in (
                User(id="u1", name="Jane Customer", email="jane@example.com"),
                User(id="u2", name="Admin", email="admin@example.com", role="admin"),
            )
        }
        self.passwords = {"jane@example.com": "password", "admin@example.com": "admin"}

    # session
    def login(self, email: str, password: str) -> tuple:
        user = next((u for u in self.users.values() if u.email == email), None)
        if user is None or self.passwords.get(email) != password:
            raise AuthenticationError("Invalid email or password")
        if user.is_banned:
            raise AuthenticationError("Your account has been banned")
        token = uuid.uuid4().hex
        self.sessions[token] = user.id
        return token, user

    def user_for_token(self, token: str | None) -> User:
        user_id = self.sessions.get(token) if token else None
        if user_id is None or user_id not in self.users:
            raise AuthenticationError("Authentication required")
        return self.users[user_id]

    def logout(self, token: str | None) -> None:
        self.sessions.pop(token, None)

    # lookups
    def product(self, product_id: str) -> Product:
        if product_id not in self.products:
            raise NotFoundError(f"Product with id {product_id} not found")
        return self.products[product_id]

    def user(self, user_id: str) -> User:
        if user_id not in self.users:
            raise NotFoundError(f"User with id {user_id} not found")
        return self.users[user_id]

    def product_list(self) -> List[Product]:
        return list(self.products.values())

    def user_list(self) -> List[User]:
        return list(self.users.values())

    def _save_product(self, product: Product) -> Product:
        self.products[product.id] = product
        return product

    def _save_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    # cart
    def add_to_cart(self, user: User, product_id: str) -> tuple:
        product = self.product(product_id)
        if product.items_in_stock == 0:
            raise BadRequestError(f"{product.name} is out of stock")
        updated = self._save_user(add_item(user, product))
        product = self._save_product(
            product.model_copy(update={"items_in_stock": product.items_in_stock - 1})
        )
        return updated, product

    def remove_from_cart(self, user: User, product_id: str) -> User:
        product = self.product(product_id)
        updated = self._save_user(remove_item(user, product_id))
        self._save_product(product.model_copy(update={"items_in_stock": product.items_in_stock + 1}))
        return updated

    def place_order(self, user: User) -> tuple:
        if user.cart is None or not user.cart.items:
            raise BadRequestError("Your cart is empty")
        order = Order(
            id=_new_id(),
            user=user.id,
            order_items=[
                OrderItem(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    image=i.image,
                    price=i.price,
                    quantity=i.quantity,
                )
                for i in user.cart.items
            ],
            total_price=user.cart.total_price,
            created_at=_now(),
            updated_at=_now(),
        )
        self.orders[order.id] = order
        updated = self._save_user(
            user.model_copy(update={"cart": Cart(user=user.id), "orders": [*user.orders, order.id]})
        )
        return order, updated

    def orders_of(self, user: User) -> List[Order]:
        return [o for o in self.orders.values() if o.user == user.id]

    # favorites
    def toggle_favorite(self, user: User, product_id: str, add: bool) -> tuple:
        product = self.product(product_id)
        update = with_member if add else without_member
        product = self._save_product(
            product.model_copy(update={"favorited_by": update(product.favorited_by, user.id)})
        )
        updated = self._save_user(
            user.model_copy(update={"favorites": update(user.favorites, product_id)})
        )
        return updated, product

    # account
    def update_user(self, user: User, changes: dict) -> User:
        return self._save_user(user.model_copy(update=changes))

    def delete_user(self, user_id: str) -> User:
        user = self.user(user_id)
        del self.users[user_id]
        self.sessions = {t: uid for t, uid in self.sessions.items() if uid != user_id}
        return user

    def set_password(self, user: User, password: str) -> None:
        self.passwords[user.email] = password
        self.sessions = {t: uid for t, uid in self.sessions.items() if uid != user.id}

    # admin catalog
    def create_product(self, payload: ProductIn) -> Product:
        if not payload.name or payload.price is None:
            raise BadRequestError("Product name and price are required")
        product = Product(
            id=_new_id(),
            name=payload.name,
            description=payload.description or "",
            brand=payload.brand or "",
            price=payload.price,
            items_in_stock=payload.items_in_stock or 0,
            category=payload.category,
            image=payload.image or "",
            created_at=_now(),
            updated_at=_now(),
        )
        return self._save_product(product)

    def update_product(self, product_id: str, payload: ProductIn) -> Product:
        product = self.product(product_id)
        changes = payload.model_dump(exclude_none=True)
        if payload.category is not None:
            changes["category"] = payload.category
        return self._save_product(product.model_copy(update={**changes, "updated_at": _now()}))

    def delete_product(self, product_id: str) -> Product:
        product = self.product(product_id)
        del self.products[product_id]
        self.categories = {
            cid: c.model_copy(update={"products": [p for p in c.products if p != product_id]})
            for cid, c in self.categories.items()
        }
        return product

    def delete_category(self, category_id: str) -> Category:
        if category_id not in self.categories:
            raise NotFoundError(f"Category with id {category_id} not found")
        category = self.categories.pop(category_id)
        for product in list(self.products.values()):
            if product.category is not None and product.category.id == category_id:
                self._save_product(product.model_copy(update={"category": None}))
        return category
