# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class Schema(BaseModel):
    """Base for every payload: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class OrderStatus(str, Enum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class CartItem(Schema):
    """Line of the cart, dropped from the cart when quantity reaches 0."""

    product_id: str
    product_name: str = ""
    quantity: int = Field(..., ge=1)
    price: Decimal
    image: str = ""


class Cart(Schema):
    items: List[CartItem] = []
    total_price: Decimal = Decimal("0")
    user: Optional[str] = None
    status: str = "active"
    user_type: str = "user"


class User(Schema):
    id: str = Field(..., alias="_id")
    name: str = ""
    email: str = ""
    phone: str = ""
    role: str = "user"
    is_active: bool = True
    is_banned: bool = Field(False, alias="is_banned")
    image: Optional[str] = None
    image_public_id: Optional[str] = None
    favorites: List[str] = []
    orders: List[str] = []
    cart: Optional[Cart] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# the logged-in user as held under the "currentUser" cache key
CurrentUser = User


class ProductCategory(Schema):
    id: str = ""
    name: str


class Product(Schema):
    id: str = Field(..., alias="_id")
    name: str
    description: str = ""
    brand: str = ""
    price: Decimal
    items_in_stock: int = Field(0, ge=0)
    category: Optional[ProductCategory] = None
    image: str = ""
    image_public_id: str = ""
    favorited_by: List[str] = []
    slug: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrderItem(Schema):
    product_id: str
    product_name: str = ""
    image: str = ""
    price: Decimal
    quantity: int = Field(..., ge=1)


class Order(Schema):
    """Orders never change on the client once the server has created them."""

    id: str = Field(..., alias="_id")
    user: str = ""
    user_model: str = "User"
    user_type: str = "user"
    order_items: List[OrderItem] = []
    total_price: Decimal = Decimal("0")
    status: OrderStatus = OrderStatus.PROCESSING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Category(Schema):
    id: str = Field(..., alias="_id")
    name: str
    slug: str = ""
    created_by: Optional[str] = None
    products: List[str] = []
    is_discounted: bool = Field(False, alias="is_discounted")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ApiEnvelope(Schema, Generic[T]):
    """{ok, status, message, data} wrapper shared by every endpoint."""

    ok: bool
    status: int
    message: str = ""
    data: Optional[T] = None


class ErrorBody(Schema):
    ok: bool = False
    status: Optional[int] = None
    message: str = ""


# --- request payloads ---


class LoginIn(Schema):
    email: str
    password: str


class ResetPasswordIn(Schema):
    token: str
    new_password: str
    confirm_new_password: str


class ProductIn(Schema):
    """Fields an admin may send when creating or editing a product."""

    name: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    items_in_stock: Optional[int] = Field(None, ge=0)
    category: Optional[ProductCategory] = None
    image: Optional[str] = None


class UserUpdateIn(Schema):
    phone: Optional[str] = None
    image: Optional[str] = None
    password: Optional[str] = None
    new_password: Optional[str] = None


# --- response data payloads ---


class ProductsData(Schema):
    products: List[Product] = []


class ProductData(Schema):
    product: Product


class CategoriesData(Schema):
    categories: List[Category] = []


class LoginData(Schema):
    user: User


class UsersData(Schema):
    users: List[User] = []


class OrdersData(Schema):
    orders: List[Order] = []


class OrderData(Schema):
    order: Order


class CartMutationData(Schema):
    current_user: User
    product: Optional[Product] = None
    products: Optional[List[Product]] = None


class FavoriteData(Schema):
    current_user: Optional[User] = None
    product: Optional[Product] = None
    products: Optional[List[Product]] = None


class PlaceOrderData(Schema):
    order: Order
    current_user: Optional[User] = None
    products: Optional[List[Product]] = None


class AdminUserData(Schema):
    """Ban, unban, role change and delete all answer with one user plus the list."""

    user: User = Field(
        ...,
        validation_alias=AliasChoices(
            "bannedUser", "unbannedUser", "updatedUser", "deletedAccount", "user"
        ),
    )
    users: Optional[List[User]] = None


class CatalogData(Schema):
    """Product and category writes answer with the refreshed collections."""

    new_product: Optional[Product] = None
    updated_product: Optional[Product] = None
    deleted_product: Optional[Product] = None
    products: Optional[List[Product]] = None
    categories: Optional[List[Category]] = None


class UpdateUserData(Schema):
    updated_user: Optional[User] = None
    users: Optional[List[User]] = None
