# storefront/coordinator/orders.py
from datetime import datetime
from typing import List, Optional

from storefront.cache.keys import CURRENT_USER, ORDERS, PRODUCTS, USER_ORDERS
from storefront.cache.query_cache import QueryCache
from storefront.coordinator.guards import require_current_user
from storefront.coordinator.transaction import OptimisticMutation, merge_fields
from storefront.domain.errors import AuthenticationError, BadRequestError
from storefront.domain.schemas import Order, OrderItem, OrderStatus, User
from storefront.services.user_service import UserService

TEMP_PREFIX = "temp_"


def temp_order_id(placed_at: datetime) -> str:
    return f"{TEMP_PREFIX}{int(placed_at.timestamp() * 1000)}"


def build_temp_order(user: User, placed_at: datetime) -> Order:
    """Provisional order made from the cart, replaced by the server's one on success."""
    return Order(
        id=temp_order_id(placed_at),
        user=user.id,
        user_model="User",
        user_type="user",
        order_items=[
            OrderItem(
                product_id=item.product_id,
                product_name=item.product_name,
                image=item.image,
                price=item.price,
                quantity=item.quantity,
            )
            for item in user.cart.items
        ],
        total_price=user.cart.total_price,
        status=OrderStatus.PROCESSING,
        created_at=placed_at,
        updated_at=placed_at,
    )


def splice_order(orders: Optional[List[Order]], temp_id: str, order: Order) -> List[Order]:
    if orders is None:
        return [order]
    if any(o.id == temp_id for o in orders):
        return [order if o.id == temp_id else o for o in orders]
    if any(o.id == order.id for o in orders):
        return orders
    return [*orders, order]


def apply_place_order(current, placed_at: datetime):
    user = current[CURRENT_USER]
    if user is None:
        raise AuthenticationError()
    if user.cart is None or not user.cart.items:
        raise BadRequestError("Your cart is empty")

    temp = build_temp_order(user, placed_at)
    updates = {
        CURRENT_USER: user.model_copy(
            update={"cart": None, "orders": [*user.orders, temp.id]}
        ),
    }
    #history shown to the customer gets the provisional row only if it is loaded
    if current[USER_ORDERS] is not None:
        updates[USER_ORDERS] = [*current[USER_ORDERS], temp]
    return updates


def commit_place_order(latest, result, placed_at: datetime):
    data = result.data
    order = data.order
    temp_id = temp_order_id(placed_at)
    user = latest[CURRENT_USER]

    if data.current_user is not None:
        user = merge_fields(user, data.current_user, ["cart", "orders"])
    elif user is not None:
        user = user.model_copy(
            update={
                "cart": None,
                "orders": [order.id if o == temp_id else o for o in user.orders],
            }
        )

    updates = {
        CURRENT_USER: user,
        ORDERS: splice_order(latest[ORDERS], temp_id, order),
    }
    if data.products is not None:
        updates[PRODUCTS] = data.products
    if latest[USER_ORDERS] is not None:
        updates[USER_ORDERS] = splice_order(latest[USER_ORDERS], temp_id, order)
    return updates


def place_order_mutation(cache: QueryCache, users: UserService) -> OptimisticMutation:
    return OptimisticMutation(
        cache,
        name="place_order",
        keys=[CURRENT_USER, PRODUCTS, ORDERS, USER_ORDERS],
        precondition=require_current_user,
        apply=apply_place_order,
        mutation_fn=lambda _placed_at: users.place_order(),
        commit=commit_place_order,
        error_message="An unexpected error occurred while placing order",
    )
