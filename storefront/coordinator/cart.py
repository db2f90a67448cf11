# storefront/coordinator/cart.py
from decimal import Decimal
from typing import Iterable, List, Optional

from storefront.cache.keys import CURRENT_USER, PRODUCTS
from storefront.cache.query_cache import QueryCache
from storefront.coordinator.guards import find_by_id, require_current_user
from storefront.coordinator.transaction import OptimisticMutation, merge_fields
from storefront.domain.errors import AuthenticationError, BadRequestError
from storefront.domain.schemas import Cart, CartItem, Product, User
from storefront.services.user_service import UserService


def cart_total(items: Iterable[CartItem]) -> Decimal:
    return sum((i.price * i.quantity for i in items), Decimal("0.00"))


def add_item(user: User, product: Product) -> User:
    """One more unit of `product`; an existing row is incremented, never duplicated."""
    cart = user.cart or Cart(user=user.id)

    if any(item.product_id == product.id for item in cart.items):
        items = [
            item.model_copy(update={"quantity": item.quantity + 1})
            if item.product_id == product.id
            else item
            for item in cart.items
        ]
    else:
        items = [
            *cart.items,
            CartItem(
                product_id=product.id,
                product_name=product.name,
                quantity=1,
                price=product.price,
                image=product.image,
            ),
        ]

    new_cart = cart.model_copy(update={"items": items, "total_price": cart_total(items)})
    return user.model_copy(update={"cart": new_cart})


def remove_item(user: User, product_id: str) -> User:
    """One unit less; a row at quantity 1 is dropped instead of kept at 0."""
    cart = user.cart
    if cart is None or not cart.items:
        raise BadRequestError("Your cart is empty")
    if not any(item.product_id == product_id for item in cart.items):
        raise BadRequestError(f"Product with id {product_id} does not exist in your cart")

    items = []
    for item in cart.items:
        if item.product_id != product_id:
            items.append(item)
        elif item.quantity > 1:
            items.append(item.model_copy(update={"quantity": item.quantity - 1}))

    new_cart = cart.model_copy(update={"items": items, "total_price": cart_total(items)})
    return user.model_copy(update={"cart": new_cart})


def adjust_stock(products: Optional[List[Product]], product_id: str, delta: int):
    if products is None:
        return None
    return [
        p.model_copy(update={"items_in_stock": p.items_in_stock + delta})
        if p.id == product_id
        else p
        for p in products
    ]


# speculative transforms

def apply_add_to_cart(current, product_id: str):
    user = current[CURRENT_USER]
    if user is None:
        raise AuthenticationError()

    product = find_by_id(current[PRODUCTS], product_id, "Product")
    if product.items_in_stock < 1:
        raise BadRequestError(f"{product.name} is out of stock")

    return {
        CURRENT_USER: add_item(user, product),
        PRODUCTS: adjust_stock(current[PRODUCTS], product_id, -1),
    }


def apply_remove_from_cart(current, product_id: str):
    user = current[CURRENT_USER]
    if user is None:
        raise AuthenticationError()

    updates = {CURRENT_USER: remove_item(user, product_id)}
    if current[PRODUCTS] is not None:
        updates[PRODUCTS] = adjust_stock(current[PRODUCTS], product_id, 1)
    return updates


def commit_cart(latest, result, _product_id):
    """Only the cart of the current user is taken from the server."""
    server_user = result.data.current_user
    user = latest[CURRENT_USER]

    if user is None:
        merged = server_user
    elif server_user.cart is not None:
        merged = merge_fields(user, server_user, ["cart"])
    else:
        merged = user

    updates = {CURRENT_USER: merged}
    if result.data.products is not None:
        updates[PRODUCTS] = result.data.products
    return updates


def add_to_cart_mutation(cache: QueryCache, users: UserService) -> OptimisticMutation:
    return OptimisticMutation(
        cache,
        name="add_to_cart",
        keys=[CURRENT_USER, PRODUCTS],
        precondition=require_current_user,
        apply=apply_add_to_cart,
        mutation_fn=users.add_to_cart,
        commit=commit_cart,
        error_message="An unexpected error occurred while adding to cart",
    )


def remove_from_cart_mutation(cache: QueryCache, users: UserService) -> OptimisticMutation:
    return OptimisticMutation(
        cache,
        name="remove_from_cart",
        keys=[CURRENT_USER, PRODUCTS],
        precondition=require_current_user,
        apply=apply_remove_from_cart,
        mutation_fn=users.remove_from_cart,
        commit=commit_cart,
        error_message="An unexpected error occurred while removing item from cart",
    )
