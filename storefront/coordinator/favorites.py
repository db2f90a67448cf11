# storefront/coordinator/favorites.py
from typing import List

from storefront.cache.keys import CURRENT_USER, PRODUCTS
from storefront.cache.query_cache import QueryCache
from storefront.coordinator.guards import find_by_id, replace_by_id, require_current_user
from storefront.coordinator.transaction import OptimisticMutation, merge_fields
from storefront.domain.errors import AuthenticationError
from storefront.services.user_service import UserService


def with_member(members: List[str], member: str) -> List[str]:
    return members if member in members else [*members, member]


def without_member(members: List[str], member: str) -> List[str]:
    return [m for m in members if m != member]


def _toggle(current, product_id: str, update):
    user = current[CURRENT_USER]
    if user is None:
        raise AuthenticationError()

    product = find_by_id(current[PRODUCTS], product_id, "Product")
    return {
        CURRENT_USER: user.model_copy(
            update={"favorites": update(user.favorites, product_id)}
        ),
        PRODUCTS: replace_by_id(
            current[PRODUCTS],
            product_id,
            product.model_copy(
                update={"favorited_by": update(product.favorited_by, user.id)}
            ),
        ),
    }


def apply_add_favorite(current, product_id: str):
    return _toggle(current, product_id, with_member)


def apply_remove_favorite(current, product_id: str):
    return _toggle(current, product_id, without_member)


def commit_favorite(latest, result, _product_id):
    data = result.data
    updates = {}

    if data is not None and data.current_user is not None:
        updates[CURRENT_USER] = merge_fields(latest[CURRENT_USER], data.current_user, ["favorites"])

    if data is not None and data.products is not None:
        updates[PRODUCTS] = data.products
    elif data is not None and data.product is not None and latest[PRODUCTS] is not None:
        updates[PRODUCTS] = replace_by_id(latest[PRODUCTS], data.product.id, data.product)

    return updates


def add_favorite_mutation(cache: QueryCache, users: UserService) -> OptimisticMutation:
    return OptimisticMutation(
        cache,
        name="add_favorite",
        keys=[CURRENT_USER, PRODUCTS],
        precondition=require_current_user,
        apply=apply_add_favorite,
        mutation_fn=users.add_favorite,
        commit=commit_favorite,
        error_message="An unexpected error occurred while adding favorite",
    )


def remove_favorite_mutation(cache: QueryCache, users: UserService) -> OptimisticMutation:
    return OptimisticMutation(
        cache,
        name="remove_favorite",
        keys=[CURRENT_USER, PRODUCTS],
        precondition=require_current_user,
        apply=apply_remove_favorite,
        mutation_fn=users.remove_favorite,
        commit=commit_favorite,
        error_message="An unexpected error occurred while removing favorite",
    )
