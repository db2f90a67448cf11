# storefront/coordinator/admin.py
import re
from datetime import datetime
from typing import NamedTuple

from storefront.cache.keys import CATEGORIES, PRODUCTS, USERS
from storefront.cache.query_cache import QueryCache
from storefront.coordinator.guards import find_by_id, replace_by_id, without_id
from storefront.coordinator.transaction import OptimisticMutation
from storefront.domain.errors import BadRequestError
from storefront.domain.schemas import Product, ProductIn
from storefront.services.admin_service import AdminService


class ProductUpdate(NamedTuple):
    product_id: str
    payload: ProductIn


class NewProduct(NamedTuple):
    payload: ProductIn
    created_at: datetime


def slugify(name: str) -> str:
    return re.sub(r"(^-|-$)+", "", re.sub(r"[^a-z0-9]+", "-", name.lower()))


def _fields(payload: ProductIn) -> dict:
    return {name: getattr(payload, name) for name in payload.model_fields_set if getattr(payload, name) is not None}


# catalog

def apply_delete_product(current, product_id: str):
    find_by_id(current[PRODUCTS], product_id, "Product")
    return {PRODUCTS: without_id(current[PRODUCTS], product_id)}


def apply_update_product(current, variables: ProductUpdate):
    product = find_by_id(current[PRODUCTS], variables.product_id, "Product")
    return {
        PRODUCTS: replace_by_id(
            current[PRODUCTS],
            variables.product_id,
            product.model_copy(update=_fields(variables.payload)),
        ),
    }


def apply_create_product(current, variables: NewProduct):
    payload = variables.payload
    if not payload.name or payload.price is None:
        raise BadRequestError("Product name and price are required")

    temp = Product(
        id=f"temp_{int(variables.created_at.timestamp() * 1000)}",
        name=payload.name,
        description=payload.description or "",
        brand=payload.brand or "",
        price=payload.price,
        items_in_stock=payload.items_in_stock or 0,
        category=payload.category,
        image=payload.image or "",
        slug=slugify(payload.name),
        created_at=variables.created_at,
        updated_at=variables.created_at,
    )
    return {PRODUCTS: [temp, *(current[PRODUCTS] or [])]}


def apply_delete_category(current, category_id: str):
    find_by_id(current[CATEGORIES], category_id, "Category")
    updates = {CATEGORIES: without_id(current[CATEGORIES], category_id)}

    #products of a deleted category stay, detached from it
    if current[PRODUCTS] is not None:
        updates[PRODUCTS] = [
            p.model_copy(update={"category": None})
            if p.category is not None and p.category.id == category_id
            else p
            for p in current[PRODUCTS]
        ]
    return updates


def commit_catalog(latest, result, variables):
    data = result.data
    updates = {}
    if data is None:
        return updates

    if data.products is not None:
        updates[PRODUCTS] = data.products
    elif data.updated_product is not None and latest[PRODUCTS] is not None:
        updates[PRODUCTS] = replace_by_id(latest[PRODUCTS], data.updated_product.id, data.updated_product)
    elif data.new_product is not None and isinstance(variables, NewProduct):
        temp_id = f"temp_{int(variables.created_at.timestamp() * 1000)}"
        updates[PRODUCTS] = replace_by_id(latest[PRODUCTS] or [], temp_id, data.new_product)

    #latest only holds the mutation's declared keys, update_product does not declare CATEGORIES
    if CATEGORIES in latest and data.categories is not None:
        updates[CATEGORIES] = data.categories
    return updates


# users

def apply_ban_user(current, user_id: str):
    user = find_by_id(current[USERS], user_id, "User")
    banned = user.model_copy(update={"is_banned": True, "is_active": False})
    return {USERS: replace_by_id(current[USERS], user_id, banned)}


def apply_unban_user(current, user_id: str):
    user = find_by_id(current[USERS], user_id, "User")
    unbanned = user.model_copy(update={"is_banned": False, "is_active": True})
    return {USERS: replace_by_id(current[USERS], user_id, unbanned)}


def apply_change_user_status(current, user_id: str):
    user = find_by_id(current[USERS], user_id, "User")
    role = "admin" if user.role == "user" else "user"
    return {USERS: replace_by_id(current[USERS], user_id, user.model_copy(update={"role": role}))}


def apply_delete_user(current, user_id: str):
    find_by_id(current[USERS], user_id, "User")
    return {USERS: without_id(current[USERS], user_id)}


def commit_user(latest, result, _user_id):
    data = result.data
    if data.users is not None:
        return {USERS: data.users}
    return {USERS: replace_by_id(latest[USERS] or [], data.user.id, data.user)}


def commit_deleted_user(latest, result, user_id: str):
    data = result.data
    if data.users is not None:
        return {USERS: data.users}
    return {USERS: without_id(latest[USERS] or [], user_id)}


def _users_mutation(cache, name, apply, mutation_fn, commit, message):
    return OptimisticMutation(
        cache,
        name=name,
        keys=[USERS],
        apply=apply,
        mutation_fn=mutation_fn,
        commit=commit,
        error_message=message,
    )


def admin_mutations(cache: QueryCache, admin: AdminService) -> dict:
    return {
        "delete_product": OptimisticMutation(
            cache,
            name="delete_product",
            keys=[PRODUCTS, CATEGORIES],
            apply=apply_delete_product,
            mutation_fn=admin.delete_product,
            commit=commit_catalog,
            error_message="An error occurred while deleting the product",
        ),
        "update_product": OptimisticMutation(
            cache,
            name="update_product",
            keys=[PRODUCTS],
            apply=apply_update_product,
            mutation_fn=lambda v: admin.update_product(v.product_id, v.payload),
            commit=commit_catalog,
            error_message="An unexpected error occurred while updating product",
        ),
        "create_product": OptimisticMutation(
            cache,
            name="create_product",
            keys=[PRODUCTS, CATEGORIES],
            apply=apply_create_product,
            mutation_fn=lambda v: admin.create_product(v.payload),
            commit=commit_catalog,
            error_message="Failed to create product",
        ),
        "delete_category": OptimisticMutation(
            cache,
            name="delete_category",
            keys=[CATEGORIES, PRODUCTS],
            apply=apply_delete_category,
            mutation_fn=admin.delete_category,
            commit=commit_catalog,
            error_message="An error occurred while deleting the category",
        ),
        "ban_user": _users_mutation(
            cache, "ban_user", apply_ban_user, admin.ban_user, commit_user,
            "An unexpected error occurred while banning user",
        ),
        "unban_user": _users_mutation(
            cache, "unban_user", apply_unban_user, admin.unban_user, commit_user,
            "An unexpected error occurred while unbanning user",
        ),
        "change_user_status": _users_mutation(
            cache, "change_user_status", apply_change_user_status,
            admin.change_user_status, commit_user,
            "An unexpected error occurred while changing user status",
        ),
        "delete_user": _users_mutation(
            cache, "delete_user", apply_delete_user, admin.delete_user, commit_deleted_user,
            "An error occurred while deleting the user",
        ),
    }
