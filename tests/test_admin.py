# tests/test_admin.py
import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import FakeService, envelope, snapshot
from storefront.cache.keys import CATEGORIES, PRODUCTS, USERS
from storefront.coordinator.admin import (
    NewProduct,
    ProductUpdate,
    admin_mutations,
    apply_create_product,
    slugify,
)
from storefront.domain.errors import ApiError, BadRequestError, NotFoundError
from storefront.domain.schemas import AdminUserData, CatalogData, Product, ProductIn

CREATED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def catalog(store, cache):
    cache.set_query_data(PRODUCTS, store.product_list())
    cache.set_query_data(CATEGORIES, list(store.categories.values()))
    cache.set_query_data(USERS, store.user_list())
    return cache


def mutations(cache, **responses):
    admin = FakeService(**responses)
    return admin, admin_mutations(cache, admin)


def test_delete_product_takes_server_lists(catalog, store):
    remaining = [p for p in store.product_list() if p.id != "1"]
    admin, m = mutations(catalog, delete_product=envelope(CatalogData(products=remaining)))

    asyncio.run(m["delete_product"]("1"))

    assert [p.id for p in catalog.get_query_data(PRODUCTS)] == ["2", "3"]
    assert admin.calls == [("delete_product", ("1",))]


def test_failed_delete_product_restores_catalog(catalog):
    before = snapshot(catalog)
    _, m = mutations(catalog, delete_product=ApiError("Forbidden", 403))

    with pytest.raises(ApiError):
        asyncio.run(m["delete_product"]("1"))

    assert snapshot(catalog) == before


def test_update_product_applies_only_sent_fields(catalog, store):
    server = store.product("2").model_copy(update={"price": Decimal("39.00")})
    _, m = mutations(catalog, update_product=envelope(CatalogData(updated_product=server)))

    asyncio.run(m["update_product"](ProductUpdate("2", ProductIn(price=Decimal("39.00")))))

    mouse = next(p for p in catalog.get_query_data(PRODUCTS) if p.id == "2")
    assert mouse.price == Decimal("39.00")
    assert mouse.name == "Mouse"
    assert mouse.items_in_stock == 3


def test_create_product_puts_a_provisional_row_first(catalog):
    current = {PRODUCTS: catalog.get_query_data(PRODUCTS), CATEGORIES: None}
    payload = ProductIn(name="USB Hub", price=Decimal("15.00"), items_in_stock=4)

    updates = apply_create_product(current, NewProduct(payload, CREATED_AT))

    temp = updates[PRODUCTS][0]
    assert temp.id == f"temp_{int(CREATED_AT.timestamp() * 1000)}"
    assert temp.slug == "usb-hub"
    assert len(updates[PRODUCTS]) == 4


def test_create_product_replaces_provisional_row(catalog):
    created = Product(id="p9", name="USB Hub", price=Decimal("15.00"))
    _, m = mutations(catalog, create_product=envelope(CatalogData(new_product=created)))

    asyncio.run(m["create_product"](NewProduct(ProductIn(name="USB Hub", price=Decimal("15.00")), CREATED_AT)))

    assert [p.id for p in catalog.get_query_data(PRODUCTS)] == ["p9", "1", "2", "3"]


def test_create_product_requires_name_and_price(catalog):
    admin, m = mutations(catalog, create_product=envelope())

    with pytest.raises(BadRequestError):
        asyncio.run(m["create_product"](NewProduct(ProductIn(name="USB Hub"), CREATED_AT)))

    assert admin.calls == []


def test_delete_category_detaches_its_products(catalog):
    gate = {}

    def delete_category(category_id):
        gate["products"] = catalog.get_query_data(PRODUCTS)
        raise ApiError("Category is in use", 409)

    before = snapshot(catalog)
    _, m = mutations(catalog, delete_category=delete_category)

    with pytest.raises(ApiError):
        asyncio.run(m["delete_category"]("c2"))

    field_guide = next(p for p in gate["products"] if p.id == "3")
    assert field_guide.category is None
    assert snapshot(catalog) == before


def test_delete_unknown_category(catalog):
    admin, m = mutations(catalog, delete_category=envelope())

    with pytest.raises(NotFoundError):
        asyncio.run(m["delete_category"]("c9"))

    assert admin.calls == []


def test_ban_user_commits_server_list(catalog, store):
    banned = store.user("u1").model_copy(update={"is_banned": True, "is_active": False})
    users = [banned, store.user("u2")]
    _, m = mutations(catalog, ban_user=envelope(AdminUserData(user=banned, users=users)))

    asyncio.run(m["ban_user"]("u1"))

    jane = catalog.get_query_data(USERS)[0]
    assert jane.is_banned and not jane.is_active


def test_change_user_status_toggles_role(catalog, store):
    def change(user_id):
        promoted = store.user(user_id).model_copy(update={"role": "admin"})
        return envelope(AdminUserData.model_validate({"updatedUser": promoted.model_dump(by_alias=True)}))

    _, m = mutations(catalog, change_user_status=change)

    asyncio.run(m["change_user_status"]("u1"))

    assert catalog.get_query_data(USERS)[0].role == "admin"
    assert catalog.get_query_data(USERS)[1].role == "admin"


def test_delete_user_rolls_back(catalog):
    _, m = mutations(catalog, delete_user=ApiError("Server error", 500))

    with pytest.raises(ApiError):
        asyncio.run(m["delete_user"]("u1"))

    assert [u.id for u in catalog.get_query_data(USERS)] == ["u1", "u2"]


def test_unknown_user_is_refused(catalog):
    admin, m = mutations(catalog, unban_user=envelope())

    with pytest.raises(NotFoundError):
        asyncio.run(m["unban_user"]("u7"))

    assert admin.calls == []


def test_slugify():
    assert slugify("  Gaming Mouse, Pro! ") == "gaming-mouse-pro"


def test_unban_user_with_only_the_user_in_the_answer(catalog, store):
    store.users["u1"] = store.user("u1").model_copy(update={"is_banned": True, "is_active": False})
    catalog.set_query_data(USERS, store.user_list())
    unbanned = store.user("u1").model_copy(update={"is_banned": False, "is_active": True})
    _, m = mutations(catalog, unban_user=envelope(AdminUserData.model_validate(
        {"unbannedUser": unbanned.model_dump(by_alias=True)}
    )))

    asyncio.run(m["unban_user"]("u1"))

    jane, admin_user = catalog.get_query_data(USERS)
    assert not jane.is_banned and jane.is_active
    assert admin_user.id == "u2"


def test_failed_ban_user_restores_users(catalog):
    before = snapshot(catalog)
    _, m = mutations(catalog, ban_user=ApiError("Server error", 500))

    with pytest.raises(ApiError):
        asyncio.run(m["ban_user"]("u1"))

    assert snapshot(catalog) == before
    assert not catalog.get_query_data(USERS)[0].is_banned


def test_failed_update_product_restores_catalog(catalog):
    before = snapshot(catalog)
    _, m = mutations(catalog, update_product=ApiError("Invalid price", 400))

    with pytest.raises(ApiError):
        asyncio.run(m["update_product"](ProductUpdate("2", ProductIn(price=Decimal("1.00")))))

    assert snapshot(catalog) == before


def test_failed_create_product_removes_the_provisional_row(catalog):
    before = snapshot(catalog)
    _, m = mutations(catalog, create_product=ApiError("Failed to create product", 500))

    with pytest.raises(ApiError):
        asyncio.run(m["create_product"](NewProduct(ProductIn(name="USB Hub", price=Decimal("15.00")), CREATED_AT)))

    assert snapshot(catalog) == before
    assert not any(p.id.startswith("temp_") for p in catalog.get_query_data(PRODUCTS))


def test_failed_create_product_without_loaded_catalog(cache):
    _, m = mutations(cache, create_product=ApiError("Failed to create product", 500))

    with pytest.raises(ApiError):
        asyncio.run(m["create_product"](NewProduct(ProductIn(name="USB Hub", price=Decimal("15.00")), CREATED_AT)))

    assert not cache.has_query(PRODUCTS)
    assert not cache.has_query(CATEGORIES)


def test_update_product_leaves_categories_alone(catalog, store):
    categories = catalog.get_query_data(CATEGORIES)
    server = store.product("2").model_copy(update={"name": "Mouse Pro"})
    _, m = mutations(catalog, update_product=envelope(CatalogData(updated_product=server, categories=[])))

    asyncio.run(m["update_product"](ProductUpdate("2", ProductIn(name="Mouse Pro"))))

    assert catalog.get_query_data(CATEGORIES) is categories
    assert next(p for p in catalog.get_query_data(PRODUCTS) if p.id == "2").name == "Mouse Pro"
