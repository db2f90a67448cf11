# tests/conftest.py
import json
from typing import Any

import pytest
import requests

from storefront.cache.keys import CURRENT_USER, PRODUCTS
from storefront.cache.query_cache import QueryCache
from storefront.domain.schemas import (
    ApiEnvelope,
    CartMutationData,
    FavoriteData,
    PlaceOrderData,
)
from storefront.mock_api.store import MockStore


def envelope(data=None, message="", status=200) -> ApiEnvelope:
    return ApiEnvelope[Any](ok=True, status=status, message=message, data=data)


def snapshot(cache: QueryCache) -> dict:
    return {key: cache.get_query_data(key) for key in cache.keys()}


class FakeService:
    """
    Stands in for any service class.
    Each attribute is a method that records its call and answers from `responses`
    (a value, an exception to raise, or a callable taking the call arguments).
    """

    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)

        def method(*args):
            self.calls.append((name, args))
            response = self.responses[name]
            if isinstance(response, Exception):
                raise response
            if callable(response):
                return response(*args)
            return response

        return method


class StoreUsers:
    """UserService answering from an in-memory MockStore, as the dev backend does."""

    def __init__(self, store: MockStore, user_id: str = "u1"):
        self.store = store
        self.user_id = user_id
        self.calls = []

    @property
    def user(self):
        return self.store.user(self.user_id)

    def add_to_cart(self, product_id):
        self.calls.append(("add_to_cart", product_id))
        user, product = self.store.add_to_cart(self.user, product_id)
        return envelope(
            CartMutationData(current_user=user, product=product, products=self.store.product_list()),
            "Product added to cart",
        )

    def remove_from_cart(self, product_id):
        self.calls.append(("remove_from_cart", product_id))
        user = self.store.remove_from_cart(self.user, product_id)
        return envelope(
            CartMutationData(current_user=user, products=self.store.product_list()),
            "Product removed from cart",
        )

    def place_order(self):
        self.calls.append(("place_order",))
        order, user = self.store.place_order(self.user)
        return envelope(
            PlaceOrderData(order=order, current_user=user, products=self.store.product_list()),
            "Your order has been placed successfully.",
        )

    def add_favorite(self, product_id):
        self.calls.append(("add_favorite", product_id))
        user, product = self.store.toggle_favorite(self.user, product_id, add=True)
        return envelope(FavoriteData(current_user=user, product=product, products=self.store.product_list()))

    def remove_favorite(self, product_id):
        self.calls.append(("remove_favorite", product_id))
        user, product = self.store.toggle_favorite(self.user, product_id, add=False)
        return envelope(FavoriteData(current_user=user, product=product, products=self.store.product_list()))


class FakeSession:
    """requests.Session double: queued responses or exceptions, calls recorded."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.cookies = requests.cookies.RequestsCookieJar()

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class StubRedis:
    """The three redis commands the persister uses, in memory."""

    def __init__(self):
        self.data = {}
        self.expiry = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex

    def delete(self, key):
        self.data.pop(key, None)


def http_response(status: int, body=None, raw: bytes | None = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = raw if raw is not None else json.dumps(body).encode()
    resp.headers["Content-Type"] = "application/json"
    return resp


@pytest.fixture
def store():
    return MockStore()


@pytest.fixture
def cache():
    return QueryCache(stale_time=60)


@pytest.fixture
def logged_in(store, cache):
    """Cache of a customer session with the catalog loaded, mirroring the store."""
    cache.set_query_data(CURRENT_USER, store.user("u1"))
    cache.set_query_data(PRODUCTS, store.product_list())
    return cache


@pytest.fixture
def users(store):
    return StoreUsers(store)
