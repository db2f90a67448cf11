# tests/test_client.py
import asyncio

import pytest

from conftest import FakeSession, StubRedis, http_response
from storefront.cache.keys import PRODUCTS
from storefront.cache.persister import RedisPersister
from storefront.client import StorefrontClient
from storefront.domain.errors import AuthenticationError
from storefront.services.http_client import ApiClient

PRODUCTS_BODY = {
    "ok": True,
    "status": 200,
    "data": {"products": [{"_id": "1", "name": "Keyboard", "price": "19.99", "itemsInStock": 10}]},
}


def make_client(*responses, persister=None):
    session = FakeSession(*responses)
    return StorefrontClient(api=ApiClient(base_url="http://api.test/api/v1", session=session), persister=persister), session


def test_products_are_fetched_once_while_fresh():
    client, session = make_client(http_response(200, PRODUCTS_BODY))

    async def scenario():
        first = await client.products()
        second = await client.products()
        return first, second

    first, second = asyncio.run(scenario())

    assert first == second
    assert first[0].name == "Keyboard"
    assert len(session.calls) == 1


def test_mutations_need_a_session_user():
    client, session = make_client(http_response(200, PRODUCTS_BODY))

    async def scenario():
        await client.products()
        await client.add_to_cart("1")

    with pytest.raises(AuthenticationError):
        asyncio.run(scenario())

    assert client.current_user is None
    assert len(session.calls) == 1


def test_cache_survives_a_restart():
    redis_client = StubRedis()
    persister = RedisPersister(key="test:cache", client=redis_client)
    client, _ = make_client(http_response(200, PRODUCTS_BODY), persister=persister)

    async def first_run():
        await client.products()
        await client.persist()

    asyncio.run(first_run())

    restarted, session = make_client(http_response(500, {}), persister=persister)
    assert asyncio.run(restarted.restore())
    assert restarted.cache.get_query_data(PRODUCTS)[0].id == "1"
    assert session.calls == []


def test_restore_without_persister():
    client, _ = make_client(http_response(200, PRODUCTS_BODY))

    assert asyncio.run(client.restore()) is False
