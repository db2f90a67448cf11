# tests/test_account.py
import asyncio

import pytest

from conftest import FakeService, envelope, snapshot
from storefront.cache.keys import CURRENT_USER, HAS_LOGGED_OUT, USERS
from storefront.coordinator import account
from storefront.domain.errors import ApiError, AuthenticationError
from storefront.domain.schemas import LoginData, LoginIn, UpdateUserData, User, UserUpdateIn, UsersData
from storefront.queries import load_users


class FakeApi:
    def __init__(self):
        self.cleared = False

    def clear_session(self):
        self.cleared = True


def test_login_sets_session_user(cache, store):
    open_service = FakeService(login=envelope(LoginData(user=store.user("u1")), "You have logged in"))
    cache.set_query_data(HAS_LOGGED_OUT, True)

    user = asyncio.run(account.login(cache, open_service, LoginIn(email="jane@example.com", password="password")))

    assert user.id == "u1"
    assert cache.get_query_data(CURRENT_USER) == user
    assert cache.get_query_data(HAS_LOGGED_OUT) is False


def test_failed_login_leaves_cache_alone(cache):
    open_service = FakeService(login=ApiError("Invalid email or password", 401))

    with pytest.raises(ApiError):
        asyncio.run(account.login(cache, open_service, LoginIn(email="x@example.com", password="bad")))

    assert cache.keys() == []


def test_logout_clears_user_and_session(logged_in):
    users = FakeService(logout=envelope(message="You have logged out"))
    users.api = FakeApi()

    message = asyncio.run(account.logout(logged_in, users))

    assert message == "You have logged out"
    assert logged_in.get_query_data(CURRENT_USER) is None
    assert logged_in.get_query_data(HAS_LOGGED_OUT) is True
    assert users.api.cleared


def test_profile_update_merges_server_user(logged_in, store):
    server_user = store.user("u1").model_copy(update={"phone": "555-0100"})
    users = FakeService(update_user=envelope(UpdateUserData(updated_user=server_user, users=[server_user])))

    asyncio.run(account.update_user_mutation(logged_in, users)(UserUpdateIn(phone="555-0100")))

    assert logged_in.get_query_data(CURRENT_USER).phone == "555-0100"
    assert logged_in.get_query_data(USERS) == [server_user]


def test_password_change_logs_out(logged_in):
    users = FakeService(update_user=envelope(message=account.PASSWORD_CHANGED_MESSAGE))

    asyncio.run(
        account.update_user_mutation(logged_in, users)(UserUpdateIn(password="old", new_password="new"))
    )

    assert logged_in.get_query_data(CURRENT_USER) is None
    assert logged_in.get_query_data(HAS_LOGGED_OUT) is True


def test_failed_profile_update_rolls_back(logged_in):
    before = snapshot(logged_in)
    users = FakeService(update_user=ApiError("Phone already in use", 400))

    with pytest.raises(ApiError):
        asyncio.run(account.update_user_mutation(logged_in, users)(UserUpdateIn(phone="555-0100")))

    assert snapshot(logged_in) == before
    assert not logged_in.has_query(USERS)


def test_profile_update_requires_login(cache):
    users = FakeService(update_user=envelope())

    with pytest.raises(AuthenticationError):
        asyncio.run(account.update_user_mutation(cache, users)(UserUpdateIn(phone="555-0100")))

    assert users.calls == []


def test_profile_update_leaves_unloaded_users_to_the_next_fetch(logged_in, store):
    server_user = User.model_validate({"_id": "u1", "phone": "555-0100"})
    users = FakeService(update_user=envelope(UpdateUserData(updated_user=server_user)))

    asyncio.run(account.update_user_mutation(logged_in, users)(UserUpdateIn(phone="555-0100")))

    assert not logged_in.has_query(USERS)
    assert logged_in.get_query_data(CURRENT_USER).email == "jane@example.com"

    admin = FakeService(get_users=envelope(UsersData(users=store.user_list())))
    loaded = asyncio.run(load_users(logged_in, admin))

    assert [u.id for u in loaded] == ["u1", "u2"]
    assert len(admin.calls) == 1


def test_password_change_without_data_keeps_users_unloaded(logged_in):
    users = FakeService(update_user=envelope(None, account.PASSWORD_CHANGED_MESSAGE))

    asyncio.run(
        account.update_user_mutation(logged_in, users)(UserUpdateIn(password="old", new_password="new"))
    )

    assert logged_in.get_query_data(CURRENT_USER) is None
    assert not logged_in.has_query(USERS)
