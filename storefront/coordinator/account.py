# storefront/coordinator/account.py
import asyncio

from storefront.cache.keys import CURRENT_USER, HAS_LOGGED_OUT, USERS
from storefront.cache.query_cache import QueryCache
from storefront.coordinator.guards import require_current_user
from storefront.coordinator.transaction import OptimisticMutation, merge_fields
from storefront.domain.errors import AuthenticationError
from storefront.domain.schemas import LoginIn, User, UserUpdateIn
from storefront.services.http_client import ApiClient
from storefront.services.open_service import OpenService
from storefront.services.user_service import UserService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PASSWORD_CHANGED_MESSAGE = "Since you have changed your password, you will be logged out"


def apply_update_user(current, payload: UserUpdateIn):
    user = current[CURRENT_USER]
    if user is None:
        raise AuthenticationError()

    #password fields are never applied speculatively
    changes = {}
    if payload.phone:
        changes["phone"] = payload.phone
    if payload.image:
        changes["image"] = payload.image
    return {CURRENT_USER: user.model_copy(update=changes)}


def commit_update_user(latest, result, _payload):
    data = result.data
    updates = {}
    if data is not None and data.users is not None:
        updates[USERS] = data.users

    if result.message == PASSWORD_CHANGED_MESSAGE:
        return {**updates, CURRENT_USER: None, HAS_LOGGED_OUT: True}

    user = latest[CURRENT_USER]
    if data is not None and data.updated_user is not None:
        user = merge_fields(user, data.updated_user)
    return {**updates, CURRENT_USER: user}


def update_user_mutation(cache: QueryCache, users: UserService) -> OptimisticMutation:
    return OptimisticMutation(
        cache,
        name="update_user",
        keys=[CURRENT_USER, USERS, HAS_LOGGED_OUT],
        precondition=require_current_user,
        apply=apply_update_user,
        mutation_fn=users.update_user,
        commit=commit_update_user,
        error_message="An unexpected error occurred while updating user",
    )


def _logged_out(cache: QueryCache, api: ApiClient) -> None:
    cache.set_query_data(CURRENT_USER, None)
    cache.set_query_data(HAS_LOGGED_OUT, True)
    api.clear_session()


async def login(cache: QueryCache, open_service: OpenService, credentials: LoginIn) -> User:
    envelope = await asyncio.to_thread(open_service.login, credentials)
    user = envelope.data.user
    cache.set_query_data(HAS_LOGGED_OUT, False)
    cache.set_query_data(CURRENT_USER, user)
    logger.info(f"Logged in as {user.email}")
    return user


async def logout(cache: QueryCache, users: UserService) -> str:
    envelope = await asyncio.to_thread(users.logout)
    _logged_out(cache, users.api)
    logger.info("Logged out")
    return envelope.message


async def delete_account(cache: QueryCache, users: UserService) -> str:
    envelope = await asyncio.to_thread(users.delete_account)
    _logged_out(cache, users.api)
    logger.info("Account deleted")
    return envelope.message
