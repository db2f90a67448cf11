# storefront/coordinator/guards.py
from typing import Iterable, Optional, TypeVar

from storefront.cache.keys import CURRENT_USER
from storefront.cache.query_cache import QueryCache
from storefront.domain.errors import AuthenticationError, NotFoundError
from storefront.domain.schemas import User

T = TypeVar("T")


def require_current_user(cache: QueryCache, _variables=None) -> User:
    user = cache.get_query_data(CURRENT_USER)
    if user is None:
        raise AuthenticationError()
    return user


def find_by_id(entities: Optional[Iterable[T]], entity_id: str, label: str) -> T:
    for entity in entities or []:
        if entity.id == entity_id:
            return entity
    raise NotFoundError(f"{label} not found")


def replace_by_id(entities: Iterable[T], entity_id: str, new: T) -> list:
    return [new if e.id == entity_id else e for e in entities]


def without_id(entities: Iterable[T], entity_id: str) -> list:
    return [e for e in entities if e.id != entity_id]
