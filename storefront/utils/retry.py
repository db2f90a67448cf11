# storefront/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
import requests
import redis

from storefront.utils.settings import HTTP_RETRY_ATTEMPTS


#transport errors only, 4xx/5xx responses are never retried
#a write that timed out may have reached the server, only a failed connect is retried
def http_retry(idempotent: bool = True):
    errors = (requests.ConnectionError, requests.Timeout) if idempotent else requests.ConnectionError
    return retry(
        reraise=True,
        stop=stop_after_attempt(HTTP_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(errors),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )
