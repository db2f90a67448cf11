# storefront/services/http_client.py
from typing import Any, Type

import requests
from pydantic import ValidationError

from storefront.domain.errors import ApiError, ResponseValidationError
from storefront.domain.schemas import ApiEnvelope, ErrorBody
from storefront.utils.logging import get_logger
from storefront.utils.retry import http_retry
from storefront.utils.settings import HTTP_TIMEOUT_SECONDS, STOREFRONT_API_URL

logger = get_logger(__name__)

SESSION_COOKIE = "refreshToken"
READ_METHODS = {"GET", "HEAD", "OPTIONS"}


class ApiClient:
    """
    Shared HTTP client for the storefront API.
    Owns the cookie session, the timeout and the transport retry policy;
    every response is decoded into an ApiEnvelope and every failure into ApiError.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or STOREFRONT_API_URL).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _auth_headers(self) -> dict:
        token = self.session.cookies.get(SESSION_COOKIE)
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        if method.upper() in READ_METHODS:
            return self._send_read(method, url, **kwargs)
        return self._send_write(method, url, **kwargs)

    @http_retry()
    def _send_read(self, method: str, url: str, **kwargs) -> requests.Response:
        return self._dispatch(method, url, **kwargs)

    @http_retry(idempotent=False)
    def _send_write(self, method: str, url: str, **kwargs) -> requests.Response:
        return self._dispatch(method, url, **kwargs)

    def _dispatch(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.info(f"ApiClient {method} {url}")
        return self.session.request(
            method,
            url,
            headers=self._auth_headers(),
            timeout=self.timeout,
            **kwargs,
        )

    @staticmethod
    def _body(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    def request(
        self,
        method: str,
        path: str,
        schema: Type[Any] | None = None,
        fallback: str = "An unexpected error occurred",
        **kwargs,
    ) -> ApiEnvelope:
        url = f"{self.base_url}/{path.lstrip('/')}"

        try:
            resp = self._send(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"ApiClient {method} {url} failed: {e}")
            raise ApiError(fallback, 503) from e

        body = self._body(resp)

        if not resp.ok:
            try:
                err = ErrorBody.model_validate(body) if isinstance(body, dict) else ErrorBody()
            except ValidationError:
                err = ErrorBody()
            logger.warning(f"ApiClient {method} {url} -> {resp.status_code}: {err.message}")
            raise ApiError(err.message or fallback, err.status or resp.status_code)

        envelope_type = ApiEnvelope[schema] if schema is not None else ApiEnvelope[Any]
        try:
            envelope = envelope_type.model_validate(body)
        except ValidationError as e:
            logger.error(f"ApiClient {method} {url} returned a malformed payload: {e}")
            raise ResponseValidationError(f"{fallback} (malformed response)") from e

        if not envelope.ok:
            raise ApiError(envelope.message or fallback, envelope.status)
        return envelope

    def clear_session(self) -> None:
        self.session.cookies.clear()
