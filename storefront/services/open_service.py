# storefront/services/open_service.py
from storefront.domain.schemas import (
    ApiEnvelope,
    CategoriesData,
    LoginData,
    LoginIn,
    ProductData,
    ProductsData,
    ResetPasswordIn,
)
from storefront.services.http_client import ApiClient


class OpenService:
    """Public endpoints, no session required."""

    def __init__(self, api: ApiClient):
        self.api = api

    def get_products(self) -> ApiEnvelope[ProductsData]:
        return self.api.request(
            "GET", "/open/products", ProductsData,
            "An error occurred while fetching products",
        )

    def get_product(self, product_id: str) -> ApiEnvelope[ProductData]:
        return self.api.request(
            "GET", f"/open/products/{product_id}", ProductData,
            f"An error occurred while fetching product {product_id}",
        )

    def get_categories(self) -> ApiEnvelope[CategoriesData]:
        return self.api.request(
            "GET", "/open/categories", CategoriesData,
            "An error occurred while fetching categories",
        )

    def login(self, credentials: LoginIn) -> ApiEnvelope[LoginData]:
        return self.api.request(
            "POST", "/open/login", LoginData,
            "An error occurred during login",
            json=credentials.model_dump(by_alias=True),
        )

    def register(self, payload: dict) -> ApiEnvelope:
        return self.api.request(
            "POST", "/open/register", None,
            "An error occurred during registration",
            json=payload,
        )

    def activate_account(self, token: str) -> ApiEnvelope:
        return self.api.request(
            "POST", "/open/verify-email", None,
            "An error occurred during account activation",
            json={"token": token},
        )

    def forgot_password(self, email: str) -> ApiEnvelope:
        return self.api.request(
            "POST", "/open/forget-password", None,
            "An error occurred during password reset request",
            json={"email": email},
        )

    def reset_password(self, payload: ResetPasswordIn) -> ApiEnvelope:
        return self.api.request(
            "POST", "/open/reset-password", None,
            "An error occurred during password reset",
            json=payload.model_dump(by_alias=True),
        )
