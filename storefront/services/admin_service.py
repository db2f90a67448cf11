# storefront/services/admin_service.py
from storefront.domain.schemas import (
    AdminUserData,
    ApiEnvelope,
    CatalogData,
    OrdersData,
    ProductIn,
    UsersData,
)
from storefront.services.http_client import ApiClient


class AdminService:
    def __init__(self, api: ApiClient):
        self.api = api

    # users
    def get_users(self) -> ApiEnvelope[UsersData]:
        return self.api.request(
            "GET", "/admin/users", UsersData,
            "An error occurred while fetching users",
        )

    def delete_user(self, user_id: str) -> ApiEnvelope[AdminUserData]:
        return self.api.request(
            "DELETE", f"/admin/users/{user_id}", AdminUserData,
            "An error occurred while deleting the user",
        )

    def ban_user(self, user_id: str) -> ApiEnvelope[AdminUserData]:
        return self.api.request(
            "PUT", f"/admin/users/ban-user/{user_id}", AdminUserData,
            "An error occurred while banning the user",
        )

    def unban_user(self, user_id: str) -> ApiEnvelope[AdminUserData]:
        # the path is spelled this way on the server
        return self.api.request(
            "PUT", f"/admin/users/unbann-user/{user_id}", AdminUserData,
            "An error occurred while unbanning the user",
        )

    def change_user_status(self, user_id: str) -> ApiEnvelope[AdminUserData]:
        return self.api.request(
            "PUT", f"/admin/users/change-user-status/{user_id}", AdminUserData,
            "An error occurred while changing user status",
        )

    # orders
    def get_orders(self) -> ApiEnvelope[OrdersData]:
        return self.api.request(
            "GET", "/admin/orders", OrdersData,
            "An error occurred while fetching orders",
        )

    # catalog
    def create_product(self, payload: ProductIn) -> ApiEnvelope[CatalogData]:
        return self.api.request(
            "POST", "/admin/products", CatalogData,
            "Failed to create product",
            json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    def update_product(self, product_id: str, payload: ProductIn) -> ApiEnvelope[CatalogData]:
        return self.api.request(
            "PUT", f"/admin/products/{product_id}", CatalogData,
            "Failed to update product",
            json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

    def delete_product(self, product_id: str) -> ApiEnvelope[CatalogData]:
        return self.api.request(
            "DELETE", f"/admin/products/{product_id}", CatalogData,
            "An error occurred while deleting the product",
        )

    def delete_category(self, category_id: str) -> ApiEnvelope[CatalogData]:
        return self.api.request(
            "DELETE", f"/admin/categories/{category_id}", CatalogData,
            "An error occurred while deleting the category",
        )
