# storefront/services/user_service.py
from storefront.domain.schemas import (
    ApiEnvelope,
    CartMutationData,
    FavoriteData,
    OrderData,
    OrdersData,
    PlaceOrderData,
    UpdateUserData,
    UserUpdateIn,
)
from storefront.services.http_client import ApiClient


class UserService:
    """Endpoints of the logged-in customer: cart, favorites, orders, profile."""

    def __init__(self, api: ApiClient):
        self.api = api

    # cart
    def add_to_cart(self, product_id: str) -> ApiEnvelope[CartMutationData]:
        return self.api.request(
            "POST", f"/products/{product_id}", CartMutationData,
            "An error occurred while adding to cart",
        )

    def remove_from_cart(self, product_id: str) -> ApiEnvelope[CartMutationData]:
        return self.api.request(
            "DELETE", f"/products/{product_id}", CartMutationData,
            "An error occurred while removing from cart",
        )

    def place_order(self) -> ApiEnvelope[PlaceOrderData]:
        return self.api.request(
            "POST", "/products/order", PlaceOrderData,
            "An error occurred while placing the order",
        )

    # favorites
    def add_favorite(self, product_id: str) -> ApiEnvelope[FavoriteData]:
        return self.api.request(
            "POST", f"/users/add-favorite/{product_id}", FavoriteData,
            "An error occurred while adding to favorites",
        )

    def remove_favorite(self, product_id: str) -> ApiEnvelope[FavoriteData]:
        return self.api.request(
            "DELETE", f"/users/delete-favorite/{product_id}", FavoriteData,
            "An error occurred while removing from favorites",
        )

    # orders
    def get_user_orders(self) -> ApiEnvelope[OrdersData]:
        return self.api.request(
            "GET", "/users/orders", OrdersData,
            "An error occurred while fetching your orders",
        )

    def get_order(self, order_id: str) -> ApiEnvelope[OrderData]:
        return self.api.request(
            "GET", f"/users/orders/{order_id}", OrderData,
            f"An error occurred while fetching order {order_id}",
        )

    # account
    def update_user(self, payload: UserUpdateIn) -> ApiEnvelope[UpdateUserData]:
        return self.api.request(
            "PUT", "/users/update-user", UpdateUserData,
            "An error occurred while updating profile",
            json=payload.model_dump(by_alias=True, exclude_none=True),
        )

    def delete_account(self) -> ApiEnvelope:
        return self.api.request(
            "DELETE", "/users/delete-account", None,
            "An error occurred while deleting account",
        )

    def logout(self) -> ApiEnvelope:
        return self.api.request(
            "POST", "/users/logout", None,
            "An error occurred during logout",
        )

    def refresh_token(self) -> ApiEnvelope:
        return self.api.request(
            "POST", "/users/refresh-token", None,
            "Failed to refresh token",
        )
