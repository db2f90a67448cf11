# storefront/mock_api/main.py
from typing import Any

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.coordinator.account import PASSWORD_CHANGED_MESSAGE
from storefront.domain.errors import ApiError
from storefront.domain.schemas import LoginIn, ProductIn, User, UserUpdateIn
from storefront.mock_api.store import MockStore
from storefront.services.http_client import SESSION_COOKIE
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _dump(value: Any) -> Any:
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    return value


def ok(message: str, status: int = 200, **data) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "ok": True,
            "status": status,
            "message": message,
            "data": {k: _dump(v) for k, v in data.items()},
        },
    )


def get_store(request: Request) -> MockStore:
    return request.app.state.store


def session_token(request: Request) -> str | None:
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    return auth[len("Bearer "):] if auth.startswith("Bearer ") else None


def current_user(request: Request, store: MockStore = Depends(get_store)) -> User:
    return store.user_for_token(session_token(request))


def admin_user(user: User = Depends(current_user)) -> User:
    if user.role != "admin":
        raise ApiError("Admin access required", 403)
    return user


# /open
open_router = APIRouter(prefix="/api/v1/open", tags=["open"])


@open_router.get("/products")
def get_products(store: MockStore = Depends(get_store)):
    return ok("Returned all products", products=store.product_list())


@open_router.get("/products/{product_id}")
def get_product(product_id: str, store: MockStore = Depends(get_store)):
    return ok(f"Returned product with id {product_id}", product=store.product(product_id))


@open_router.get("/categories")
def get_categories(store: MockStore = Depends(get_store)):
    return ok("Returned all categories", categories=list(store.categories.values()))


@open_router.post("/login")
def login(payload: LoginIn, store: MockStore = Depends(get_store)):
    token, user = store.login(payload.email, payload.password)
    response = ok("You have logged in", user=user)
    response.set_cookie(SESSION_COOKIE, token, httponly=True)
    return response


# /users
users_router = APIRouter(prefix="/api/v1/users", tags=["users"])


@users_router.post("/logout")
def logout(request: Request, store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    store.logout(session_token(request))
    response = ok("You have logged out")
    response.delete_cookie(SESSION_COOKIE)
    return response


@users_router.get("/orders")
def my_orders(store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    orders = store.orders_of(user)
    if not orders:
        return ok("You have placed no orders")
    return ok("Your orders", orders=orders)


@users_router.post("/add-favorite/{product_id}")
def add_favorite(product_id: str, store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    updated, product = store.toggle_favorite(user, product_id, add=True)
    return ok(
        "Product has been added to your favorites",
        product=product, products=store.product_list(), currentUser=updated,
    )


@users_router.delete("/delete-favorite/{product_id}")
def remove_favorite(product_id: str, store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    updated, product = store.toggle_favorite(user, product_id, add=False)
    return ok(
        "Product has been removed from your favorites",
        product=product, products=store.product_list(), currentUser=updated,
    )


@users_router.put("/update-user")
def update_user(payload: UserUpdateIn, store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    if payload.new_password:
        store.set_password(user, payload.new_password)
        return ok(PASSWORD_CHANGED_MESSAGE, users=store.user_list())

    changes = payload.model_dump(include={"phone", "image"}, exclude_none=True)
    updated = store.update_user(user, changes)
    return ok("Profile updated successfully", updatedUser=updated, users=store.user_list())


@users_router.delete("/delete-account")
def delete_account(store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    deleted = store.delete_user(user.id)
    response = ok(f"Deleted account {deleted.email}", deletedAccount=deleted, users=store.user_list())
    response.delete_cookie(SESSION_COOKIE)
    return response


# /products (cart)
cart_router = APIRouter(prefix="/api/v1/products", tags=["cart"])


@cart_router.post("/order")
def place_order(store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    order, updated = store.place_order(user)
    return ok(
        "Your order has been placed successfully.",
        order=order, currentUser=updated, products=store.product_list(),
    )


@cart_router.post("/{product_id}")
def add_to_cart(product_id: str, store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    updated, product = store.add_to_cart(user, product_id)
    return ok("Product added to cart", product=product, currentUser=updated, products=store.product_list())


@cart_router.delete("/{product_id}")
def remove_from_cart(product_id: str, store: MockStore = Depends(get_store), user: User = Depends(current_user)):
    updated = store.remove_from_cart(user, product_id)
    return ok("Product removed from cart", currentUser=updated, products=store.product_list())


# /admin
admin_router = APIRouter(prefix="/api/v1/admin", tags=["admin"], dependencies=[Depends(admin_user)])


@admin_router.get("/users")
def get_users(store: MockStore = Depends(get_store)):
    return ok("Returned all users", users=store.user_list())


@admin_router.put("/users/ban-user/{user_id}")
def ban_user(user_id: str, store: MockStore = Depends(get_store)):
    user = store.update_user(store.user(user_id), {"is_banned": True, "is_active": False})
    return ok(f"User with id {user_id} has been banned", bannedUser=user, users=store.user_list())


@admin_router.put("/users/unbann-user/{user_id}")
def unban_user(user_id: str, store: MockStore = Depends(get_store)):
    user = store.update_user(store.user(user_id), {"is_banned": False, "is_active": True})
    return ok(f"User with id {user_id} has been unbanned", unbannedUser=user, users=store.user_list())


@admin_router.put("/users/change-user-status/{user_id}")
def change_user_status(user_id: str, store: MockStore = Depends(get_store)):
    user = store.user(user_id)
    role = "admin" if user.role == "user" else "user"
    user = store.update_user(user, {"role": role})
    return ok(f"User with id {user_id} is now {role}", updatedUser=user, users=store.user_list())


@admin_router.delete("/users/{user_id}")
def delete_user(user_id: str, store: MockStore = Depends(get_store)):
    deleted = store.delete_user(user_id)
    return ok(f"Account with id {user_id} has been deleted", deletedAccount=deleted, users=store.user_list())


@admin_router.get("/orders")
def get_orders(store: MockStore = Depends(get_store)):
    return ok("Returned all orders", orders=list(store.orders.values()))


@admin_router.post("/products")
def create_product(payload: ProductIn, store: MockStore = Depends(get_store)):
    product = store.create_product(payload)
    return ok(
        "Product created", status=201,
        newProduct=product, products=store.product_list(), categories=list(store.categories.values()),
    )


@admin_router.put("/products/{product_id}")
def update_product(product_id: str, payload: ProductIn, store: MockStore = Depends(get_store)):
    product = store.update_product(product_id, payload)
    return ok(f"Product with id {product_id} updated", updatedProduct=product, products=store.product_list())


@admin_router.delete("/products/{product_id}")
def delete_product(product_id: str, store: MockStore = Depends(get_store)):
    product = store.delete_product(product_id)
    return ok(
        f"Product with id {product_id} deleted",
        deletedProduct=product, products=store.product_list(), categories=list(store.categories.values()),
    )


@admin_router.delete("/categories/{category_id}")
def delete_category(category_id: str, store: MockStore = Depends(get_store)):
    store.delete_category(category_id)
    return ok(
        f"Category with id {category_id} deleted",
        categories=list(store.categories.values()), products=store.product_list(),
    )


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"ok": False, "status": status, "message": message})


def create_app(store: MockStore | None = None) -> FastAPI:
    app = FastAPI(
        title="Storefront API (dev mock)",
        version="1.0.0",
    )
    app.state.store = store or MockStore()

    @app.exception_handler(ApiError)
    async def api_error(request: Request, exc: ApiError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status}: {exc.message}")
        return _error(exc.status, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body")

    app.include_router(open_router)
    app.include_router(users_router)
    app.include_router(cart_router)
    app.include_router(admin_router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=3001)
