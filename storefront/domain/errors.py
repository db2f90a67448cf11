# storefront/domain/errors.py


class ApiError(Exception):
    """Uniform error shape for everything that crosses the HTTP boundary."""

    default_status = 500

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status if status is not None else self.default_status

    def to_dict(self) -> dict:
        return {"message": self.message, "status": self.status}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status={self.status})"


class PreconditionError(ApiError):
    """Raised before any network call; never retried."""


class AuthenticationError(PreconditionError):
    default_status = 401

    def __init__(self, message: str = "Please log in", status: int | None = None):
        super().__init__(message, status)


class NotFoundError(PreconditionError):
    default_status = 404


class BadRequestError(PreconditionError):
    default_status = 400


class ResponseValidationError(ApiError):
    """The server answered with a payload that does not match its schema."""

    default_status = 502
