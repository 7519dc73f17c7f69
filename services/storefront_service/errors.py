"""Typed failures raised by storefront business operations."""

from libs.common.errors import AppError


class StoreError(AppError):
    code = "STORE_ERROR"


# ---------------------------------------------------------------------------
# Identity and access
# ---------------------------------------------------------------------------


class AuthenticationRequired(StoreError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"
    default_message = "Authentication required"


class Unauthorized(StoreError):
    status_code = 403
    code = "UNAUTHORIZED"
    default_message = "You are not allowed to access this resource"


class IncorrectPassword(StoreError):
    # Deliberately vague: never says which part of the check failed
    status_code = 401
    code = "INCORRECT_PASSWORD"
    default_message = "Incorrect credentials"


class UserNotFound(StoreError):
    status_code = 404
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class EmailAlreadyRegistered(StoreError):
    status_code = 409
    code = "EMAIL_ALREADY_REGISTERED"
    default_message = "An account with this email already exists"


# ---------------------------------------------------------------------------
# Catalog and inventory
# ---------------------------------------------------------------------------


class ProductNotFound(StoreError):
    status_code = 404
    code = "PRODUCT_NOT_FOUND"
    default_message = "Product not found"


class DuplicateProduct(StoreError):
    status_code = 409
    code = "DUPLICATE_PRODUCT"
    default_message = "A product with this slug already exists"


class ProductInUse(StoreError):
    status_code = 409
    code = "PRODUCT_IN_USE"
    default_message = "Product is referenced by existing orders and cannot be deleted"


class InvalidProductData(StoreError):
    status_code = 400
    code = "INVALID_PRODUCT_DATA"
    default_message = "Invalid product data"


class OutOfStock(StoreError):
    status_code = 409
    code = "OUT_OF_STOCK"
    default_message = "Not enough stock"


class InsufficientStock(StoreError):
    status_code = 409
    code = "INSUFFICIENT_STOCK"
    default_message = "Stock cannot go below zero"


class ReviewNotAllowed(StoreError):
    status_code = 403
    code = "REVIEW_NOT_ALLOWED"
    default_message = "You can only review products that have been delivered to you"


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderNotFound(StoreError):
    status_code = 404
    code = "ORDER_NOT_FOUND"
    default_message = "Order not found"


class EmptyOrder(StoreError):
    status_code = 400
    code = "EMPTY_ORDER"
    default_message = "An order needs at least one item"


class InvalidTransition(StoreError):
    status_code = 409
    code = "INVALID_TRANSITION"
    default_message = "Order status cannot be changed"


class AlreadyCancelled(InvalidTransition):
    code = "ALREADY_CANCELLED"
    default_message = "Order is already cancelled"


class AlreadyRejected(InvalidTransition):
    code = "ALREADY_REJECTED"
    default_message = "Order is already rejected"


class CannotCancelDelivered(InvalidTransition):
    code = "CANNOT_CANCEL_DELIVERED"
    default_message = "Cannot cancel a delivered order"


class CannotRejectDelivered(InvalidTransition):
    code = "CANNOT_REJECT_DELIVERED"
    default_message = "Cannot reject a delivered order"


class WindowExpired(StoreError):
    status_code = 409
    code = "CANCELLATION_WINDOW_EXPIRED"
    default_message = "Cancellation window has expired"
