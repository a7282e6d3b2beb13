"""Custom exceptions for storefront."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class ValidationError(StorefrontError):
    """Raised when a checkout form is missing required fields."""

    def __init__(self, fields: list[str], step: str = "shipping"):
        self.fields = list(fields)
        self.step = step
        super().__init__(
            f"Missing required {step} field(s): {', '.join(self.fields)}"
        )


class EmptyCartError(StorefrontError):
    """Raised when checkout is attempted with nothing in the cart."""

    def __init__(self):
        super().__init__("Cart is empty. Add a product before checking out.")


class InvalidStepError(StorefrontError):
    """Raised when a checkout action is not allowed in the current step."""

    def __init__(self, current: str, action: str):
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} while checkout is at step '{current}'")


class CheckoutBusyError(StorefrontError):
    """Raised when a payment is submitted while another is still processing."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} is already being processed")


class PersistenceError(StorefrontError):
    """Raised when an order cannot be durably written."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Order storage failed: {reason}")


class CorruptDataError(StorefrontError):
    """Raised when persisted order data cannot be parsed."""

    def __init__(self, path: str, reason: str | None = None):
        self.path = path
        msg = f"Corrupt order data at {path}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class AuthorizationError(StorefrontError):
    """Raised when the merchant surface is used without unlocking it."""

    def __init__(self, message: str | None = None):
        super().__init__(message or "Merchant dashboard is locked. Enter the PIN first.")


class OrderNotFoundError(StorefrontError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class ProductNotFoundError(StorefrontError):
    """Raised when a product ID is not in the catalog."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class ProductUnavailableError(StorefrontError):
    """Raised when an out-of-stock product is added to the cart."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product is out of stock: {product_id}")


class SessionNotFoundError(StorefrontError):
    """Raised when a session ID doesn't exist."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")
