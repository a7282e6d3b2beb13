"""FastAPI REST API for the storefront."""

from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__, catalog
from .checkout import BANK_TRANSFER_INSTRUCTIONS, CardDetails
from .errors import (
    AuthorizationError,
    CheckoutBusyError,
    CorruptDataError,
    EmptyCartError,
    InvalidStepError,
    OrderNotFoundError,
    PersistenceError,
    ProductNotFoundError,
    ProductUnavailableError,
    SessionNotFoundError,
    StorefrontError,
    ValidationError,
)
from .models import Order, PaymentMethod, Product, ShippingDetails
from .order_store import OrderStore
from .session import SessionRegistry, StorefrontSession


# --- Pydantic Schemas ---


class ProductSchema(BaseModel):
    id: str
    name: str
    price: float
    currency: str
    category: str
    description: str
    detailedHistory: str
    imageUrl: str
    inStock: bool


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    count: int


class CartLineSchema(BaseModel):
    productId: str
    name: str
    unitPrice: float
    currency: str
    quantity: int
    lineTotal: float


class CartResponse(BaseModel):
    items: list[CartLineSchema]
    count: int
    subtotal: float


class AddToCartRequest(BaseModel):
    product_id: str = Field(..., description="Catalog product ID")


class UpdateQuantityRequest(BaseModel):
    delta: int = Field(..., description="Amount to add (negative to decrement); result is clamped at 1")


class SessionResponse(BaseModel):
    id: str


class QuoteSchema(BaseModel):
    subtotal: float
    shippingCost: float
    duties: float
    total: float


class ShippingDetailsSchema(BaseModel):
    firstName: str = ""
    lastName: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    postalCode: str = ""
    country: str = ""


class PaymentRequest(BaseModel):
    method: PaymentMethod = PaymentMethod.CARD
    cardholder: Optional[str] = None
    card_number: Optional[str] = None
    expiry: Optional[str] = None
    cvc: Optional[str] = None


class OrderItemSchema(BaseModel):
    productId: str
    name: str
    unitPrice: float
    currency: str
    quantity: int


class OrderSchema(BaseModel):
    id: str
    date: str
    items: list[OrderItemSchema]
    subtotal: float
    shippingCost: float
    duties: float
    total: float
    shippingDetails: ShippingDetailsSchema
    paymentMethod: PaymentMethod
    status: str


class CheckoutResponse(BaseModel):
    open: bool
    step: str
    order_id: Optional[str]
    shipping: Optional[ShippingDetailsSchema]
    payment_method: PaymentMethod
    processing: bool
    error: Optional[str]
    quote: QuoteSchema
    order: Optional[OrderSchema]
    bank_instructions: Optional[str]


class UnlockRequest(BaseModel):
    pin: str


class UnlockResponse(BaseModel):
    unlocked: bool
    error: bool


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    count: int


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Helper Functions ---

_registry: SessionRegistry | None = None


def get_order_store() -> OrderStore:
    """Get an OrderStore over the configured data directory."""
    return OrderStore()


def get_registry() -> SessionRegistry:
    """Get the process-wide session registry, creating it on first use."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry(get_order_store())
    return _registry


def reset_registry() -> None:
    """Drop every live session (used when the data directory changes)."""
    global _registry
    _registry = None


def get_session(session_id: str) -> StorefrontSession:
    return get_registry().get(session_id)


def product_to_schema(product: Product) -> ProductSchema:
    return ProductSchema(**product.to_dict())


def order_to_schema(order: Order) -> OrderSchema:
    return OrderSchema(**order.to_dict())


def cart_response(session: StorefrontSession) -> CartResponse:
    return CartResponse(**session.cart.to_dict())


def checkout_response(session: StorefrontSession) -> CheckoutResponse:
    return CheckoutResponse(**session.checkout.to_dict())


app = FastAPI(
    title="storefront API",
    description="Cart, checkout and merchant order dashboard",
    version=__version__,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 422,
    EmptyCartError: 409,
    InvalidStepError: 409,
    CheckoutBusyError: 409,
    ProductUnavailableError: 409,
    AuthorizationError: 403,
    OrderNotFoundError: 404,
    ProductNotFoundError: 404,
    SessionNotFoundError: 404,
    PersistenceError: 503,
    CorruptDataError: 500,
}


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map StorefrontError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    content = {"detail": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, ValidationError):
        content["fields"] = exc.fields
    return JSONResponse(status_code=status_code, content=content)


# --- Endpoints ---


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
        "sessions": len(get_registry()),
    }


# --- Catalog Endpoints ---


@app.get("/api/products", response_model=ProductListResponse)
def list_products(
    category: Optional[str] = Query(default=None, description="Category name or 'All'"),
    q: Optional[str] = Query(default=None, description="Search text"),
):
    """List catalog products, optionally filtered."""
    try:
        products = catalog.list_products(category=category, query=q)
    except ValueError:
        raise ValidationError(["category"], step="catalog")
    return ProductListResponse(
        products=[product_to_schema(p) for p in products],
        count=len(products),
    )


@app.get("/api/products/{product_id}", response_model=ProductSchema)
def get_product(product_id: str):
    return product_to_schema(catalog.get_product(product_id))


# --- Session & Cart Endpoints ---


@app.post("/api/sessions", response_model=SessionResponse, status_code=201)
def create_session():
    """Start a new shopping session."""
    session = get_registry().create()
    return SessionResponse(id=session.id)


@app.delete("/api/sessions/{session_id}", status_code=204)
def end_session(session_id: str):
    get_registry().get(session_id).checkout.close()
    get_registry().drop(session_id)


@app.get("/api/sessions/{session_id}/cart", response_model=CartResponse)
def get_cart(session_id: str):
    return cart_response(get_session(session_id))


@app.post("/api/sessions/{session_id}/cart/items", response_model=CartResponse, status_code=201)
def add_to_cart(session_id: str, request: AddToCartRequest):
    """Add one unit of a product to the cart."""
    session = get_session(session_id)
    session.cart.add_item(catalog.get_product(request.product_id))
    return cart_response(session)


@app.patch("/api/sessions/{session_id}/cart/items/{product_id}", response_model=CartResponse)
def update_cart_item(session_id: str, product_id: str, request: UpdateQuantityRequest):
    """Change a line's quantity. Unknown products leave the cart unchanged."""
    session = get_session(session_id)
    session.cart.update_quantity(product_id, request.delta)
    return cart_response(session)


@app.delete("/api/sessions/{session_id}/cart/items/{product_id}", response_model=CartResponse)
def remove_cart_item(session_id: str, product_id: str):
    session = get_session(session_id)
    session.cart.remove_item(product_id)
    return cart_response(session)


@app.delete("/api/sessions/{session_id}/cart", response_model=CartResponse)
def clear_cart(session_id: str):
    session = get_session(session_id)
    session.cart.clear()
    return cart_response(session)


# --- Checkout Endpoints ---


@app.post("/api/sessions/{session_id}/checkout", response_model=CheckoutResponse)
def start_checkout(session_id: str):
    """Open checkout for the session's cart."""
    session = get_session(session_id)
    session.checkout.open()
    return checkout_response(session)


@app.get("/api/sessions/{session_id}/checkout", response_model=CheckoutResponse)
def get_checkout(session_id: str):
    return checkout_response(get_session(session_id))


@app.put("/api/sessions/{session_id}/checkout/shipping", response_model=CheckoutResponse)
def submit_shipping(session_id: str, request: ShippingDetailsSchema):
    session = get_session(session_id)
    session.checkout.submit_shipping(ShippingDetails.from_dict(request.model_dump()))
    return checkout_response(session)


@app.post("/api/sessions/{session_id}/checkout/back", response_model=CheckoutResponse)
def checkout_back(session_id: str):
    session = get_session(session_id)
    session.checkout.back()
    return checkout_response(session)


@app.post("/api/sessions/{session_id}/checkout/payment", response_model=CheckoutResponse)
def submit_payment(session_id: str, request: PaymentRequest):
    """
    Submit payment and place the order.

    Card data is only checked for presence and is never stored.
    """
    session = get_session(session_id)
    card = None
    if request.method is PaymentMethod.CARD:
        card = CardDetails(
            cardholder=request.cardholder or "",
            number=request.card_number or "",
            expiry=request.expiry or "",
            cvc=request.cvc or "",
        )
    session.checkout.submit_payment(method=request.method, card=card)
    return checkout_response(session)


@app.delete("/api/sessions/{session_id}/checkout", response_model=CheckoutResponse)
def close_checkout(session_id: str):
    """Close checkout; any draft details are discarded."""
    session = get_session(session_id)
    session.checkout.close()
    return checkout_response(session)


@app.get("/api/bank-transfer")
def bank_transfer_instructions():
    return {"instructions": BANK_TRANSFER_INSTRUCTIONS}


# --- Merchant Endpoints ---


@app.post("/api/sessions/{session_id}/merchant/unlock", response_model=UnlockResponse)
def unlock_merchant(session_id: str, request: UnlockRequest):
    """
    Unlock the merchant dashboard for this session.

    A wrong PIN answers 403 and leaves the dashboard locked.
    """
    session = get_session(session_id)
    if not session.gate.authorize(request.pin):
        raise AuthorizationError("Incorrect PIN")
    return UnlockResponse(unlocked=True, error=False)


@app.get("/api/sessions/{session_id}/merchant/orders", response_model=OrderListResponse)
def list_orders(session_id: str):
    """List stored orders, newest first."""
    orders = get_session(session_id).dashboard.list_orders()
    return OrderListResponse(
        orders=[order_to_schema(o) for o in orders],
        count=len(orders),
    )


@app.get("/api/sessions/{session_id}/merchant/summary")
def order_summary(session_id: str):
    return get_session(session_id).dashboard.summary()


@app.get("/api/sessions/{session_id}/merchant/orders/{order_id}", response_model=OrderSchema)
def get_order(session_id: str, order_id: str):
    return order_to_schema(get_session(session_id).dashboard.get_order(order_id))


@app.delete("/api/sessions/{session_id}/merchant/orders")
def clear_orders(session_id: str):
    """Erase all order history."""
    count = get_session(session_id).dashboard.clear_orders()
    return {"deleted": count}
