"""Checkout flow: shipping -> payment -> confirmation."""

import logging
import threading
from decimal import Decimal
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from . import pricing
from .cart import Cart
from .errors import (
    CheckoutBusyError,
    EmptyCartError,
    InvalidStepError,
    PersistenceError,
    StorefrontError,
    ValidationError,
)
from .events import Signal
from .models import (
    CartLine,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    ShippingDetails,
    _utc_now,
    generate_order_reference,
)
from .order_store import OrderStore

logger = logging.getLogger(__name__)

# Attempts at finding an order reference not already in the store
MAX_REFERENCE_ATTEMPTS = 20

BANK_TRANSFER_INSTRUCTIONS = (
    "Transfer the order total to Abyssinia Direct, Commercial Bank of Ethiopia, "
    "IBAN ET00 1000 0000 0000 0000, quoting your order reference. "
    "Orders ship once the transfer clears (2-3 business days)."
)


class CheckoutStep(str, Enum):
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class CardDetails:
    """Card form input. Checked for presence only and never persisted."""

    cardholder: str = ""
    number: str = ""
    expiry: str = ""
    cvc: str = ""

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("cardholder", "number", "expiry", "cvc")
            if not str(getattr(self, name) or "").strip()
        ]


def build_order(
    order_id: str,
    lines: list[CartLine],
    shipping: ShippingDetails,
    payment_method: PaymentMethod,
    date: str | None = None,
) -> Order:
    """Freeze cart lines and the current price breakdown into an Order."""
    items = tuple(OrderItem.from_cart_line(line) for line in lines)
    q = pricing.quote(sum((item.line_total for item in items), Decimal("0")))
    return Order(
        id=order_id,
        date=date or _utc_now(),
        items=items,
        subtotal=q.subtotal,
        shipping_cost=q.shipping_cost,
        duties=q.duties,
        total=q.total,
        shipping_details=shipping,
        payment_method=payment_method,
        status=OrderStatus.PENDING.value,
    )


class CheckoutSession:
    """
    Linear checkout state machine bound to one cart and one order store.

    The session starts closed. ``open`` snapshots nothing but checks the cart
    and pre-generates the order reference; the cart lines are frozen into the
    Order only when payment is submitted. Closing the session before
    confirmation discards every draft value.

    Signals:
        step_changed(step): after every transition.
        completed(order): once per persisted order, after the cart is cleared.
    """

    def __init__(
        self,
        cart: Cart,
        store: OrderStore,
        reference_factory: Callable[[], str] = generate_order_reference,
    ):
        self.cart = cart
        self.store = store
        self._reference_factory = reference_factory
        self._busy_lock = threading.Lock()
        self._generation = 0

        self.step_changed = Signal("checkout.step_changed")
        self.completed = Signal("checkout.completed")

        self.is_open = False
        self.step = CheckoutStep.SHIPPING
        self.order_id: str | None = None
        self.shipping: ShippingDetails | None = None
        self.payment_method = PaymentMethod.CARD
        self.order: Order | None = None
        self.processing = False
        self.last_error: str | None = None

    # --- internal ---

    def _reset_draft(self) -> None:
        self.step = CheckoutStep.SHIPPING
        self.order_id = None
        self.shipping = None
        self.payment_method = PaymentMethod.CARD
        self.order = None
        self.last_error = None

    def _new_reference(self) -> str:
        ref = self._reference_factory()
        for _ in range(MAX_REFERENCE_ATTEMPTS - 1):
            if not self.store.exists(ref):
                break
            ref = self._reference_factory()
        return ref

    def _check_payment(self, method: PaymentMethod | str | None, card: CardDetails | None) -> None:
        self._require_step(CheckoutStep.PAYMENT, "submit payment")
        if self.shipping is None:
            raise InvalidStepError(self.step.value, "submit payment without shipping details")

        chosen = self.payment_method if method is None else PaymentMethod(method)
        if chosen is PaymentMethod.CARD:
            missing = (card or CardDetails()).missing_fields()
            if missing:
                raise ValidationError(missing, step="payment")

        if self.cart.is_empty():
            raise EmptyCartError()

    def _place_order(
        self,
        order_id: str,
        lines: list[CartLine],
        shipping: ShippingDetails,
        payment_method: PaymentMethod,
    ) -> Order:
        """
        Save a new order, moving to a fresh reference if the ID is taken.

        Raises:
            PersistenceError: If the store fails or no free reference is found.
        """
        for _ in range(MAX_REFERENCE_ATTEMPTS):
            order = build_order(order_id, lines, shipping, payment_method)
            if self.store.save(order):
                return order
            logger.warning("Order reference %s is already taken, regenerating", order_id)
            order_id = self._new_reference()
        raise PersistenceError(f"no free order reference after {MAX_REFERENCE_ATTEMPTS} attempts")

    def _goto(self, step: CheckoutStep) -> None:
        logger.debug("Checkout %s: %s -> %s", self.order_id, self.step.value, step.value)
        self.step = step
        self.step_changed.emit(step)

    def _require_open(self, action: str) -> None:
        if not self.is_open:
            raise InvalidStepError("closed", action)

    def _require_step(self, step: CheckoutStep, action: str) -> None:
        self._require_open(action)
        if self.step is not step:
            raise InvalidStepError(self.step.value, action)

    # --- transitions ---

    def open(self) -> str:
        """
        Start a checkout for the current cart.

        Returns:
            The pre-generated order reference.

        Raises:
            EmptyCartError: If the cart has no lines.
        """
        if self.cart.is_empty():
            raise EmptyCartError()

        if self.is_open and self.step is not CheckoutStep.CONFIRMATION:
            return self.order_id  # type: ignore[return-value]

        self._generation += 1
        self._reset_draft()
        self.order_id = self._new_reference()
        self.is_open = True
        logger.debug("Checkout %s opened", self.order_id)
        self.step_changed.emit(self.step)
        return self.order_id

    def submit_shipping(self, details: ShippingDetails | dict[str, Any]) -> ShippingDetails:
        """
        Record shipping details and move to the payment step.

        Raises:
            InvalidStepError: If not at the shipping step.
            ValidationError: If any field is blank; the step doesn't change.
        """
        self._require_step(CheckoutStep.SHIPPING, "submit shipping details")

        if isinstance(details, dict):
            details = ShippingDetails.from_dict(details)

        missing = details.missing_fields()
        if missing:
            raise ValidationError(missing, step="shipping")

        self.shipping = details
        self.payment_method = PaymentMethod.CARD
        self._goto(CheckoutStep.PAYMENT)
        return details

    def back(self) -> None:
        """Return from payment to shipping, keeping the entered shipping details."""
        self._require_step(CheckoutStep.PAYMENT, "go back")
        if self.processing:
            raise CheckoutBusyError(self.order_id or "")
        self._goto(CheckoutStep.SHIPPING)

    def select_payment_method(self, method: PaymentMethod | str) -> PaymentMethod:
        self._require_step(CheckoutStep.PAYMENT, "select a payment method")
        self.payment_method = PaymentMethod(method)
        return self.payment_method

    def submit_payment(
        self,
        method: PaymentMethod | str | None = None,
        card: CardDetails | None = None,
    ) -> Order:
        """
        Finalize the order and persist it.

        On success the session moves to confirmation, the cart is cleared and
        ``completed`` fires. If the store fails the session stays at the
        payment step, the cart is untouched and the error propagates. If
        another order took the pre-generated reference in the meantime, the
        order is saved under a fresh one and ``order_id`` follows it.

        Raises:
            InvalidStepError: If not at the payment step or shipping is missing.
            CheckoutBusyError: If another submission is still in flight.
            EmptyCartError: If the cart was emptied during checkout.
            ValidationError: If card fields are missing for a card payment.
            PersistenceError: If the order could not be saved.
        """
        self._check_payment(method, card)

        if not self._busy_lock.acquire(blocking=False):
            raise CheckoutBusyError(self.order_id or "")

        try:
            # Another submission may have completed between the checks and the lock
            self._check_payment(method, card)
            if method is not None:
                self.payment_method = PaymentMethod(method)

            generation = self._generation
            self.processing = True
            self.last_error = None
            try:
                order = self._place_order(
                    self.order_id,  # type: ignore[arg-type]
                    self.cart.lines,
                    self.shipping,  # type: ignore[arg-type]
                    self.payment_method,
                )
            except StorefrontError as e:
                if generation == self._generation:
                    self.last_error = str(e)
                logger.warning("Checkout %s failed to save: %s", self.order_id, e)
                raise
            finally:
                self.processing = False
        finally:
            self._busy_lock.release()

        if generation != self._generation:
            # Closed while saving: the order stays stored but this session moved on
            logger.info("Order %s saved after its checkout was closed", order.id)
            return order

        self.order_id = order.id
        self.order = order
        self._goto(CheckoutStep.CONFIRMATION)
        self.cart.clear()
        logger.info("Order %s completed, total %s", order.id, order.total)
        self.completed.emit(order)
        return order

    def close(self) -> None:
        """Leave checkout. Draft state is discarded; the next open gets a new reference."""
        self._generation += 1
        self.is_open = False
        self._reset_draft()

    # --- views ---

    def quote(self) -> pricing.Quote:
        """Live price breakdown for the order summary panel."""
        if self.order is not None:
            return pricing.Quote(
                subtotal=self.order.subtotal,
                shipping_cost=self.order.shipping_cost,
                duties=self.order.duties,
                total=self.order.total,
            )
        return pricing.quote(self.cart.subtotal())

    def to_dict(self) -> dict[str, Any]:
        return {
            "open": self.is_open,
            "step": self.step.value,
            "order_id": self.order_id,
            "shipping": self.shipping.to_dict() if self.shipping else None,
            "payment_method": self.payment_method.value,
            "processing": self.processing,
            "error": self.last_error,
            "quote": self.quote().to_dict(),
            "order": self.order.to_dict() if self.order else None,
            "bank_instructions": (
                BANK_TRANSFER_INSTRUCTIONS
                if self.payment_method is PaymentMethod.BANK_TRANSFER
                else None
            ),
        }
