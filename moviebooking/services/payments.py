"""
Payment orchestration.

Flow for one payment attempt:

  1. create the booking (PENDING, seats claimed)
  2. charge the payment provider
     ├─ approved → confirm the booking (points credited)
     └─ declined / error / timeout → cancel the booking (seats released)

Every failure after a successful claim goes through the cancellation
before the error reaches the caller, and anything the provider raises
reaches it as ProviderError, so an attempt always ends CONFIRMED or
CANCELLED. If the cancellation itself cannot be written, the booking stays
PENDING until the reclaim loop expires it.
"""

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence
from uuid import UUID

import requests
from sqlalchemy.orm import Session

from moviebooking.core.config import settings
from moviebooking.core.exceptions import (
    BookingError,
    InvalidStateError,
    PersistenceError,
    ProviderError,
)
from moviebooking.models.booking import Booking, BookingStatus, PaymentMethod
from moviebooking.models.user import User
from moviebooking.services import bookings

logger = logging.getLogger(__name__)


@dataclass
class ChargeResult:
    approved: bool
    reference: Optional[str] = None
    message: str = ""


class PaymentProvider(Protocol):
    def charge(self, amount: Decimal, reference: str, method: PaymentMethod) -> ChargeResult:
        ...

    def refund(self, charge_reference: str, amount: Decimal) -> None:
        ...


@dataclass
class MockPaymentProvider:
    """In-process provider. Approves every charge unless told otherwise."""

    approve: bool = True
    decline_message: str = "Card declined"
    charges: List[dict] = field(default_factory=list)
    refunds: List[dict] = field(default_factory=list)

    def charge(self, amount: Decimal, reference: str, method: PaymentMethod) -> ChargeResult:
        self.charges.append({"amount": amount, "reference": reference, "method": method})
        if not self.approve:
            return ChargeResult(approved=False, message=self.decline_message)
        return ChargeResult(approved=True, reference=f"MOCK-{uuid.uuid4().hex[:12].upper()}")

    def refund(self, charge_reference: str, amount: Decimal) -> None:
        self.refunds.append({"reference": charge_reference, "amount": amount})


class HttpPaymentProvider:
    """Talks to a payment gateway over JSON/HTTP."""

    def __init__(self, url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _post(self, path: str, payload: dict) -> dict:
        try:
            resp = self.http.post(f"{self.url}{path}", json=payload, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.Timeout as e:
            raise ProviderError("Payment provider did not respond in time") from e
        except requests.RequestException as e:
            raise ProviderError(f"Payment provider error: {e}") from e
        except ValueError as e:
            raise ProviderError("Payment provider sent an unreadable response") from e

    def charge(self, amount: Decimal, reference: str, method: PaymentMethod) -> ChargeResult:
        data = self._post("", {
            "amount": str(amount),
            "reference": reference,
            "method": PaymentMethod(method).value,
        })
        return ChargeResult(
            approved=data.get("status") == "approved",
            reference=data.get("charge_id"),
            message=data.get("message", ""),
        )

    def refund(self, charge_reference: str, amount: Decimal) -> None:
        self._post(f"/{charge_reference}/refund", {"amount": str(amount)})


def get_payment_provider() -> PaymentProvider:
    if settings.PAYMENT_PROVIDER == "http":
        return HttpPaymentProvider(settings.PAYMENT_PROVIDER_URL, settings.PAYMENT_TIMEOUT_SECONDS)
    return MockPaymentProvider()


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def _compensate(db: Session, booking_id: UUID, reason: str) -> None:
    """Cancel the booking and release its seats. Never masks the original error."""
    db.rollback()
    try:
        bookings.cancel_booking(db, booking_id, reason=reason)
    except InvalidStateError:
        logger.info("Booking %s already left PENDING, nothing to compensate", booking_id)
    except PersistenceError:
        logger.error(
            "Could not cancel booking %s after failed payment; the reclaim loop will release it",
            booking_id,
        )


def _refund(provider: PaymentProvider, charge_reference: str, amount: Decimal) -> None:
    try:
        provider.refund(charge_reference, amount)
    except Exception:
        logger.exception("Refund of charge %s failed; needs manual follow-up", charge_reference)


def settle_booking(db: Session, provider: PaymentProvider, booking: Booking) -> Booking:
    """Charge a PENDING booking and confirm it, or cancel it if anything fails."""
    booking_id = booking.id
    booking_number = booking.booking_number
    amount = Decimal(booking.total_amount)
    method = booking.payment_method

    bookings.assert_transition(booking.status, BookingStatus.CONFIRMED)

    if bookings.hold_expired(db, booking_id):
        _compensate(db, booking_id, "Payment window expired")
        raise InvalidStateError("The payment window for this booking has expired")

    charge_reference = None
    try:
        # A fully discounted booking has nothing to charge
        if amount > 0:
            result = provider.charge(amount, booking_number, method)
            if not result.approved:
                raise ProviderError(result.message or "Payment was declined", booking_id=booking_id)
            charge_reference = result.reference
    except ProviderError as e:
        e.booking_id = booking_id
        logger.warning("Payment for booking %s failed: %s", booking_number, e.message)
        _compensate(db, booking_id, f"Payment failed: {e.message}")
        raise
    except Exception as e:
        logger.exception("Payment for booking %s aborted", booking_number)
        _compensate(db, booking_id, "Payment aborted")
        raise ProviderError("Payment aborted", booking_id=booking_id) from e

    try:
        return bookings.confirm_booking(db, booking_id, payment_reference=charge_reference)
    except BookingError as e:
        logger.error("Confirmation of paid booking %s failed: %s", booking_number, e.message)
        _compensate(db, booking_id, f"Confirmation failed: {e.message}")
        if charge_reference:
            _refund(provider, charge_reference, amount)
        raise


def process_payment(
    db: Session,
    provider: PaymentProvider,
    user: User,
    showtime_id: UUID,
    seat_ids: Sequence[UUID],
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD,
) -> Booking:
    """
    Run a whole payment attempt: book, charge, confirm.

    ConflictError from the seat claim propagates with nothing written.
    ProviderError and PersistenceError are raised only after the booking has
    been cancelled and its seats released.
    """
    booking = bookings.create_booking(db, user, showtime_id, seat_ids, payment_method)
    return settle_booking(db, provider, booking)
