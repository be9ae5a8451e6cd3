"""Recording payments against an application's balance."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import ServiceUnavailable

from models import db
from models.application import Application
from models.payment import Payment
from models.user import User

from .errors import PaymentRejected
from .notifications import notify_user
from .payment_plans import (
    CENT,
    PAYMENT_METHODS,
    installment_number,
    payment_options,
    processing_fee,
)


def payment_status_label(total_fee: Decimal, paid_amount: Decimal, current: str) -> str:
    if paid_amount >= total_fee:
        return "payment_complete"
    if paid_amount > 0:
        return "partially_paid"
    return current


def _checked_amount(application: Application, amount: Decimal, method: str) -> Decimal:
    """Return ``amount`` rounded to cents once it is payable against the balance."""

    if application.total_fee is None or application.is_draft:
        raise PaymentRejected("This application has no fee to pay yet.")
    if method not in PAYMENT_METHODS:
        raise PaymentRejected(
            "payment_method must be one of: {}.".format(", ".join(PAYMENT_METHODS))
        )
    try:
        amount = Decimal(amount).quantize(CENT)
    except (InvalidOperation, TypeError, ValueError):
        raise PaymentRejected("Please enter a valid payment amount.") from None
    if amount <= 0 or amount > application.balance_due:
        raise PaymentRejected("Please enter a valid payment amount.")
    return amount


def quote(application: Application, amount: Decimal, method: str) -> dict:
    """Processing fee and total charged for ``amount`` paid with ``method``."""

    amount = _checked_amount(application, amount, method)
    fee = processing_fee(amount, method)
    return {
        "amount": float(amount),
        "payment_method": method,
        "processing_fee": float(fee),
        "total_amount": float(amount + fee),
        "balance_due": float(application.balance_due),
    }


def options_for(application: Application) -> list[dict]:
    if application.total_fee is None:
        return []
    return [
        option.to_dict()
        for option in payment_options(
            application.payment_plan, application.total_fee, application.paid_amount or 0
        )
    ]


def record_payment(
    application: Application,
    user: User,
    amount: Decimal,
    method: str,
    label: str | None = None,
    session=None,
) -> Payment:
    """Validate and record one payment attempt.

    The payment row, the new paid amount and the notification are committed
    together; a rejected request writes nothing.
    """

    session = session or db.session
    amount = _checked_amount(application, amount, method)

    total_fee = Decimal(application.total_fee)
    paid_amount = Decimal(application.paid_amount or 0)
    fee = processing_fee(amount, method)
    payment = Payment(
        application_id=application.id,
        user_id=user.id,
        amount=amount,
        processing_fee=fee,
        total_amount=amount + fee,
        payment_method=method,
        installment_number=installment_number(
            application.payment_plan, total_fee, paid_amount
        ),
        milestone_name=label,
        status="pending",
    )

    new_paid = paid_amount + amount
    try:
        session.add(payment)
        application.paid_amount = new_paid
        application.payment_status = payment_status_label(
            total_fee, new_paid, application.payment_status
        )
        notify_user(
            user.id,
            "Payment Initiated",
            f"Payment of ${amount:,.2f} has been successfully initiated.",
            type="payment",
            link="/payments",
            session=session,
        )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception(
            "Failed to record payment for application %s", application.id
        )
        raise ServiceUnavailable("Failed to process payment. Please try again.") from None

    current_app.logger.info(
        "Recorded %s payment %s of %s for application %s",
        method,
        payment.id,
        amount,
        application.id,
    )
    return payment
