"""Stripe webhook handling for card payments."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
import stripe

from models import db, utcnow
from models.payment import Payment
from services.notifications import notify_admins, notify_user

billing_bp = Blueprint("billing", __name__)


def init_stripe() -> str | None:
    """Configure Stripe with the API key from configuration."""

    api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not api_key:
        return None
    stripe.api_key = api_key
    return api_key


def _find_payment(data_object: dict) -> Payment | None:
    metadata = data_object.get("metadata", {}) or {}
    payment_id = metadata.get("payment_id")
    if payment_id:
        try:
            payment = db.session.get(Payment, int(payment_id))
        except (TypeError, ValueError):
            payment = None
        if payment is not None:
            return payment
    session_id = data_object.get("id")
    if not session_id:
        return None
    return Payment.query.filter_by(transaction_id=session_id).first()


def _mark_completed(payment: Payment) -> None:
    if payment.status == "completed":
        return
    payment.status = "completed"
    payment.paid_at = utcnow()
    notify_user(
        payment.user_id,
        "Payment Received",
        f"Your payment of ${payment.amount:,.2f} has been received.",
        type="payment",
        link="/payments",
    )


def _mark_failed(payment: Payment) -> None:
    if payment.status != "pending":
        return
    payment.status = "failed"
    notify_user(
        payment.user_id,
        "Payment Failed",
        f"Your payment of ${payment.amount:,.2f} could not be completed.",
        type="payment",
        link="/payments",
    )
    notify_admins(
        "Card Payment Failed",
        f"Payment {payment.id} for application {payment.application_id} failed.",
        type="payment",
    )


@billing_bp.route("/webhook", methods=["POST"])
def billing_webhook():
    """Handle Stripe webhook events for card payment status updates."""

    api_key = init_stripe()
    if not api_key:
        return jsonify({"error": "Stripe secret key is not configured."}), 500

    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature")
    webhook_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not webhook_secret:
        return jsonify({"error": "Stripe webhook secret is not configured."}), 500

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify({"error": "Invalid webhook signature."}), 400

    event_type = event.get("type")
    data_object = event.get("data", {}).get("object", {})

    if event_type in {"checkout.session.completed", "checkout.session.expired"}:
        payment = _find_payment(data_object)
        if payment is None:
            current_app.logger.warning(
                "Stripe event %s does not match any payment", event_type
            )
        elif event_type == "checkout.session.completed":
            _mark_completed(payment)
        else:
            _mark_failed(payment)

    db.session.commit()
    return jsonify({"status": "success"})
