"""Payments blueprint: payment options, fee quotes, recording and card checkout."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
import stripe
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.application import Application
from models.payment import Payment
from models.user import User
from routes.billing import init_stripe
from services.payment_plans import PAYMENT_METHODS, PAYMENT_PLANS
from services.payments import options_for, quote, record_payment
from utils.auth import require_user
from utils.request_validation import parse_decimal, parse_json_request

payments_bp = Blueprint("payments", __name__)


def _require_submitted_application(user: User) -> Application:
    application = Application.query.filter_by(user_id=user.id).first()
    if application is None or application.is_draft:
        raise NotFound("No submitted application found.")
    return application


@payments_bp.route("", methods=["GET"])
@jwt_required()
def list_payments():
    """Payment history for the current user, newest first."""

    user = require_user()
    payments = (
        Payment.query.filter_by(user_id=user.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    completed_total = sum(
        (payment.amount for payment in payments if payment.status == "completed"), 0
    )
    return jsonify(
        {
            "results": [payment.to_dict() for payment in payments],
            "count": len(payments),
            "completed_total": float(completed_total),
        }
    )


@payments_bp.route("/plans", methods=["GET"])
def list_plans():
    return jsonify([plan.to_dict() for plan in PAYMENT_PLANS.values()])


@payments_bp.route("/options", methods=["GET"])
@jwt_required()
def payment_options_view():
    """Suggested next-payment amounts for the current user's application."""

    user = require_user()
    application = _require_submitted_application(user)
    return jsonify(
        {
            "application_id": application.id,
            "payment_plan": application.payment_plan,
            "total_fee": float(application.total_fee),
            "paid_amount": float(application.paid_amount or 0),
            "balance_due": float(application.balance_due),
            "options": options_for(application),
            "methods": [
                {
                    "id": method.id,
                    "name": method.name,
                    "fee_percent": float(method.rate_percent),
                }
                for method in PAYMENT_METHODS.values()
            ],
        }
    )


@payments_bp.route("/quote", methods=["GET"])
@jwt_required()
def payment_quote():
    user = require_user()
    application = _require_submitted_application(user)
    amount = parse_decimal(request.args.get("amount"), "amount")
    method = request.args.get("payment_method", "credit_card")
    return jsonify(quote(application, amount, method))


@payments_bp.route("", methods=["POST"])
@jwt_required()
def create_payment():
    """Record a payment attempt against the current balance."""

    user = require_user()
    application = _require_submitted_application(user)
    data = parse_json_request(request, required_keys=["amount", "payment_method"])
    amount = parse_decimal(data.get("amount"), "amount")
    label = data.get("label")
    if label is not None and not isinstance(label, str):
        raise BadRequest("label must be a string.")

    payment = record_payment(
        application, user, amount, str(data.get("payment_method")), label=label
    )
    return jsonify(payment.to_dict()), 201


@payments_bp.route("/<int:payment_id>/checkout", methods=["POST"])
@jwt_required()
def create_checkout_session(payment_id: int):
    """Create a Stripe Checkout session for a pending card payment."""

    user = require_user()
    payment = Payment.query.filter_by(id=payment_id, user_id=user.id).first()
    if payment is None:
        raise NotFound("Payment not found.")
    if payment.status != "pending" or payment.payment_method != "credit_card":
        raise Conflict("Only pending card payments can be paid by checkout.")

    if not init_stripe():
        return jsonify({"error": "Stripe secret key is not configured."}), 500

    success_url = current_app.config.get("BILLING_SUCCESS_URL")
    cancel_url = current_app.config.get("BILLING_CANCEL_URL")
    if not success_url or not cancel_url:
        return (
            jsonify({"error": "Billing success and cancel URLs must be configured."}),
            400,
        )

    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[
                {
                    "price_data": {
                        "currency": current_app.config.get("CURRENCY", "usd"),
                        "unit_amount": int(payment.total_amount * 100),
                        "product_data": {
                            "name": payment.milestone_name or "Application fee payment"
                        },
                    },
                    "quantity": 1,
                }
            ],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"payment_id": str(payment.id), "user_id": str(user.id)},
        )
    except stripe.StripeError as exc:  # pragma: no cover - network error
        current_app.logger.warning("Stripe checkout failed for payment %s: %s", payment.id, exc)
        return jsonify({"error": str(exc)}), 502

    payment.transaction_id = session.id
    db.session.commit()
    return jsonify({"sessionId": session.id, "url": session.url})
