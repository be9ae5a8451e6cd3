"""Tests for payment options, recording and Stripe card checkout."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace

import pytest
import stripe

from models import db
from models.application import Application
from models.notification import Notification
from models.payment import Payment
from models.user import User
from services.errors import PaymentRejected
from services.payments import quote, record_payment


def _create_application(app, user_id: int, **overrides) -> int:
    values = {
        "user_id": user_id,
        "status": "submitted",
        "current_step": 4,
        "full_name": "Jose Rizal",
        "email": "jose@example.com",
        "phone": "+63 900 000 0000",
        "payment_plan": "milestone",
        "total_fee": Decimal("4999"),
        "paid_amount": Decimal("1200"),
        "payment_status": "partially_paid",
        "draft_documents": [],
    }
    values.update(overrides)
    with app.app_context():
        application = Application(**values)
        db.session.add(application)
        db.session.commit()
        return application.id


@pytest.fixture()
def payer(app, make_user, auth_headers):
    user_id = make_user(email="jose@example.com", full_name="Jose Rizal")
    application_id = _create_application(app, user_id)
    return user_id, application_id, auth_headers(user_id)


def test_options_for_milestone_plan(client, payer):
    _user_id, _application_id, headers = payer

    response = client.get("/payments/options", headers=headers)

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["balance_due"] == 3799
    assert payload["options"] == [
        {"label": "Next Milestone", "amount": 1250},
        {"label": "Pay Minimum", "amount": 100},
        {"label": "Full Balance", "amount": 3799},
        {"label": "Custom Amount", "amount": 0},
    ]
    assert {method["id"] for method in payload["methods"]} == {
        "credit_card",
        "paypal",
        "bank_transfer",
    }


def test_quote_adds_processing_fee(client, payer):
    _user_id, _application_id, headers = payer

    response = client.get(
        "/payments/quote?amount=100&payment_method=paypal", headers=headers
    )

    assert response.status_code == 200
    assert response.get_json()["processing_fee"] == 3.5
    assert response.get_json()["total_amount"] == 103.5


@pytest.mark.parametrize("amount", ["0", "-5", "3800", "1e30", "lots"])
def test_quote_rejects_amounts_outside_the_balance(client, payer, amount):
    _user_id, _application_id, headers = payer

    response = client.get(
        f"/payments/quote?amount={amount}&payment_method=paypal", headers=headers
    )

    assert response.status_code == 400


def test_oversized_amount_is_rejected_before_rounding(app, payer):
    user_id, application_id, _headers = payer

    with app.app_context():
        application = db.session.get(Application, application_id)
        user = db.session.get(User, user_id)
        with pytest.raises(PaymentRejected):
            record_payment(application, user, Decimal("1e30"), "credit_card")
        with pytest.raises(PaymentRejected):
            quote(application, Decimal("1e30"), "credit_card")
        assert Payment.query.count() == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"amount": "3800", "payment_method": "credit_card"},
        {"amount": "-5", "payment_method": "credit_card"},
        {"amount": "0.001", "payment_method": "credit_card"},
        {"amount": "100", "payment_method": "cheque"},
        {"amount": "lots", "payment_method": "credit_card"},
        {"amount": "1e30", "payment_method": "credit_card"},
        {"amount": 1e30, "payment_method": "credit_card"},
    ],
)
def test_invalid_payments_are_rejected(app, client, payer, payload):
    _user_id, application_id, headers = payer

    response = client.post("/payments", json=payload, headers=headers)

    assert response.status_code == 400
    with app.app_context():
        assert Payment.query.count() == 0
        application = db.session.get(Application, application_id)
        assert application.paid_amount == Decimal("1200")


def test_recording_a_payment_updates_balance(app, client, payer):
    user_id, application_id, headers = payer

    response = client.post(
        "/payments",
        json={"amount": 1250, "payment_method": "credit_card", "label": "Next Milestone"},
        headers=headers,
    )

    assert response.status_code == 201
    payment = response.get_json()
    assert payment["status"] == "pending"
    assert payment["processing_fee"] == 31.25
    assert payment["total_amount"] == 1281.25
    assert payment["installment_number"] == 1
    assert payment["milestone_name"] == "Next Milestone"

    with app.app_context():
        application = db.session.get(Application, application_id)
        assert application.paid_amount == Decimal("2450")
        assert application.payment_status == "partially_paid"
        assert Notification.query.filter_by(user_id=user_id, type="payment").count() == 1


def test_paying_full_balance_completes_payment(app, client, payer):
    _user_id, application_id, headers = payer

    response = client.post(
        "/payments",
        json={"amount": "3799", "payment_method": "bank_transfer"},
        headers=headers,
    )

    assert response.status_code == 201
    with app.app_context():
        application = db.session.get(Application, application_id)
        assert application.balance_due == 0
        assert application.payment_status == "payment_complete"

    listing = client.get("/payments", headers=headers).get_json()
    assert listing["count"] == 1
    assert listing["completed_total"] == 0


def test_draft_application_cannot_be_paid(app, client, make_user, auth_headers):
    user_id = make_user(email="draft@example.com")
    _create_application(
        app, user_id, status="draft", total_fee=None, paid_amount=Decimal("0")
    )

    response = client.post(
        "/payments",
        json={"amount": "100", "payment_method": "credit_card"},
        headers=auth_headers(user_id),
    )

    assert response.status_code == 404


def test_plans_are_public(client):
    response = client.get("/payments/plans")

    assert response.status_code == 200
    assert {plan["id"]: plan["total_fee"] for plan in response.get_json()} == {
        "milestone": 5000,
        "full_upfront": 4500,
        "deferred": 5500,
    }


def _pending_card_payment(client, headers) -> int:
    response = client.post(
        "/payments",
        json={"amount": "100", "payment_method": "credit_card"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.get_json()["id"]


def test_checkout_session_records_transaction(app, client, payer, monkeypatch):
    _user_id, _application_id, headers = payer
    payment_id = _pending_card_payment(client, headers)
    captured = {}

    def _mock_session_create(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.test/cs")

    monkeypatch.setattr(
        stripe.checkout.Session, "create", staticmethod(_mock_session_create)
    )

    response = client.post(f"/payments/{payment_id}/checkout", headers=headers)

    assert response.status_code == 200
    assert response.get_json() == {
        "sessionId": "cs_test_123",
        "url": "https://checkout.stripe.test/cs",
    }
    assert captured["metadata"]["payment_id"] == str(payment_id)
    assert captured["line_items"][0]["price_data"]["unit_amount"] == 10250
    with app.app_context():
        assert db.session.get(Payment, payment_id).transaction_id == "cs_test_123"


def _post_webhook(client, app, monkeypatch, event):
    def _mock_construct_event(payload, sig_header, secret):
        assert secret == app.config["STRIPE_WEBHOOK_SECRET"]
        return event

    monkeypatch.setattr(
        stripe.Webhook, "construct_event", staticmethod(_mock_construct_event)
    )
    return client.post(
        "/billing/webhook", data=b"{}", headers={"Stripe-Signature": "sig"}
    )


def test_webhook_completes_payment(app, client, payer, monkeypatch):
    user_id, _application_id, headers = payer
    payment_id = _pending_card_payment(client, headers)

    response = _post_webhook(
        client,
        app,
        monkeypatch,
        {
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_1", "metadata": {"payment_id": str(payment_id)}}},
        },
    )

    assert response.status_code == 200
    with app.app_context():
        payment = db.session.get(Payment, payment_id)
        assert payment.status == "completed"
        assert payment.paid_at is not None
        assert Notification.query.filter_by(
            user_id=user_id, title="Payment Received"
        ).count() == 1


def test_webhook_marks_expired_session_failed(app, client, payer, monkeypatch):
    _user_id, _application_id, headers = payer
    payment_id = _pending_card_payment(client, headers)
    with app.app_context():
        db.session.get(Payment, payment_id).transaction_id = "cs_expired"
        db.session.commit()

    response = _post_webhook(
        client,
        app,
        monkeypatch,
        {"type": "checkout.session.expired", "data": {"object": {"id": "cs_expired"}}},
    )

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Payment, payment_id).status == "failed"
        assert Notification.query.filter_by(audience="admin").count() == 1


def test_webhook_rejects_bad_signature(client, monkeypatch):
    def _raise(payload, sig_header, secret):
        raise stripe.SignatureVerificationError("bad signature", sig_header)

    monkeypatch.setattr(stripe.Webhook, "construct_event", staticmethod(_raise))

    response = client.post(
        "/billing/webhook", data=b"{}", headers={"Stripe-Signature": "sig"}
    )

    assert response.status_code == 400
