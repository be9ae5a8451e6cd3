"""Tests for payment plan options and fee arithmetic."""

from decimal import Decimal

import pytest

from services.payment_plans import (
    PAYMENT_PLANS,
    installment_number,
    payment_options,
    processing_fee,
    total_fee_for,
)


def _pairs(options):
    return [(option.label, option.amount) for option in options]


def test_full_upfront_offers_full_payment_and_custom():
    options = payment_options("full_upfront", Decimal("4299"), Decimal("0"))

    assert _pairs(options) == [
        ("Full Payment", Decimal("4299")),
        ("Custom Amount", Decimal("0")),
    ]


def test_milestone_options_use_quarter_of_total():
    options = payment_options("milestone", Decimal("4999"), Decimal("1200"))

    assert _pairs(options) == [
        ("Next Milestone", Decimal("1250")),
        ("Pay Minimum", Decimal("100")),
        ("Full Balance", Decimal("3799")),
        ("Custom Amount", Decimal("0")),
    ]


@pytest.mark.parametrize(
    "paid, expected",
    [
        (
            "0",
            [("First Installment (50%)", Decimal("2750")), ("Custom Amount", Decimal("0"))],
        ),
        (
            "1000",
            [
                ("Complete First Installment", Decimal("1750")),
                ("Pay Remaining Balance", Decimal("4500")),
                ("Custom Amount", Decimal("0")),
            ],
        ),
        (
            "2750",
            [("Pay Remaining Balance", Decimal("2750")), ("Custom Amount", Decimal("0"))],
        ),
    ],
)
def test_deferred_options_depend_on_amount_paid(paid, expected):
    options = payment_options("deferred", Decimal("5500"), Decimal(paid))

    assert _pairs(options) == expected


def test_deferred_first_installment_rounds_up():
    options = payment_options("deferred", Decimal("4999"), Decimal("0"))

    assert options[0].amount == Decimal("2500")


def test_custom_amount_is_always_last():
    for plan in (None, "milestone", "full_upfront", "deferred"):
        options = payment_options(plan, Decimal("5000"), Decimal("0"))
        assert options[-1].label == "Custom Amount"
        assert options[-1].amount == 0


def test_plan_fee_table():
    assert total_fee_for("milestone") == Decimal("5000")
    assert total_fee_for("full_upfront") == Decimal("4500")
    assert total_fee_for("deferred") == Decimal("5500")
    assert sum(amount for _name, amount in PAYMENT_PLANS["milestone"].milestones) == Decimal(
        "5000"
    )
    with pytest.raises(KeyError):
        total_fee_for("weekly")


@pytest.mark.parametrize(
    "amount, method, fee",
    [
        ("1000", "credit_card", Decimal("25.00")),
        ("100", "paypal", Decimal("3.50")),
        ("999.99", "bank_transfer", Decimal("0.00")),
        ("10.01", "credit_card", Decimal("0.25")),
    ],
)
def test_processing_fee_per_method(amount, method, fee):
    assert processing_fee(Decimal(amount), method) == fee


def test_installment_numbers():
    assert installment_number("deferred", Decimal("5500"), Decimal("0")) == 1
    assert installment_number("deferred", Decimal("5500"), Decimal("100")) == 2
    assert installment_number("milestone", Decimal("5000"), Decimal("0")) == 1
    assert installment_number("milestone", Decimal("5000"), Decimal("1250")) == 2
    assert installment_number("milestone", Decimal("5000"), Decimal("3000")) == 3
    assert installment_number("full_upfront", Decimal("4500"), Decimal("0")) == 1
