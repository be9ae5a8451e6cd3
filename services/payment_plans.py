"""Payment plan fee table and payment amount arithmetic."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
MINIMUM_PAYMENT = Decimal("100")
CUSTOM_AMOUNT_LABEL = "Custom Amount"


@dataclass(frozen=True)
class PaymentPlan:
    id: str
    name: str
    total_fee: Decimal
    description: str
    milestones: tuple[tuple[str, Decimal], ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "total_fee": float(self.total_fee),
            "description": self.description,
            "milestones": [
                {"name": name, "amount": float(amount)} for name, amount in self.milestones
            ],
        }


PAYMENT_PLANS: dict[str, PaymentPlan] = {
    "milestone": PaymentPlan(
        id="milestone",
        name="Pay Per Milestone",
        total_fee=Decimal("5000"),
        description="Pay as you progress through each stage",
        milestones=(
            ("Application Review", Decimal("500")),
            ("Document Processing", Decimal("1000")),
            ("Job Matching", Decimal("1500")),
            ("Visa & Travel", Decimal("2000")),
        ),
    ),
    "full_upfront": PaymentPlan(
        id="full_upfront",
        name="Pay Full Upfront",
        total_fee=Decimal("4500"),
        description="Save $500 by paying everything upfront",
    ),
    "deferred": PaymentPlan(
        id="deferred",
        name="Deferred Payment",
        total_fee=Decimal("5500"),
        description="Pay after you secure your job",
    ),
}


@dataclass(frozen=True)
class PaymentMethod:
    id: str
    name: str
    rate_percent: Decimal


# Processing fee charged on top of the amount, per method.
PAYMENT_METHODS: dict[str, PaymentMethod] = {
    "credit_card": PaymentMethod("credit_card", "Credit/Debit Card", Decimal("2.5")),
    "bank_transfer": PaymentMethod("bank_transfer", "Bank Transfer", Decimal("0")),
    "paypal": PaymentMethod("paypal", "PayPal", Decimal("3.5")),
}


@dataclass(frozen=True)
class PaymentOption:
    label: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {"label": self.label, "amount": float(self.amount)}


def total_fee_for(plan: str) -> Decimal:
    """Look up the fixed total fee of ``plan``; raises ``KeyError`` if unknown."""

    return PAYMENT_PLANS[plan].total_fee


def _as_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def payment_options(plan: str | None, total_fee, paid_amount) -> list[PaymentOption]:
    """Suggested next-payment amounts for an application.

    The custom amount option is always last, with amount 0.
    """

    total = _as_decimal(total_fee)
    paid = _as_decimal(paid_amount)
    balance = total - paid
    custom = PaymentOption(CUSTOM_AMOUNT_LABEL, Decimal("0"))

    if plan == "deferred":
        first_installment = Decimal(math.ceil(total * Decimal("0.5")))
        if paid == 0:
            return [PaymentOption("First Installment (50%)", first_installment), custom]
        if paid < total * Decimal("0.5"):
            return [
                PaymentOption("Complete First Installment", first_installment - paid),
                PaymentOption("Pay Remaining Balance", balance),
                custom,
            ]
        return [PaymentOption("Pay Remaining Balance", balance), custom]

    if plan == "milestone":
        next_milestone = Decimal(math.ceil(total / 4))
        return [
            PaymentOption("Next Milestone", next_milestone),
            PaymentOption("Pay Minimum", MINIMUM_PAYMENT),
            PaymentOption("Full Balance", balance),
            custom,
        ]

    return [PaymentOption("Full Payment", balance), custom]


def processing_fee(amount, method: str) -> Decimal:
    """``amount * rate / 100`` for the method, rounded to cents."""

    rate = PAYMENT_METHODS[method].rate_percent
    fee = _as_decimal(amount) * rate / Decimal("100")
    return fee.quantize(CENT, rounding=ROUND_HALF_UP)


def installment_number(plan: str | None, total_fee, paid_amount) -> int:
    total = _as_decimal(total_fee)
    paid = _as_decimal(paid_amount)
    if plan == "deferred":
        return 1 if paid == 0 else 2
    if plan == "milestone" and total > 0:
        return int(paid // (total / 4)) + 1
    return 1
