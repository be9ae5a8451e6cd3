"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100
# Largest value a Numeric(10, 2) column holds.
MAX_AMOUNT = Decimal("99999999.99")


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=False)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def parse_bool(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return None


def parse_decimal(value: object, field: str) -> Decimal:
    """Parse a monetary value or raise a 400 naming ``field``."""

    if isinstance(value, bool) or value in (None, ""):
        raise BadRequest(f"{field} must be numeric.")
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise BadRequest(f"{field} must be numeric.") from None
    if not parsed.is_finite():
        raise BadRequest(f"{field} must be numeric.")
    if abs(parsed) > MAX_AMOUNT:
        raise BadRequest(f"{field} is out of range.")
    return parsed


def parse_pagination(req: Request) -> tuple[int, int]:
    """Return ``(page, per_page)`` from the query string, 1-indexed."""

    try:
        page = int(req.args.get("page", 1))
        per_page = int(req.args.get("per_page", DEFAULT_PER_PAGE))
    except (TypeError, ValueError):
        raise BadRequest("page and per_page must be integers.") from None
    if page < 1 or per_page < 1:
        raise BadRequest("page and per_page must be positive.")
    return page, min(per_page, MAX_PER_PAGE)


def paginate(query, page: int, per_page: int) -> tuple[list, int]:
    """Apply offset pagination and return ``(items, total)``."""

    total = query.order_by(None).count()
    items = query.limit(per_page).offset((page - 1) * per_page).all()
    return items, total
