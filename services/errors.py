"""HTTP-aware exceptions raised by the application services."""

from __future__ import annotations

from werkzeug.exceptions import BadRequest, Conflict, UnprocessableEntity


class StepValidationError(UnprocessableEntity):
    """A wizard step gate did not hold; ``missing`` names what is absent."""

    def __init__(self, step: int, missing: list[str], description: str):
        super().__init__(description)
        self.step = step
        self.missing = list(missing)
        self.extra = {"step": step, "missing": self.missing}


class DraftConflict(Conflict):
    """The draft changed since the client last read it, or is no longer editable."""

    def __init__(self, description: str, current_version: int | None = None):
        super().__init__(description)
        self.current_version = current_version
        self.extra = (
            {"current_version": current_version} if current_version is not None else {}
        )


class PaymentRejected(BadRequest):
    """A payment request failed validation; nothing was recorded."""
