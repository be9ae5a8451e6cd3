"""The four step immigration application wizard.

The wizard owns the applicant's single draft :class:`~models.application.Application`
row. Field edits are autosaved without validation; only moving forward and the
final submission are gated by the per-step rules in :meth:`ApplicationWizard.validate`.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, NotFound, ServiceUnavailable

from models import db, utcnow
from models.application import DRAFT_FIELDS, Application
from models.document import Document
from models.profile_document import DOCUMENT_TYPES, ProfileDocument
from models.user import User
from storage import AbstractStorage, get_storage
from utils.uploads import file_extension

from .errors import DraftConflict, StepValidationError
from .notifications import notify_admins, notify_user
from .payment_plans import PAYMENT_PLANS, total_fee_for

STEPS = (
    (1, "Personal Info"),
    (2, "Documents"),
    (3, "Payment Plan"),
    (4, "Review"),
)
TOTAL_STEPS = len(STEPS)
DEFAULT_DESTINATION = "USA"
DEFAULT_REQUIRED_DOCUMENT_TYPES = ("resume", "photo")

PERSONAL_INFO_REQUIRED = (
    ("full_name", "full name"),
    ("phone", "phone"),
    ("email", "email"),
)
# Profile columns copied into a draft when it is first created.
PROFILE_FIELDS = ("full_name", "email", "phone", "country_of_origin", "desired_destination")


@dataclass
class WizardContext:
    """Collaborators the wizard works against."""

    user: User
    storage: AbstractStorage
    session: Any
    logger: logging.Logger
    required_document_types: tuple[str, ...] = DEFAULT_REQUIRED_DOCUMENT_TYPES
    clock: Callable[[], datetime] = utcnow

    @classmethod
    def for_user(cls, user: User) -> "WizardContext":
        configured = current_app.config.get("REQUIRED_DOCUMENT_TYPES")
        return cls(
            user=user,
            storage=get_storage(),
            session=db.session,
            logger=current_app.logger,
            required_document_types=tuple(
                configured if configured is not None else DEFAULT_REQUIRED_DOCUMENT_TYPES
            ),
        )


@dataclass
class StepValidation:
    step: int
    ok: bool
    missing: list[str] = field(default_factory=list)
    message: str = ""

    def raise_for_failure(self) -> None:
        if not self.ok:
            raise StepValidationError(self.step, self.missing, self.message)

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "ok": self.ok,
            "missing": list(self.missing),
            "message": self.message,
        }


@dataclass
class DraftResult:
    """Outcome of a draft write.

    ``state`` is ``"ok"`` once the draft is confirmed persisted, or
    ``"stale"`` when the write failed and ``draft`` is only the caller's
    unsaved copy.
    """

    state: str
    draft: dict
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.state == "ok"

    def to_dict(self) -> dict:
        data = {"state": self.state, "draft": self.draft}
        if self.error:
            data["error"] = self.error
        return data


class ApplicationWizard:
    """Step sequencing, autosave and submission for one applicant."""

    def __init__(self, context: WizardContext):
        self.ctx = context
        self.user = context.user
        self.session = context.session
        self.logger = context.logger

    # Reading

    def _application(self) -> Application | None:
        return self.session.query(Application).filter_by(user_id=self.user.id).first()

    def _backfill(self, values: dict) -> dict:
        for name in PROFILE_FIELDS:
            if not values.get(name):
                values[name] = getattr(self.user, name, None) or values.get(name)
        if not values.get("desired_destination"):
            values["desired_destination"] = DEFAULT_DESTINATION
        return values

    def load(self) -> dict:
        """Return the draft the wizard should resume from.

        Nothing is written. Without a stored draft the wizard starts on
        step 1 with the profile's values; a stored draft is returned exactly
        as saved.
        """

        application = self._application()
        if application is not None:
            return application.draft_dict()
        values = {name: None for name in DRAFT_FIELDS}
        values.update(
            {
                "id": None,
                "status": "draft",
                "current_step": 1,
                "documents": [],
                "version": 0,
            }
        )
        return self._backfill(values)

    # Draft persistence

    def _ensure_editable(self, application: Application | None) -> None:
        if application is not None and not application.is_draft:
            raise DraftConflict(
                "This application has already been submitted and can no longer be edited.",
                current_version=application.version,
            )

    def _get_or_create_draft(self) -> Application:
        application = self._application()
        self._ensure_editable(application)
        if application is not None:
            return application
        # Profile values seed the row once; later writes keep what was typed.
        values = self._backfill({name: None for name in PROFILE_FIELDS})
        application = Application(
            user_id=self.user.id,
            status="draft",
            current_step=1,
            draft_documents=[],
            version=0,
            **values,
        )
        self.session.add(application)
        return application

    def _commit(self, application: Application, failure_message: str) -> None:
        application.version = (application.version or 0) + 1
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            self.logger.exception(
                "Failed to persist draft application for user %s", self.user.id
            )
            raise ServiceUnavailable(failure_message) from None

    @staticmethod
    def _clean_fields(fields: dict) -> dict:
        unknown = sorted(set(fields) - set(DRAFT_FIELDS))
        if unknown:
            raise BadRequest(f"Unknown application fields: {', '.join(unknown)}.")
        cleaned = {}
        for name, value in fields.items():
            if value is not None and not isinstance(value, str):
                raise BadRequest(f"{name} must be a string.")
            cleaned[name] = value
        plan = cleaned.get("payment_plan")
        if plan is not None and plan not in PAYMENT_PLANS:
            raise BadRequest(
                "payment_plan must be one of: {}.".format(", ".join(PAYMENT_PLANS))
            )
        return cleaned

    def autosave(self, fields: dict, expected_version: int | None = None) -> DraftResult:
        """Upsert the draft with ``fields``, whatever state the steps are in.

        Re-sending values that are already stored writes nothing. When
        ``expected_version`` is given and the stored draft has moved past
        it, the write is refused with :class:`DraftConflict`.
        """

        cleaned = self._clean_fields(fields)
        existing = self._application()
        self._ensure_editable(existing)

        if existing is not None:
            unchanged = all(getattr(existing, k) == v for k, v in cleaned.items())
            if unchanged:
                return DraftResult("ok", existing.draft_dict())
            if expected_version is not None and expected_version != existing.version:
                raise DraftConflict(
                    "The application was changed elsewhere. Reload it before saving.",
                    current_version=existing.version,
                )

        application = self._get_or_create_draft()
        for name, value in cleaned.items():
            setattr(application, name, value)

        unsaved = application.draft_dict()
        try:
            self._commit(application, "Could not save your application.")
        except ServiceUnavailable as exc:
            return DraftResult("stale", unsaved, error=exc.description)
        return DraftResult("ok", application.draft_dict())

    # Step gating

    def validate(self, step: int, application: Application | None = None) -> StepValidation:
        """Evaluate the gate for ``step`` against the stored (or resumable) draft."""

        if step < 1 or step > TOTAL_STEPS:
            raise BadRequest(f"step must be between 1 and {TOTAL_STEPS}.")
        values = application.draft_dict() if application is not None else self.load()

        if step == 1:
            missing = [
                name
                for name, _label in PERSONAL_INFO_REQUIRED
                if not (values.get(name) or "").strip()
            ]
            labels = [label for name, label in PERSONAL_INFO_REQUIRED if name in missing]
            message = "Please fill in: {}.".format(", ".join(labels)) if missing else ""
            return StepValidation(1, not missing, missing, message)

        if step == 2:
            attached = {doc.get("type") for doc in values.get("documents") or []}
            missing = [
                doc_type
                for doc_type in self.ctx.required_document_types
                if doc_type not in attached
            ]
            message = (
                "Missing required documents: {}.".format(", ".join(missing))
                if missing
                else ""
            )
            return StepValidation(2, not missing, missing, message)

        if step == 3:
            if values.get("payment_plan") in PAYMENT_PLANS:
                return StepValidation(3, True)
            return StepValidation(
                3, False, ["payment_plan"], "Please choose a payment plan."
            )

        return StepValidation(4, True)

    def advance(self, step: int | None = None) -> DraftResult:
        """Move forward from ``step`` (default: the stored step) if its gate holds."""

        application = self._get_or_create_draft()
        current = step if step is not None else application.current_step
        if current < 1 or current > TOTAL_STEPS:
            self.session.rollback()
            raise BadRequest(f"step must be between 1 and {TOTAL_STEPS}.")
        if current >= TOTAL_STEPS:
            self.session.rollback()
            raise BadRequest("Already on the final step. Submit the application instead.")
        if current > application.current_step:
            self.session.rollback()
            raise BadRequest(f"Step {current} has not been reached yet.")

        result = self.validate(current, application)
        if not result.ok:
            self.session.rollback()
            result.raise_for_failure()

        application.current_step = max(application.current_step, current + 1)
        self._commit(application, "Could not save your progress. Please try again.")
        return DraftResult("ok", application.draft_dict())

    @staticmethod
    def retreat(step: int) -> int:
        """Previous step for display; nothing is persisted."""

        if step <= 1 or step > TOTAL_STEPS:
            raise BadRequest("Cannot go back from this step.")
        return step - 1

    # Documents

    def _discard_blob(self, document: dict) -> None:
        if document.get("from_profile") or not document.get("storage_key"):
            return
        try:
            self.ctx.storage.delete(document["storage_key"])
        except OSError:
            self.logger.warning(
                "Could not delete stored document %s", document["storage_key"], exc_info=True
            )

    def _attach(self, application: Application, new_document: dict) -> list[dict]:
        doc_type = new_document["type"]
        documents = list(application.draft_documents or [])
        replaced = [doc for doc in documents if doc.get("type") == doc_type]
        application.draft_documents = [
            doc for doc in documents if doc.get("type") != doc_type
        ] + [new_document]
        return replaced

    @staticmethod
    def _check_type(document_type: str) -> None:
        if document_type not in DOCUMENT_TYPES:
            raise BadRequest(
                "document_type must be one of: {}.".format(", ".join(DOCUMENT_TYPES))
            )

    def attach_upload(self, document_type: str, file: FileStorage) -> dict:
        """Store ``file`` and make it the draft's document for ``document_type``."""

        self._check_type(document_type)
        application = self._get_or_create_draft()

        extension = file_extension(file.filename or "")
        stamp = int(self.ctx.clock().timestamp() * 1000)
        key = f"{self.user.id}/{document_type}-{stamp}-{uuid.uuid4().hex[:8]}"
        if extension:
            key = f"{key}.{extension}"
        try:
            stored_key = self.ctx.storage.save(file, key)
        except (OSError, ValueError):
            self.session.rollback()
            self.logger.exception("Upload of %s failed for user %s", document_type, self.user.id)
            raise ServiceUnavailable("Failed to upload document. Please try again.") from None

        new_document = {
            "id": stored_key,
            "type": document_type,
            "name": file.filename or stored_key,
            "url": self.ctx.storage.public_url(stored_key),
            "storage_key": stored_key,
            "status": "uploaded",
            "from_profile": False,
        }
        replaced = self._attach(application, new_document)
        try:
            self._commit(application, "Failed to save the uploaded document.")
        except ServiceUnavailable:
            self._discard_blob(new_document)
            raise
        for old in replaced:
            self._discard_blob(old)
        return new_document

    def attach_profile_document(self, profile_document_id: int) -> dict:
        """Reuse a document from the applicant's standing profile."""

        profile_document = (
            self.session.query(ProfileDocument)
            .filter_by(id=profile_document_id, user_id=self.user.id)
            .first()
        )
        if profile_document is None:
            raise NotFound("Profile document not found.")

        application = self._get_or_create_draft()
        new_document = {
            "id": f"profile-{profile_document.id}",
            "type": profile_document.document_type,
            "name": profile_document.name,
            "url": profile_document.file_url,
            "storage_key": profile_document.storage_key,
            "status": "uploaded",
            "from_profile": True,
        }
        replaced = self._attach(application, new_document)
        self._commit(application, "Failed to attach the profile document.")
        for old in replaced:
            self._discard_blob(old)
        return new_document

    def remove_document(self, document_type: str) -> None:
        """Detach the draft's document for ``document_type``.

        The stored blob of a fresh upload is deleted on a best-effort basis;
        blobs shared with the profile are left alone.
        """

        self._check_type(document_type)
        application = self._application()
        self._ensure_editable(application)
        documents = list(application.draft_documents or []) if application else []
        removed = [doc for doc in documents if doc.get("type") == document_type]
        if not removed:
            raise NotFound("No document of that type is attached.")

        application.draft_documents = [
            doc for doc in documents if doc.get("type") != document_type
        ]
        self._commit(application, "Failed to remove the document.")
        for doc in removed:
            self._discard_blob(doc)

    # Submission

    def submit(self) -> Application:
        """Submit the draft in a single transaction.

        Either the application, its document records, the profile update and
        both notifications are all committed, or nothing is and the draft
        stays on the review step.
        """

        application = self._application()
        if application is None:
            raise BadRequest("There is no application to submit.")
        self._ensure_editable(application)
        if application.current_step != TOTAL_STEPS:
            raise BadRequest("Complete every step before submitting.")
        for step, _name in STEPS:
            self.validate(step, application).raise_for_failure()

        plan = PAYMENT_PLANS[application.payment_plan]
        try:
            application.total_fee = total_fee_for(plan.id)
            application.status = "submitted"
            application.submitted_at = self.ctx.clock()
            application.version = (application.version or 0) + 1

            for doc in application.draft_documents or []:
                self.session.add(
                    Document(
                        application_id=application.id,
                        document_type=doc["type"],
                        name=doc.get("name") or doc["type"],
                        file_url=doc.get("url"),
                        storage_key=doc.get("storage_key"),
                        from_profile=bool(doc.get("from_profile")),
                        status="pending",
                    )
                )

            if application.phone:
                self.user.phone = application.phone
            if application.country_of_origin:
                self.user.country_of_origin = application.country_of_origin
            if application.desired_destination:
                self.user.desired_destination = application.desired_destination

            notify_user(
                self.user.id,
                "Application Submitted",
                "Your immigration application has been submitted successfully. "
                "We will review it shortly.",
                type="application",
                session=self.session,
            )
            notify_admins(
                "New Application Submitted",
                f"{application.full_name} ({application.email}) submitted an "
                f"application on the {plan.name} plan.",
                type="application",
                link=f"/admin/applications/{application.id}",
                session=self.session,
            )
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            self.logger.exception("Submission failed for application %s", application.id)
            raise ServiceUnavailable(
                "Failed to submit application. Please try again."
            ) from None

        self.logger.info("Application %s submitted by user %s", application.id, self.user.id)
        return application
