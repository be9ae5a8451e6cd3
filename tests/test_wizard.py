"""Service level tests for the application wizard."""

from __future__ import annotations

from decimal import Decimal
from io import BytesIO

import pytest
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, NotFound, ServiceUnavailable

from models import db
from models.application import Application
from models.document import Document
from models.notification import Notification
from models.profile_document import ProfileDocument
from models.user import User
from services.errors import DraftConflict, StepValidationError
from services.wizard import ApplicationWizard, WizardContext
from storage.local_storage import LocalStorage


class _FailingCommitSession:
    """Session stand-in whose commits fail like a lost database connection."""

    def __init__(self, session):
        self._session = session

    def __getattr__(self, name):
        return getattr(self._session, name)

    def commit(self):
        raise SQLAlchemyError("database unavailable")


class _UndeletableStorage(LocalStorage):
    def delete(self, key: str) -> None:
        raise PermissionError(f"cannot delete {key}")


@pytest.fixture()
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "blobs"), "/files")


@pytest.fixture()
def user(app_ctx, make_user):
    user_id = make_user(
        email="amara@example.com",
        full_name="Amara Okafor",
        country_of_origin="Nigeria",
    )
    return db.session.get(User, user_id)


def _wizard(app, user, storage, session=None) -> ApplicationWizard:
    return ApplicationWizard(
        WizardContext(
            user=user,
            storage=storage,
            session=session or db.session,
            logger=app.logger,
            required_document_types=("resume", "photo"),
        )
    )


def _upload(name: str, content: bytes = b"%PDF-1.4 test") -> FileStorage:
    return FileStorage(stream=BytesIO(content), filename=name)


def _stored(user) -> Application:
    return Application.query.filter_by(user_id=user.id).one()


def _reach_review_step(wizard: ApplicationWizard) -> None:
    wizard.autosave({"phone": "+234 801 000 0000", "payment_plan": "full_upfront"})
    wizard.advance()
    wizard.attach_upload("resume", _upload("cv.pdf"))
    wizard.attach_upload("photo", _upload("me.png", b"png"))
    wizard.advance()
    wizard.advance()


def test_load_without_draft_prefills_from_profile(app, user, storage):
    draft = _wizard(app, user, storage).load()

    assert draft["current_step"] == 1
    assert draft["status"] == "draft"
    assert draft["full_name"] == "Amara Okafor"
    assert draft["email"] == "amara@example.com"
    assert draft["country_of_origin"] == "Nigeria"
    assert draft["desired_destination"] == "USA"
    assert draft["documents"] == []
    assert Application.query.count() == 0


def test_autosave_is_idempotent(app, user, storage):
    wizard = _wizard(app, user, storage)

    first = wizard.autosave({"phone": "+234 801 000 0000", "visa_type": "H-1B"})
    second = wizard.autosave({"phone": "+234 801 000 0000", "visa_type": "H-1B"})

    assert first.ok and second.ok
    assert first.draft == second.draft
    assert Application.query.count() == 1
    assert _stored(user).version == 1

    third = wizard.autosave({"visa_type": "EB-3"})
    assert third.draft["version"] == 2


def test_autosave_skips_step_validation(app, user, storage):
    wizard = _wizard(app, user, storage)

    result = wizard.autosave({"full_name": "", "phone": ""})

    assert result.ok
    assert _stored(user).full_name == ""
    assert wizard.validate(1).ok is False


def test_cleared_profile_field_stays_cleared(app, user, storage):
    wizard = _wizard(app, user, storage)
    wizard.autosave({"full_name": "", "phone": "+234 801 000 0000"})

    assert wizard.load()["full_name"] == ""
    with pytest.raises(StepValidationError) as excinfo:
        wizard.advance(1)

    assert excinfo.value.missing == ["full_name"]
    assert wizard.validate(1).missing == ["full_name"]
    db.session.expire_all()
    assert _stored(user).full_name == ""
    assert _stored(user).current_step == 1


def test_autosave_rejects_unknown_fields_and_plans(app, user, storage):
    wizard = _wizard(app, user, storage)

    with pytest.raises(BadRequest):
        wizard.autosave({"status": "submitted"})
    with pytest.raises(BadRequest):
        wizard.autosave({"payment_plan": "weekly"})
    assert Application.query.count() == 0


def test_autosave_detects_concurrent_edit(app, user, storage):
    wizard = _wizard(app, user, storage)
    wizard.autosave({"phone": "111"})
    wizard.autosave({"phone": "222"}, expected_version=1)

    with pytest.raises(DraftConflict) as excinfo:
        wizard.autosave({"phone": "333"}, expected_version=1)

    assert excinfo.value.current_version == 2
    assert _stored(user).phone == "222"


def test_autosave_failure_returns_stale_draft(app, user, storage):
    wizard = _wizard(app, user, storage, session=_FailingCommitSession(db.session))

    result = wizard.autosave({"phone": "+234 801 000 0000"})

    assert result.state == "stale"
    assert result.draft["phone"] == "+234 801 000 0000"
    assert result.error
    assert Application.query.count() == 0


def test_step_one_requires_contact_details(app, user, storage):
    validation = _wizard(app, user, storage).validate(1)

    assert validation.ok is False
    assert validation.missing == ["phone"]


def test_advance_keeps_step_when_gate_fails(app, user, storage):
    wizard = _wizard(app, user, storage)
    wizard.autosave({"phone": "+234 801 000 0000"})
    assert wizard.advance().draft["current_step"] == 2

    wizard.attach_upload("photo", _upload("me.png", b"png"))
    with pytest.raises(StepValidationError) as excinfo:
        wizard.advance(2)

    assert excinfo.value.missing == ["resume"]
    db.session.expire_all()
    assert _stored(user).current_step == 2


def test_advance_cannot_skip_ahead(app, user, storage):
    wizard = _wizard(app, user, storage)
    wizard.autosave({"phone": "+234 801 000 0000"})

    with pytest.raises(BadRequest):
        wizard.advance(3)
    assert _stored(user).current_step == 1


def test_step_three_requires_plan(app, user, storage):
    wizard = _wizard(app, user, storage)
    wizard.autosave({"phone": "1"})

    assert wizard.validate(3).missing == ["payment_plan"]
    wizard.autosave({"payment_plan": "deferred"})
    assert wizard.validate(3).ok
    assert wizard.validate(4).ok


def test_retreat_moves_back_one_step():
    assert ApplicationWizard.retreat(3) == 2
    with pytest.raises(BadRequest):
        ApplicationWizard.retreat(1)


def test_upload_replaces_document_of_same_type(app, user, storage):
    wizard = _wizard(app, user, storage)

    first = wizard.attach_upload("resume", _upload("old.pdf"))
    second = wizard.attach_upload("resume", _upload("new.pdf"))

    documents = _stored(user).draft_documents
    assert [doc["type"] for doc in documents] == ["resume"]
    assert documents[0]["name"] == "new.pdf"
    assert storage.exists(second["storage_key"])
    assert not storage.exists(first["storage_key"])
    assert first["storage_key"].startswith(f"{user.id}/resume-")


def test_remove_document_tolerates_storage_failure(app, user, tmp_path):
    storage = _UndeletableStorage(str(tmp_path / "blobs"), "/files")
    wizard = _wizard(app, user, storage)
    wizard.attach_upload("resume", _upload("cv.pdf"))

    wizard.remove_document("resume")

    assert _stored(user).draft_documents == []
    with pytest.raises(NotFound):
        wizard.remove_document("resume")


def test_profile_document_blob_survives_removal(app, user, storage):
    key = storage.save(BytesIO(b"cv"), f"{user.id}/profile/resume-1.pdf")
    profile_document = ProfileDocument(
        user_id=user.id,
        document_type="resume",
        name="cv.pdf",
        storage_key=key,
        file_url=storage.public_url(key),
    )
    db.session.add(profile_document)
    db.session.commit()
    wizard = _wizard(app, user, storage)

    attached = wizard.attach_profile_document(profile_document.id)
    wizard.remove_document("resume")

    assert attached["from_profile"] is True
    assert attached["id"] == f"profile-{profile_document.id}"
    assert storage.exists(key)


def test_submit_writes_one_document_per_upload(app, user, storage):
    wizard = _wizard(app, user, storage)
    _reach_review_step(wizard)

    application = wizard.submit()

    assert application.status == "submitted"
    assert application.total_fee == Decimal("4500")
    assert application.submitted_at is not None
    documents = Document.query.filter_by(application_id=application.id).all()
    assert sorted(doc.document_type for doc in documents) == ["photo", "resume"]
    assert all(doc.status == "pending" for doc in documents)
    assert db.session.get(User, user.id).phone == "+234 801 000 0000"
    assert Notification.query.filter_by(audience="user", user_id=user.id).count() == 1
    assert Notification.query.filter_by(audience="admin").count() == 1


def test_submit_twice_is_rejected(app, user, storage):
    wizard = _wizard(app, user, storage)
    _reach_review_step(wizard)
    wizard.submit()

    with pytest.raises(DraftConflict):
        wizard.submit()
    with pytest.raises(DraftConflict):
        wizard.autosave({"phone": "999"})
    assert Document.query.count() == 2


def test_submit_requires_review_step(app, user, storage):
    wizard = _wizard(app, user, storage)
    wizard.autosave({"phone": "1", "payment_plan": "milestone"})

    with pytest.raises(BadRequest):
        wizard.submit()
    assert _stored(user).status == "draft"


def test_failed_submit_rolls_everything_back(app, user, storage):
    _reach_review_step(_wizard(app, user, storage))
    failing = _wizard(app, user, storage, session=_FailingCommitSession(db.session))

    with pytest.raises(ServiceUnavailable):
        failing.submit()

    application = _stored(user)
    assert application.status == "draft"
    assert application.current_step == 4
    assert application.total_fee is None
    assert Document.query.count() == 0
    assert Notification.query.count() == 0
