"""Storage backends."""

from flask import current_app

from .abstract_storage import AbstractStorage
from .local_storage import LocalStorage


def get_storage() -> AbstractStorage:
    """Return the storage backend configured for the current app."""

    return LocalStorage(
        current_app.config.get("UPLOAD_DIR"),
        current_app.config.get("UPLOAD_URL_PREFIX"),
    )


__all__ = ["AbstractStorage", "LocalStorage", "get_storage"]
