"""Serves stored document blobs to their owner or an administrator."""

from __future__ import annotations

import mimetypes

from flask import Blueprint, send_file
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import Forbidden, NotFound

from storage import get_storage
from storage.local_storage import LocalStorage
from utils.auth import require_user

files_bp = Blueprint("files", __name__)


@files_bp.route("/<path:key>", methods=["GET"])
@jwt_required()
def download_file(key: str):
    """Stream a stored file. Keys are namespaced by the owning user's id."""

    user = require_user()
    try:
        normalized = LocalStorage.normalize_key(key)
    except ValueError:
        raise NotFound("Stored file could not be found.") from None

    owner_id = normalized.split("/", 1)[0]
    if not user.is_admin and owner_id != str(user.id):
        raise Forbidden("You do not have access to this file.")

    storage = get_storage()
    if not storage.exists(normalized):
        raise NotFound("Stored file could not be found.")

    mimetype = mimetypes.guess_type(normalized)[0] or "application/octet-stream"
    return send_file(
        storage.open(normalized),
        mimetype=mimetype,
        as_attachment=False,
        download_name=normalized.rsplit("/", 1)[-1],
    )
