"""Local filesystem storage implementation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import IO, BinaryIO

from werkzeug.utils import secure_filename

from config import Config

from .abstract_storage import AbstractStorage


class LocalStorage(AbstractStorage):
    """Persist files to the local filesystem under the configured upload directory."""

    def __init__(self, upload_dir: str | None = None, url_prefix: str | None = None):
        self.base_directory = Path(upload_dir or Config.UPLOAD_DIR)
        self.url_prefix = (url_prefix or Config.UPLOAD_URL_PREFIX).rstrip("/")
        os.makedirs(self.base_directory, exist_ok=True)

    @staticmethod
    def normalize_key(key: str) -> str:
        """Sanitize every path segment of ``key``."""

        segments = [secure_filename(part) for part in key.split("/")]
        segments = [part for part in segments if part]
        if not segments:
            raise ValueError("Storage key must contain at least one valid character.")
        return "/".join(segments)

    def _path(self, key: str) -> Path:
        return self.base_directory / self.normalize_key(key)

    def save(self, file_obj: IO[bytes], key: str) -> str:
        """Save a file and return its key relative to the upload directory."""

        destination = self._path(key)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())

        return destination.relative_to(self.base_directory).as_posix()

    def exists(self, key: str) -> bool:
        """Return True if the given key exists within the upload directory."""

        return self._path(key).is_file()

    def open(self, key: str, mode: str = "rb") -> BinaryIO:
        """Open a stored file using the provided mode."""

        return open(self._path(key), mode)

    def delete(self, key: str) -> None:
        os.remove(self._path(key))

    def public_url(self, key: str) -> str:
        return f"{self.url_prefix}/{self.normalize_key(key)}"

    def absolute_path(self, key: str) -> Path:
        return self._path(key)
