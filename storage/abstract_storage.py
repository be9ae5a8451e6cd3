"""Storage abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, BinaryIO


class AbstractStorage(ABC):
    """Interface for object storage backends.

    Objects are addressed by a slash separated key such as
    ``"42/resume-1700000000.pdf"``.
    """

    @abstractmethod
    def save(self, file_obj: IO[bytes], key: str) -> str:
        """Persist a file under ``key`` and return the normalized key."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return whether the given key exists in storage."""

    @abstractmethod
    def open(self, key: str, mode: str = "rb") -> BinaryIO:
        """Open a stored object and return the file object."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a stored object. Raises ``FileNotFoundError`` if it is missing."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Return the URL clients use to fetch the object."""
