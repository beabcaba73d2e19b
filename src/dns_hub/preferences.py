"""
Durable client-side preferences.

Only three keys are kept: the selected provider, the selected credential
("all" or a stringified integer id) and the page-size preference. Values
are strings; callers re-validate them against live data on every load.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Final


logger = logging.getLogger(__name__)


KEY_PROVIDER: Final[str] = "dns_selected_provider"
KEY_CREDENTIAL: Final[str] = "dns_selected_credential"
KEY_PAGE_SIZE: Final[str] = "dns_page_size"

MIN_PAGE_SIZE: Final[int] = 20


class PreferenceStore(ABC):
    """Abstract string key/value store for UI preferences."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value."""
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a value (no-op when absent)."""
        ...

    def get_page_size(self, default: int = MIN_PAGE_SIZE) -> int:
        """
        Read the page-size preference.

        Parameters
        ----------
        default : int, optional
            Value used when nothing valid is stored.

        Returns
        -------
        int
            The stored page size, never below ``MIN_PAGE_SIZE``.
        """
        raw = self.get(KEY_PAGE_SIZE)
        try:
            value = int(raw) if raw is not None else default
        except ValueError:
            value = default
        return max(value, MIN_PAGE_SIZE)

    def set_page_size(self, page_size: int) -> None:
        """Store the page-size preference (clamped to ``MIN_PAGE_SIZE``)."""
        self.set(KEY_PAGE_SIZE, str(max(page_size, MIN_PAGE_SIZE)))


class MemoryPreferenceStore(PreferenceStore):
    """In-memory store, used in tests and for throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)


class JsonPreferenceStore(PreferenceStore):
    """
    JSON-file backed store.

    The whole file is rewritten atomically on every change.

    Parameters
    ----------
    path : Path
        Location of the JSON file. Missing parent directories are created on
        the first write.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._values: dict[str, str] = self._read()

    def _read(self) -> dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning('Ignoring unreadable preferences file "%s": %s', self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning('Ignoring malformed preferences file "%s".', self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2, sort_keys=True)
            Path(tmp_name).replace(self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if self._values.get(key) == value:
            return
        self._values[key] = value
        self._write()

    def remove(self, key: str) -> None:
        if key not in self._values:
            return
        del self._values[key]
        self._write()
