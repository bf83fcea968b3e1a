"""Credential storage backends.

The pipeline only needs get/set/clear per credential kind. How long each
credential lives (session memory vs. a durable file) is decided by which
backend a kind is routed to, see ``TieredCredentialStore``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..constants import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY


class CredentialKind(str, Enum):
    """Kinds of credential held by a store.

    Attributes:
        ACCESS: Short-lived bearer credential attached to every request.
        REFRESH: Longer-lived credential used only to obtain a new access credential.
    """

    ACCESS = ACCESS_TOKEN_KEY
    REFRESH = REFRESH_TOKEN_KEY


@runtime_checkable
class CredentialStore(Protocol):
    def get(self, kind: CredentialKind) -> str | None: ...
    def set(self, kind: CredentialKind, value: str) -> None: ...
    def clear(self, kind: CredentialKind) -> None: ...
    def clear_all(self) -> None: ...


class MemoryCredentialStore:
    """Session-scoped store; contents vanish with the process."""

    def __init__(self, initial: Mapping[CredentialKind, str] | None = None) -> None:
        self._values: dict[CredentialKind, str] = {}
        for kind, value in (initial or {}).items():
            self.set(kind, value)

    def get(self, kind: CredentialKind) -> str | None:
        return self._values.get(CredentialKind(kind)) or None

    def set(self, kind: CredentialKind, value: str) -> None:
        if not value:
            self.clear(kind)
            return
        self._values[CredentialKind(kind)] = value

    def clear(self, kind: CredentialKind) -> None:
        self._values.pop(CredentialKind(kind), None)

    def clear_all(self) -> None:
        self._values.clear()


class FileCredentialStore:
    """Durable store backed by a small JSON file.

    Writes are atomic (temporary file + rename) and the file is created with
    mode 0600. A missing or unreadable file reads as empty.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = Path(path)

    def get(self, kind: CredentialKind) -> str | None:
        value = self._load().get(CredentialKind(kind).value)
        return value if isinstance(value, str) and value else None

    def set(self, kind: CredentialKind, value: str) -> None:
        if not value:
            self.clear(kind)
            return
        data = self._load()
        data[CredentialKind(kind).value] = value
        self._atomic_write(data)

    def clear(self, kind: CredentialKind) -> None:
        data = self._load()
        if data.pop(CredentialKind(kind).value, None) is not None:
            self._atomic_write(data)

    def clear_all(self) -> None:
        data = self._load()
        removed = False
        for kind in CredentialKind:
            removed = data.pop(kind.value, None) is not None or removed
        if removed:
            self._atomic_write(data)

    def _load(self) -> dict[str, str]:
        try:
            with self.path.open(encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logging.warning(f"⚠️ Credential file unreadable, treating as empty: {type(e).__name__}")
            return {}
        if not isinstance(raw, dict):
            return {}
        return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}

    def _atomic_write(self, data: dict[str, str]) -> None:
        """Replace the credential file with ``data`` in one rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp:
                temp_path = tmp.name
                json.dump(data, tmp, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(temp_path, 0o600)
            os.replace(temp_path, self.path)
            logging.debug(f"💾 Credential file saved keys={sorted(data)}")
        except OSError as e:
            if temp_path and os.path.exists(temp_path):
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
            logging.error(f"💥 Credential file save failed: {type(e).__name__}")
            raise


class TieredCredentialStore:
    """Routes each credential kind to its own backing store."""

    def __init__(self, routes: Mapping[CredentialKind, CredentialStore]) -> None:
        missing = [k.value for k in CredentialKind if k not in routes]
        if missing:
            raise ValueError(f"no store configured for {missing}")
        self._routes = dict(routes)

    def backend_for(self, kind: CredentialKind) -> CredentialStore:
        return self._routes[CredentialKind(kind)]

    def get(self, kind: CredentialKind) -> str | None:
        return self.backend_for(kind).get(kind)

    def set(self, kind: CredentialKind, value: str) -> None:
        self.backend_for(kind).set(kind, value)

    def clear(self, kind: CredentialKind) -> None:
        self.backend_for(kind).clear(kind)

    def clear_all(self) -> None:
        for kind in CredentialKind:
            self.clear(kind)
