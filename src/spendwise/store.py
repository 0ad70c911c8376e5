"""Document storage for persisted ledgers.

Documents are JSON-safe dicts stored under string keys with last-write-wins
``get``/``set``/``update``. ``run_transaction`` gives optimistic
read-modify-write: the function reads and stages writes through a
StoreTransaction, and the commit fails with StaleStateError if any document it
read has changed in the meantime.

FallbackStore puts a primary store and a local cache behind the same
interface, so callers never need to know which tier answered.
"""

import copy
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from spendwise.exceptions import (
    DocumentNotFoundError,
    StaleStateError,
    StoreUnavailableError,
)
from spendwise.logging_setup import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
Document = dict[str, Any]


class DocumentStore(ABC):
    """Key-value document store."""

    @abstractmethod
    def get(self, key: str) -> Document | None:
        """Return a copy of the document, or None if missing."""

    @abstractmethod
    def set(self, key: str, value: Document) -> None:
        """Create or replace a document."""

    @abstractmethod
    def update(self, key: str, partial: Document) -> None:
        """
        Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: If there is no document under key
        """

    @abstractmethod
    def run_transaction(self, fn: "Callable[[StoreTransaction], T]") -> T:
        """
        Run fn against a transaction and commit its writes atomically.

        Raises:
            StaleStateError: If a document fn read changed before commit
        """


class StoreTransaction:
    """Reads and staged writes for one run_transaction call."""

    def __init__(self, store: "VersionedStore") -> None:
        self._store = store
        self._reads: dict[str, int] = {}
        self._writes: dict[str, Document] = {}

    @property
    def reads(self) -> dict[str, int]:
        return dict(self._reads)

    @property
    def writes(self) -> dict[str, Document]:
        return copy.deepcopy(self._writes)

    def get(self, key: str) -> Document | None:
        if key in self._writes:
            return copy.deepcopy(self._writes[key])
        version, value = self._store.read_versioned(key)
        self._reads.setdefault(key, version)
        return value

    def set(self, key: str, value: Document) -> None:
        self._writes[key] = copy.deepcopy(value)

    def update(self, key: str, partial: Document) -> None:
        current = self.get(key)
        if current is None:
            raise DocumentNotFoundError(key)
        current.update(copy.deepcopy(partial))
        self._writes[key] = current


class VersionedStore(DocumentStore):
    """
    Base for stores that keep a version number per document.

    Subclasses implement ``_read`` and ``_write``; both are only called with
    the store lock held.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()

    @abstractmethod
    def _read(self, key: str) -> tuple[int, Document | None]:
        """Return (version, document); version 0 means missing."""

    @abstractmethod
    def _write(self, documents: dict[str, Document]) -> None:
        """Persist documents, bumping each one's version."""

    def read_versioned(self, key: str) -> tuple[int, Document | None]:
        with self._lock:
            version, value = self._read(key)
            return version, copy.deepcopy(value)

    def get(self, key: str) -> Document | None:
        return self.read_versioned(key)[1]

    def set(self, key: str, value: Document) -> None:
        with self._lock:
            self._write({key: copy.deepcopy(value)})

    def update(self, key: str, partial: Document) -> None:
        with self._lock:
            _, current = self._read(key)
            if current is None:
                raise DocumentNotFoundError(key)
            merged = copy.deepcopy(current)
            merged.update(copy.deepcopy(partial))
            self._write({key: merged})

    def run_transaction(self, fn: Callable[[StoreTransaction], T]) -> T:
        txn = StoreTransaction(self)
        result = fn(txn)

        with self._lock:
            stale = [key for key, version in txn.reads.items() if self._read(key)[0] != version]
            if stale:
                logger.info("Transaction conflict on %s", ", ".join(stale))
                raise StaleStateError(stale)
            writes = txn.writes
            if writes:
                self._write(writes)

        return result


class InMemoryStore(VersionedStore):
    """Thread-safe in-process store."""

    def __init__(self) -> None:
        super().__init__()
        self._documents: dict[str, tuple[int, Document]] = {}

    def _read(self, key: str) -> tuple[int, Document | None]:
        if key not in self._documents:
            return 0, None
        return self._documents[key]

    def _write(self, documents: dict[str, Document]) -> None:
        for key, value in documents.items():
            version = self._documents.get(key, (0, {}))[0]
            self._documents[key] = (version + 1, value)

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._documents if k.startswith(prefix))


class JsonFileStore(VersionedStore):
    """
    Store backed by a single JSON file.

    Used as the local cache tier. The file is rewritten on every write via a
    temporary file and rename.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise StoreUnavailableError(f"Could not read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StoreUnavailableError(f"Corrupt store file {self.path}: {e}") from e
        return data.get("documents", {})  # type: ignore[no-any-return]

    def _read(self, key: str) -> tuple[int, Document | None]:
        entry = self._load().get(key)
        if entry is None:
            return 0, None
        return int(entry["version"]), entry["value"]

    def _write(self, documents: dict[str, Document]) -> None:
        data = self._load()
        for key, value in documents.items():
            version = int(data.get(key, {}).get("version", 0))
            data[key] = {"version": version + 1, "value": value}

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"documents": data}, f, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise StoreUnavailableError(f"Could not write {self.path}: {e}") from e


class FallbackStore(DocumentStore):
    """
    Primary store with a local cache behind one interface.

    Every successful primary read or write is mirrored into the cache. When the
    primary raises StoreUnavailableError the cache serves the request instead.
    Reconciling the two afterwards is left to the application.
    """

    def __init__(self, primary: DocumentStore, cache: DocumentStore) -> None:
        self.primary = primary
        self.cache = cache
        self.last_tier = "primary"

    def _fallback(self, action: str, key: str, error: StoreUnavailableError) -> None:
        logger.warning("Primary store unavailable for %s %s, using cache: %s", action, key, error)
        self.last_tier = "cache"

    def get(self, key: str) -> Document | None:
        try:
            value = self.primary.get(key)
        except StoreUnavailableError as e:
            self._fallback("get", key, e)
            return self.cache.get(key)

        self.last_tier = "primary"
        if value is not None:
            self.cache.set(key, value)
        return value

    def set(self, key: str, value: Document) -> None:
        try:
            self.primary.set(key, value)
        except StoreUnavailableError as e:
            self._fallback("set", key, e)
        else:
            self.last_tier = "primary"
        self.cache.set(key, value)

    def update(self, key: str, partial: Document) -> None:
        try:
            self.primary.update(key, partial)
        except StoreUnavailableError as e:
            self._fallback("update", key, e)
            self.cache.update(key, partial)
            return

        self.last_tier = "primary"
        merged = self.primary.get(key)
        if merged is not None:
            self.cache.set(key, merged)

    def run_transaction(self, fn: Callable[[StoreTransaction], T]) -> T:
        staged: dict[str, Document] = {}

        def capture(txn: StoreTransaction) -> T:
            result = fn(txn)
            staged.clear()
            staged.update(txn.writes)
            return result

        try:
            result = self.primary.run_transaction(capture)
        except StoreUnavailableError as e:
            self._fallback("transaction", "", e)
            return self.cache.run_transaction(fn)

        self.last_tier = "primary"
        for key, value in staged.items():
            self.cache.set(key, value)
        return result
