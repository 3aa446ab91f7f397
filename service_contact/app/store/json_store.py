"""
JSON-document message store.
"""

import json
import os
import tempfile
import threading
from contextlib import nullcontext
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from pydantic import ValidationError

from shared.errors import StorageFailure
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..models import Message
from ..validation import ContactSubmission

READ_FAILURE = "Server error reading messages."
WRITE_FAILURE = "Server error saving message."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageStore:
    """Durable, newest-first collection of contact messages.

    Appends are serialized by a process-wide lock around the whole
    read-modify-persist cycle. Every write goes to a temp file in the same
    directory and is renamed over the document, so readers never see a
    partially written file and need no lock.
    """

    def __init__(
        self,
        path: Union[str, Path],
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.path = Path(path)
        self.metrics = metrics
        self.logger = get_logger("contact.store")
        self._clock = clock
        self._write_lock = threading.Lock()

    def initialize(self) -> None:
        """Create the document as an empty collection if it does not exist yet."""
        with self._write_lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                if self.path.exists():
                    return
                self._persist([])
            except OSError as e:
                self.logger.error("Failed to initialize message store", path=str(self.path), error=str(e))
                raise StorageFailure("Could not initialize message store.", {"path": str(self.path)}) from e
        self.logger.info("Initialized empty message store", path=str(self.path))

    def read_all(self) -> List[Message]:
        """Return every stored message, newest first."""
        with self._timed("read_all"):
            return self._load()

    def count(self) -> int:
        """Number of stored messages."""
        return len(self.read_all())

    def append(self, candidate: ContactSubmission, submitter_address: str) -> Message:
        """Store a validated submission at the head of the collection.

        Assigns ``id`` and ``received_at``. Raises StorageFailure if the
        existing document is unreadable or the new one cannot be written; in
        both cases the previously persisted document is left untouched.
        """
        with self._timed("append"), self._write_lock:
            try:
                messages = self._load()
            except StorageFailure as e:
                raise StorageFailure(WRITE_FAILURE, e.details) from e
            now = self._clock()
            message = Message(
                id=self._next_id(messages, now),
                name=candidate.name,
                email=candidate.email,
                message=candidate.message,
                submitter_address=submitter_address,
                received_at=self._next_received_at(messages, now),
            )
            messages.insert(0, message)
            try:
                self._persist([m.to_document() for m in messages])
            except (OSError, TypeError, ValueError) as e:
                self.logger.error("Failed to persist message", path=str(self.path), error=str(e))
                raise StorageFailure(WRITE_FAILURE, {"reason": "write_failed"}) from e

        self.logger.info("Message stored", message_id=message.id, total=len(messages))
        if self.metrics:
            self.metrics.set_gauge("stored_messages", len(messages))
        return message

    def _next_id(self, messages: List[Message], now: datetime) -> int:
        # Millisecond timestamp, bumped past the highest id already stored
        candidate = int(now.timestamp() * 1000)
        if messages:
            candidate = max(candidate, max(m.id for m in messages) + 1)
        return candidate

    def _next_received_at(self, messages: List[Message], now: datetime) -> datetime:
        if messages and messages[0].received_at > now:
            return messages[0].received_at
        return now

    def _load(self) -> List[Message]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error("Failed to read message store", path=str(self.path), error=str(e))
            raise StorageFailure(READ_FAILURE, {"reason": "unreadable"}) from e

        if not raw.strip():
            return []

        try:
            document: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            self.logger.error("Message store is not valid JSON", path=str(self.path), error=str(e))
            raise StorageFailure(READ_FAILURE, {"reason": "corrupted"}) from e

        if not isinstance(document, list):
            self.logger.error("Message store is not a JSON array", path=str(self.path))
            raise StorageFailure(READ_FAILURE, {"reason": "corrupted"})

        try:
            return [Message.model_validate(entry) for entry in document]
        except ValidationError as e:
            self.logger.error("Message store holds an invalid entry", path=str(self.path), error=str(e))
            raise StorageFailure(READ_FAILURE, {"reason": "corrupted"}) from e

    def _persist(self, documents: List[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            dir=str(self.path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(documents, fh, indent=2, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _timed(self, operation: str):
        if self.metrics:
            return self.metrics.time_operation("store_operation_duration_seconds", operation=operation)
        return nullcontext()
