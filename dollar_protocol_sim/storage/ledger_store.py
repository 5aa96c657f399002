#!/usr/bin/env python3
"""
Ledger Persistence

Stores the committed LedgerState so a restarted process resumes with the same
totals and the same last-regulated-epoch marker. JSON keeps every integer
exact.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from ..core.errors import StateStoreError
from ..core.ledger import LedgerState


STATE_FORMAT_VERSION = 1


class LedgerStore(ABC):
    """Durable home of the committed ledger"""

    @abstractmethod
    def load(self) -> LedgerState:
        """Return the last saved state, or a fresh one"""

    @abstractmethod
    def save(self, state: LedgerState):
        """Persist state; must be all-or-nothing"""


class MemoryLedgerStore(LedgerStore):
    """Keeps a private copy of the last saved state"""

    def __init__(self, initial: Optional[LedgerState] = None):
        self._state = initial.copy() if initial is not None else None
        self.save_count = 0

    def load(self) -> LedgerState:
        if self._state is None:
            return LedgerState.initial()
        return self._state.copy()

    def save(self, state: LedgerState):
        self._state = state.copy()
        self.save_count += 1


class JsonLedgerStore(LedgerStore):
    """Ledger state in a JSON file, replaced atomically on every save"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> LedgerState:
        if not self.path.exists():
            return LedgerState.initial()

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateStoreError(f"cannot read ledger state from {self.path}: {e}") from e

        version = data.get("format_version")
        if version != STATE_FORMAT_VERSION:
            raise StateStoreError(f"unsupported ledger state format {version!r} in {self.path}")

        try:
            return LedgerState.from_dict(data["ledger"])
        except (KeyError, TypeError, ValueError) as e:
            raise StateStoreError(f"malformed ledger state in {self.path}: {e}") from e

    def save(self, state: LedgerState):
        try:
            payload = json.dumps({
                "format_version": STATE_FORMAT_VERSION,
                "ledger": state.to_dict(),
            }, indent=2)
        except (TypeError, ValueError) as e:
            raise StateStoreError(f"cannot serialize ledger state for {self.path}: {e}") from e

        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
                )
                try:
                    with os.fdopen(fd, 'w') as f:
                        f.write(payload)
                        f.flush()
                        os.fsync(f.fileno())
                    os.replace(tmp_name, self.path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
            except OSError as e:
                raise StateStoreError(f"cannot write ledger state to {self.path}: {e}") from e
