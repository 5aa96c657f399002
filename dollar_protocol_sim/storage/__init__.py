"""Ledger persistence"""

from .ledger_store import LedgerStore, MemoryLedgerStore, JsonLedgerStore

__all__ = ["LedgerStore", "MemoryLedgerStore", "JsonLedgerStore"]
