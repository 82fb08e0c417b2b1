"""Ledger store package."""

from kakeibo.store.ledger_store import LedgerStore

__all__ = ["LedgerStore"]
