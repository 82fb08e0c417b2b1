"""
Kakeibo Ledger Client - Source Package

Client-side core of a household ledger (kakeibo) that talks to a
remote ledger service over REST.

DESIGN PRINCIPLES:
1. The server is the system of record - the local store is only a cache
2. Every write is followed by a full refresh
3. At most one row is edited at a time
4. Failures degrade to a visible message, never a crash
5. Every user intent is auditable
"""

__version__ = "1.0.0"
__author__ = "Kakeibo Team"
