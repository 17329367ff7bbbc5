"""
billqr - Source Package

Vietnamese bank-transfer QR payloads and shareable split bills.

Two independent cores:
1. EMV payload: bank text + account + amount + note -> NAPAS payment string
2. Shared bill: bill -> URL token -> per-payer totals -> one payload each

Everything is synchronous, pure and free of shared mutable state.
"""

__version__ = "1.0.0"
