"""Payment ledger factory.

Provides get_ledger() / set_ledger() to swap implementations. The adapter
is chosen with the LEDGER_ADAPTER environment variable.
"""

import os

from marketplace.escrow.port import LedgerPort

_current_ledger: LedgerPort | None = None


def get_ledger() -> LedgerPort:
    """Return the current ledger. Defaults to FakeLedger."""
    global _current_ledger
    if _current_ledger is None:
        adapter = os.environ.get("LEDGER_ADAPTER", "fake")
        if adapter == "fake":
            from marketplace.escrow.fake_adapter import FakeLedger

            _current_ledger = FakeLedger()
        else:
            raise ValueError(f"Unknown ledger adapter: {adapter}")
    return _current_ledger


def set_ledger(ledger: LedgerPort) -> None:
    """Override the active ledger (useful for tests)."""
    global _current_ledger
    _current_ledger = ledger


def reset_ledger() -> None:
    """Reset to the default ledger."""
    global _current_ledger
    _current_ledger = None
