"""Transaction ledger and portfolio view-model engine for skin portfolios."""

__version__ = "0.1.0"
