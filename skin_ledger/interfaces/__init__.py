"""Protocol interfaces for the external collaborators."""
from .portfolio_reader import PortfolioReader
from .transaction_writer import TransactionWriter

__all__ = ["PortfolioReader", "TransactionWriter"]
