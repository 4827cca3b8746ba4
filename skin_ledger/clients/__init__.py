"""HTTP clients for the external collaborators."""
from .api import PortfolioApiClient

__all__ = ["PortfolioApiClient"]
