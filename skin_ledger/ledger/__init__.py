"""Average-cost position accounting."""
from .engine import compute_ledger, compute_positions, net_total_of

__all__ = ["compute_ledger", "compute_positions", "net_total_of"]
