"""Entry point for ``python -m skin_ledger``."""
from .cli import main

if __name__ == "__main__":
    main()
