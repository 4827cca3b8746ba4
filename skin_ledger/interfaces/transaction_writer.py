"""Transaction writer protocol: creation and removal of transactions."""
from typing import Any, Protocol


class TransactionWriter(Protocol):
    """Abstract interface for persisting transactions.

    ``create_transaction`` raises RowSubmissionError with a human-readable
    reason when the transaction is rejected.
    """

    async def create_transaction(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def delete_transaction(self, transaction_id: str) -> None: ...
