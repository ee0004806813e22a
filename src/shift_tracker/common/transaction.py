from __future__ import annotations

from typing import ContextManager, Protocol


class TransactionManager(Protocol):
    def transaction(self) -> ContextManager[None]:
        """Run the enclosed repository calls as one unit: all commit or none do.

        Nested calls join the outer transaction.
        """

        raise NotImplementedError
