from __future__ import annotations

from typing import Any, ContextManager, Protocol


class TransactionManager(Protocol):
    """Unit-of-work boundary shared by the repositories of one store.

    ``begin()`` yields an opaque handle that repository methods accept as
    ``tx``; leaving the block normally commits, an exception rolls back.
    """

    def begin(self) -> ContextManager[Any]:
        raise NotImplementedError
