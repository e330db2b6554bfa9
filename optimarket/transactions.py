"""
Transactions with commit hooks that respect nesting.

aquilia's ``Atomic.on_commit`` fires only for the block that issued the
real COMMIT; hooks registered on a nested (savepoint) block are dropped.
``transaction()`` keeps hooks from nested blocks and hands them to the
outermost ``transaction()`` once the nested block exits cleanly, so they
run after the real commit, and not at all if anything rolls back.

Code that composes several workflow calls into one unit of work opens
the outer block with ``transaction()`` as well.
"""

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar

from aquilia.models import atomic


logger = logging.getLogger("optimarket.transactions")

_outermost: ContextVar = ContextVar("optimarket_outermost_transaction", default=None)


class _NestedHooks:
    """Collects hooks for a nested block until it releases its savepoint."""

    def __init__(self):
        self.commit_hooks = []

    def on_commit(self, fn) -> None:
        self.commit_hooks.append(fn)


@asynccontextmanager
async def transaction():
    outer = _outermost.get()
    async with atomic() as txn:
        if outer is None:
            token = _outermost.set(txn)
            try:
                yield txn
            finally:
                _outermost.reset(token)
            return

        nested = _NestedHooks()
        yield nested
        # only reached when the nested block did not raise
        for hook in nested.commit_hooks:
            outer.on_commit(hook)
        if nested.commit_hooks:
            logger.debug("Deferred %d commit hook(s) to the outer transaction", len(nested.commit_hooks))
