# utils/unit_of_work.py
"""
Transaction boundary used by every mutating service operation.

A UnitOfWork owns one session and one transaction. Repository functions take
the session explicitly; nothing in the repository layer opens or commits a
transaction on its own.
"""

import logging

logger = logging.getLogger('unit_of_work')


class UnitOfWork:
    """
    Context manager wrapping a single database transaction.

    Usage:
        with UnitOfWork(session_factory) as uow:
            repo_function(uow.session, ...)

    Commits when the block exits normally, rolls back on any exception and
    re-raises it unchanged. Entering the same instance twice is an error.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.session = None
        self._transaction = None

    def __enter__(self):
        if self.session is not None:
            raise RuntimeError('UnitOfWork is already active; nested transactions are not supported')

        self.session = self.session_factory()
        self._transaction = self.session.begin()
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            if exc_type is None:
                self._transaction.commit()
            else:
                self._transaction.rollback()
                logger.debug(f"Transaction rolled back: {exc_type.__name__}")
        finally:
            self.session.close()
            self.session = None
            self._transaction = None
        return False

    def flush(self):
        self.session.flush()

    @property
    def active(self):
        return self.session is not None
