"""
BaseService -- abstract base for kernel services that run inside a caller's
transaction.

Responsibility:
    Provides the common constructor and session-handling contract.  Services
    built on it use ``session.flush()`` and never ``session.commit()``; the
    caller (ReportLifecycleService, the boundary, or a test) owns the
    transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for session-scoped kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
