"""
BaseService -- abstract base for kernel services.

Responsibility:
    Common constructor and session-handling contract for kernel-layer
    services.  Kernel services use ``session.flush()`` and never
    ``session.commit()``: the caller (a module service, the batch runner
    or a test) owns the transaction.

Architecture position:
    Kernel > Services.  Module services (``rental_modules.*.service``) are
    the transaction owners and do NOT inherit from this class.
"""

from abc import ABC

from sqlalchemy.orm import Session

from rental_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
        - ``clock`` is injectable for deterministic tests.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
