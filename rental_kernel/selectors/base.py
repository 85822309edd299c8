"""
Module: rental_kernel.selectors.base
Responsibility: Abstract base class for read-only query selectors.  Selectors
    answer "which contracts / payments are in state X today" without mutating
    anything.
Architecture position: Kernel > Selectors.  May import from db/base.py and
    models/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller but never
      call session.add(), session.delete(), session.commit() or session.flush().
    - Session ownership: the caller owns the session and its transaction.
    - "Today" is always passed in (or derived from an injected Clock); a
      selector never reads the wall clock on its own.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from rental_kernel.db.base import Base
from rental_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Guarantees:
        - ``session`` is stored as a public attribute for subclass queries.
        - ``clock`` supplies "today" when a query method is called without one.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()


def last_issued_sequence(session: Session, column, prefix: str, year: int) -> int:
    """Highest sequence already issued for ``{prefix}-{year}-NNNNNN`` numbers (0 if none).

    Uses MAX rather than COUNT so numbers are never reissued after gaps.
    """
    head = f"{prefix}-{year}-"
    issued = session.execute(select(column).where(column.like(f"{head}%"))).scalars()
    sequences = [int(n[len(head):]) for n in issued if n[len(head):].isdigit()]
    return max(sequences, default=0)
