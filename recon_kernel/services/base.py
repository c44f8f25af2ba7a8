"""
BaseService -- abstract base for kernel services.

Responsibility:
    Common constructor for every service that writes: it receives the
    caller's SQLAlchemy ``Session`` and persists with ``session.flush()``,
    never ``session.commit()``.

Invariants enforced:
    - Flush-only.  The caller (``session_scope`` or a test) owns commit and
      rollback, so a multi-step operation stays atomic.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from recon_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """Holds the caller's session; subclasses flush, never commit."""

    def __init__(self, session: Session):
        self.session = session
