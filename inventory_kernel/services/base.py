"""
BaseService -- common constructor and transaction wrapper for kernel services.

Responsibility:
    Every mutating service receives a SQLAlchemy ``Session``, a ``Clock`` and
    ``LedgerSettings``, and runs each public operation through
    ``_operation()``:

        1. Binds operation/actor fields onto LogContext.
        2. Logs ``<op>_started``.
        3. Runs the body inside ``session.begin_nested()`` so a failure
           discards every partial write of this operation.
        4. Commits (auto_commit=True) or leaves the outer transaction to the
           caller (auto_commit=False).
        5. Logs ``<op>_completed`` / ``<op>_rejected`` / ``<op>_failed``.

Invariants enforced:
    - All-or-nothing operations: savepoint per operation.
    - SQLAlchemyError never escapes a service; it becomes
      StorageFailureError(operation, cause) after rollback.
    - Typed kernel errors propagate unchanged.

Architecture position:
    Kernel > Services -- imperative shell.
"""

import time
from abc import ABC
from contextlib import contextmanager
from typing import Any, Iterator
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.config import LedgerSettings
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import InventoryKernelError, StorageFailureError
from inventory_kernel.logging_config import LogContext, get_logger

logger = get_logger("services")


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Set ``auto_commit=False`` to compose several operations in one
    caller-owned transaction; each operation still runs in its own savepoint.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: LedgerSettings | None = None,
        auto_commit: bool = True,
    ):
        """
        Args:
            session: SQLAlchemy session for database operations.
            clock: Time source for recorded timestamps (SystemClock if None).
            settings: Ledger settings (package defaults if None).
            auto_commit: If True (default), commit on success and roll back
                on failure.  If False, the caller owns the outer transaction.
        """
        self.session = session
        self._clock = clock or SystemClock()
        self._settings = settings or LedgerSettings()
        self._auto_commit = auto_commit

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    @contextmanager
    def _operation(
        self,
        name: str,
        actor_id: UUID | None = None,
        **context: Any,
    ) -> Iterator[dict[str, Any]]:
        """
        Run one service operation atomically.

        Yields a dict the body may fill with fields for the completion log.
        """
        log_fields: dict[str, Any] = {}
        bind = {k: str(v) for k, v in context.items() if v is not None}
        with LogContext.bind(
            operation=name,
            actor_id=str(actor_id) if actor_id is not None else None,
            **bind,
        ):
            logger.info(f"{name}_started")
            t0 = time.monotonic()
            try:
                with self.session.begin_nested():
                    yield log_fields
                if self._auto_commit:
                    self.session.commit()
            except InventoryKernelError as exc:
                if self._auto_commit:
                    self.session.rollback()
                logger.warning(
                    f"{name}_rejected",
                    extra={
                        "error_code": exc.code,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                )
                raise
            except SQLAlchemyError as exc:
                if self._auto_commit:
                    self.session.rollback()
                logger.error(
                    f"{name}_failed",
                    extra={"duration_ms": round((time.monotonic() - t0) * 1000, 2)},
                    exc_info=True,
                )
                raise StorageFailureError(name, exc) from exc
            except Exception:
                if self._auto_commit:
                    self.session.rollback()
                logger.error(
                    f"{name}_failed",
                    extra={"duration_ms": round((time.monotonic() - t0) * 1000, 2)},
                    exc_info=True,
                )
                raise

            log_fields["duration_ms"] = round((time.monotonic() - t0) * 1000, 2)
            logger.info(f"{name}_completed", extra=log_fields)
