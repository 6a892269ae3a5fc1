"""
Atomic multi-statement batches.

A batch is an ordered list of statements applied as one unit: they are
executed in order inside the session's transaction and committed once. If any
statement fails the whole transaction is rolled back, so a caller never
observes a partially applied batch.
"""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from orangetv.core.errors import NotFound, StorageFailure

logger = logging.getLogger(__name__)


class AtomicBatch:
    def __init__(self, db: Session, label: str):
        self.db = db
        self.label = label
        self._statements: list[Any] = []

    def add(self, statement: Any, required: bool = False) -> "AtomicBatch":
        """
        Queue a statement. A required statement that touches no row aborts
        the whole batch.
        """
        self._statements.append((statement, required))
        return self

    def __len__(self) -> int:
        return len(self._statements)

    def apply(self) -> list[int]:
        """
        Execute all statements and commit.

        Returns:
            Row counts, one per statement, in order

        Raises:
            NotFound: a required statement matched no row (after rollback)
            IntegrityError: a constraint rejected one of the statements
                (after rollback; callers map it to a domain conflict)
            StorageFailure: any other database error (after rollback)
        """
        counts: list[int] = []
        try:
            for stmt, required in self._statements:
                rowcount = self.db.execute(stmt).rowcount
                if required and rowcount == 0:
                    self.db.rollback()
                    raise NotFound(f"Nothing to {self.label}")
                counts.append(rowcount)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("Batch %r rejected by constraint, rolled back", self.label)
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Batch %r failed, rolled back: %s", self.label, exc)
            raise StorageFailure(f"Failed to {self.label}") from exc

        logger.debug("Batch %r applied %d statements", self.label, len(counts))
        return counts
